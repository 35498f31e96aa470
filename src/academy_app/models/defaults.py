from __future__ import annotations

from typing import TypedDict


class CourseSeed(TypedDict):
    name: str
    name_en: str
    description: str
    icon: str


# Catalog every fresh installation starts with.
DEFAULT_COURSES: tuple[CourseSeed, ...] = (
    {"name": "اللغة الإنجليزية", "name_en": "English", "description": "دورات اللغة الإنجليزية", "icon": "🇬🇧"},
    {"name": "اللغة الألمانية", "name_en": "German", "description": "دورات اللغة الألمانية", "icon": "🇩🇪"},
    {"name": "ICDL", "name_en": "ICDL", "description": "الرخصة الدولية لقيادة الحاسوب", "icon": "💻"},
    {"name": "فوتوشوب", "name_en": "Photoshop", "description": "تصميم الجرافيك", "icon": "🎨"},
    {"name": "الذكاء الاصطناعي", "name_en": "AI", "description": "دورات الذكاء الاصطناعي", "icon": "🤖"},
    {"name": "البرمجة", "name_en": "Programming", "description": "HTML + CSS + JavaScript", "icon": "👨‍💻"},
    {"name": "تحرير الفيديو", "name_en": "Video Editing", "description": "Premiere Pro", "icon": "🎬"},
    {"name": "موشن جرافيك", "name_en": "Motion Graphics", "description": "After Effects", "icon": "✨"},
    {"name": "كانفا", "name_en": "Canva", "description": "Canva + Whiteboard", "icon": "🖼️"},
)

# Fallback name for legacy groups saved without one ("group").
DEFAULT_GROUP_NAME = "مجموعة"
