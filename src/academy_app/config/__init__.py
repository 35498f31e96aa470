from .settings import Settings, refresh_settings, settings

__all__ = ["Settings", "settings", "refresh_settings"]
