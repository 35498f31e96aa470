from __future__ import annotations

import json
from pathlib import Path

from academy_app.data import CURRENT_SCHEMA_VERSION, LocalStorage, StateRepository, migrate
from academy_app.models import DEFAULT_COURSES, DEFAULT_GROUP_NAME

DATA_KEY = "zat_initiative_data_v2"
AUTH_KEY = "zat_initiative_auth"


def _repository(tmp_path: Path) -> StateRepository:
    storage = LocalStorage(tmp_path / "local_storage.json")
    return StateRepository(storage, data_key=DATA_KEY, auth_key=AUTH_KEY)


def test_load_without_saved_state_seeds_default_courses(tmp_path):
    repository = _repository(tmp_path)

    state = repository.load()

    assert [course.name_en for course in state.courses] == [seed["name_en"] for seed in DEFAULT_COURSES]
    assert state.groups == () and state.students == () and state.sessions == () and state.attendance == ()
    assert state.is_authenticated is False

    stored = json.loads(repository.storage.get_item(DATA_KEY))
    assert stored["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert len(stored["courses"]) == len(DEFAULT_COURSES)
    assert repository.storage.get_item(AUTH_KEY) == "false"


def test_load_recovers_from_malformed_json(tmp_path):
    repository = _repository(tmp_path)
    repository.storage.set_item(DATA_KEY, "{broken")

    state = repository.load()

    assert len(state.courses) == len(DEFAULT_COURSES)
    assert json.loads(repository.storage.get_item(DATA_KEY))["courses"]
    assert repository.storage.get_item(repository.backup_key) == "{broken"


def test_malformed_records_are_skipped_and_the_rest_kept(tmp_path):
    repository = _repository(tmp_path)
    students = [
        {"id": f"s{index}", "fullName": f"Student {index}", "phoneNumber": f"01000000{index:02d}"}
        for index in range(50)
    ]
    blob = {
        "schemaVersion": CURRENT_SCHEMA_VERSION,
        "courses": [{"id": "c1", "name": "English"}],
        "groups": [{"id": "g1", "courseId": "c1", "name": "Morning"}],
        "students": students,
        "sessions": [{"id": "x1", "groupId": "g1", "title": "S1", "date": "2026-10-20"}],
        "attendance": [],
    }
    raw = json.dumps(blob)
    repository.storage.set_item(DATA_KEY, raw)

    state = repository.load()

    assert len(state.students) == 50
    assert [course.id for course in state.courses] == ["c1"]
    assert state.sessions == ()
    stored = json.loads(repository.storage.get_item(DATA_KEY))
    assert len(stored["students"]) == 50
    assert repository.storage.get_item(repository.backup_key) == raw


def test_records_without_ids_are_dropped_during_migration(tmp_path):
    repository = _repository(tmp_path)
    students = [{"fullName": "No id"}, {"id": "s1", "fullName": "Omar", "phoneNumber": "0100000001"}]
    repository.storage.set_item(DATA_KEY, json.dumps({"courses": [], "students": students}))

    state = repository.load()

    assert [student.id for student in state.students] == ["s1"]
    assert state.courses == ()
    assert repository.storage.get_item(repository.backup_key) is not None


def test_save_then_load_round_trips(tmp_path):
    repository = _repository(tmp_path)
    state = repository.load()

    repository.save(state)
    reloaded = _repository(tmp_path).load()

    assert reloaded == state


def test_auth_flag_is_stored_under_its_own_key(tmp_path):
    repository = _repository(tmp_path)
    state = repository.load()

    repository.write_auth_flag(True)
    assert repository.storage.get_item(AUTH_KEY) == "true"

    repository.save(state)
    assert repository.storage.get_item(AUTH_KEY) == "true"
    assert "isAuthenticated" not in json.loads(repository.storage.get_item(DATA_KEY))
    assert repository.load().is_authenticated is True
    assert repository.load().courses == state.courses


def test_legacy_blob_is_migrated_and_written_back(tmp_path):
    repository = _repository(tmp_path)
    legacy = {
        "courses": [
            {"id": "c1", "name": "English", "nameEn": "English", "description": "", "icon": "", "createdAt": "x"},
        ],
        "groups": [{"id": "g1", "nameEn": "Morning"}, {"id": "g2", "maxCapacity": 0}],
        "students": [
            {"id": "s1", "fullName": "Omar", "phoneNumber": "0100000001", "groupIds": ["g1", "g2"]},
            {"id": "s2", "fullName": "Mona", "phoneNumber": "0100000002", "groupIds": []},
        ],
    }
    repository.storage.set_item(DATA_KEY, json.dumps(legacy))

    state = repository.load()

    first, second = state.groups
    assert first.course_id == "c1"
    assert first.name == "Morning"
    assert first.instructor_name == ""
    assert first.max_capacity is None
    assert second.name == DEFAULT_GROUP_NAME
    assert second.max_capacity is None

    omar, mona = state.students
    assert omar.group_id == "g1"
    assert omar.course_id is None
    assert omar.is_new is True
    assert omar.certificate_fee_paid is False
    assert mona.group_id is None
    assert state.sessions == () and state.attendance == ()

    stored = json.loads(repository.storage.get_item(DATA_KEY))
    assert stored["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert "groupIds" not in stored["students"][0]


def test_empty_course_list_is_kept():
    migrated, applied = migrate({"courses": []})

    assert migrated["courses"] == []
    assert applied == ["ensure_collections", "backfill_group_fields", "collapse_student_group_ids"]


def test_current_blob_runs_no_migrations():
    blob = {"schemaVersion": CURRENT_SCHEMA_VERSION, "courses": [], "groups": [], "students": []}

    migrated, applied = migrate(blob)

    assert applied == []
    assert migrated == blob
