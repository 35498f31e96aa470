from __future__ import annotations

from academy_app.data import LocalStorage, StateRepository
from academy_app.services import AuthGate


def _gate(tmp_path):
    repository = StateRepository(LocalStorage(tmp_path / "local_storage.json"), data_key="data", auth_key="auth")
    return AuthGate(repository, admin_email="admin@zat.org", admin_password="zat2024"), repository


def test_login_with_correct_credentials(tmp_path):
    gate, repository = _gate(tmp_path)

    assert gate.login("admin@zat.org", "zat2024") is True
    assert gate.is_authenticated()
    assert repository.storage.get_item("auth") == "true"

    reopened, _ = _gate(tmp_path)
    assert reopened.is_authenticated()


def test_login_with_wrong_credentials_keeps_flag(tmp_path):
    gate, repository = _gate(tmp_path)

    assert gate.login("admin@zat.org", "wrong") is False
    assert gate.login("Admin@zat.org", "zat2024") is False
    assert not gate.is_authenticated()

    gate.login("admin@zat.org", "zat2024")
    assert gate.login("someone@zat.org", "nope") is False
    assert gate.is_authenticated()


def test_logout(tmp_path):
    gate, repository = _gate(tmp_path)
    gate.login("admin@zat.org", "zat2024")

    gate.logout()

    assert not gate.is_authenticated()
    assert repository.storage.get_item("auth") == "false"
