from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from academy_app.data.repository import StateRepository

logger = logging.getLogger(__name__)


class AuthGate:
    """Single admin login backed by one persisted boolean.

    This only keeps casual visitors out of the admin screens: the password is
    compared in plain text, nothing expires and attempts are not limited. Do
    not rely on it to protect sensitive data.
    """

    def __init__(self, repository: "StateRepository", *, admin_email: str, admin_password: str) -> None:
        self._repository = repository
        self._admin_email = admin_email
        self._admin_password = admin_password

    def login(self, email: str, password: str) -> bool:
        if email == self._admin_email and password == self._admin_password:
            self._repository.write_auth_flag(True)
            logger.info("Admin logged in")
            return True
        logger.info("Rejected admin login for %r", email)
        return False

    def logout(self) -> None:
        self._repository.write_auth_flag(False)
        logger.info("Admin logged out")

    def is_authenticated(self) -> bool:
        return self._repository.read_auth_flag()
