from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from academy_app import configure_logging
from academy_app.config.settings import Settings, settings as default_settings
from academy_app.data import LocalStorage, StateRepository
from academy_app.models import AppState, Session
from academy_app.services import AcademyStore, AuthGate, CheckInFlow, Notifier, ValidationError
from academy_app.services.qr_links import build_check_in_url

logger = logging.getLogger(__name__)


class AcademyApp:
    """Root context: owns storage, the current state and the notifier.

    Front ends call :meth:`run` with an :class:`AcademyStore` method; the
    outcome is reported through :attr:`notifier` and the current state is
    replaced only when the operation succeeds.
    """

    def __init__(self, config: Settings, *, storage: Optional[LocalStorage] = None) -> None:
        self._settings = config
        self._storage = storage or LocalStorage(config.storage_path)
        self._repository = StateRepository(
            self._storage,
            data_key=config.storage_key,
            auth_key=config.auth_key,
        )
        self.store = AcademyStore(self._repository)
        self.auth = AuthGate(
            self._repository,
            admin_email=config.admin_email,
            admin_password=config.admin_password,
        )
        self.notifier = Notifier()
        self._state = self._repository.load()

    @classmethod
    def create(cls, config: Optional[Settings] = None, *, with_logging: bool = False) -> "AcademyApp":
        config = config or default_settings
        if with_logging:
            configure_logging(config.log_level)
        logger.info("Starting %s with storage at %s", config.app_name, config.storage_path)
        return cls(config)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> AppState:
        return self._state

    def reload(self) -> AppState:
        self._state = self._repository.load()
        return self._state

    def run(
        self,
        operation: Callable[..., AppState],
        *args: Any,
        success_message: Optional[str] = None,
        **kwargs: Any,
    ) -> bool:
        """Apply a store operation to the latest saved state.

        Validation failures are published as error notifications and leave
        the state as it was.
        """

        current = self._repository.load()
        try:
            new_state = operation(current, *args, **kwargs)
        except ValidationError as exc:
            logger.info("Rejected %s: %s", getattr(operation, "__name__", operation), exc)
            self.notifier.publish(str(exc), "error")
            return False

        self._state = new_state
        if success_message:
            self.notifier.publish(success_message, "success")
        return True

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> bool:
        success = self.auth.login(email, password)
        if success:
            self._state = replace(self._state, is_authenticated=True)
        else:
            self.notifier.publish("Incorrect email or password.", "error")
        return success

    def logout(self) -> None:
        self.auth.logout()
        self._state = replace(self._state, is_authenticated=False)

    # ------------------------------------------------------------------
    # Public check-in
    # ------------------------------------------------------------------
    def start_check_in(self, token: str) -> CheckInFlow:
        return CheckInFlow(self.store, self._state, token)

    def finish_check_in(self, flow: CheckInFlow) -> AppState:
        """Pick up what a check-in flow saved.

        The flow writes on top of the latest saved data, so reloading merges
        its records with any admin changes made while it was open.
        """

        logger.debug("Check-in finished at step %s", flow.step.value)
        return self.reload()

    def check_in_url(self, session: Session) -> str:
        return build_check_in_url(self._settings.public_origin, session.qr_token)

    def close(self) -> None:
        self.notifier.clear()
