from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any

from academy_app.data.local_storage import LocalStorage
from academy_app.data.migrations import (
    COLLECTION_KEYS,
    CURRENT_SCHEMA_VERSION,
    SCHEMA_VERSION_KEY,
    migrate,
    seed_courses,
)
from academy_app.models import AppState
from academy_app.services.errors import LoadFailure

logger = logging.getLogger(__name__)

AUTH_TRUE = "true"
AUTH_FALSE = "false"


class StateRepository:
    """Loads and saves the whole :class:`AppState` as one serialized record.

    The collections live under ``data_key``. The authentication flag lives
    under ``auth_key`` and is only written through :meth:`write_auth_flag`,
    so saving a state snapshot never logs anyone in or out. A blob that
    cannot be read at all is copied to ``backup_key`` before the seeded
    state replaces it.
    """

    def __init__(self, storage: LocalStorage, *, data_key: str, auth_key: str) -> None:
        self._storage = storage
        self._data_key = data_key
        self._auth_key = auth_key
        self._backup_key = f"{data_key}_backup"

    @property
    def storage(self) -> LocalStorage:
        return self._storage

    @property
    def auth_key(self) -> str:
        return self._auth_key

    @property
    def backup_key(self) -> str:
        return self._backup_key

    def load(self) -> AppState:
        is_authenticated = self.read_auth_flag()
        raw = self._storage.get_item(self._data_key)
        try:
            state, migrated_blob, dropped = self._decode(raw, is_authenticated=is_authenticated)
        except LoadFailure as exc:
            logger.warning("Falling back to a fresh state: %s", exc)
            if raw is not None:
                self._storage.set_item(self._backup_key, raw)
                logger.warning("Previous state kept under %s", self._backup_key)
            state = self.initial_state()
            self.save(state)
            if self._storage.get_item(self._auth_key) is None:
                self.write_auth_flag(False)
            return replace(state, is_authenticated=is_authenticated)

        if dropped:
            logger.warning("Dropped %d unreadable record(s); previous state kept under %s", dropped, self._backup_key)
            self._storage.set_item(self._backup_key, raw)
            self.save(state)
        elif migrated_blob is not None:
            self._storage.set_item(self._data_key, json.dumps(migrated_blob, ensure_ascii=False))

        return state

    def save(self, state: AppState) -> None:
        payload: dict[str, Any] = {SCHEMA_VERSION_KEY: CURRENT_SCHEMA_VERSION, **state.to_payload()}
        self._storage.set_item(self._data_key, json.dumps(payload, ensure_ascii=False))

    def read_auth_flag(self) -> bool:
        return self._storage.get_item(self._auth_key) == AUTH_TRUE

    def write_auth_flag(self, value: bool) -> None:
        self._storage.set_item(self._auth_key, AUTH_TRUE if value else AUTH_FALSE)

    @staticmethod
    def initial_state() -> AppState:
        return AppState.from_payload({"courses": seed_courses()})

    @staticmethod
    def _decode(raw: str | None, *, is_authenticated: bool) -> tuple[AppState, dict[str, Any] | None, int]:
        """Parse and migrate the stored blob.

        Returns the decoded state, the upgraded blob to write back when any
        migration ran, and how many stored records could not be decoded.
        """

        if raw is None:
            raise LoadFailure("no saved state")

        try:
            blob = json.loads(raw)
        except ValueError as exc:
            raise LoadFailure(f"saved state is not valid JSON ({exc})") from exc

        if not isinstance(blob, dict):
            raise LoadFailure("saved state is not an object")

        try:
            migrated, applied = migrate(blob)
            state = AppState.from_payload(migrated, is_authenticated=is_authenticated)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise LoadFailure(f"saved state has malformed records ({exc!r})") from exc

        return state, (migrated if applied else None), _dropped_count(blob, state)


def _dropped_count(blob: dict[str, Any], state: AppState) -> int:
    decoded = state.to_payload()
    return sum(
        max(len(blob[key]) - len(decoded[key]), 0) for key in COLLECTION_KEYS if isinstance(blob.get(key), list)
    )
