from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class LocalStorage:
	"""String key/value store persisted as one JSON file.

	Mirrors the browser ``localStorage`` contract the academy data was first
	kept in: every value is a string, reads of a missing key return ``None``
	and every write is flushed to disk before returning.
	"""

	path: Path
	_data: Dict[str, str] = field(init=False, default_factory=dict)

	def __post_init__(self) -> None:
		self.path = Path(self.path).expanduser()
		self.path.parent.mkdir(parents=True, exist_ok=True)
		self.reload()

	# ------------------------------------------------------------------
	# Public API
	# ------------------------------------------------------------------
	def get_item(self, key: str) -> Optional[str]:
		return self._data.get(key)

	def set_item(self, key: str, value: str) -> None:
		self._data[key] = str(value)
		self._persist()

	def remove_item(self, key: str) -> None:
		if self._data.pop(key, None) is not None:
			self._persist()

	def keys(self) -> list[str]:
		return list(self._data)

	def clear(self) -> None:
		self._data = {}
		self._persist()

	def reload(self) -> None:
		self._data = self._load_json(self.path)

	# ------------------------------------------------------------------
	# Internal helpers
	# ------------------------------------------------------------------
	def _persist(self) -> None:
		tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
		with tmp_path.open("w", encoding="utf-8") as handle:
			json.dump(self._data, handle, ensure_ascii=False, indent=2)
		os.replace(tmp_path, self.path)

	@staticmethod
	def _load_json(path: Path) -> Dict[str, str]:
		if not path.exists():
			return {}
		try:
			with path.open("r", encoding="utf-8") as handle:
				raw = json.load(handle)
		except (OSError, ValueError) as exc:
			logger.warning("Ignoring unreadable storage file %s: %s", path, exc)
			return {}
		if not isinstance(raw, dict):
			logger.warning("Ignoring storage file %s: expected a JSON object", path)
			return {}
		return {str(key): value for key, value in raw.items() if isinstance(value, str)}
