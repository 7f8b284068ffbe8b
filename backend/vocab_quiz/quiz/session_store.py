"""Browser-style persisted storage for an in-progress quiz.

The store sits on top of any string-keyed, string-valued mapping. A plain
``dict`` behaves like a tab's local storage for the lifetime of the process;
:class:`JsonFileStorage` keeps the same keys on disk so they survive a
restart.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, MutableMapping, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .scoring import QUESTION_KEYS


logger = logging.getLogger(__name__)

FORM_DATA_KEY = "vocabularyTestFormData"
REGISTRATION_ID_KEY = "registrationId"
USER_NICKNAME_KEY = "userNickname"
LAST_VISIT_KEY = "lastVisitTime"

ALL_KEYS = (FORM_DATA_KEY, REGISTRATION_ID_KEY, USER_NICKNAME_KEY, LAST_VISIT_KEY)


class Section(str, Enum):
	REGISTRATION = "registration"
	QUESTIONNAIRE = "questionnaire"
	RESULTS = "results"


def _empty_answers() -> Dict[str, str]:
	return {key: "" for key in QUESTION_KEYS}


class SessionRecord(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	nickname: str = ""
	number: str = ""
	answers: Dict[str, str] = Field(default_factory=_empty_answers)
	current_section: Section = Field(default=Section.REGISTRATION, alias="currentSection")

	@field_validator("answers")
	@classmethod
	def _fill_answers(cls, value: Dict[str, str]) -> Dict[str, str]:
		answers = _empty_answers()
		for key in QUESTION_KEYS:
			answers[key] = value.get(key) or ""
		return answers


class RegistrationIdentity(NamedTuple):
	registration_id: str
	nickname: str


class JsonFileStorage(MutableMapping[str, str]):
	"""String key/value storage persisted as one JSON object on disk."""

	def __init__(self, path: Path | str) -> None:
		self.path = Path(path)
		self._data: Dict[str, str] = self._read()

	def _read(self) -> Dict[str, str]:
		try:
			raw = json.loads(self.path.read_text(encoding="utf-8"))
		except FileNotFoundError:
			return {}
		except (OSError, ValueError):
			logger.warning("Unreadable storage file %s, starting empty", self.path)
			return {}
		if not isinstance(raw, dict):
			return {}
		return {str(k): str(v) for k, v in raw.items()}

	def _flush(self) -> None:
		self.path.parent.mkdir(parents=True, exist_ok=True)
		fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
		try:
			with os.fdopen(fd, "w", encoding="utf-8") as fh:
				json.dump(self._data, fh)
			os.replace(tmp, self.path)
		except BaseException:
			try:
				os.unlink(tmp)
			except OSError:
				pass
			raise

	def __getitem__(self, key: str) -> str:
		return self._data[key]

	def __setitem__(self, key: str, value: str) -> None:
		self._data[key] = str(value)
		self._flush()

	def __delitem__(self, key: str) -> None:
		del self._data[key]
		self._flush()

	def __iter__(self) -> Iterator[str]:
		return iter(self._data)

	def __len__(self) -> int:
		return len(self._data)

	def discard_many(self, *keys: str) -> None:
		"""Remove several keys with a single write."""
		for key in keys:
			self._data.pop(key, None)
		self._flush()


class PersistedSessionStore:
	def __init__(self, storage: Optional[MutableMapping[str, str]] = None) -> None:
		self._storage: MutableMapping[str, str] = storage if storage is not None else {}

	@property
	def storage(self) -> MutableMapping[str, str]:
		return self._storage

	def save(self, record: SessionRecord) -> None:
		self._storage[FORM_DATA_KEY] = record.model_dump_json(by_alias=True)

	def has_saved_record(self) -> bool:
		return bool(self._storage.get(FORM_DATA_KEY))

	def load(self) -> Optional[SessionRecord]:
		"""Return the saved record, or None when it is missing or malformed."""
		raw = self._storage.get(FORM_DATA_KEY)
		if not raw:
			return None
		try:
			return SessionRecord.model_validate_json(raw)
		except PydanticValidationError:
			logger.warning("Saved form data is malformed")
			return None

	def clear(self) -> None:
		discard_many = getattr(self._storage, "discard_many", None)
		if discard_many is not None:
			discard_many(*ALL_KEYS)
			return
		for key in ALL_KEYS:
			self._storage.pop(key, None)

	def has_any_identity(self) -> bool:
		return bool(self._storage.get(REGISTRATION_ID_KEY) or self._storage.get(USER_NICKNAME_KEY))

	def get_registration_identity(self) -> Optional[RegistrationIdentity]:
		registration_id = self._storage.get(REGISTRATION_ID_KEY)
		nickname = self._storage.get(USER_NICKNAME_KEY)
		# Both halves are required
		if not registration_id or not nickname:
			return None
		return RegistrationIdentity(registration_id, nickname)

	def set_registration_identity(self, registration_id: str, nickname: str) -> None:
		self._storage[REGISTRATION_ID_KEY] = str(registration_id)
		self._storage[USER_NICKNAME_KEY] = nickname

	def get_visit_timestamp(self) -> Optional[int]:
		raw = self._storage.get(LAST_VISIT_KEY)
		if not raw:
			return None
		try:
			return int(raw)
		except ValueError:
			logger.warning("Ignoring malformed visit timestamp %r", raw)
			return None

	def set_visit_timestamp(self, ms: int) -> None:
		self._storage[LAST_VISIT_KEY] = str(int(ms))

	def clear_visit_timestamp(self) -> None:
		self._storage.pop(LAST_VISIT_KEY, None)
