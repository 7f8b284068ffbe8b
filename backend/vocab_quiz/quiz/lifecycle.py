"""Page-load session recovery.

Runs once per page load, before any form restoration, and decides whether the
persisted data is kept, restored, or purged:

* no visit timestamp (or one older than the freshness window) and no data:
  a first visit, everything is cleared;
* an old visit with leftover data: the data is kept unless it is progress
  without a registration identity, which is corrupted;
* a reload within the window: the data is kept as-is.

Restoration checks the identity again, since corruption can be written
between two loads inside the same window.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..settings import settings
from .errors import CorruptedSessionState
from .session_store import PersistedSessionStore, RegistrationIdentity, Section, SessionRecord


logger = logging.getLogger(__name__)

FRESHNESS_WINDOW_MS = 300_000


def now_ms() -> int:
	return int(time.time() * 1000)


class SessionAction(str, Enum):
	CLEAR_ALL = "ClearAll"
	KEEP_AND_RESTORE = "KeepAndRestore"
	KEEP_AND_START_FRESH = "KeepAndStartFresh"


@dataclass(frozen=True)
class SessionDecision:
	action: SessionAction
	section: Section = Section.REGISTRATION
	# Record whose values should be copied back into the form
	record: Optional[SessionRecord] = None
	corrupted: bool = False


def resolve_section(record: SessionRecord, identity: Optional[RegistrationIdentity]) -> Section:
	resumable = bool(record.nickname and record.number and identity is not None)
	if record.current_section in (Section.QUESTIONNAIRE, Section.RESULTS):
		# Computed results cannot be rebuilt; resume on the questionnaire instead
		return Section.QUESTIONNAIRE if resumable else Section.REGISTRATION
	return Section.REGISTRATION


class SessionLifecycleManager:
	def __init__(
		self,
		store: PersistedSessionStore,
		*,
		freshness_window_ms: Optional[int] = None,
		clock: Callable[[], int] = now_ms,
	) -> None:
		self.store = store
		self.freshness_window_ms = freshness_window_ms if freshness_window_ms is not None else settings.freshness_window_ms
		self._clock = clock

	def is_fresh_visit(self, now: int) -> bool:
		last = self.store.get_visit_timestamp()
		return last is None or (now - last) > self.freshness_window_ms

	def decide_session_state(self, now: Optional[int] = None) -> SessionDecision:
		"""Decide what to do with persisted data on page load. Never raises."""
		current = self._clock() if now is None else now
		try:
			return self._decide(current)
		except CorruptedSessionState as e:
			logger.info("Clearing corrupted session state: %s", e)
			return self._clear_all(current, corrupted=True)
		except Exception:
			logger.exception("Session recovery failed, starting over")
			return self._clear_all(current, corrupted=True)

	def _decide(self, now: int) -> SessionDecision:
		has_record = self.store.has_saved_record()
		has_existing_data = has_record or self.store.has_any_identity()
		fresh = self.is_fresh_visit(now)

		if fresh and not has_existing_data:
			return self._clear_all(now)

		if fresh:
			if has_record and self.store.get_registration_identity() is None:
				raise CorruptedSessionState("questionnaire data without registration data")
			self.store.set_visit_timestamp(now)
			if not has_record:
				return SessionDecision(SessionAction.KEEP_AND_START_FRESH, Section.REGISTRATION)
		else:
			# Reload within the window extends the session
			self.store.set_visit_timestamp(now)

		return self._restore()

	def _restore(self) -> SessionDecision:
		record = self.store.load()
		if record is None:
			if self.store.has_saved_record():
				raise CorruptedSessionState("saved form data could not be parsed")
			return SessionDecision(SessionAction.KEEP_AND_RESTORE, Section.REGISTRATION)

		identity = self.store.get_registration_identity()
		if record.current_section is not Section.REGISTRATION and identity is None:
			raise CorruptedSessionState(f"no registration data for {record.current_section.value} state")

		section = resolve_section(record, identity)
		return SessionDecision(SessionAction.KEEP_AND_RESTORE, section, record=record)

	def _clear_all(self, now: int, corrupted: bool = False) -> SessionDecision:
		try:
			self.store.clear()
			self.store.set_visit_timestamp(now)
		except Exception:
			logger.exception("Could not clear persisted session data")
		return SessionDecision(SessionAction.CLEAR_ALL, Section.REGISTRATION, corrupted=corrupted)
