"""Event-driven form controller.

Page events arrive as plain objects and go through :meth:`FormController.dispatch`,
which updates a :class:`ViewState`. A presentation layer renders that state;
nothing here touches a DOM.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

from .api_client import AnswerKeyClient, SubmissionClient
from .errors import FetchFailed, SubmissionFailed, ValidationError
from .lifecycle import SessionLifecycleManager
from .scoring import QUESTION_KEYS, AnswerKeyMap, ResultRow, detailed_results, score, score_band
from .session_store import PersistedSessionStore, Section, SessionRecord


logger = logging.getLogger(__name__)

REGISTRATION_FIELDS = ("nickname", "number")
REGISTRATION_FORM = "registration"
QUESTIONNAIRE_FORM = "questionnaire"


@dataclass(frozen=True)
class PageLoaded:
	pass


@dataclass(frozen=True)
class RetryRequested:
	pass


@dataclass(frozen=True)
class InputChanged:
	field: str
	value: str


@dataclass(frozen=True)
class FormSubmitted:
	form: str


@dataclass(frozen=True)
class VisibilityHidden:
	pass


@dataclass(frozen=True)
class Unloaded:
	pass


Event = Union[PageLoaded, RetryRequested, InputChanged, FormSubmitted, VisibilityHidden, Unloaded]


def _empty_fields() -> Dict[str, str]:
	fields = {name: "" for name in REGISTRATION_FIELDS}
	fields.update({key: "" for key in QUESTION_KEYS})
	return fields


@dataclass
class QuizContext:
	"""Application state shared by the handlers of one page."""

	answer_key: AnswerKeyMap = field(default_factory=dict)
	is_submitting: bool = False
	fields: Dict[str, str] = field(default_factory=_empty_fields)

	@property
	def answer_key_loaded(self) -> bool:
		return bool(self.answer_key)

	def answers(self) -> Dict[str, str]:
		return {key: self.fields.get(key, "") for key in QUESTION_KEYS}


@dataclass
class Status:
	message: str = ""
	kind: str = ""


@dataclass
class QuizResult:
	score: int
	band: str
	nickname: str
	rows: List[ResultRow]


@dataclass
class ViewState:
	section: Section = Section.REGISTRATION
	status: Status = field(default_factory=Status)
	error_fields: Set[str] = field(default_factory=set)
	form_disabled: bool = False
	retry_available: bool = False
	quiz_ready: bool = False
	focus_field: Optional[str] = None
	result: Optional[QuizResult] = None


class FormController:
	def __init__(
		self,
		store: PersistedSessionStore,
		answer_key_client: AnswerKeyClient,
		submission_client: SubmissionClient,
		*,
		lifecycle: Optional[SessionLifecycleManager] = None,
		context: Optional[QuizContext] = None,
	) -> None:
		self.store = store
		self.answer_key_client = answer_key_client
		self.submission_client = submission_client
		self.lifecycle = lifecycle or SessionLifecycleManager(store)
		self.context = context or QuizContext()
		self.view = ViewState()
		self._handlers = {
			PageLoaded: self._on_load,
			RetryRequested: self._on_retry,
			InputChanged: self._on_input,
			FormSubmitted: self._on_submit,
			VisibilityHidden: self._on_hidden,
			Unloaded: self._on_unload,
		}

	async def dispatch(self, event: Event) -> ViewState:
		handler = self._handlers.get(type(event))
		if handler is None:
			raise TypeError(f"Unsupported event: {event!r}")
		await handler(event)
		return self.view

	def _set_status(self, message: str = "", kind: str = "") -> None:
		self.view.status = Status(message, kind)

	def save_form_data(self) -> None:
		# Nothing to persist once results are shown; the quiz is complete
		if self.view.section is Section.RESULTS:
			return
		record = SessionRecord(
			nickname=self.context.fields.get("nickname", ""),
			number=self.context.fields.get("number", ""),
			answers=self.context.answers(),
			current_section=self.view.section,
		)
		self.store.save(record)

	# --- page lifecycle -------------------------------------------------

	async def _on_load(self, event: PageLoaded) -> None:
		await self._initialize("Loading quiz...")

	async def _on_retry(self, event: RetryRequested) -> None:
		await self._initialize("Retrying...")

	async def _initialize(self, loading_message: str) -> None:
		self._set_status(loading_message, "info")
		self.view.retry_available = False
		try:
			self.context.answer_key = await self.answer_key_client.fetch_answer_key()
		except FetchFailed as e:
			logger.error("Failed to load correct answers: %s", e)
			self._set_status("Failed to load quiz data. Please refresh the page.", "error")
			self.view.retry_available = True
			return
		self._set_status()
		self.view.quiz_ready = True

		decision = self.lifecycle.decide_session_state()
		logger.info("Session decision: %s -> %s", decision.action.value, decision.section.value)
		if decision.record is not None:
			self._restore_fields(decision.record)
		self.view.section = decision.section

	def _restore_fields(self, record: SessionRecord) -> None:
		if record.nickname:
			self.context.fields["nickname"] = record.nickname
		if record.number:
			self.context.fields["number"] = record.number
		for key, value in record.answers.items():
			if value:
				self.context.fields[key] = value

	async def _on_input(self, event: InputChanged) -> None:
		if event.field not in self.context.fields:
			logger.debug("Ignoring input for unknown field %s", event.field)
			return
		self.context.fields[event.field] = event.value
		self.view.error_fields.discard(event.field)
		if event.field in REGISTRATION_FIELDS and self.view.status.kind == "error":
			self._set_status()
		self.save_form_data()

	async def _on_hidden(self, event: VisibilityHidden) -> None:
		self.save_form_data()

	async def _on_unload(self, event: Unloaded) -> None:
		self.save_form_data()
		# Next visit after completing the quiz starts fresh
		if self.view.section is Section.RESULTS:
			self.store.clear_visit_timestamp()

	# --- submissions ----------------------------------------------------

	async def _on_submit(self, event: FormSubmitted) -> None:
		# Prevent double submission
		if self.context.is_submitting:
			return
		if event.form == REGISTRATION_FORM:
			await self._submit_registration()
		elif event.form == QUESTIONNAIRE_FORM:
			await self._submit_questionnaire()
		else:
			raise ValueError(f"Unknown form: {event.form}")

	def _validate_registration(self) -> tuple[str, str]:
		nickname = self.context.fields.get("nickname", "").strip()
		number = self.context.fields.get("number", "").strip()
		missing = [name for name, value in (("nickname", nickname), ("number", number)) if not value]
		if missing:
			raise ValidationError("Please fill in all fields", missing)
		return nickname, number

	async def _submit_registration(self) -> None:
		try:
			nickname, number = self._validate_registration()
		except ValidationError as e:
			self._set_status(e.message, "error")
			self.view.error_fields.update(e.fields)
			return
		self.view.error_fields.difference_update(REGISTRATION_FIELDS)

		self.context.is_submitting = True
		self.view.form_disabled = True
		self._set_status("Submitting...")
		try:
			registration_id = await self.submission_client.submit_registration(nickname, number)
		except SubmissionFailed as e:
			logger.error("Registration error: %s", e.message)
			self._set_status(e.message or "Error submitting form. Please try again.", "error")
			self.view.form_disabled = False
			return
		finally:
			self.context.is_submitting = False

		logger.info("Registration successful: %s", registration_id)
		self.store.set_registration_identity(registration_id, nickname)
		self._set_status("Good luck", "success")
		self.view.form_disabled = False
		self.view.section = Section.QUESTIONNAIRE
		self.save_form_data()

	def _validate_questionnaire(self) -> Dict[str, str]:
		answers = {key: value.strip() for key, value in self.context.answers().items()}
		missing = [key for key, value in answers.items() if not value]
		if missing:
			raise ValidationError("Please answer all questions", missing)
		return answers

	async def _submit_questionnaire(self) -> None:
		if not self.context.answer_key_loaded:
			self._set_status("Quiz data not loaded. Please refresh the page.", "error")
			return
		self.view.error_fields.difference_update(QUESTION_KEYS)
		try:
			answers = self._validate_questionnaire()
		except ValidationError as e:
			self._set_status(e.message, "error")
			self.view.error_fields.update(e.fields)
			self.view.focus_field = e.fields[0]
			return
		self.view.focus_field = None

		self.context.is_submitting = True
		self.view.form_disabled = True
		self._set_status("Submitting...")
		try:
			identity = self.store.get_registration_identity()
			if identity is None:
				raise SubmissionFailed("Registration information missing. Please start over.")
			total = score(answers, self.context.answer_key)
			logger.info("Score calculated: %d", total)
			answers_list = [
				{"question": f"Question {i}", "answer": answers[key]}
				for i, key in enumerate(QUESTION_KEYS, start=1)
			]
			await self.submission_client.submit_questionnaire(identity.registration_id, answers_list, total)
		except SubmissionFailed as e:
			logger.error("Questionnaire error: %s", e.message)
			self._set_status(e.message or "Error submitting questionnaire. Please try again.", "error")
			self.view.form_disabled = False
			return
		finally:
			self.context.is_submitting = False

		self.view.result = QuizResult(
			score=total,
			band=score_band(total),
			nickname=identity.nickname or "User",
			rows=detailed_results(answers, self.context.answer_key),
		)
		# Quiz complete: drop saved progress and identity
		self.store.clear()
		self._set_status()
		self.view.form_disabled = False
		self.view.section = Section.RESULTS
