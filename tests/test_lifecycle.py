import pytest

from backend.vocab_quiz.quiz.lifecycle import (
	FRESHNESS_WINDOW_MS,
	SessionAction,
	SessionLifecycleManager,
	resolve_section,
)
from backend.vocab_quiz.quiz.session_store import (
	FORM_DATA_KEY,
	LAST_VISIT_KEY,
	PersistedSessionStore,
	RegistrationIdentity,
	Section,
	SessionRecord,
)


NOW = 1_760_000_000_000


def _record(section=Section.QUESTIONNAIRE, nickname="Ana", number="7"):
	return SessionRecord(
		nickname=nickname,
		number=number,
		answers={"question1": "server"},
		current_section=section,
	)


def _manager(store):
	return SessionLifecycleManager(store, freshness_window_ms=FRESHNESS_WINDOW_MS, clock=lambda: NOW)


@pytest.fixture
def store():
	return PersistedSessionStore({})


def test_first_visit_clears_and_stamps(store):
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.CLEAR_ALL
	assert decision.section is Section.REGISTRATION
	assert store.get_visit_timestamp() == NOW


def test_expired_visit_without_data_clears(store):
	store.set_visit_timestamp(NOW - 10 * FRESHNESS_WINDOW_MS)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.CLEAR_ALL
	assert store.get_visit_timestamp() == NOW


def test_reload_within_window_restores_questionnaire(store):
	store.save(_record())
	store.set_registration_identity("42", "Ana")
	store.set_visit_timestamp(NOW - 1_000)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.KEEP_AND_RESTORE
	assert decision.section is Section.QUESTIONNAIRE
	assert decision.record.answers["question1"] == "server"
	assert store.get_visit_timestamp() == NOW


def test_reload_within_window_without_data(store):
	store.set_visit_timestamp(NOW - 1_000)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.KEEP_AND_RESTORE
	assert decision.section is Section.REGISTRATION
	assert decision.record is None


def test_rapid_reload_is_idempotent(store):
	store.save(_record())
	store.set_registration_identity("42", "Ana")
	store.set_visit_timestamp(NOW - 500)
	manager = _manager(store)
	first = manager.decide_session_state()
	second = manager.decide_session_state()
	assert first.action is second.action is SessionAction.KEEP_AND_RESTORE
	assert first.section is second.section is Section.QUESTIONNAIRE
	assert first.record == second.record


def test_idempotent_after_long_absence(store):
	store.save(_record())
	store.set_registration_identity("42", "Ana")
	store.set_visit_timestamp(NOW - 2 * FRESHNESS_WINDOW_MS)
	manager = _manager(store)
	first = manager.decide_session_state()
	second = manager.decide_session_state()
	assert first.action is second.action is SessionAction.KEEP_AND_RESTORE
	assert first.section is second.section


@pytest.mark.parametrize("age", [None, 0, 1_000, FRESHNESS_WINDOW_MS, FRESHNESS_WINDOW_MS + 1, 10 * FRESHNESS_WINDOW_MS])
def test_questionnaire_without_identity_is_corrupted(store, age):
	store.save(_record(Section.QUESTIONNAIRE))
	if age is not None:
		store.set_visit_timestamp(NOW - age)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.CLEAR_ALL
	assert decision.section is Section.REGISTRATION
	assert decision.corrupted
	assert store.load() is None
	assert store.get_registration_identity() is None
	assert store.get_visit_timestamp() == NOW


def test_results_without_identity_within_window_is_corrupted(store):
	store.save(_record(Section.RESULTS))
	store.set_visit_timestamp(NOW - 1)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.CLEAR_ALL
	assert not store.has_saved_record()


def test_freshness_boundary_keeps_valid_data(store):
	store.save(_record())
	store.set_registration_identity("42", "Ana")
	store.set_visit_timestamp(NOW - 300_001)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.KEEP_AND_RESTORE
	assert decision.section is Section.QUESTIONNAIRE
	assert store.load() == _record()


def test_exactly_at_window_is_same_session(store):
	store.save(_record(Section.REGISTRATION, number=""))
	store.set_visit_timestamp(NOW - FRESHNESS_WINDOW_MS)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.KEEP_AND_RESTORE
	assert decision.section is Section.REGISTRATION


def test_registration_draft_after_long_absence_is_cleared(store):
	store.save(_record(Section.REGISTRATION))
	store.set_visit_timestamp(NOW - 2 * FRESHNESS_WINDOW_MS)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.CLEAR_ALL


def test_identity_only_after_long_absence_starts_fresh(store):
	store.set_registration_identity("42", "Ana")
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.KEEP_AND_START_FRESH
	assert decision.section is Section.REGISTRATION
	assert store.get_registration_identity() == RegistrationIdentity("42", "Ana")
	assert store.get_visit_timestamp() == NOW


def test_results_section_resumes_questionnaire(store):
	store.save(_record(Section.RESULTS))
	store.set_registration_identity("42", "Ana")
	store.set_visit_timestamp(NOW - 100)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.KEEP_AND_RESTORE
	assert decision.section is Section.QUESTIONNAIRE


def test_questionnaire_missing_number_falls_back_to_registration(store):
	store.save(_record(Section.QUESTIONNAIRE, number=""))
	store.set_registration_identity("42", "Ana")
	store.set_visit_timestamp(NOW - 100)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.KEEP_AND_RESTORE
	assert decision.section is Section.REGISTRATION


def test_malformed_record_is_cleared(store):
	store.storage[FORM_DATA_KEY] = "{broken"
	store.set_registration_identity("42", "Ana")
	store.set_visit_timestamp(NOW - 100)
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.CLEAR_ALL
	assert decision.corrupted
	assert not store.has_saved_record()
	assert store.get_registration_identity() is None


def test_never_raises_when_storage_fails():
	class BrokenStorage(dict):
		def __setitem__(self, key, value):
			raise OSError("disk full")

	store = PersistedSessionStore(BrokenStorage())
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.CLEAR_ALL
	assert decision.section is Section.REGISTRATION


def test_malformed_timestamp_counts_as_fresh(store):
	store.storage[LAST_VISIT_KEY] = "NaN"
	decision = _manager(store).decide_session_state()
	assert decision.action is SessionAction.CLEAR_ALL
	assert store.get_visit_timestamp() == NOW


def test_explicit_now_overrides_clock(store):
	_manager(store).decide_session_state(now=42)
	assert store.get_visit_timestamp() == 42


def test_resolve_section():
	identity = RegistrationIdentity("42", "Ana")
	assert resolve_section(_record(Section.REGISTRATION), identity) is Section.REGISTRATION
	assert resolve_section(_record(Section.QUESTIONNAIRE), identity) is Section.QUESTIONNAIRE
	assert resolve_section(_record(Section.RESULTS), identity) is Section.QUESTIONNAIRE
	assert resolve_section(_record(Section.RESULTS), None) is Section.REGISTRATION
	assert resolve_section(_record(Section.QUESTIONNAIRE, nickname=""), identity) is Section.REGISTRATION
