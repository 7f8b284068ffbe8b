import asyncio
import json

import httpx
import pytest

from backend.vocab_quiz.quiz.api_client import AnswerKeyClient, SubmissionClient
from backend.vocab_quiz.quiz.errors import FetchFailed, SubmissionFailed


BASE_URL = "http://quiz.test"


def _client(cls, handler):
	return cls(BASE_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_fetch_answer_key_groups_rows():
	def handler(request):
		assert request.method == "GET"
		assert request.url.path == "/correct-answers"
		return httpx.Response(200, json=[
			{"id": 1, "question_id": 1, "correct_answer": "server"},
			{"id": 2, "question_id": 2, "correct_answer": "souvenir"},
			{"id": 5, "question_id": 2, "correct_answer": "souvenier"},
		])

	answer_key = asyncio.run(_client(AnswerKeyClient, handler).fetch_answer_key())
	assert answer_key == {"question1": ["server"], "question2": ["souvenir", "souvenier"]}


def test_fetch_answer_key_non_200_raises_with_status():
	def handler(request):
		return httpx.Response(500, json={"error": "Internal server error", "details": "Database connection failed"})

	with pytest.raises(FetchFailed) as excinfo:
		asyncio.run(_client(AnswerKeyClient, handler).fetch_answer_key())
	assert excinfo.value.status == 500
	assert "Internal server error" in excinfo.value.message


def test_fetch_answer_key_uses_details_when_no_error():
	def handler(request):
		return httpx.Response(503, json={"details": "maintenance"})

	with pytest.raises(FetchFailed) as excinfo:
		asyncio.run(_client(AnswerKeyClient, handler).fetch_answer_key())
	assert "maintenance" in str(excinfo.value)


def test_fetch_answer_key_transport_failure():
	def handler(request):
		raise httpx.ConnectError("connection refused", request=request)

	with pytest.raises(FetchFailed) as excinfo:
		asyncio.run(_client(AnswerKeyClient, handler).fetch_answer_key())
	assert excinfo.value.status is None


def test_fetch_answer_key_malformed_body():
	def handler(request):
		return httpx.Response(200, json={"rows": []})

	with pytest.raises(FetchFailed):
		asyncio.run(_client(AnswerKeyClient, handler).fetch_answer_key())


def test_fetch_answer_key_makes_single_request():
	calls = []

	def handler(request):
		calls.append(request)
		return httpx.Response(502, text="bad gateway")

	with pytest.raises(FetchFailed):
		asyncio.run(_client(AnswerKeyClient, handler).fetch_answer_key())
	assert len(calls) == 1


def test_submit_registration_returns_id_as_string():
	def handler(request):
		assert request.url.path == "/submit-registration"
		assert json.loads(request.content) == {"nickname": "Ana", "number": "7"}
		return httpx.Response(201, json={"id": 42, "nickname": "Ana", "number": "7"})

	registration_id = asyncio.run(_client(SubmissionClient, handler).submit_registration("Ana", "7"))
	assert registration_id == "42"


def test_submit_registration_error_message():
	def handler(request):
		return httpx.Response(400, json={"error": "nickname and number are required"})

	with pytest.raises(SubmissionFailed) as excinfo:
		asyncio.run(_client(SubmissionClient, handler).submit_registration("", ""))
	assert excinfo.value.message == "nickname and number are required"
	assert excinfo.value.status == 400


def test_submit_error_without_json_body():
	def handler(request):
		return httpx.Response(500, text="<html>oops</html>")

	with pytest.raises(SubmissionFailed) as excinfo:
		asyncio.run(_client(SubmissionClient, handler).submit_registration("Ana", "7"))
	assert excinfo.value.message == "Server responded with status 500"


def test_submit_registration_without_id():
	def handler(request):
		return httpx.Response(200, json={"ok": True})

	with pytest.raises(SubmissionFailed):
		asyncio.run(_client(SubmissionClient, handler).submit_registration("Ana", "7"))


def test_submit_questionnaire_payload():
	seen = {}

	def handler(request):
		seen.update(json.loads(request.content))
		return httpx.Response(201, json={"id": 3, "registrationId": 42, "score": 1})

	answers = [{"question": "Question 1", "answer": "server"}]
	result = asyncio.run(_client(SubmissionClient, handler).submit_questionnaire("42", answers, 1))
	assert result["id"] == 3
	assert seen == {"registrationId": "42", "answers": answers, "score": 1}
