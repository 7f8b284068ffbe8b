from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..settings import settings
from .errors import FetchFailed, SubmissionFailed
from .scoring import AnswerKeyMap, build_answer_key_map


logger = logging.getLogger(__name__)

ANSWER_KEY_PATH = "/correct-answers"
REGISTRATION_PATH = "/submit-registration"
QUESTIONNAIRE_PATH = "/submit-questionnaire"


def _error_message(response: httpx.Response) -> str:
	try:
		body = response.json()
	except ValueError:
		body = None
	if isinstance(body, dict):
		for key in ("error", "details", "detail"):
			value = body.get(key)
			if isinstance(value, str) and value:
				return value
	return f"Server responded with status {response.status_code}"


class _QuizApiClient:
	def __init__(self, base_url: Optional[str] = None, *, client: Optional[httpx.AsyncClient] = None) -> None:
		self.base_url = (base_url or settings.quiz_api_base_url).rstrip("/")
		self._owns_client = client is None
		self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)

	def _url(self, path: str) -> str:
		return f"{self.base_url}{path}"

	async def aclose(self) -> None:
		if self._owns_client:
			await self._client.aclose()

	async def __aenter__(self):
		return self

	async def __aexit__(self, *exc_info) -> None:
		await self.aclose()


class AnswerKeyClient(_QuizApiClient):
	"""Reads the answer key. No retries: the caller offers a retry button."""

	async def fetch_answer_key(self) -> AnswerKeyMap:
		try:
			r = await self._client.get(self._url(ANSWER_KEY_PATH), headers={"Content-Type": "application/json"})
		except httpx.RequestError as e:
			logger.error("Error fetching correct answers: %s", e)
			raise FetchFailed(f"Failed to fetch correct answers: {e}") from e
		if r.status_code != 200:
			message = _error_message(r)
			logger.error("Error fetching correct answers: %s (%s)", message, r.status_code)
			raise FetchFailed(f"Failed to fetch correct answers: {message}", status=r.status_code)
		try:
			rows = r.json()
			if not isinstance(rows, list):
				raise TypeError("answer key must be a JSON array")
			answer_key = build_answer_key_map(rows)
		except (ValueError, KeyError, TypeError) as e:
			raise FetchFailed(f"Malformed answer key response: {e}", status=r.status_code) from e
		logger.debug("Correct answers loaded for %d questions", len(answer_key))
		return answer_key


class SubmissionClient(_QuizApiClient):
	async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
		try:
			r = await self._client.post(self._url(path), json=payload)
		except httpx.RequestError as e:
			raise SubmissionFailed(f"Network error: {e}") from e
		if not r.is_success:
			raise SubmissionFailed(_error_message(r), status=r.status_code)
		try:
			result = r.json()
		except ValueError as e:
			raise SubmissionFailed("Server returned an invalid response", status=r.status_code) from e
		if not isinstance(result, dict):
			raise SubmissionFailed("Server returned an invalid response", status=r.status_code)
		return result

	async def submit_registration(self, nickname: str, number: str) -> str:
		result = await self._post(REGISTRATION_PATH, {"nickname": nickname, "number": number})
		if result.get("id") is None:
			raise SubmissionFailed("Registration response did not include an id")
		return str(result["id"])

	async def submit_questionnaire(self, registration_id: str, answers: List[Dict[str, str]], score: int) -> Dict[str, Any]:
		return await self._post(
			QUESTIONNAIRE_PATH,
			{"registrationId": registration_id, "answers": answers, "score": score},
		)
