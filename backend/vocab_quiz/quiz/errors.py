"""Error taxonomy for the quiz client.

None of these are fatal to the page: every failure path leaves the user able
to retry.
"""

from __future__ import annotations

from typing import Optional, Sequence


class QuizError(Exception):
	"""Base class for quiz client errors."""


class ValidationError(QuizError):
	"""A required form field is missing. Recovered locally, nothing is sent."""

	def __init__(self, message: str, fields: Sequence[str] = ()) -> None:
		super().__init__(message)
		self.message = message
		self.fields = list(fields)


class FetchFailed(QuizError):
	"""The answer key could not be fetched."""

	def __init__(self, message: str, status: Optional[int] = None) -> None:
		super().__init__(message)
		self.message = message
		self.status = status

	def __str__(self) -> str:
		if self.status is None:
			return self.message
		return f"{self.message} (status {self.status})"


class SubmissionFailed(QuizError):
	"""A registration or questionnaire write was rejected."""

	def __init__(self, message: str, status: Optional[int] = None) -> None:
		super().__init__(message)
		self.message = message
		self.status = status


class CorruptedSessionState(QuizError):
	"""Persisted progress exists without the registration identity it depends on."""
