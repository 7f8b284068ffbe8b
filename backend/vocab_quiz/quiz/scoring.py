from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence


QUESTION_COUNT = 10

AnswerKeyMap = Dict[str, List[str]]


def question_key(n: int) -> str:
	return f"question{n}"


QUESTION_KEYS: List[str] = [question_key(i) for i in range(1, QUESTION_COUNT + 1)]


def normalize(answer: Optional[str]) -> str:
	return (answer or "").strip().lower()


def build_answer_key_map(entries: Iterable[Mapping]) -> AnswerKeyMap:
	"""Group answer-key rows into ``{"question<N>": [accepted, ...]}``.

	Rows are expected in the wire shape ``{id, question_id, correct_answer}``.
	Accepted answers keep the order in which the rows arrive.
	"""
	answer_key: AnswerKeyMap = {}
	for entry in entries:
		key = question_key(int(entry["question_id"]))
		answer_key.setdefault(key, []).append(str(entry["correct_answer"]))
	return answer_key


def is_correct(question_id: str, user_answer: Optional[str], answer_key: Mapping[str, Sequence[str]]) -> bool:
	accepted = answer_key.get(question_id) or []
	# No accepted answers: nothing can match
	if not accepted:
		return False
	candidate = normalize(user_answer)
	return any(candidate == normalize(a) for a in accepted)


def score(answers: Mapping[str, Optional[str]], answer_key: Mapping[str, Sequence[str]]) -> int:
	return sum(1 for key in QUESTION_KEYS if is_correct(key, answers.get(key), answer_key))


def score_band(value: int) -> str:
	if value >= 7:
		return "high"
	if value >= 4:
		return "medium"
	return "low"


@dataclass(frozen=True)
class ResultRow:
	label: str
	user_answer: str
	correct: bool
	# Only shown for incorrect answers
	correct_answer: Optional[str]


def detailed_results(answers: Mapping[str, Optional[str]], answer_key: Mapping[str, Sequence[str]]) -> List[ResultRow]:
	rows: List[ResultRow] = []
	for i, key in enumerate(QUESTION_KEYS, start=1):
		user_answer = answers.get(key) or ""
		ok = is_correct(key, user_answer, answer_key)
		accepted = answer_key.get(key) or []
		rows.append(
			ResultRow(
				label=f"Word {i}",
				user_answer=user_answer or "(no answer)",
				correct=ok,
				correct_answer=None if ok else (accepted[0] if accepted else ""),
			)
		)
	return rows
