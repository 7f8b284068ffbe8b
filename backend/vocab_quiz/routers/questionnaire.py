from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import QuestionnaireAnswer, QuestionnaireSubmission, Registration
from ..quiz.scoring import QUESTION_COUNT


logger = logging.getLogger(__name__)

router = APIRouter(tags=["questionnaire"])


class AnswerItem(BaseModel):
	question: str
	answer: str = ""


class QuestionnaireRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	registration_id: int = Field(alias="registrationId")
	answers: List[AnswerItem] = Field(default_factory=list)
	score: int = 0


class QuestionnaireResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	id: int
	registration_id: int = Field(alias="registrationId")
	score: int


@router.post("/submit-questionnaire", response_model=QuestionnaireResponse, status_code=201)
async def submit_questionnaire(req: QuestionnaireRequest, db: Session = Depends(get_db)):
	if not (0 <= req.score <= QUESTION_COUNT):
		raise HTTPException(status_code=400, detail=f"score must be between 0 and {QUESTION_COUNT}")
	if len(req.answers) > QUESTION_COUNT:
		raise HTTPException(status_code=400, detail=f"at most {QUESTION_COUNT} answers are accepted")
	registration = db.get(Registration, req.registration_id)
	if registration is None:
		raise HTTPException(status_code=404, detail="Registration not found")

	submission = QuestionnaireSubmission(registration_id=registration.id, score=req.score)
	submission.answers = [QuestionnaireAnswer(question=a.question, answer=a.answer) for a in req.answers]
	try:
		db.add(submission)
		db.commit()
		db.refresh(submission)
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to store questionnaire for registration %s", registration.id)
		raise HTTPException(status_code=500, detail="Failed to store questionnaire")
	logger.info("Stored questionnaire %s for registration %s (score %d)", submission.id, registration.id, submission.score)
	return QuestionnaireResponse(id=submission.id, registration_id=registration.id, score=submission.score)
