from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import CorrectAnswer
from ..settings import settings


logger = logging.getLogger(__name__)

router = APIRouter(tags=["answers"])


class CorrectAnswerOut(BaseModel):
	id: int
	question_id: int
	correct_answer: str


@router.get("/correct-answers", response_model=List[CorrectAnswerOut])
async def get_correct_answers(db: Session = Depends(get_db)):
	try:
		rows = db.execute(
			select(CorrectAnswer).order_by(CorrectAnswer.question_id, CorrectAnswer.id)
		).scalars().all()
	except SQLAlchemyError as e:
		logger.exception("Failed to load correct answers")
		db.rollback()
		return JSONResponse(
			status_code=500,
			content={
				"error": "Internal server error",
				"details": str(e) if settings.is_development else "Database connection failed",
			},
		)
	logger.info("Returning %d correct answer rows", len(rows))
	return [CorrectAnswerOut(id=r.id, question_id=r.question_id, correct_answer=r.correct_answer) for r in rows]
