from __future__ import annotations

import logging
from typing import Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Registration


logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"])


class RegistrationRequest(BaseModel):
	nickname: str = ""
	# Browsers post the number field as either a string or a JSON number
	number: Union[str, int] = ""


class RegistrationResponse(BaseModel):
	id: int
	nickname: str
	number: str


@router.post("/submit-registration", response_model=RegistrationResponse, status_code=201)
async def submit_registration(req: RegistrationRequest, db: Session = Depends(get_db)):
	nickname = (req.nickname or "").strip()
	number = str(req.number).strip()
	if not nickname or not number:
		raise HTTPException(status_code=400, detail="nickname and number are required")
	if len(nickname) > 128:
		raise HTTPException(status_code=400, detail="nickname must be at most 128 characters")
	if len(number) > 64:
		raise HTTPException(status_code=400, detail="number must be at most 64 characters")
	row = Registration(nickname=nickname, number=number)
	try:
		db.add(row)
		db.commit()
		db.refresh(row)
	except SQLAlchemyError:
		db.rollback()
		logger.exception("Failed to store registration for %s", nickname)
		raise HTTPException(status_code=500, detail="Failed to store registration")
	logger.info("Registered %s with id %s", nickname, row.id)
	return RegistrationResponse(id=row.id, nickname=row.nickname, number=row.number)
