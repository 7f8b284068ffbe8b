from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from .db import Base


class CorrectAnswer(Base):
	__tablename__ = "correct_answers"
	id = Column(Integer, primary_key=True, autoincrement=True)
	# Several rows may share a question_id (alternative accepted spellings)
	question_id = Column(Integer, nullable=False, index=True)
	correct_answer = Column(String(256), nullable=False)


class Registration(Base):
	__tablename__ = "registrations"
	id = Column(Integer, primary_key=True, autoincrement=True)
	nickname = Column(String(128), nullable=False)
	number = Column(String(64), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	submissions = relationship("QuestionnaireSubmission", back_populates="registration")


class QuestionnaireSubmission(Base):
	__tablename__ = "questionnaire_submissions"
	id = Column(Integer, primary_key=True, autoincrement=True)
	registration_id = Column(Integer, ForeignKey("registrations.id"), nullable=False, index=True)
	score = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	registration = relationship("Registration", back_populates="submissions")
	answers = relationship("QuestionnaireAnswer", back_populates="submission", cascade="all, delete-orphan")


class QuestionnaireAnswer(Base):
	__tablename__ = "questionnaire_answers"
	id = Column(Integer, primary_key=True, autoincrement=True)
	submission_id = Column(Integer, ForeignKey("questionnaire_submissions.id"), nullable=False, index=True)
	question = Column(String(64), nullable=False)
	answer = Column(Text, nullable=False, default="")

	submission = relationship("QuestionnaireSubmission", back_populates="answers")
