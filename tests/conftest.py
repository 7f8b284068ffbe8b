import os

# Point the app at a shared in-memory database before it is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "development"

import pytest
from fastapi.testclient import TestClient

from backend.vocab_quiz.db import Base, SessionLocal, engine
from backend.vocab_quiz.main import app
from backend.vocab_quiz.models import CorrectAnswer
from backend.vocab_quiz.quiz.scoring import QUESTION_KEYS


ANSWER_ROWS = [
	(1, "server"),
	(2, "souvenir"),
	(2, "souvenier"),
	(3, "library"),
	(4, "weather"),
	(5, "journey"),
	(6, "breakfast"),
	(7, "umbrella"),
	(8, "neighbour"),
	(8, "neighbor"),
	(9, "mountain"),
	(10, "kitchen"),
]


@pytest.fixture
def db_session():
	Base.metadata.create_all(bind=engine)
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()
		Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seeded_db(db_session):
	db_session.add_all([CorrectAnswer(question_id=q, correct_answer=a) for q, a in ANSWER_ROWS])
	db_session.commit()
	return db_session


@pytest.fixture
def client(db_session):
	return TestClient(app)


@pytest.fixture
def answer_key():
	key = {}
	for q, a in ANSWER_ROWS:
		key.setdefault(f"question{q}", []).append(a)
	return key


@pytest.fixture
def correct_answers(answer_key):
	return {k: answer_key[k][0] for k in QUESTION_KEYS}
