from __future__ import annotations
import logging
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .settings import settings


logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./vocab_quiz.db"


def _engine_kwargs(url: str) -> dict:
	if url.startswith("sqlite"):
		kwargs: dict = {"connect_args": {"check_same_thread": False}}
		# In-memory databases live on one connection; share it across threads
		if url in ("sqlite://", "sqlite:///:memory:"):
			kwargs["poolclass"] = StaticPool
		return kwargs
	if url.startswith("postgres") and settings.is_production:
		return {"connect_args": {"sslmode": "require"}, "pool_pre_ping": True}
	return {"pool_pre_ping": True}


engine = create_engine(DATABASE_URL, future=True, **_engine_kwargs(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for development (SQLite-friendly)
def ensure_schema() -> None:
	try:
		inspector = inspect(engine)
		tables = set(inspector.get_table_names())
	except Exception:
		logger.warning("Could not inspect database schema", exc_info=True)
		return
	if "questionnaire_submissions" in tables:
		cols = {c["name"] for c in inspector.get_columns("questionnaire_submissions")}
		with engine.begin() as conn:
			if "score" not in cols:
				conn.exec_driver_sql("ALTER TABLE questionnaire_submissions ADD COLUMN score INTEGER DEFAULT 0 NOT NULL")
	if "registrations" in tables:
		cols = {c["name"] for c in inspector.get_columns("registrations")}
		with engine.begin() as conn:
			if "number" not in cols:
				conn.exec_driver_sql("ALTER TABLE registrations ADD COLUMN number VARCHAR(64) DEFAULT '' NOT NULL")
