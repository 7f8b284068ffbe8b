from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.sql import text
from sqlalchemy.orm import Session

from ..db import get_db
from ..settings import settings


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/test-db-connection")
async def db_connection_probe(db: Session = Depends(get_db)):
	logger.info("Testing database connection...")
	try:
		current_time = db.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
	except Exception as e:
		logger.exception("Database connection test failed")
		return JSONResponse(
			status_code=500,
			content={
				"error": "Database connection failed",
				"message": str(e),
				"details": repr(e) if settings.is_development else "Check function logs for details",
			},
		)
	return {
		"success": True,
		"message": "Database connection successful",
		"currentTime": str(current_time),
		"databaseUrl": "Set (hidden for security)" if settings.database_url else "Not set",
	}
