import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import Base, engine, ensure_schema
from .logging_config import configure_logging
from .routers import answers
from .routers import health
from .routers import questionnaire
from .routers import registration

logger = logging.getLogger(__name__)

app = FastAPI(title="Vocabulary Quiz API")
app.include_router(answers.router)
app.include_router(registration.router)
app.include_router(questionnaire.router)
app.include_router(health.router)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_methods=["*"],
	allow_headers=["Content-Type"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
	# Clients read the message from "error"
	message = "Method not allowed" if exc.status_code == 405 else exc.detail
	return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
	fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
	return JSONResponse(
		status_code=400,
		content={"error": "Invalid request body", "details": ", ".join(f for f in fields if f) or "malformed JSON"},
	)


@app.get("/info")
def root():
	return {"status": "ok"}


@app.on_event("startup")
async def startup_event():
	configure_logging()
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	try:
		ensure_schema()
	except Exception:
		logger.warning("Schema migration skipped", exc_info=True)
	logger.info("Vocabulary quiz API started")
