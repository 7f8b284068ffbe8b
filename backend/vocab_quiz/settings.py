from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Deployment environment: "development" exposes error details in responses,
	# "production" enables SSL for PostgreSQL connections
	app_env: str = Field(default="development", validation_alias="APP_ENV")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Database (single connection string for every handler)
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Quiz client configuration
	quiz_api_base_url: str = Field(default="http://localhost:8000", validation_alias="QUIZ_API_BASE_URL")
	http_timeout_seconds: float = Field(default=30, validation_alias="HTTP_TIMEOUT_SECONDS")
	# Reload within this window (ms) counts as the same visit
	freshness_window_ms: int = Field(default=300_000, validation_alias="FRESHNESS_WINDOW_MS")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def is_development(self) -> bool:
		return self.app_env.lower() == "development"

	@property
	def is_production(self) -> bool:
		return self.app_env.lower() == "production"

settings = Settings()
