from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
	# App
	APP_NAME: str = "RentLedger API"
	APP_VERSION: str = "1.0.0"
	API_V1_PREFIX: str = "/api/v1"
	DEBUG: bool = False
	ENVIRONMENT: str = "development" # development, staging, production

	# Server
	PORT: int = 8000
	WORKERS: int = 4

	# Database
	DATABASE_URL: str
	DB_POOL_SIZE: int = 20
	DB_MAX_OVERFLOW: int = 40
	DB_POOL_PRE_PING: bool = True
	DB_ECHO: bool = False
	AUTO_CREATE_TABLES: bool = False

	# JWT
	JWT_SECRET: str
	JWT_ALGORITHM: str = "HS256"
	JWT_EXPIRATION_HOURS: int = 24
	JWT_REFRESH_EXPIRATION_DAYS: int = 7

	# CORS
	CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080"]
	CORS_ALLOW_CREDENTIALS: bool = True

	# Security
	BCRYPT_ROUNDS: int = 12
	ALLOWED_HOSTS: List[str] = ["*"]

	# Monitoring
	EXPOSE_METRICS: bool = True

	# Invoices
	INVOICE_TEMPLATE_DIR: str = str(Path(__file__).parent / "templates")
	INVOICE_TEMPLATE_NAME: str = "invoice.html"
	INVOICE_CURRENCY: str = "EUR"

	model_config = SettingsConfigDict(
		env_file=".env",
		env_file_encoding="utf-8",
		case_sensitive=True
	)


@lru_cache()
def get_settings() -> Settings:
	return Settings()


settings = get_settings()
