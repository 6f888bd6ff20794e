from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	RATE_PROVIDER: Literal['finnhub', 'sheet'] = 'finnhub'

	FINNHUB_API_KEY: str = ''
	FINNHUB_BASE_URL: str = 'https://finnhub.io/api/v1'
	SHEET_CSV_URL: str = ''
	PROVIDER_TIMEOUT: int = 10

	RATE_CACHE_TTL_SECONDS: int = 300

	# Last-known-good snapshots; empty URLs disable the store
	DATABASE_URL: str = ''
	REDIS_URL: str = ''
	SNAPSHOT_MAX_AGE_HOURS: int = 24

	# Application
	APP_NAME: str = 'Forex Rates API'
	HOST: str = '0.0.0.0'
	PORT: int = 8000
	DEBUG: bool = False
	LOG_LEVEL: str = 'INFO'
	LOG_JSON: bool = False

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')


@lru_cache
def get_settings() -> Settings:
	return Settings()
