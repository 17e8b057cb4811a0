# skailink/config.py
from typing import List, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # App
    APP_ENV: Literal["dev", "prod", "staging"] = "dev"
    APP_TZ: str = "Asia/Kolkata"  # used for "departure in the past" checks

    # Amadeus (empty credentials -> searches are served from fallback data)
    AMADEUS_CLIENT_ID: str = ""
    AMADEUS_CLIENT_SECRET: str = ""
    AMADEUS_ENV: str = "test"  # or "production"
    AMADEUS_CURRENCY: str = "INR"
    AMADEUS_MAX_RESULTS: int = 20

    # Booking deep-links
    AFFILIATE_ID: str = ""

    # Retry policy around vendor calls
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_DELAY_SECONDS: float = 2.0
    RETRY_STATUS_CODES: List[int] = [429, 502, 503, 504]

    # Redis (search history)
    REDIS_URL: str = "redis://localhost:6379/0"
    HISTORY_MAX_ENTRIES: int = 50
    HISTORY_TTL_SECONDS: int = 60 * 60 * 24 * 30  # 30 days

    # read .env and ignore any extra keys so this doesn't break again
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def amadeus_configured(self) -> bool:
        return bool(self.AMADEUS_CLIENT_ID and self.AMADEUS_CLIENT_SECRET)

settings = Settings()
