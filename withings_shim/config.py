from functools import lru_cache

from pydantic_settings import BaseSettings

DEFAULT_DATA_URL = "http://wbsapi.withings.net"


class Settings(BaseSettings):
    WITHINGS_CLIENT_ID: str = ""
    WITHINGS_CLIENT_SECRET: str = ""
    WITHINGS_ACCESS_TOKEN: str = ""
    WITHINGS_TOKEN_SECRET: str = ""
    WITHINGS_USER_ID: str = ""
    WITHINGS_INTRADAY_DATA_AVAILABLE: bool = False # account-wide default, overridable per request
    WITHINGS_DATA_URL: str = DEFAULT_DATA_URL
    HTTP_TIMEOUT_SECONDS: float = 30.0
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "production"

    class Config:
        env_file = ".env"
        extra = "ignore"
        frozen = True

@lru_cache()
def get_settings() -> Settings:
    return Settings()
