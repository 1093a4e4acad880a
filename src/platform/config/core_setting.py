import orjson
from pathlib import Path
from typing import Annotated, List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Bus Seat Booking'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # CORS
    # Comma list or JSON list; NoDecode hands the raw string to the validator
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and v.strip().startswith('['):
            return orjson.loads(v)
        if isinstance(v, str):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'bus_seat_booking'
    DATABASE_URL: str = ''  # Overrides the assembled URL when set (e.g. sqlite+aiosqlite)

    # Connection pool (ignored for sqlite)
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    DB_POOL_PRE_PING: bool = True
    DB_CREATE_TABLES_ON_STARTUP: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    # Booking policy
    RESERVATION_HOLD_MINUTES: int = 15
    MAX_SEATS_PER_BOOKING: int = 2  # interactive multi-step flow
    MAX_SEATS_PER_GUEST_BOOKING: int = 10  # guest form and counter sales
    CANCEL_ON_PAYMENT_FAILURE: bool = False
    COUNTER_SALE_MAX_ATTEMPTS: int = 3

    # Expiry sweep
    ENABLE_EXPIRY_SWEEPER: bool = True
    EXPIRY_SWEEP_INTERVAL_SECONDS: float = 60.0
    EXPIRY_SWEEP_BATCH_SIZE: int = 200

    # Tickets
    TICKET_SIGNING_SECRET: SecretStr = SecretStr('test_ticket_secret_change_in_production')

    # SSE
    SSE_SUBSCRIBER_BUFFER_SIZE: int = 10


settings = Settings()  # type: ignore
