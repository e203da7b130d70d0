from pathlib import Path
from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Home Health Booking Service'
    SERVICE_NAME: str = 'patient-booking-service'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL (booking documents are stored as JSONB)
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'patient_booking'

    @property
    def DATABASE_URL(self) -> str:
        return (
            f'postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}'
            f'@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        return self.DATABASE_URL.replace('postgresql://', 'postgresql+asyncpg://')

    # asyncpg pool bounds (actual size derived from available CPUs)
    ASYNCPG_POOL_FLOOR: int = 2
    ASYNCPG_POOL_CEILING: int = 32
    ASYNCPG_POOL_COMMAND_TIMEOUT: float = 10.0
    ASYNCPG_POOL_MAX_INACTIVE_LIFETIME: float = 300.0

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = 'localhost:9092'
    KAFKA_SECURITY_PROTOCOL: str = 'PLAINTEXT'
    KAFKA_ACKS: str = 'all'
    KAFKA_RETRIES: int = 3
    KAFKA_LINGER_MS: int = 10
    KAFKA_COMPRESSION_TYPE: str = 'snappy'
    KAFKA_TOPIC_PARTITIONS: int = 6
    KAFKA_REPLICATION_FACTOR: int = 1  # Set to 1 for development, 3 for production
    KAFKA_PUBLISH_TIMEOUT_SECONDS: float = 5.0

    # Connection supervision (shared by the store and the broker)
    RECONNECT_BASE_DELAY_SECONDS: float = 0.5
    RECONNECT_MAX_DELAY_SECONDS: float = 30.0
    RECONNECT_JITTER: bool = True
    RECONNECT_MAX_RETRIES: int = 8
    CONNECT_TIMEOUT_SECONDS: float = 10.0
    ACQUIRE_TIMEOUT_SECONDS: float = 15.0

    # Booking workflow
    STALE_STATE_MAX_RETRIES: int = 2
    UPCOMING_BOOKINGS_LIMIT: int = 10
    HISTORY_PAGE_SIZE_MAX: int = 50
    BOOKING_TIME_ZONE: str = 'Asia/Kolkata'  # scheduled_date/time and surge windows are local
    OUTBOX_DISPATCH_INTERVAL_SECONDS: float = 2.0
    OUTBOX_DISPATCH_BATCH_SIZE: int = 100
    OUTBOX_CLAIM_LEASE_SECONDS: float = 30.0

    @property
    def KAFKA_PRODUCER_CONFIG(self) -> dict:
        return {
            'bootstrap.servers': self.KAFKA_BOOTSTRAP_SERVERS,
            'security.protocol': self.KAFKA_SECURITY_PROTOCOL,
            'client.id': self.SERVICE_NAME,
            # === Reliability Settings ===
            'enable.idempotence': True,
            'acks': self.KAFKA_ACKS,
            'retries': self.KAFKA_RETRIES,
            # === Batching ===
            'linger.ms': self.KAFKA_LINGER_MS,
            'compression.type': self.KAFKA_COMPRESSION_TYPE,
            'max.in.flight.requests.per.connection': 5,
            'message.timeout.ms': int(self.KAFKA_PUBLISH_TIMEOUT_SECONDS * 1000),
        }


settings = Settings()  # type: ignore
