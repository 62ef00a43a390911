from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class ClassroomCapacity(BaseModel):
    """Per-classroom default; a missing field falls through to the system default"""

    total: Optional[int] = None
    beginner: Optional[int] = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Class Reservation Core'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production
    TIMEZONE: str = 'Asia/Tokyo'

    # Kvrocks Configuration (Redis protocol, cache service)
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    KVROCKS_KEY_PREFIX: str = ''
    REDIS_DECODE_RESPONSES: bool = False  # cache payloads are raw orjson bytes

    # Kvrocks Connection Pool Configuration
    KVROCKS_POOL_MAX_CONNECTIONS: int = 20
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 10  # Socket read/write timeout (seconds)
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 10  # Connection timeout (seconds)
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30  # Health check interval (seconds)

    # Cache snapshots
    CACHE_TTL_SECONDS: int = 21600  # 6 hours
    CACHE_MAX_ITEM_BYTES: int = 100 * 1024  # hard per-key ceiling of the cache service
    CACHE_CHUNK_THRESHOLD_BYTES: int = 90 * 1024
    CACHE_MAX_CHUNKS: int = 20

    # Capacity defaults (lesson value -> classroom default -> system default)
    DEFAULT_TOTAL_CAPACITY: int = 8
    DEFAULT_BEGINNER_CAPACITY: int = 0
    # JSON in env: CLASSROOM_DEFAULT_CAPACITY='{"Tokyo": {"total": 8, "beginner": 4}}'
    CLASSROOM_DEFAULT_CAPACITY: Dict[str, ClassroomCapacity] = {}

    # Reservation rules
    MIN_RESERVATION_MINUTES: int = 120
    SAME_DAY_CUTOFF_HOURS: int = 2

    # Locks
    WRITE_LOCK_TIMEOUT_MS: int = 10000
    WRITE_LOCK_TTL_SECONDS: int = 30
    MAINTENANCE_LOCK_KEY: str = 'lock:cache_maintenance'
    MAINTENANCE_LOCK_TIMEOUT_MS: int = 30000
    MAINTENANCE_LOCK_TTL_SECONDS: int = 600
    MAINTENANCE_MIN_INTERVAL_SECONDS: int = 300  # skip rebuilds triggered < 5 min apart

    # Notifications
    ADMIN_NOTIFICATION_RECIPIENT: str = 'admin'


settings = Settings()  # type: ignore
