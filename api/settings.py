"""Server settings loaded from the environment (prefix ``ARENA_``)."""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ARENA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # Simulation
    tick_rate: int = 120
    seed: Optional[int] = None  # None draws spawn points from OS entropy

    # Per-session outbound buffer; the oldest message is dropped when full
    outbound_queue_size: int = 256
    event_log_size: int = 10000

    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]


settings = Settings()
