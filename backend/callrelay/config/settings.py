from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # App
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8080)
    DEBUG: bool = Field(False)
    LOG_LEVEL: str = Field("INFO")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Keep-alive
    HEARTBEAT_INTERVAL_SEC: float = Field(30.0)
    # Idle watchdog on application messages only; protocol pongs don't count, and a
    # CONNECTED call has no signaling traffic. 0 (off) leaves dead-peer detection
    # to the server's ws ping timeout.
    HEARTBEAT_TIMEOUT_SEC: float = Field(0.0)

    # Call lifecycle
    RING_TIMEOUT_SEC: float = Field(60.0)  # 0 keeps ringing calls until answered
    RING_SWEEP_INTERVAL_SEC: float = Field(5.0)
    SEND_TIMEOUT_SEC: float = Field(5.0)
    CLOSE_SUPERSEDED_CONNECTIONS: bool = Field(True)
    # Removed call ids remembered so late offer/answer/ice_candidate are dropped
    # silently. Once more than this many calls have been removed since, the id is
    # forgotten and late signaling for it gets error{"Call not found"} instead.
    REMOVED_CALL_HISTORY: int = Field(1024)

    # Metrics
    METRICS_ENABLED: bool = Field(False)
    METRICS_PORT: int = Field(8001)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_file_encoding="utf-8"
    )


settings = Settings()
