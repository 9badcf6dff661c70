"""
Interview Proctor Configuration Settings

All values can be overridden from the environment (PROCTOR_ prefix)
or a local .env file, e.g. PROCTOR_TICK_SECONDS=0.5
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class ProctorSettings(BaseSettings):
    """Configuration for the interview proctoring service."""

    model_config = SettingsConfigDict(
        env_prefix="PROCTOR_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # API Settings
    APP_NAME: str = "Interview Proctor Service"
    DEBUG: bool = True

    # Monitoring loop cadence and debounce thresholds
    TICK_SECONDS: float = 1.0
    NO_FACE_THRESHOLD_TICKS: int = 10  # hard violation
    FOCUS_WARNING_TICKS: int = 5  # soft warning, no event
    OBJECT_CHECK_INTERVAL_SECONDS: float = 3.0

    # Suspicious object dedup
    DEDUP_BUCKET_SECONDS: float = 5.0
    DEDUP_RETENTION_BUCKETS: int = 2
    SUSPICIOUS_OBJECTS: List[str] = [
        "cell phone",
        "book",
        "laptop",
        "keyboard",
        "mouse",
        "remote",
        "tv",
        "monitor",
    ]

    # Perception models
    FACE_MIN_CONFIDENCE: float = 0.5
    OBJECT_MIN_CONFIDENCE: float = 0.5
    YOLO_MODEL_PATH: str = "yolov8n.pt"

    # Storage
    SESSION_STORE_PATH: str = "data/sessions.json"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: Optional[str] = None


settings = ProctorSettings()
