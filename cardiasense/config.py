from __future__ import annotations

import os
from pathlib import Path
from typing import List


def _env_flag(name: str, default: str) -> bool:
    return (os.environ.get(name) or default).strip() in {"1", "true", "True", "yes"}


class Settings:
    """Centralized configuration for the CardiaSense dashboard backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("CARDIA_DATA_ROOT") or data_root_default
        ).expanduser()
        self.store_backend: str = (
            os.environ.get("CARDIA_STORE_BACKEND") or "sqlite"
        ).strip().lower()
        self.db_path: Path = Path(
            os.environ.get("CARDIA_DB_PATH") or (self.data_root / "cardiasense.db")
        ).expanduser()
        self.history_limit: int = int(os.environ.get("CARDIA_HISTORY_LIMIT") or "15")

        # Bare API_KEY is accepted as a fallback.
        self.ai_api_key: str | None = os.environ.get("CARDIA_AI_API_KEY") or os.environ.get("API_KEY")
        self.ai_base_url: str = os.environ.get(
            "CARDIA_AI_BASE_URL", "https://dashscope.aliyuncs.com/compatible-mode/v1"
        )
        self.ai_model: str = os.environ.get("CARDIA_AI_MODEL", "qwen-plus")
        self.ai_vision_model: str = os.environ.get("CARDIA_AI_VISION_MODEL", "qwen-vl-plus")
        self.ai_timeout: float = float(os.environ.get("CARDIA_AI_TIMEOUT", "30"))
        self.ai_temperature: float = float(os.environ.get("CARDIA_AI_TEMPERATURE", "0.2"))
        self.ai_max_tokens: int = int(os.environ.get("CARDIA_AI_MAX_TOKENS", "2048"))
        self.ai_enable_search: bool = _env_flag("CARDIA_AI_ENABLE_SEARCH", "1")
        self.max_image_bytes: int = int(os.environ.get("CARDIA_MAX_IMAGE_BYTES") or "5000000")

        self.physician_name: str = os.environ.get("CARDIA_PHYSICIAN_NAME") or "Dr. Rajesh Sharma"
        self.physician_qualifications: str = (
            os.environ.get("CARDIA_PHYSICIAN_QUALIFICATIONS") or "MD, DM (Cardiology), AIIMS"
        )
        self.clinic_name: str = os.environ.get("CARDIA_CLINIC_NAME") or "CardiaSense AI Hub"

        self.host: str = os.environ.get("CARDIA_HOST") or "127.0.0.1"
        self.port: int = int(os.environ.get("CARDIA_PORT") or "8000")
        self.log_level: str = (os.environ.get("CARDIA_LOG_LEVEL") or "INFO").upper()

        cors = os.environ.get("CARDIA_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
