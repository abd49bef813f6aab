from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


def _float_env(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Settings:
    """
    Central configuration for Morpha.

    Values are loaded once from environment variables (with sensible defaults)
    and then exposed via typed properties. Command-line flags in cli/main.py
    override these per invocation.
    """

    def __init__(self) -> None:
        home = Path(os.getenv("HOME") or Path.home())

        # OpenAI / model configuration
        self._openai_api_key = os.getenv("OPENAI_API_KEY")
        self._openai_base_url = os.getenv("OPENAI_BASE_URL") or None
        self._model = os.getenv("MORPHA_MODEL", "gpt-3.5-turbo-1106")
        self._assistant_name = os.getenv("MORPHA_ASSISTANT_NAME", "Morpha")

        # Local files
        self._db_path = Path(
            os.getenv("MORPHA_DB_PATH", str(home / ".morpha.sqlite3"))
        )
        self._profile_path = Path(
            os.getenv("MORPHA_PROFILE_PATH", str(home / ".morpha_profile"))
        )

        # Polling and rendering
        self._poll_interval = _float_env("MORPHA_POLL_INTERVAL", 1.0)
        self._max_wait = _float_env("MORPHA_MAX_WAIT", None)
        self._wrap_width = _int_env("MORPHA_WRAP_WIDTH", 80)
        self._blank_hint_after = _int_env("MORPHA_BLANK_HINT_AFTER", 3)

        self._log_level = os.getenv("MORPHA_LOG_LEVEL", "WARNING").upper()

    # ------------------------------------------------------------------
    # OpenAI / model settings
    # ------------------------------------------------------------------

    @property
    def openai_api_key(self) -> str:
        if not self._openai_api_key:
            raise RuntimeError(
                "OPENAI_API_KEY is not set. Please export it in your environment "
                "or define it in a .env file."
            )
        return self._openai_api_key

    @property
    def openai_base_url(self) -> Optional[str]:
        return self._openai_base_url

    @property
    def model(self) -> str:
        return self._model

    @property
    def assistant_name(self) -> str:
        return self._assistant_name

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def profile_path(self) -> Path:
        return self._profile_path

    # ------------------------------------------------------------------
    # Session behavior
    # ------------------------------------------------------------------

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def max_wait(self) -> Optional[float]:
        return self._max_wait

    @property
    def wrap_width(self) -> int:
        return self._wrap_width

    @property
    def blank_hint_after(self) -> int:
        return self._blank_hint_after

    @property
    def log_level(self) -> str:
        return self._log_level


settings = Settings()
