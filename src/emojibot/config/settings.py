from __future__ import annotations

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

from emojibot.config.env import to_bool
from emojibot.utils.log import get_logger

_LOGGER = get_logger(__name__)


class EnvMode(str, Enum):
    LIVE = "live"
    SNAPSHOT = "snapshot"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EMOJIBOT_", env_file=".env", extra="ignore")

    LOG_LEVEL: str | None = None
    # Raw strings; parsed by the tolerant properties below
    HEALTHCHECK_STRICT: str = "false"
    ENV_MODE: str = EnvMode.LIVE.value

    @property
    def healthcheck_strict(self) -> bool:
        value, ok = to_bool(self.HEALTHCHECK_STRICT)
        if not ok:
            _LOGGER.warning(
                "EMOJIBOT_HEALTHCHECK_STRICT=%r is not a boolean token, using false",
                self.HEALTHCHECK_STRICT,
            )
            return False
        return value

    @property
    def env_mode(self) -> EnvMode:
        try:
            return EnvMode((self.ENV_MODE or EnvMode.LIVE.value).strip().lower())
        except ValueError:
            return EnvMode.LIVE


def get_settings() -> Settings:
    return Settings()
