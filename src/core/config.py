import os
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    PROJECT_NAME: str = "Photo Getter Server"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3003

    # Image root. Every listing and stream request is confined to it.
    EXTERNAL_IMAGE_DIR: str

    # Transform defaults
    DEFAULT_TARGET_WIDTH: int = 1280
    DEFAULT_QUALITY: int = 80

    # Responses
    CACHE_MAX_AGE: int = 31536000
    STREAM_CHUNK_SIZE: int = 64 * 1024

    @field_validator("EXTERNAL_IMAGE_DIR")
    @classmethod
    def resolve_image_dir(cls, value: str) -> str:
        if not value:
            raise ValueError("EXTERNAL_IMAGE_DIR must be set")
        resolved = os.path.realpath(os.path.expanduser(value))
        if not os.path.isdir(resolved):
            raise ValueError(f"EXTERNAL_IMAGE_DIR is not a directory: {value}")
        return resolved

    @property
    def cache_control(self) -> str:
        return f"public, max-age={self.CACHE_MAX_AGE}"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
