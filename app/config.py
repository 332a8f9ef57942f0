from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# A single document must stay below the database's 16 MiB limit.
DEFAULT_MAX_CHUNK_SIZE = 15 * 1024 * 1024
MAX_CONTENT_LENGTH = 2**32 - 1


class Settings(BaseSettings):
    app_name: str = "chunked-object-store"
    app_env: str = "dev"
    upload_secret: str = "change-me-in-production"
    database_path: str = "data/objects.db"

    max_chunk_size: int = Field(default=DEFAULT_MAX_CHUNK_SIZE, gt=0)
    max_upload_size_bytes: int = Field(default=100 * 1024 * 1024, gt=0, le=MAX_CONTENT_LENGTH)

    id_length: int = Field(default=5, gt=0)
    delete_key_length: int = Field(default=16, gt=0)
    max_id_attempts: int = Field(default=100, gt=0)

    strict_reassembly: bool = False
    cleanup_partial_uploads: bool = True

    host: str = "127.0.0.1"
    port: int = 8089

    # empty log_file = stderr only
    log_level: str = "INFO"
    log_file: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="COS_")


@lru_cache
def get_settings() -> Settings:
    return Settings()
