from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./fitcompare.db"
    storage_dir: str = "./uploads"
    max_upload_bytes: int = 50 * 1024 * 1024

    # Identity provider ID tokens (verified, never issued here)
    auth_jwt_key: str = ""
    auth_jwt_algorithm: str = "HS256"
    auth_audience: Optional[str] = None
    auth_issuer: Optional[str] = None
    require_verified_email: bool = True

    share_token_bytes: int = 24
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
