from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "timecapsule"
    app_env: str = "development"

    database_url: str = "sqlite:///./timecapsule.db"

    # Media uploads
    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    # "header" trusts X-User-Id / X-User-Email, "token" verifies a bearer JWT
    auth_mode: str = "header"

    # JWT
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
