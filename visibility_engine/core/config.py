from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "ve_user"
    postgres_password: str = "changeme"
    postgres_db: str = "visibility_engine"

    @property
    def postgres_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (Celery broker and result backend)
    redis_url: str = "redis://localhost:6379/0"

    # App
    app_env: str = "development"
    app_debug: bool = True

    # Citation scoring
    default_citation_confidence: float = 0.8
    brand_citation_weight: float = 1.0
    earned_citation_weight: float = 0.9
    social_citation_weight: float = 0.8

    # Scoring
    scoring_max_workers: int = 8
    sentiment_driver_limit: int = 5

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on worker startup in non-test environments."""
    errors: list[str] = []

    if not 0.0 <= settings.default_citation_confidence <= 1.0:
        errors.append("DEFAULT_CITATION_CONFIDENCE must be within [0, 1]")

    for name in ("brand_citation_weight", "earned_citation_weight", "social_citation_weight"):
        if getattr(settings, name) < 0:
            errors.append(f"{name.upper()} must not be negative")

    if settings.scoring_max_workers < 1:
        errors.append("SCORING_MAX_WORKERS must be at least 1")

    if settings.app_env == "production":
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")
        if settings.postgres_password in ("changeme", ""):
            errors.append("POSTGRES_PASSWORD must be set in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
