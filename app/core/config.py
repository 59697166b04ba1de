from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "kb_user"
    postgres_password: str = "changeme"
    postgres_db: str = "kb_chat"

    @property
    def postgres_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Auth (tokens are issued elsewhere, only verified here)
    jwt_secret_key: str = "change-this-to-a-random-string"
    jwt_algorithm: str = "HS256"
    auth_cookie_name: str = "token"

    # LLM provider credentials — MOONSHOT_API_KEY wins over OPENAI_API_KEY
    moonshot_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""  # overrides the inferred provider URL
    moonshot_model: str = ""
    openai_model: str = ""

    # MOCK_OPENAI=true disables every upstream call
    mock_openai: bool = False

    # Turns off TLS certificate validation for the upstream API. Only for
    # environments with broken certificate chains.
    llm_disable_ssl_verify: bool = False

    # Treat a key that matches no known format as unusable instead of warning
    llm_strict_key_format: bool = False

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 3001

    # Chat endpoint rate limit (slowapi syntax)
    chat_rate_limit: str = "60/minute"

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if settings.jwt_secret_key in ("change-this-to-a-random-string", ""):
        errors.append("JWT_SECRET_KEY must be set to a secure random value")

    if len(settings.jwt_secret_key) < 32:
        errors.append("JWT_SECRET_KEY must be at least 32 characters")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
