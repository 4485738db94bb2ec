from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "trainhub"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = "dev-secret-key-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60

    SQLALCHEMY_DATABASE_URI: str = "sqlite:///trainhub.db"
    SQL_ECHO: bool = False

    MAIL_ENABLED: bool = False
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    MAIL_USE_TLS: bool = True
    MAIL_USERNAME: str | None = None
    MAIL_PASSWORD: str | None = None
    MAIL_DEFAULT_SENDER: str = "noreply@trainhub.local"
    MAIL_BATCH_SIZE: int = 80

    # Raw marks in uploaded score sheets are half-weight.
    BULK_SCORE_MULTIPLIER: float = 2
    DEFAULT_STUDENT_PASSWORD: str = "ChangeMe123!"
