from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./relay.db"
    debug: bool = False
    log_level: str = "INFO"

    # live | mock
    relay_mode: str = "live"
    access_token_api_url: str = "http://localhost:8001/auth/token"
    ai_chat_api_url: str = "http://localhost:8001/chat"
    http_timeout_seconds: float = 30.0
    token_refresh_window_seconds: int = 60

    twilio_account_sid: str = ""
    twilio_auth_token: str = ""

    base_url: str = "http://localhost:8000"
    reports_dir: str = "public/reports"
    report_max_age_seconds: int = 15 * 60
    report_cleanup_interval_seconds: int = 60 * 60
    report_cleanup_enabled: bool = True

    alert_bot_token: str | None = None
    alert_chat_id: str | None = None

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
