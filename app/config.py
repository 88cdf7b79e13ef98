from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    agrihaul_api_base_url: str = "http://localhost:3001"
    agrihaul_api_key: str = ""
    agrihaul_api_timeout_seconds: float = 15.0

    find_loads_fetch_limit: int = 25
    find_loads_max_results: int = 3
    session_timeout_minutes: int = 30

    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_whatsapp_number: str = ""
    twilio_validate_signature: bool = True
    public_base_url: str = ""

    cors_allow_origins: str = "*"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
