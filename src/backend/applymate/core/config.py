from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/applymate"

    gemini_api_key: str = ""
    gemini_model: str = ""  # explicit override, skips model discovery
    gemini_fallback_models: list[str] = [
        "gemini-pro",
        "gemini-1.5-flash",
        "gemini-1.5-pro",
        "gemini-1.5-flash-latest",
        "gemini-1.5-pro-latest",
        "gemini-2.0-flash-exp",
        "models/gemini-pro",
        "models/gemini-1.5-flash",
        "models/gemini-1.5-pro",
    ]
    gemini_temperature: float = 0.3
    gemini_top_p: float = 0.95
    gemini_top_k: int = 40

    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    # Request limits
    max_input_chars: int = 15000  # per resume / job description
    max_file_size: int = 5 * 1024 * 1024  # 5 MB
    upload_dir: str = "uploads"

    environment: str = "development"
    log_level: str = "INFO"

    model_config = {"env_prefix": "APPLYMATE_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
