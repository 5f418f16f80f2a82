from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central settings object.
    Values come from environment variables; locally you can use backend/.env.
    Any empty API key disables the stage that needs it.
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # API keys
    SERPAPI_API_KEY: str = ""
    RAPIDAPI_KEY: str = ""
    FREE_CURRENCY_API_KEY: str = ""
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = ""

    # Pricing
    REFERENCE_CURRENCY: str = "INR"
    RATE_CACHE_TTL_SECONDS: float = 24 * 60 * 60

    # Search pipeline
    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    PROVIDER_STRATEGY: str = "fallback"  # "fallback" or "all"
    OFFER_VALIDATOR: str = "auto"        # "auto", "gemini", "heuristic" or "none"
    MAX_OFFERS: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"

    # Versioning
    APP_VERSION: str = "0.2.0"
    BUILD_ID: str = "dev"


# other modules import this
settings = Settings()
