"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_ENV: str = "development"
    API_V1_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_MAX_TOKENS: int = 2000

    # Model retry policy (one retry with backoff)
    MODEL_MAX_ATTEMPTS: int = 2
    MODEL_RETRY_BACKOFF_SECONDS: float = 1.0

    # External data providers
    FRED_API_KEY: str = ""
    ALPHA_VANTAGE_API_KEY: str = ""
    SEARCH_API_KEY: str = ""
    SEARCH_PROVIDER: str = "brave"
    GOOGLE_SEARCH_ENGINE_ID: str = ""
    SEARCH_MAX_RESULTS: int = 5
    PROVIDER_TIMEOUT_SECONDS: float = 8.0

    # Source cache TTLs (seconds)
    CACHE_TTL_ECONOMIC_SECONDS: int = 24 * 60 * 60
    CACHE_TTL_TREASURY_SECONDS: int = 5 * 60
    CACHE_TTL_STOCK_SECONDS: int = 60
    CACHE_TTL_SEARCH_SECONDS: int = 30 * 60

    # Live market data
    TREASURY_MATURITIES: List[str] = ["3month", "2year", "5year", "10year", "30year"]
    STOCK_SYMBOLS: List[str] = ["SPY", "QQQ", "DIA"]

    # Prompt assembly
    MAX_HISTORY_TURNS: int = 10
    MAX_TRANSACTIONS_IN_CONTEXT: int = 200

    # Query enhancement
    QUERY_INSTITUTIONS: List[str] = [
        "chase", "bank of america", "wells fargo", "citibank", "citi", "us bank",
        "pnc", "capital one", "ally", "marcus", "fidelity", "vanguard", "schwab",
        "td bank", "robinhood", "navy federal", "penfed", "discover", "american express",
        "sofi",
    ]
    QUERY_RATE_TERMS: List[str] = [
        "mortgage rate", "cd rate", "savings rate", "high yield savings", "interest rate",
        "credit card rate", "loan rate", "auto loan rate", "personal loan rate",
        "student loan rate", "home equity rate", "heloc rate", "money market rate",
        "ira rate", "annuity rate", "apy", "apr", "treasury yield", "inflation rate",
        "unemployment rate", "fed rate",
    ]
    QUERY_TAIL_WORDS: int = 3

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "60/minute"
    RATE_LIMIT_ASK: str = "20/minute"

    # CORS
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        if self.APP_ENV == "development":
            return ["*"]  # Allow all origins in development
        return [self.FRONTEND_URL, "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True
    )


settings = Settings()
