from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: list[str] = ["https://getlife.id"]

    # MongoDB
    MONGO_URL: str = "mongodb://localhost:27017"
    DB_NAME: str = "GetLife"
    # Multi-document transactions need a replica set (mongod --replSet)
    MONGO_TRANSACTIONS: bool = True

    # JWT
    JWT_SECRET: str = "changeme_minimum_32_chars_here_please"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "120/minute"

    # Money (IDR)
    CURRENCY: str = "IDR"
    PHONE_COUNTRY_CODE: str = "+62"
    MITRA_DEPOSIT_RATE: float = 0.20   # held when a mitra accepts a job
    MITRA_PAYOUT_RATE:  float = 1.20   # deposit back + full order price
    MIN_TOPUP_AMOUNT:      float = 10000.0
    MIN_WITHDRAWAL_AMOUNT: float = 50000.0

    # Invoices
    INVOICE_BASE_PATH: str = "/invoices"

    model_config = SettingsConfigDict(
        env_file=[".env", "../.env"],
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
