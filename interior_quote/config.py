from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./quotes.db"
    COMPANY_NAME: str = "Interior Design Studio"
    COMPANY_EMAIL: str = ""
    COMPANY_PHONE: str = ""

    # Display only; the calculator never rounds
    CURRENCY_CODE: str = "INR"
    CURRENCY_SYMBOL: str = "₹"

    # Project defaults (GST in the deployed setup)
    TAX_PERCENT_DEFAULT: float = 18.0
    DISCOUNT_PERCENT_DEFAULT: float = 0.0
    QUOTE_VALID_DAYS: int = 30

    DEFAULT_TERMS: str = (
        "1. 50% advance payment before work begins.\n"
        "2. Balance payment on completion.\n"
        "3. Taxes as per government regulations.\n"
        "4. Delivery within 4-6 weeks from confirmation."
    )

    model_config = SettingsConfigDict(env_file=".env")


settings = Settings()
