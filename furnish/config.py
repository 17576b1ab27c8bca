from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./furnish.db"
    APP_NAME: str = "Furnish Design Studio"
    CURRENCY: str = "INR"

    # Max divergence between a submitted order total and the recomputed price
    PRICE_TOLERANCE: float = 0.5

    # Auth
    JWT_SECRET: str = ""  # REQUIRED in production
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_EXPIRE_DAYS: int = 30

    # Comma-separated emails granted admin (rate table + order status updates)
    ADMIN_EMAILS: str = ""

    class Config:
        env_file = ".env"

    @property
    def admin_emails(self) -> set:
        return {e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()}


settings = Settings()
