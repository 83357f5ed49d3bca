from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Durable storage
    DATABASE_URL: str = "sqlite:///./cafe_booking.db"

    # Connection pool. One connection is checked out per transaction.
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: float = 10.0

    # Upper bound in seconds for a single blocking statement
    DB_STATEMENT_TIMEOUT: float = 5.0

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        # This tells Pydantic to load the variables from a .env file
        env_file = ".env"


# Create a single settings instance to be used across the application
settings = Settings()
