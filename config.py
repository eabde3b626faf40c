from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "flightschool"

    # Application Configuration
    frontend_url: str = "http://localhost:3000"
    environment: str = "development"

    # JWT Configuration (tokens are issued by the identity service)
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60 * 24 * 7  # 7 days

    # School configuration
    school_timezone: str = "UTC"  # IANA name, e.g. Pacific/Auckland

    # Maintenance due thresholds
    due_soon_hours: float = 10.0
    due_soon_days: int = 30
    due_hours_precision: int = 1

    # Pilot credentials
    credential_warning_days: int = 30

    # Membership year (default 1 April -> 31 March)
    membership_year_start_month: int = 4
    membership_year_start_day: int = 1
    membership_year_end_month: int = 3
    membership_year_end_day: int = 31
    default_grace_period_days: int = 30

    def get_cors_origins(self) -> list:
        """Origins allowed to call the API"""
        if self.environment == "development":
            return ["*"]
        return [self.frontend_url]

    class Config:
        env_file = ".env"
        case_sensitive = False

@lru_cache()
def get_settings():
    return Settings()
