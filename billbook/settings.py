from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="BILLBOOK_", extra="ignore")

    db_backend: str = "sqlite"
    db_path: str = "billbook.db"
    db_url: str = ""

    timezone: str = "Asia/Kolkata"
    business_name: str = "Bhanus Studio"

    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
