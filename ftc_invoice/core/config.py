from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("ftc-invoice-parser", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_serialize: bool = Field(False, alias="LOG_SERIALIZE")  # One JSON object per log line

    # Parts catalog (empty = packaged GoBILDA/REV catalog)
    parts_catalog_path: str | None = Field(default=None, alias="PARTS_CATALOG_PATH")

    # Largest invoice text accepted by the API, in characters
    max_invoice_chars: int = Field(200_000, alias="MAX_INVOICE_CHARS")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

settings = Settings()
