from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Medical Claim Extractor"
    app_env: str = "development"
    database_url: str = "sqlite:///./medclaim.db"
    log_level: str = "INFO"

    upload_dir: str = "data/uploads"
    extraction_dir: str = "data/extractions"
    max_upload_mb: int = 20

    ocr_lang: str = "kor+eng"
    ocr_psm: int = 6
    pdf_dpi: int = 220
    max_pdf_pages: int = 10

    debug_text_chars: int = 500

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str | None) -> str:
        if not value:
            return "INFO"
        return value.strip().upper()

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
