from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Google Generative Language API (Imagen)
    image_api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    image_model: str = "imagen-3.0-generate-002"
    image_api_timeout: float = 120.0
    gemini_api_key: str = ""  # Set via GEMINI_API_KEY env var, fallback for /post/ai-image only

    # Rendering
    font_path: str = "assets/fonts"
    canvas_size: int = 1080

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
