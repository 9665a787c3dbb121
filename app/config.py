"""Application settings via pydantic-settings (reads .env)."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Try-on service configuration — loaded from environment / .env file."""

    # Application
    APP_ENV: str = "development"

    # Database
    DATABASE_URL: str = "sqlite:///./tryon.db"

    # Local storage for wardrobe images
    STORAGE_ROOT: str = "./storage"

    # OpenAI (used by the direct transport and injected by the proxy)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"

    # Transport selection
    GENERATION_TRANSPORT: str = "direct"  # direct | proxy
    PROXY_BASE_URL: str = "http://localhost:8000/openai"
    REQUEST_TIMEOUT_SECONDS: float = 120.0

    # Models
    IMAGE_MODEL: str = "gpt-image-1"
    TEXT_MODEL: str = "gpt-4.1-nano"
    IMAGE_MODERATION: str = "low"
    OUTPUT_IMAGE_SIZE: str = "1024x1024"

    # Input downsampling bound (px, longest edge)
    MAX_INPUT_EDGE: int = 512

    # Structured-output sampling
    STRUCTURED_TEMPERATURE: float = 0.03
    STRUCTURED_TOP_P: float = 0.67
    STRUCTURED_MAX_OUTPUT_TOKENS: int = 100

    PROMPT_TEMPLATE_VERSION: str = "v1"

    WARDROBE_CATEGORIES: list[str] = [
        "tops",
        "bottoms",
        "dresses",
        "outerwear",
        "shoes",
        "accessories",
    ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
