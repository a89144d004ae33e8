from dotenv import load_dotenv
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # loads .env from current working directory

class Settings(BaseSettings):
    PORT: int = 3000
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # Upstream LLM (Groq, OpenAI-compatible)
    GROQ_API_KEY: Optional[str] = None
    LLM_BASE_URL: str = "https://api.groq.com/openai/v1"
    LLM_MODEL: str = "llama-3.3-70b-versatile"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 1024
    LLM_TIMEOUT: float = 30.0

    CORS_ORIGINS: List[str] = ["*"]
    ACCOUNTS_FILE: str = "data/accounts.json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

settings = Settings()
