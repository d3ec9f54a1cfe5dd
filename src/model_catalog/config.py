"""
Configuration management for the model catalog.

Loads settings from environment variables (and a project-root .env file)
with sensible defaults. Secrets default to empty strings so that importing
the package never fails; `missing_secrets()` reports what a full run needs.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


class CatalogSettings(BaseSettings):
    """Run settings loaded from environment variables."""

    # Storage
    STORAGE_FILE_PATH: Path = Path('models.json')
    HASH_FILE_PATH: Path = Path('models.hashes.json')
    CACHE_FILE_PATH: Path = Path('.cache.json')

    # Sources, in fetch order (first source wins most merge ties)
    SOURCES: list[str] = Field(default_factory=lambda: ['models_dev', 'openrouter'])
    MODEL_DENY_LIST: list[str] = Field(default_factory=list)

    # Enrichment
    ADDITIONAL_LOCALES: list[str] = Field(default_factory=lambda: ['de'])
    ADDITIONAL_CURRENCIES: list[str] = Field(default_factory=lambda: ['eur'])
    REFRESH_PRICING_ON_UNCHANGED: bool = False

    # Secrets
    OPENROUTER_API_KEY: str = ''
    DEEPL_API_KEY: str = ''
    OPENAI_API_KEY: str = ''

    # External services
    OPENAI_CHAT_MODEL: str = 'gpt-4o-mini'
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0, le=300)

    # Logging
    LOG_LEVEL: str = 'INFO'
    LOG_JSON: bool = False

    def missing_secrets(self) -> list[str]:
        """
        Validate that the secrets required for a full run are present.

        Returns:
            List of missing required configuration keys
        """
        missing = []
        if 'openrouter' in self.SOURCES and not self.OPENROUTER_API_KEY:
            missing.append('OPENROUTER_API_KEY')
        if self.ADDITIONAL_LOCALES and not self.DEEPL_API_KEY:
            missing.append('DEEPL_API_KEY')
        if not self.OPENAI_API_KEY:
            missing.append('OPENAI_API_KEY')
        return missing


@lru_cache
def get_settings() -> CatalogSettings:
    """Cached settings singleton."""
    return CatalogSettings()
