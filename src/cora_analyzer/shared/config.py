"""
Configuration Module - Load and validate application settings.
==============================================================

Loads configuration from:
1. config/settings.yaml (defaults)
2. Environment variables from .env file
3. Environment variables from system

Environment variables override YAML defaults. API keys are only ever read
from the environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early
load_dotenv()


def _find_project_root() -> Path:
    """Find the project root directory by looking for pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Nested Configuration Models
# ─────────────────────────────────────────────────────────────────────────────


class HttpConfig(BaseModel):
    """Outbound HTTP and retry settings."""

    timeout: float = 30.0
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    jitter_ratio: float = 0.2
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class SourceConfig(BaseModel):
    """A site searched for feedback."""

    name: str
    site_search: str


class SearchConfig(BaseModel):
    """Search provider settings."""

    base_url: str = "https://www.googleapis.com/customsearch/v1"
    results_per_query: int = 5
    sources: list[SourceConfig] = Field(
        default_factory=lambda: [
            SourceConfig(name="theCourseForum", site_search="thecourseforum.com"),
            SourceConfig(name="Reddit", site_search="reddit.com/r/uva"),
        ]
    )

    def get_sites(self) -> list[str]:
        """Get the site restrictions searched on every run."""
        return [source.site_search for source in self.sources]


class AggregatorConfig(BaseModel):
    """A rating aggregator whose pages may carry an embedded score."""

    domain: str
    label: str


class ExtractionConfig(BaseModel):
    """Page text extraction settings."""

    max_content_length: int = 5000
    truncation_marker: str = "..."
    aggregators: list[AggregatorConfig] = Field(
        default_factory=lambda: [
            AggregatorConfig(domain="thecourseforum.com", label="theCourseForum"),
        ]
    )


class CacheConfig(BaseModel):
    """Result cache settings."""

    storage_key: str = "cora_course_cache"
    ttl_days: int = 7
    max_entries: int = 50
    cleanup_threshold: int = 60


class OperationConfig(BaseModel):
    """Token budget and reasoning tier for one model operation."""

    max_output_tokens: int
    reasoning_effort: str = "minimal"


class GenerationConfig(BaseModel):
    """LLM generation settings."""

    model_name: str = "gemini-2.5-flash"
    filter: OperationConfig = Field(
        default_factory=lambda: OperationConfig(max_output_tokens=2048, reasoning_effort="low")
    )
    summary: OperationConfig = Field(
        default_factory=lambda: OperationConfig(max_output_tokens=1024, reasoning_effort="minimal")
    )
    final_rating: OperationConfig = Field(
        default_factory=lambda: OperationConfig(max_output_tokens=2048, reasoning_effort="low")
    )
    thinking_budgets: dict[str, int] = Field(
        default_factory=lambda: {"minimal": 0, "low": 512, "medium": 2048, "high": 8192}
    )


class AuditConfig(BaseModel):
    """Model request audit log settings."""

    storage_key: str = "cora_ai_logs"
    max_entries: int = 100


class StorageConfig(BaseModel):
    """Persistent key-value store settings."""

    path: str = "data/store.json"

    def resolve(self, base_path: Path) -> Path:
        """Resolve the store path relative to a base path."""
        path = Path(self.path)
        return path if path.is_absolute() else base_path / path


class EnrollmentConfig(BaseModel):
    """Enrollment history API settings."""

    base_url: str = "https://hooslist.virginia.edu"


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Main Settings Class
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    Main application settings.

    Loads from:
    1. config/settings.yaml (defaults)
    2. Environment variables

    Environment variables override YAML settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # API Keys (from environment only)
    search_api_key: str = Field(default="", validation_alias="SEARCH_API_KEY")
    search_engine_id: str = Field(default="", validation_alias="SEARCH_ENGINE_ID")
    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")

    # Top-level environment overrides
    gemini_model: Optional[str] = Field(default=None, validation_alias="GEMINI_MODEL")
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")
    use_stubs: bool = Field(default=False, validation_alias="CORA_USE_STUBS")

    # Nested configurations (from YAML)
    http: HttpConfig = Field(default_factory=HttpConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    enrollments: EnrollmentConfig = Field(default_factory=EnrollmentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _project_root: Path = PROJECT_ROOT

    @field_validator("search_api_key", "search_engine_id", "gemini_api_key", mode="before")
    @classmethod
    def validate_api_key(cls, v: Any) -> str:
        """Allow empty keys; stub services are used when any is missing."""
        if v is None:
            return ""
        return str(v).strip()

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return self._project_root

    @property
    def store_path(self) -> Path:
        """Get the absolute path of the persistent store."""
        return self.storage.resolve(self._project_root)

    def has_live_credentials(self) -> bool:
        """Check whether every key required by the live services is present."""
        return bool(self.search_api_key and self.search_engine_id and self.gemini_api_key)

    def get_effective_model(self) -> str:
        """Get the effective Gemini model (env override or config)."""
        if self.gemini_model:
            return self.gemini_model
        return self.generation.model_name

    def get_effective_log_level(self) -> str:
        """Get the effective log level (env override or config)."""
        if self.log_level:
            return self.log_level.upper()
        return self.logging.level.upper()


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def _create_settings(config_path: Optional[Path] = None) -> Settings:
    """Create settings instance by merging YAML defaults with environment."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    yaml_config = _load_yaml_config(config_path)
    return Settings(**yaml_config)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the singleton settings instance.

    Returns:
        Settings instance with merged configuration

    Example:
        >>> settings = get_settings()
        >>> print(settings.cache.ttl_days)
        7
    """
    return _create_settings()


def reload_settings() -> Settings:
    """
    Force reload of settings (clears cache).

    Returns:
        Fresh Settings instance
    """
    get_settings.cache_clear()
    return get_settings()
