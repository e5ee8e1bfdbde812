"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.constants import DEFAULT_DB_PATH, DEFAULT_GEMINI_MODEL
from src.config.schemas.scoring import ScoringConfig, TopicMatchStrategy


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field(
        default=DEFAULT_GEMINI_MODEL, validation_alias="GEMINI_MODEL"
    )
    db_path: Path = Field(
        default=Path(DEFAULT_DB_PATH), validation_alias="HEALTH_MATCH_DB_PATH"
    )
    scoring_config_path: Path | None = Field(
        default=None, validation_alias="HEALTH_MATCH_SCORING_CONFIG"
    )
    topic_match_strategy: TopicMatchStrategy | None = Field(
        default=None, validation_alias="TOPIC_MATCH_STRATEGY"
    )
    semantic_match_timeout_seconds: float | None = Field(
        default=None, gt=0.0, validation_alias="SEMANTIC_MATCH_TIMEOUT_SECONDS"
    )
    log_json: bool = Field(default=True, validation_alias="HEALTH_MATCH_LOG_JSON")

    @property
    def llm_enabled(self) -> bool:
        """Whether credentials for the text-generation service are present."""
        return bool(self.gemini_api_key)

    def apply_overrides(self, config: ScoringConfig) -> ScoringConfig:
        """Apply environment overrides to the topic matching settings.

        Args:
            config: Configuration loaded from file or defaults.

        Returns:
            Configuration with TOPIC_MATCH_STRATEGY and
            SEMANTIC_MATCH_TIMEOUT_SECONDS applied when set.
        """
        updates: dict[str, object] = {}
        if self.topic_match_strategy is not None:
            updates["strategy"] = self.topic_match_strategy
        if self.semantic_match_timeout_seconds is not None:
            updates["semantic_timeout_seconds"] = self.semantic_match_timeout_seconds
        if not updates:
            return config
        topic_matching = config.topic_matching.model_copy(update=updates)
        return config.model_copy(update={"topic_matching": topic_matching})


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
