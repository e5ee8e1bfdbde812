"""Scoring configuration loader with validation."""

import hashlib
import time
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from src.config.constants import COMPONENT_CONFIG
from src.config.schemas.scoring import ScoringConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


class ScoringConfigLoader:
    """Loads and validates ``scoring.yaml``.

    A missing file is not an error: the built-in defaults are the
    production constants. A present file must validate completely.
    """

    def __init__(self) -> None:
        """Initialize the loader."""
        self._checksum: str | None = None
        self._validation_errors: list[dict[str, str]] = []
        self._validation_duration_ms: float = 0.0
        self._log = logger.bind(component=COMPONENT_CONFIG)

    @property
    def checksum(self) -> str | None:
        """SHA-256 of the last loaded file, if any."""
        return self._checksum

    @property
    def validation_errors(self) -> list[dict[str, str]]:
        """Get validation errors if any."""
        return self._validation_errors.copy()

    @property
    def validation_duration_ms(self) -> float:
        """Get validation duration in milliseconds."""
        return self._validation_duration_ms

    def load(self, path: Path | None) -> ScoringConfig:
        """Load scoring configuration.

        Args:
            path: Path to scoring.yaml, or None for defaults.

        Returns:
            Validated ScoringConfig.

        Raises:
            ConfigValidationError: If the file cannot be parsed or validated.
        """
        if path is None or not path.exists():
            self._log.info(
                "scoring_config_defaults",
                file_path=str(path) if path else None,
            )
            return ScoringConfig()

        start_time = time.perf_counter()
        self._log.info("loading_config_file", file_path=str(path))

        content_bytes = path.read_bytes()
        self._checksum = hashlib.sha256(content_bytes).hexdigest()

        try:
            parsed = yaml.safe_load(content_bytes.decode("utf-8")) or {}
        except yaml.YAMLError as exc:
            self._validation_errors = [
                {"loc": "(root)", "msg": str(exc), "type": "yaml_parse_error"}
            ]
            self._log.warning("config_yaml_invalid", file_path=str(path))
            raise ConfigValidationError(self._validation_errors, str(path)) from exc

        try:
            config = ScoringConfig.model_validate(parsed)
        except ValidationError as exc:
            self._validation_errors = [
                {
                    "loc": ".".join(str(part) for part in err["loc"]) or "(root)",
                    "msg": err["msg"],
                    "type": err["type"],
                }
                for err in exc.errors()
            ]
            self._log.warning(
                "config_validation_failed",
                file_path=str(path),
                error_count=len(self._validation_errors),
            )
            raise ConfigValidationError(self._validation_errors, str(path)) from exc
        finally:
            self._validation_duration_ms = (time.perf_counter() - start_time) * 1000

        self._log.info(
            "config_validated",
            file_path=str(path),
            checksum=self._checksum,
            duration_ms=round(self._validation_duration_ms, 2),
        )
        return config


def load_scoring_config(path: Path | None = None) -> ScoringConfig:
    """Load scoring configuration from ``path`` or return defaults.

    Args:
        path: Optional path to scoring.yaml.

    Returns:
        Validated ScoringConfig.
    """
    return ScoringConfigLoader().load(path)
