# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Woodpecker Configuration using Pydantic Settings

All configuration is type-safe, validated, and loaded from environment variables.
The pure codec functions never read this module; services pass values in explicitly.
"""

import logging
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# =============================================================================
# Settings Models
# =============================================================================

class CodecSettings(BaseSettings):
    """Question-set import/export configuration."""

    model_config = SettingsConfigDict(
        env_prefix='WOODPECKER_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    default_title: str = Field(
        default="Untitled Set",
        min_length=1,
        description="Title used when an import carries no topic"
    )

    default_target_rounds: int = Field(
        default=7,
        ge=1,
        le=20,
        description="Number of rounds a new set trains for"
    )

    max_input_bytes: int = Field(
        default=1024 * 1024,
        ge=1024,
        description="Largest request body accepted by the ingestion service (bytes)"
    )


class TrainingSettings(BaseSettings):
    """Round timing and mastery thresholds."""

    model_config = SettingsConfigDict(
        env_prefix='WOODPECKER_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    min_target_time_seconds: int = Field(default=1, ge=1)
    target_time_halving_factor: int = Field(default=2, ge=2)
    rest_period_seconds: int = Field(default=24 * 60 * 60, ge=0)
    mastery_target_time_seconds: int = Field(default=5, ge=1)
    perfect_accuracy_threshold: int = Field(default=100, ge=1, le=100)

    question_time_fast_threshold: int = Field(
        default=2,
        ge=1,
        description="Answers under this many seconds count as fast"
    )
    question_time_medium_threshold: int = Field(
        default=5,
        ge=1,
        description="Answers under this many seconds count as medium, slower ones as slow"
    )
    knowledge_gap_time_threshold: int = Field(
        default=10,
        ge=1,
        description="Answers slower than this are flagged as knowledge gaps"
    )

    @model_validator(mode='after')
    def validate_thresholds(self) -> 'TrainingSettings':
        """Ensure time buckets are ordered."""
        if self.question_time_fast_threshold > self.question_time_medium_threshold:
            raise ValueError(
                "question_time_fast_threshold must not exceed question_time_medium_threshold"
            )
        return self


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix='WOODPECKER_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    log_level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='INFO',
        description="Root log level (env: WOODPECKER_LOG_LEVEL)"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v


# =============================================================================
# Main Settings Class
# =============================================================================

class Settings(BaseSettings):
    """
    Main Woodpecker settings.

    Combines all configuration sections into a single, validated settings object.
    Automatically loads from .env file and environment variables.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
        validate_default=True
    )

    codec: CodecSettings = Field(default_factory=CodecSettings)
    training: TrainingSettings = Field(default_factory=TrainingSettings)
    log: LoggingSettings = Field(default_factory=LoggingSettings)

    def log_configuration(self):
        """Log current configuration."""
        logger.info("=" * 80)
        logger.info("Woodpecker Configuration")
        logger.info("=" * 80)
        logger.info(f"Default Title: {self.codec.default_title}")
        logger.info(f"Default Target Rounds: {self.codec.default_target_rounds}")
        logger.info(f"Max Input Size: {self.codec.max_input_bytes} bytes")
        logger.info(
            f"Round Timing: min={self.training.min_target_time_seconds}s, "
            f"halving={self.training.target_time_halving_factor}, "
            f"rest={self.training.rest_period_seconds}s"
        )
        logger.info(f"Mastery Target: {self.training.mastery_target_time_seconds}s")
        logger.info("=" * 80)


# =============================================================================
# Global Settings Instance
# =============================================================================

class _SettingsProxy:
    """
    Lazy settings proxy that defers Settings instantiation until first access.

    Environment variables are read at runtime, not import time.
    """
    _instance: Optional[Settings] = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = Settings()
            self._instance.log_configuration()
        return getattr(self._instance, name)

    def reset(self) -> None:
        """Drop the cached instance so the next access re-reads the environment."""
        self._instance = None


settings = _SettingsProxy()

_LAZY_NAMES = frozenset({
    "DEFAULT_TITLE", "DEFAULT_TARGET_ROUNDS", "MAX_INPUT_BYTES",
    "MIN_TARGET_TIME_SECONDS", "TARGET_TIME_HALVING_FACTOR", "REST_PERIOD_SECONDS",
    "MASTERY_TARGET_TIME_SECONDS", "LOG_LEVEL",
})


def __getattr__(name: str):
    """
    Module-level __getattr__ to provide lazy config value access.

    Settings are only instantiated when a value is first requested.
    """
    if name not in _LAZY_NAMES:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

    if settings._instance is None:
        settings._instance = Settings()
        settings._instance.log_configuration()
    _settings = settings._instance

    mapping = {
        # Codec
        'DEFAULT_TITLE': lambda: _settings.codec.default_title,
        'DEFAULT_TARGET_ROUNDS': lambda: _settings.codec.default_target_rounds,
        'MAX_INPUT_BYTES': lambda: _settings.codec.max_input_bytes,

        # Training
        'MIN_TARGET_TIME_SECONDS': lambda: _settings.training.min_target_time_seconds,
        'TARGET_TIME_HALVING_FACTOR': lambda: _settings.training.target_time_halving_factor,
        'REST_PERIOD_SECONDS': lambda: _settings.training.rest_period_seconds,
        'MASTERY_TARGET_TIME_SECONDS': lambda: _settings.training.mastery_target_time_seconds,

        # Logging
        'LOG_LEVEL': lambda: _settings.log.log_level,
    }

    return mapping[name]()
