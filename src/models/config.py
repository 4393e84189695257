"""
Configuration Models

Tunables for a pipeline run, loaded from config/system_params.json. See
config/system_params.example.json for every field with its default.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class OrchestratorConfig(BaseModel):
    """Batching, caching, throttling and retry settings for model calls."""

    batch_size: int = Field(default=3, gt=0, le=20)
    batch_timeout_seconds: float = Field(default=2.0, ge=0)
    min_call_interval_seconds: float = Field(default=1.0, ge=0)
    cache_ttl_seconds: float = Field(default=30 * 60, gt=0)
    max_attempts: int = Field(default=3, gt=0, le=10)
    retry_base_delay_seconds: float = Field(default=2.0, ge=0)
    retry_max_delay_seconds: float = Field(default=10.0, ge=0)
    max_concurrent_calls: int = Field(
        default=3,
        gt=0,
        le=20,
        description="Maximum concurrent outbound calls while draining a batch",
    )

    @field_validator("retry_max_delay_seconds")
    @classmethod
    def validate_delay_ordering(cls, v: float, info: ValidationInfo) -> float:
        """Validate that the backoff cap is not below the base delay."""
        base = info.data.get("retry_base_delay_seconds", 2.0)
        if v < base:
            raise ValueError(
                f"retry_max_delay_seconds ({v}) must be >= "
                f"retry_base_delay_seconds ({base})"
            )
        return v


class ModelConfig(BaseModel):
    """Generative model call shaping."""

    model_config = ConfigDict(protected_namespaces=())

    provider: Literal["gemini", "claude"] = "gemini"
    model_id: str = Field(default="models/gemini-2.5-flash-lite", min_length=1)
    max_output_tokens: int = Field(default=4000, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=30.0, gt=0)


class RankingConfig(BaseModel):
    min_match_score: int = Field(default=60, ge=0, le=100)
    max_recommendations: int = Field(default=3, gt=0, le=20)


class EnrichmentConfig(BaseModel):
    enabled: bool = True
    max_colleges: int = Field(default=5, ge=0)
    max_scholarships: int = Field(default=3, ge=0)


DEFAULT_CONFIG_PATH = Path("config/system_params.json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SystemParams(BaseModel):
    """Everything tunable about a pipeline run; credentials are not kept here."""

    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    expected_recommendations: int = Field(default=3, gt=0)
    use_fallback_on_failure: bool = True
    log_level: str = Field(default="INFO")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {v!r}")
        return level

    @classmethod
    def load(cls, config_path: Path | str = DEFAULT_CONFIG_PATH) -> "SystemParams":
        """Read and validate a system_params JSON file.

        Raises:
            FileNotFoundError: The file is missing; the message names the
                example file to copy
            pydantic.ValidationError: Malformed JSON or out-of-range values
        """
        path = Path(config_path)
        if not path.is_file():
            raise FileNotFoundError(
                f"Config file not found: {path}. "
                f"Copy {path.with_name(path.stem + '.example.json')} to {path} and edit it"
            )
        return cls.model_validate_json(path.read_text(encoding="utf-8"))
