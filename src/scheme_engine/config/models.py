"""
Configuration models for the scheme calculation engine.

These models define the structure and validation for the engine's JSON config file.
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from ..shared.logging_config import configure_structured_logging
from ..shared.models import BenefitType

logger = logging.getLogger(__name__)

DEFAULT_BENEFIT_PRIORITY = [
    BenefitType.FREE_QTY,
    BenefitType.DISCOUNT,
    BenefitType.CASHBACK,
    BenefitType.POINTS,
    BenefitType.COUPON,
]


def rank_benefits(
    priority: Sequence[BenefitType] | None = None,
) -> dict[BenefitType, int]:
    """Map each benefit type to its acceptance rank (defaults to free_qty first)."""
    order = priority or DEFAULT_BENEFIT_PRIORITY
    return {BenefitType(benefit): rank for rank, benefit in enumerate(order)}


class EngineConfig(BaseModel):
    """Main configuration model for the scheme engine."""

    benefit_priority: list[BenefitType] = Field(
        default_factory=lambda: list(DEFAULT_BENEFIT_PRIORITY),
        description="Order in which competing benefit types are accepted",
    )
    validation_cache_size: int = Field(
        1024,
        ge=0,
        description="Number of scheme configuration checks kept in memory (0 = off)",
    )
    metrics_enabled: bool = Field(
        True, description="Record Prometheus metrics for each evaluation"
    )
    log_level: str = Field("INFO", description="Root log level applied by configure_logging")

    @field_validator("benefit_priority")
    @classmethod
    def validate_priority_is_permutation(
        cls, v: list[BenefitType]
    ) -> list[BenefitType]:
        """Every benefit type must appear exactly once."""
        if len(v) != len(set(v)) or set(v) != set(BenefitType):
            raise ValueError(
                "benefit_priority must list every benefit type exactly once: "
                f"{[b.value for b in BenefitType]}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    def configure_logging(self) -> None:
        """Set up structured logging at the configured level."""
        configure_structured_logging(self.log_level)

    @classmethod
    def from_file(cls, file_path: str | Path) -> "EngineConfig":
        """
        Load configuration from a JSON file.

        Args:
            file_path: Path to the configuration JSON file

        Returns:
            EngineConfig instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the JSON is invalid or doesn't match the schema
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        try:
            with path.open("r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")

        return cls(**data)

    def to_file(self, file_path: str | Path) -> None:
        """
        Save configuration to a JSON file.

        Args:
            file_path: Path where to save the configuration file
        """
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with path.open("w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)
