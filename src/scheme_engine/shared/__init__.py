"""Shared models, money helpers, errors, logging and metrics for the scheme engine."""

from .exceptions import (
    CallerContractError,
    CartValidationError,
    ClaimRecordingError,
    ContextValidationError,
    DuplicateClaimError,
    FrozenSchemeError,
    InvalidStatusTransitionError,
    SchemeConfigurationError,
    SchemeEngineException,
)

__all__ = [
    "SchemeEngineException",
    "CallerContractError",
    "CartValidationError",
    "ContextValidationError",
    "SchemeConfigurationError",
    "InvalidStatusTransitionError",
    "FrozenSchemeError",
    "ClaimRecordingError",
    "DuplicateClaimError",
]
