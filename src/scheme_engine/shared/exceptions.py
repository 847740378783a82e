"""
Custom exceptions for the scheme calculation engine.

Caller contract violations (bad carts, incomplete evaluation context) are raised
fail-fast. Scheme configuration problems are modelled here as well but never escape
an evaluation: the engine converts them into diagnostics.
"""

from typing import Any


class SchemeEngineException(Exception):
    """Base exception for all scheme engine errors."""

    pass


class CallerContractError(SchemeEngineException, ValueError):
    """Exception raised when the caller hands the engine invalid input."""

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        validation_errors: list[str] | None = None,
    ):
        self.field_name = field_name
        self.invalid_value = invalid_value
        self.validation_errors = validation_errors or []

        error_parts = [message]

        if field_name:
            error_parts.append(f"Field: {field_name}")

        if invalid_value is not None:
            error_parts.append(f"Value: {invalid_value}")

        if validation_errors:
            error_parts.extend(
                [f"Validation error: {error}" for error in validation_errors]
            )

        super().__init__(" | ".join(error_parts))


class CartValidationError(CallerContractError):
    """Exception raised when cart line items are malformed."""

    def __init__(
        self,
        message: str,
        line_index: int | None = None,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        validation_errors: list[str] | None = None,
    ):
        self.line_index = line_index

        if line_index is not None:
            message = f"{message} (cart line {line_index})"

        super().__init__(message, field_name, invalid_value, validation_errors)


class ContextValidationError(CallerContractError):
    """Exception raised when the evaluation context is missing or inconsistent."""

    pass


class SchemeConfigurationError(SchemeEngineException):
    """Exception describing a malformed scheme (overlapping slabs, bad dates, ...)."""

    def __init__(self, scheme_id: str | None, problems: list[str]):
        self.scheme_id = scheme_id
        self.problems = problems

        message = "; ".join(problems) if problems else "Invalid scheme configuration"
        if scheme_id:
            message = f"Scheme '{scheme_id}' is misconfigured: {message}"

        super().__init__(message)


class InvalidStatusTransitionError(SchemeEngineException):
    """Exception raised when a scheme status change is not permitted."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move scheme from '{current}' to '{target}'")


class FrozenSchemeError(SchemeEngineException):
    """Exception raised when benefit fields change on a scheme that has claims."""

    def __init__(self, scheme_id: str, changed_fields: list[str]):
        self.scheme_id = scheme_id
        self.changed_fields = changed_fields

        fields_str = ", ".join(changed_fields)
        super().__init__(
            f"Scheme '{scheme_id}' already has claims; "
            f"benefit fields are frozen: {fields_str}"
        )


class ClaimRecordingError(SchemeEngineException):
    """Exception raised when a batch of claims cannot be recorded."""

    def __init__(
        self,
        message: str,
        scheme_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.scheme_id = scheme_id
        self.original_error = original_error

        if scheme_id:
            message = f"Claim for scheme '{scheme_id}' rejected: {message}"

        if original_error:
            message = f"{message} (Original error: {original_error})"

        super().__init__(message)


class DuplicateClaimError(ClaimRecordingError):
    """Exception raised when a claim with the same idempotency key already exists."""

    def __init__(self, idempotency_key: str, scheme_id: str | None = None):
        self.idempotency_key = idempotency_key
        super().__init__(
            f"duplicate submission (idempotency key {idempotency_key})", scheme_id
        )
