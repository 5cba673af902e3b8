"""Exception classes for the health agent.

All custom exceptions inherit from ``ApplicationError`` so callers can catch
the whole family at process boundaries.

Exception classes support two patterns:
1. No-argument raise: raise FetchError()
2. Contextual attributes: err = FetchError(source="http://...", reason="timeout"); raise err
"""

from __future__ import annotations

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Application error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class ConfigurationError(ApplicationError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Configuration is invalid or missing"
        super().__init__(message, **kwargs)

    @classmethod
    def invalid_value(cls, param_name: str, value: Any, reason: str = "") -> "ConfigurationError":
        """Create error for invalid value."""
        msg = f"Invalid value for {param_name}: {value!r}"
        if reason:
            msg += f". {reason}"
        return cls(msg, param_name=param_name, value=value)

    @classmethod
    def missing_value(cls, param_name: str, context: str = "") -> "ConfigurationError":
        """Create error for missing value."""
        msg = f"{param_name} is missing or empty"
        if context:
            msg += f": {context}"
        return cls(msg, param_name=param_name)

    @classmethod
    def unknown_bound_type(cls, bound_type: str, metric_name: str) -> "ConfigurationError":
        """Create error for a bound type that is not supported."""
        return cls(
            f"Unsupported bound type {bound_type!r} for metric {metric_name!r}",
            param_name="bound_type",
            value=bound_type,
        )

    @classmethod
    def period_required(cls, bound_type: str, metric_name: str) -> "ConfigurationError":
        """Create error for a rate bound declared without a period."""
        return cls(
            f"{bound_type} bound on {metric_name!r} requires a time period",
            param_name="period",
        )

    @classmethod
    def period_forbidden(cls, bound_type: str, metric_name: str) -> "ConfigurationError":
        """Create error for an absolute bound declared with a period."""
        return cls(
            f"{bound_type} bound on {metric_name!r} does not take a time period",
            param_name="period",
        )

    @classmethod
    def duplicate_element(cls, element_id: str) -> "ConfigurationError":
        """Create error for an element declared more than once."""
        return cls(f"Element {element_id!r} is defined more than once", element_id=element_id)

    @classmethod
    def load_failed(cls, resource: str, identifier: str = "") -> "ConfigurationError":
        """Create error for failed resource load."""
        msg = f"Failed to load {resource}"
        if identifier:
            msg += f" from {identifier}"
        return cls(msg)


class FetchError(ApplicationError):
    """Fetching data from a collaborator failed."""

    def __init__(self, message: str = "", *, source: str = "", reason: str = "", **kwargs: Any) -> None:
        if not message:
            message = f"Fetch from {source or 'collaborator'} failed"
            if reason:
                message += f": {reason}"
        super().__init__(message, source=source, reason=reason or message, **kwargs)


class PayloadError(FetchError):
    """A collaborator responded with a payload that could not be understood."""


__all__ = [
    "ApplicationError",
    "ConfigurationError",
    "FetchError",
    "PayloadError",
]
