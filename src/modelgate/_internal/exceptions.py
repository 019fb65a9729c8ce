"""Exception hierarchy shared across modelgate.

Every error carries a human-readable message plus a ``context`` mapping with
the structured fields callers need (provider id, model id, suggestions, ...).
Subclasses that represent boundary errors also expose those fields as
attributes so callers can branch on them without parsing messages.

Examples:
    >>> err = ProviderModelNotFoundError("openai", "gpt-9", suggestions=["gpt-5"])
    >>> err.context["suggestions"]
    ['gpt-5']
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence


class ModelGateError(Exception):
    """Base class for all modelgate errors."""

    def __init__(self, message: str, *, context: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigError(ModelGateError):
    """Raised when configuration cannot be loaded or validated."""


class ConfigValueError(ConfigError):
    """Raised when a specific configuration value is malformed."""


class CredentialError(ModelGateError):
    """Raised when the credential store cannot be read or written."""


class CatalogError(ModelGateError):
    """Raised when the model catalog cannot be loaded."""


class ProviderInitError(ModelGateError):
    """Raised when a client adapter for a provider cannot be constructed.

    The underlying failure is always chained as ``__cause__``.
    """

    def __init__(self, provider_id: str, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Failed to initialize provider '{provider_id}'",
            context={"provider_id": provider_id},
        )
        self.provider_id = provider_id


class ProviderModelNotFoundError(ModelGateError):
    """Raised when a provider or model is not present in the provider table."""

    def __init__(
        self,
        provider_id: str,
        model_id: str,
        suggestions: Optional[Sequence[str]] = None,
    ) -> None:
        context: dict[str, Any] = {"provider_id": provider_id, "model_id": model_id}
        if suggestions is not None:
            context["suggestions"] = list(suggestions)
        super().__init__(f"Model '{provider_id}/{model_id}' not found", context=context)
        self.provider_id = provider_id
        self.model_id = model_id
        self.suggestions = list(suggestions) if suggestions is not None else None


class ModelSelectionError(ModelGateError):
    """Raised when no default model can be selected."""


__all__ = [
    "CatalogError",
    "ConfigError",
    "ConfigValueError",
    "CredentialError",
    "ModelGateError",
    "ModelSelectionError",
    "ProviderInitError",
    "ProviderModelNotFoundError",
]
