"""Custom exception hierarchy for thermo-overlay."""

from __future__ import annotations


class ThermoOverlayError(Exception):
    """Base class for all custom errors raised by thermo-overlay."""


# --- 3-layer hierarchy ---

class DomainError(ThermoOverlayError):
    """Base class for domain-level errors."""


class InfrastructureError(ThermoOverlayError):
    """Base class for infrastructure-level errors."""


class ApplicationError(ThermoOverlayError):
    """Base class for application-level errors."""


# --- Domain errors ---

class InvalidArgumentError(DomainError, ValueError):
    """Raised for a malformed gesture action or an out-of-range request."""


class RecordNotFoundError(DomainError):
    """Raised when the requested history record cannot be located."""


# --- Infrastructure errors ---

class ImageDecodeError(InfrastructureError):
    """Raised when a source image cannot be decoded."""


class EncodingError(InfrastructureError):
    """Raised when the rendered buffer cannot be encoded to bytes."""


class DatabaseError(InfrastructureError):
    """Raised when a database operation fails."""


# --- Application errors ---

class BatchProcessingError(ApplicationError):
    """Raised when one or more items of a batch could not be processed."""


class SettingsError(ThermoOverlayError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""
