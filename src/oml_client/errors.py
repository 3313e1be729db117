"""
Custom exceptions for the OML measurement client.

Producer-facing operations raise these synchronously. Errors inside a
channel's sender thread are never raised to the producer; they are logged
and exposed on the channel instead.
"""


class OMLError(Exception):
    """Base error for the OML client."""

    pass


class ConfigurationError(OMLError):
    """Invalid declaration or initialization (missing names, bad URLs, unknown channels)."""

    pass


class SampleShapeError(OMLError):
    """Injected sample does not match the measurement point's field count."""

    pass


class SampleValueError(OMLError):
    """Injected value cannot be represented as its declared field type."""

    pass


class ProtocolError(OMLError):
    """Malformed text-protocol stream."""

    pass
