"""Exceptions raised by the scaling core."""


class ValidationError(ValueError):
    """Input array or tuning parameters are not usable."""


class ResourceError(MemoryError):
    """The histogram buffer could not be allocated."""
