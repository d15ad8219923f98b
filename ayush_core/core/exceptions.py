from __future__ import annotations


class InvalidArgumentError(ValueError):
    """A required query parameter or body field is missing or malformed."""


class NotFoundError(LookupError):
    pass


class UpstreamUnavailableError(RuntimeError):
    """The WHO ICD-11 API could not be reached, authenticated or parsed."""
