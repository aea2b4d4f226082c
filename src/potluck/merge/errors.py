"""Semantic merge error taxonomy."""

from __future__ import annotations


class MergeError(RuntimeError):
    """Base class for failed semantic merge calls."""


class MergeTransportError(MergeError):
    """The merge service could not be reached or returned a non-JSON HTTP failure."""


class MalformedMergeResponseError(MergeError):
    """The merge service replied but the body does not match the expected schema."""


class MergeServiceError(MergeError):
    """The merge service reported ``success: false``."""


__all__ = [
    "MergeError",
    "MergeTransportError",
    "MalformedMergeResponseError",
    "MergeServiceError",
]
