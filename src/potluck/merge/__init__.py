"""Semantic merge client and server-side authority."""

from potluck.merge.errors import (
    MalformedMergeResponseError,
    MergeError,
    MergeServiceError,
    MergeTransportError,
)

__all__ = [
    "MalformedMergeResponseError",
    "MergeError",
    "MergeServiceError",
    "MergeTransportError",
]
