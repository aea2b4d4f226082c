"""HTTP client for the semantic merge service."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx
from pydantic import ValidationError

from potluck.config import Settings, get_settings
from potluck.grocery.interface import MERGE_SKIPPED, MergeResult
from potluck.grocery.quantity import METRIC_UNITS, normalize_unit
from potluck.merge.errors import (
    MalformedMergeResponseError,
    MergeServiceError,
    MergeTransportError,
)
from potluck.models.grocery import PreCombinedItem, SmartGroceryItem

logger = logging.getLogger(__name__)

MERGE_TIMEOUT = 60.0


def validate_merged_items(raw_items: Any) -> list[SmartGroceryItem]:
    """Validate a decoded ``items`` array against the :class:`SmartGroceryItem` shape.

    Quantities must be finite, non-negative JSON numbers or ``null`` and units must not be
    metric in any spelling.
    """

    if not isinstance(raw_items, list):
        raise MalformedMergeResponseError(
            f"Merge response items must be an array, got {type(raw_items).__name__}"
        )

    items: list[SmartGroceryItem] = []
    for index, entry in enumerate(raw_items):
        if not isinstance(entry, dict):
            raise MalformedMergeResponseError(
                f"Merge response item {index} must be an object, got {type(entry).__name__}"
            )
        try:
            item = SmartGroceryItem.model_validate(entry)
        except ValidationError as exc:
            raise MalformedMergeResponseError(
                f"Merge response item {index} is invalid: {exc.errors(include_url=False)}"
            ) from exc
        if normalize_unit(item.unit) in METRIC_UNITS:
            raise MalformedMergeResponseError(
                f"Merge response item {index} ({item.name}) uses metric unit {item.unit!r}"
            )
        items.append(item)
    return items


def parse_merge_response(response: httpx.Response) -> MergeResult:
    """Interpret a merge service HTTP response.

    Returns merged items or :data:`MERGE_SKIPPED`. Raises :class:`MergeServiceError` for an
    explicit ``success: false`` body, :class:`MergeTransportError` for HTTP failures without a
    JSON body and :class:`MalformedMergeResponseError` for anything else off-contract.
    """

    try:
        body = response.json()
    except ValueError as exc:
        snippet = response.text.strip().replace("\n", " ")[:200]
        if response.is_error:
            raise MergeTransportError(
                f"Merge service returned HTTP {response.status_code}: {snippet}"
            ) from exc
        raise MalformedMergeResponseError(
            f"Merge service returned invalid JSON: payload={snippet}"
        ) from exc

    if not isinstance(body, dict):
        raise MalformedMergeResponseError(
            f"Merge response must be an object, got {type(body).__name__}"
        )

    success = body.get("success")
    if success is False:
        message = body.get("error") or f"HTTP {response.status_code}"
        raise MergeServiceError(f"Merge service error: {message}")
    if success is not True:
        raise MalformedMergeResponseError("Merge response is missing the success flag")

    if body.get("skipped") is True:
        logger.debug("Merge service skipped: %s", body.get("message"))
        return MERGE_SKIPPED

    if "items" not in body:
        raise MalformedMergeResponseError("Merge response has neither items nor skipped flag")
    return validate_merged_items(body["items"])


class SemanticMergeClient:
    """Send naive grocery results to the merge service for semantic de-duplication.

    A client without an endpoint is unconfigured and answers every call with
    :data:`MERGE_SKIPPED`. Each call makes a single attempt; there are no retries.
    """

    def __init__(
        self,
        *,
        endpoint: Optional[str],
        token: Optional[str] = None,
        timeout: float = MERGE_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/") if endpoint else None
        self._token = token
        self._timeout = max(0.1, float(timeout))
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self._endpoint is not None

    def merge(self, pre_combined: Sequence[PreCombinedItem]) -> MergeResult:
        if self._endpoint is None:
            return MERGE_SKIPPED

        payload = {
            "preCombined": [
                item.model_dump(mode="json", by_alias=True) for item in pre_combined
            ]
        }
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(self._endpoint, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise MergeTransportError(f"Merge service request failed: {exc}") from exc

        return parse_merge_response(response)


def build_merge_client(settings: Settings | None = None) -> SemanticMergeClient:
    """Create a merge client from settings (unconfigured when no URL is set)."""

    settings = settings or get_settings()
    if not settings.merge_service_url:
        logger.debug("Semantic merge service URL not configured; merges will be skipped.")
    return SemanticMergeClient(
        endpoint=settings.merge_service_url,
        token=settings.merge_service_token,
        timeout=settings.merge_timeout,
    )


__all__ = [
    "SemanticMergeClient",
    "build_merge_client",
    "parse_merge_response",
    "validate_merged_items",
]
