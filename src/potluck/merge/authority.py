"""Server-side semantic merge backed by an LLM."""
# mypy: ignore-errors

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Sequence

import httpx

from potluck.config import Settings, get_settings
from potluck.merge.client import validate_merged_items
from potluck.merge.errors import MalformedMergeResponseError
from potluck.models.grocery import PreCombinedItem

LLM_TIMEOUT = 90.0
ANTHROPIC_BASE_URL = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"
_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)

MERGE_SYSTEM_PROMPT = (
    "You tidy the shared grocery list for a cooking club. The ingredients you receive were "
    "already combined per name and unit, so quantities sharing a unit are summed. Your only job "
    "is semantic de-duplication: merge entries that are the same real-world ingredient written "
    "differently, and leave everything else alone.\n"
    "Merge, for example: \"broccoli floret\" with \"broccoli\"; \"garlic clove\" with \"garlic\"; "
    "\"cold water\" with \"water\".\n"
    "Keep separate genuinely different products, for example: \"sesame oil\" and \"vegetable "
    "oil\"; \"rice vinegar\" and \"white vinegar\"; \"crushed tomatoes\", \"tomato\" and "
    "\"tomato sauce\".\n"
    "If nothing needs merging, return the items unchanged.\n"
    "Rules:\n"
    "- Do not change quantities except when merging.\n"
    "- When merged entries share a unit, add their quantities.\n"
    "- When merged entries have units that cannot be added, keep the unit of the larger quantity "
    "and drop the other amount.\n"
    "- Use null for totalQuantity when no quantity is known.\n"
    "- Quantities are plain JSON numbers such as 2.5, never fraction strings like \"2 1/2\".\n"
    "- Units are imperial only (tsp, tbsp, cup, oz, lb) or count words; never g, kg or ml.\n"
    "- category is one of: produce, meat_seafood, dairy, pantry, spices, frozen, bakery, "
    "beverages, condiments, other. Keep the most specific one when merging.\n"
    "- sourceRecipes is the union of the merged entries' sourceRecipes without duplicates.\n"
    "- Use the clean base ingredient name (\"broccoli\", not \"broccoli floret\").\n"
    "Return only a JSON array, no markdown, where each element is:\n"
    '{"name": string, "totalQuantity": number|null, "unit": string|null, '
    '"category": string, "sourceRecipes": [string]}'
)

MERGE_USER_PROMPT = (
    "Merge any semantic duplicates in these pre-combined ingredients. Leave quantities as they "
    "are unless you merge entries:\n{items_json}"
)

logger = logging.getLogger(__name__)


class MergeAuthority:
    """Answer merge-service requests by asking an Anthropic, OpenAI-compatible or Ollama LLM."""

    def __init__(
        self,
        *,
        base_url: Optional[str],
        api_key: Optional[str],
        model: str,
        provider: str,
        temperature: float = 0.0,
        max_tokens: int = 8192,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._provider = (provider or "anthropic").strip().lower()
        if not base_url and self._provider == "anthropic":
            base_url = ANTHROPIC_BASE_URL
        self._base_url = base_url.rstrip("/") if base_url else None
        self._api_key = api_key
        self._model = model
        self._temperature = max(0.0, float(temperature))
        self._max_tokens = max(1, int(max_tokens))
        self._transport = transport

    @property
    def configured(self) -> bool:
        if self._provider == "anthropic":
            return bool(self._api_key)
        return self._base_url is not None

    def merge_payload(self, pre_combined: Sequence[PreCombinedItem]) -> dict[str, Any]:
        """Return the wire response body for a ``preCombined`` request.

        Raises ``httpx.HTTPError``, ``ValueError`` or :class:`MalformedMergeResponseError`
        when the LLM call fails or answers off-contract.
        """

        if not self.configured:
            return {
                "success": True,
                "skipped": True,
                "message": f"{self._provider} merge model not configured",
            }
        if not pre_combined:
            return {"success": True, "items": []}

        items_json = json.dumps(
            [item.model_dump(mode="json", by_alias=True) for item in pre_combined],
            ensure_ascii=False,
            indent=2,
        )
        try:
            content = self._execute_chat(
                MERGE_SYSTEM_PROMPT,
                MERGE_USER_PROMPT.format(items_json=items_json),
            )
        except Exception:
            logger.exception("Merge LLM request failed")
            raise

        json_blob = _extract_json_array(content)
        try:
            parsed = json.loads(json_blob)
        except json.JSONDecodeError as exc:
            snippet = json_blob.strip().replace("\n", " ")[:200]
            raise MalformedMergeResponseError(
                f"Merge LLM returned invalid JSON: {exc}: payload={snippet}"
            ) from exc

        items = validate_merged_items(parsed)
        logger.info("Merge LLM returned %s item(s) for %s input(s)", len(items), len(pre_combined))
        return {
            "success": True,
            "items": [item.model_dump(mode="json", by_alias=True) for item in items],
        }

    def _execute_chat(self, system: str, user: str) -> str:
        with httpx.Client(timeout=LLM_TIMEOUT, transport=self._transport) as client:
            if self._provider == "anthropic":
                return self._anthropic_chat(client, system, user)
            if self._provider == "ollama":
                return self._ollama_chat(client, system, user)
            return self._openai_chat(client, system, user)

    def _anthropic_chat(self, client: httpx.Client, system: str, user: str) -> str:
        endpoint = self._base_url
        if not endpoint.endswith("/v1/messages"):
            endpoint = f"{endpoint}/v1/messages"
        payload = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        }
        headers = {
            "x-api-key": self._api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
        }
        response = client.post(endpoint, json=payload, headers=headers)
        response.raise_for_status()
        body = response.json()
        blocks = body.get("content") or []
        text = "".join(
            block.get("text") or "" for block in blocks if block.get("type", "text") == "text"
        ).strip()
        if not text:
            raise ValueError("Anthropic merge response did not include text content.")
        return text

    def _ollama_chat(self, client: httpx.Client, system: str, user: str) -> str:
        endpoint = self._base_url
        if not endpoint.endswith("/api/chat"):
            endpoint = f"{endpoint}/api/chat"
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "stream": False,
            "options": {
                "temperature": self._temperature,
                "num_predict": self._max_tokens,
            },
        }
        response = client.post(endpoint, json=payload)
        response.raise_for_status()
        body = response.json()
        message = body.get("message") or {}
        content = (message.get("content") or "").strip()
        if not content:
            raise ValueError("Ollama merge response did not include content.")
        return content

    def _openai_chat(self, client: httpx.Client, system: str, user: str) -> str:
        endpoint = self._base_url
        if not endpoint.endswith("/chat/completions"):
            endpoint = f"{endpoint}/chat/completions"
        payload = {
            "model": self._model,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        response = client.post(endpoint, json=payload, headers=headers)
        response.raise_for_status()
        body = response.json()
        choices = body.get("choices") or []
        if not choices:
            raise ValueError("Merge LLM returned no choices.")
        message = choices[0].get("message") or {}
        content = (message.get("content") or "").strip()
        if not content:
            raise ValueError("Merge LLM returned an empty response.")
        return content


def _extract_json_array(text: str) -> str:
    match = _JSON_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()

    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1].strip()
    return text.strip()


def build_merge_authority(settings: Settings | None = None) -> MergeAuthority:
    """Create the merge authority from settings."""

    settings = settings or get_settings()
    return MergeAuthority(
        base_url=settings.merge_llm_base_url,
        api_key=settings.merge_llm_api_key,
        model=settings.merge_llm_model,
        provider=settings.merge_llm_provider,
        temperature=settings.merge_llm_temperature,
        max_tokens=settings.merge_llm_max_tokens,
    )


__all__ = ["MergeAuthority", "build_merge_authority", "MERGE_SYSTEM_PROMPT"]
