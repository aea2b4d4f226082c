"""ASGI application for Potluck."""
# mypy: ignore-errors

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Optional, Union
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from potluck import __version__, metrics
from potluck.config import Settings, get_settings
from potluck.grocery.categories import display_name
from potluck.grocery.combiner import UnknownRecipeError
from potluck.grocery.export import csv_filename, format_grocery_item, generate_csv
from potluck.grocery.grouping import group_by_category
from potluck.grocery.pantry import filter_pantry_items
from potluck.grocery.smart_combine import SmartCombiner, SmartCombineResult
from potluck.logging_utils import configure_logging as configure_app_logging
from potluck.merge.authority import MergeAuthority
from potluck.models.grocery import (
    CombinedGroceryItem,
    GroceryCategory,
    PreCombinedItem,
    RecipeIngredient,
    SmartGroceryItem,
)
from potluck.models.pantry import PantryItem
from potluck.server import deps

logger = logging.getLogger(__name__)

GroceryItem = Union[SmartGroceryItem, CombinedGroceryItem]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MergeRequest(_CamelModel):
    pre_combined: list[PreCombinedItem] = Field(default_factory=list)


class GroceryListRequest(_CamelModel):
    ingredients: list[RecipeIngredient] = Field(default_factory=list)
    recipe_names: dict[str, str] = Field(default_factory=dict)
    user_id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    pantry: list[str] = Field(default_factory=list)
    exclude_pantry: bool = True
    event_name: Optional[str] = Field(default=None, max_length=255)


class GroceryGroup(_CamelModel):
    category: GroceryCategory
    display_name: str
    items: list[GroceryItem]
    lines: list[str]


class GroceryListResponse(_CamelModel):
    event_id: str
    status: str
    fallback_reason: Optional[str] = None
    error: Optional[str] = None
    items: list[GroceryItem]
    groups: list[GroceryGroup]
    removed_count: int = 0


class PantryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)


def _configure_logging(settings: Settings) -> None:
    secrets = [
        settings.api_token or "",
        settings.merge_service_token or "",
        settings.merge_llm_api_key or "",
    ]
    configure_app_logging(settings.log_level, settings.log_format, secrets)


def _apply_pantry(
    result: SmartCombineResult,
    payload: GroceryListRequest,
    names_provider: deps.PantryNamesProvider,
) -> tuple[list[GroceryItem], int]:
    items = list(result.items)
    if not payload.exclude_pantry:
        return items, 0
    names = list(payload.pantry)
    if payload.user_id:
        names.extend(names_provider(payload.user_id))
    filtered = filter_pantry_items(items, names)
    return filtered.items, filtered.removed_count


def _run_grocery_pipeline(
    event_id: str,
    payload: GroceryListRequest,
    combiner: SmartCombiner,
    names_provider: deps.PantryNamesProvider,
) -> tuple[SmartCombineResult, list[GroceryItem], int]:
    try:
        result = combiner.smart_combine(event_id, payload.ingredients, payload.recipe_names)
    except UnknownRecipeError as exc:
        logger.warning("Rejected grocery list for event %s: %s", event_id, exc)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    items, removed = _apply_pantry(result, payload, names_provider)
    return result, items, removed


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Potluck Grocery Aggregator", version=__version__)
    logger.debug("Application created with log level %s", settings.log_level)

    if settings.log_requests:
        access_logger = logging.getLogger("potluck.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details and record request metrics."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(
                method=method,
                path=path,
                status=str(response.status_code),
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                duration_ms / 1000.0
            )
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        log_kwargs: dict[str, Any] = {}
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            log_kwargs["extra"] = {"request_id": request_id}

        errors = exc.errors()
        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            errors,
            **log_kwargs,
        )
        detail = [
            {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
            for error in errors
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": detail},
        )

    @application.get("/healthz", summary="Liveness probe")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @application.post("/combine-ingredients", summary="Semantic merge of pre-combined items")
    def combine_ingredients_endpoint(
        payload: MergeRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        authority: MergeAuthority = Depends(deps.get_merge_authority),
    ) -> JSONResponse:
        try:
            body = authority.merge_payload(payload.pre_combined)
        except Exception as exc:
            logger.error("Error in combine-ingredients: %s", exc)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"success": False, "error": str(exc) or exc.__class__.__name__},
            )
        return JSONResponse(content=body)

    @application.post(
        "/events/{event_id}/grocery-list",
        response_model=GroceryListResponse,
        response_model_by_alias=True,
        summary="Build the grocery list for an event",
    )
    def grocery_list_endpoint(
        event_id: str,
        payload: GroceryListRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        combiner: SmartCombiner = Depends(deps.get_smart_combiner),
        names_provider: deps.PantryNamesProvider = Depends(deps.get_pantry_names_provider),
    ) -> GroceryListResponse:
        result, items, removed = _run_grocery_pipeline(event_id, payload, combiner, names_provider)
        groups = [
            GroceryGroup(
                category=category,
                display_name=display_name(category),
                items=bucket,
                lines=[format_grocery_item(item) for item in bucket],
            )
            for category, bucket in group_by_category(items).items()
        ]
        return GroceryListResponse(
            event_id=event_id,
            status=result.status,
            fallback_reason=result.fallback_reason,
            error=result.error,
            items=items,
            groups=groups,
            removed_count=removed,
        )

    @application.post(
        "/events/{event_id}/grocery-list.csv",
        summary="Export an event's grocery list as CSV",
    )
    def grocery_list_csv_endpoint(
        event_id: str,
        payload: GroceryListRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        combiner: SmartCombiner = Depends(deps.get_smart_combiner),
        names_provider: deps.PantryNamesProvider = Depends(deps.get_pantry_names_provider),
    ) -> Response:
        _, items, _ = _run_grocery_pipeline(event_id, payload, combiner, names_provider)
        filename = csv_filename(payload.event_name or event_id)
        return Response(
            content=generate_csv(group_by_category(items)),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @application.delete(
        "/events/{event_id}/grocery-cache",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Invalidate an event's cached grocery merge",
    )
    def grocery_cache_delete(
        event_id: str,
        auth: None = Depends(deps.require_api_token),
        combiner: SmartCombiner = Depends(deps.get_smart_combiner),
    ) -> Response:
        combiner.invalidate(event_id)
        logger.info("Grocery cache invalidated for event %s", event_id, extra={"event_id": event_id})
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @application.get(
        "/users/{user_id}/pantry",
        response_model=list[PantryItem],
        summary="List a user's pantry",
    )
    def pantry_list(
        user_id: str,
        provider: deps.PantryProvider = Depends(deps.get_pantry_provider),
    ) -> list[PantryItem]:
        return provider(user_id)

    @application.post(
        "/users/{user_id}/pantry",
        response_model=PantryItem,
        status_code=status.HTTP_201_CREATED,
        summary="Add a pantry item",
    )
    def pantry_create(
        user_id: str,
        payload: PantryCreateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        creator: deps.PantryCreator = Depends(deps.get_pantry_creator),
    ) -> PantryItem:
        try:
            return creator(user_id, payload.name)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc

    @application.post(
        "/users/{user_id}/pantry/defaults",
        response_model=list[PantryItem],
        summary="Seed default pantry items",
    )
    def pantry_seed(
        user_id: str,
        auth: None = Depends(deps.require_api_token),
        seeder: deps.PantrySeeder = Depends(deps.get_pantry_seeder),
    ) -> list[PantryItem]:
        return seeder(user_id)

    @application.delete(
        "/users/{user_id}/pantry/{item_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Remove a pantry item",
    )
    def pantry_delete(
        user_id: str,
        item_id: int,
        auth: None = Depends(deps.require_api_token),
        deleter: deps.PantryDeleter = Depends(deps.get_pantry_deleter),
    ) -> Response:
        try:
            deleter(user_id, item_id)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return application


app = create_app()

__all__ = ["app", "create_app"]
