"""Command-line interface for Potluck."""

from __future__ import annotations

import json
from typing import List, Optional

import typer

from potluck.config import get_settings
from potluck.db.grocery_cache import SqlGroceryCache
from potluck.db.pantry import add_pantry_item, list_pantry_items
from potluck.grocery.categories import display_name
from potluck.grocery.combiner import UnknownRecipeError
from potluck.grocery.export import format_grocery_item, generate_csv
from potluck.grocery.grouping import group_by_category
from potluck.grocery.interface import InMemoryGroceryCache, SemanticMerger
from potluck.grocery.pantry import filter_pantry_items
from potluck.grocery.smart_combine import SmartCombiner
from potluck.logging_utils import configure_logging
from potluck.merge.client import SemanticMergeClient, build_merge_client
from potluck.models.grocery import RecipeIngredient

app = typer.Typer(help="Potluck grocery list commands.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(
        settings.log_level,
        settings.log_format,
        [
            settings.api_token or "",
            settings.merge_service_token or "",
            settings.merge_llm_api_key or "",
        ],
    )


@app.command()
def combine(
    input_path: str = typer.Argument(..., help="JSON file with 'ingredients' and 'recipeNames'."),
    event_id: Optional[str] = typer.Option(
        None, "--event-id", help="Cache the merged result under this event id."
    ),
    as_csv: bool = typer.Option(False, "--csv", help="Print CSV instead of a grouped list."),
    no_merge: bool = typer.Option(False, "--no-merge", help="Skip the semantic merge service."),
    pantry: Optional[List[str]] = typer.Option(
        None, "--pantry", help="Pantry item to exclude (repeatable)."
    ),
) -> None:
    """
    Combine recipe ingredients into a grocery list grouped by aisle.
    """
    _setup_logging()
    with open(input_path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)

    ingredients = [RecipeIngredient.model_validate(entry) for entry in payload.get("ingredients", [])]
    recipe_names = payload.get("recipeNames") or payload.get("recipe_names") or {}

    merger: SemanticMerger = SemanticMergeClient(endpoint=None) if no_merge else build_merge_client()
    cache = SqlGroceryCache() if event_id else InMemoryGroceryCache()
    combiner = SmartCombiner(cache=cache, merger=merger)

    try:
        result = combiner.smart_combine(event_id or "cli", ingredients, recipe_names)
    except UnknownRecipeError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    filtered = filter_pantry_items(list(result.items), pantry or [])
    grouped = group_by_category(filtered.items)

    if as_csv:
        typer.echo(generate_csv(grouped), nl=False)
        return

    if result.status == "fallback" and result.fallback_reason in ("skipped", "error"):
        typer.secho(
            "Semantic merge unavailable, showing simple combine.",
            fg=typer.colors.YELLOW,
            err=True,
        )
    for category, items in grouped.items():
        typer.secho(display_name(category), bold=True)
        for item in items:
            sources = ", ".join(item.source_recipes)
            typer.echo(f"  - {format_grocery_item(item)}  [{sources}]")
    if filtered.removed_count:
        typer.echo(f"({filtered.removed_count} pantry item(s) hidden)")


@app.command()
def invalidate(event_id: str = typer.Argument(..., help="Event whose cached merge to drop.")) -> None:
    """Delete the cached grocery merge for an event."""

    SqlGroceryCache().delete(event_id)
    typer.echo(f"Invalidated grocery cache for event {event_id}.")


@app.command("pantry-list")
def pantry_list(user_id: str = typer.Argument(..., help="User id.")) -> None:
    """Show a user's pantry."""

    for item in list_pantry_items(user_id):
        typer.echo(f"{item.id}\t{item.name}")


@app.command("pantry-add")
def pantry_add(
    user_id: str = typer.Argument(..., help="User id."),
    name: str = typer.Argument(..., help="Ingredient name."),
) -> None:
    """Add an ingredient to a user's pantry."""

    try:
        item = add_pantry_item(user_id, name)
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"{item.id}\t{item.name}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    """Run the HTTP API (grocery lists, pantry and the merge endpoint)."""

    from potluck.server.run import serve as run_server

    run_server(host=host, port=port, reload=reload)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for `python -m potluck`."""
    app(prog_name="potluck", args=argv)


if __name__ == "__main__":
    main()
