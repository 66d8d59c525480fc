"""
Nourish - CLI Entry Point.

Usage:
    nourish chat              Start interactive chat
    nourish ask "message"     Send a single message
    nourish log "2 eggs"      Estimate a meal from text and log it
    nourish health            Check configuration
    nourish serve             Start the web API
    nourish tools             List the assistant's tools
    nourish --help            Show help

The CLI plays the client's part: it rebuilds the per-turn snapshot (goals
and today's totals) from the ledgers before every message.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel

from nourish.db.adapter import Store

app = typer.Typer(
    name="nourish",
    help="Nourish - your nutrition assistant.",
    add_completion=False,
)
console = Console()


# =============================================================================
# Snapshot
# =============================================================================


async def load_snapshot(store: Store, user_id: str, now: datetime | None = None) -> dict[str, Any]:
    """
    Build the context snapshot a client would send, from the ledgers.

    Today is computed in the profile's timezone (UTC when unset).
    """
    from nourish.ledgers import meals, profiles, water, weight
    from nourish.models.entities import DEFAULT_CALORIE_GOAL, default_water_goal
    from nourish.tools.context import today_in_timezone

    profile = await profiles.get_profile(store, user_id)
    tz = (profile.timezone if profile else None) or "UTC"
    today = today_in_timezone(tz, now or datetime.now(timezone.utc))
    units = profile.units if profile else "imperial"

    todays_meals, todays_water, latest = await asyncio.gather(
        meals.meals_on(store, user_id, today),
        water.find_water_on(store, user_id, today),
        weight.weight_history(store, user_id, limit=1),
    )
    totals = meals.meal_totals(todays_meals)

    return {
        "calorieGoal": profile.calorie_goal if profile else DEFAULT_CALORIE_GOAL,
        "caloriesConsumed": totals["calories"],
        "proteinConsumed": totals["protein"],
        "carbsConsumed": totals["carbs"],
        "fatConsumed": totals["fat"],
        "waterGoal": (profile.water_goal if profile else None) or default_water_goal(units),
        "waterConsumed": todays_water.amount if todays_water else 0,
        "currentWeight": latest[0].weight if latest else None,
        "weightGoal": profile.weight_goal if profile else None,
        "units": units,
        "sex": profile.sex if profile else None,
        "activityLevel": profile.activity_level if profile else "moderate",
        "timezone": tz,
    }


# =============================================================================
# Turn
# =============================================================================


def _make_backends(memory: bool) -> tuple[Store, Any]:
    """Store and image storage for a CLI session."""
    from nourish.db import MemoryStore, SupabaseStore
    from nourish.storage import SupabaseImageStorage

    if memory:
        return MemoryStore(), None
    return SupabaseStore(), SupabaseImageStorage()


async def _run_turn(store: Store, user_id: str, history: list, storage: Any = None) -> str:
    """
    Stream one assistant turn to the console; returns the response text.

    Each turn runs in its own event loop, so it gets its own model client.
    """
    from nourish.agent.assistant import stream_assistant_reply
    from nourish.llm.client import OpenAIChatModel
    from nourish.observability.session_logger import create_session_logger

    session_log = create_session_logger()
    response = ""
    console.print("\n[bold green]Nourish:[/bold green] ", end="")
    try:
        async for event in stream_assistant_reply(
            OpenAIChatModel(),
            store,
            user_id,
            await load_snapshot(store, user_id),
            history,
            storage=storage,
            session_logger=session_log,
        ):
            match event["type"]:
                case "text":
                    console.print(event["text"], end="", markup=False, highlight=False)
                case "tool_call":
                    console.print(f"\n[dim]→ {event['name']}({event['arguments']})[/dim]")
                case "tool_result":
                    status = "ok" if event["result"].get("success") else event["result"].get("error")
                    console.print(f"[dim]  {event['name']}: {status}[/dim]")
                case "error":
                    console.print(f"[red]{event['message']}[/red]", end="")
                case "done":
                    response = event["response"]
    finally:
        session_log.close()
    console.print()
    return response


# =============================================================================
# Commands
# =============================================================================


@app.command()
def chat(
    memory: bool = typer.Option(False, "--memory", "-m", help="Use a throwaway in-memory store"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all model calls to prompt_logs/"),
) -> None:
    """Start an interactive chat session."""
    from nourish.agent.messages import ChatMessage
    from nourish.config import settings
    from nourish.llm.prompt_logger import enable_prompt_logging
    from nourish.observability import configure_logging

    configure_logging()
    if log_prompts:
        enable_prompt_logging(True)
        console.print("[dim]Prompt logging enabled. Check prompt_logs/ after the session.[/dim]")

    console.print(
        Panel.fit(
            "[bold green]Nourish[/bold green]\n"
            "Log meals, water and weight, manage your pantry and shopping lists.\n\n"
            "[dim]Type 'exit' or 'quit' to end the session.[/dim]",
            title="Welcome",
            border_style="green",
        )
    )

    store, storage = _make_backends(memory)
    user_id = settings.dev_user_id
    history: list[ChatMessage] = []

    while True:
        try:
            user_input = console.input("\n[bold blue]You:[/bold blue] ").strip()

            if user_input.lower() in ("exit", "quit", "q"):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if not user_input:
                continue

            history.append(ChatMessage.user(user_input))
            response = asyncio.run(_run_turn(store, user_id, history, storage))
            history.append(ChatMessage.assistant(response))

        except KeyboardInterrupt:
            console.print("\n\n[dim]Session interrupted. Goodbye![/dim]")
            break
        except Exception as e:
            console.print(f"\n[red]Error: {e}[/red]")


@app.command()
def ask(
    message: str = typer.Argument(..., help="Message to send"),
    memory: bool = typer.Option(False, "--memory", "-m", help="Use a throwaway in-memory store"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all model calls to prompt_logs/"),
) -> None:
    """Send a single message (useful for testing)."""
    from nourish.agent.messages import ChatMessage
    from nourish.config import settings
    from nourish.llm.prompt_logger import enable_prompt_logging
    from nourish.observability import configure_logging

    configure_logging()
    if log_prompts:
        enable_prompt_logging(True)

    store, storage = _make_backends(memory)
    asyncio.run(_run_turn(store, settings.dev_user_id, [ChatMessage.user(message)], storage))


@app.command("log")
def log_meal(
    description: str = typer.Argument(..., help="What you ate, e.g. '2 eggs and toast'"),
    date: str = typer.Option(None, "--date", "-d", help="Meal date (YYYY-MM-DD), default today"),
    memory: bool = typer.Option(False, "--memory", "-m", help="Use a throwaway in-memory store"),
) -> None:
    """Estimate a meal from its description and log it."""
    from nourish.config import settings
    from nourish.errors import MealAnalysisError
    from nourish.meal_logging import log_meal_from_description
    from nourish.observability import configure_logging

    configure_logging()
    if date is not None:
        try:
            datetime.strptime(date, "%Y-%m-%d")
        except ValueError:
            console.print(f"[red]'{date}' is not a valid YYYY-MM-DD date[/red]")
            raise typer.Exit(1)
    store, _ = _make_backends(memory)

    try:
        meal = asyncio.run(log_meal_from_description(store, settings.dev_user_id, description, date))
    except MealAnalysisError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    macros = ", ".join(
        f"{label} {value}g"
        for label, value in (("protein", meal.protein), ("carbs", meal.carbs), ("fat", meal.fat))
        if value is not None
    )
    console.print(f"[green]Logged[/green] {meal.name}: {meal.calories} kcal" + (f" ({macros})" if macros else ""))
    console.print(f"[dim]{meal.meal_date}, id {meal.id}[/dim]")


@app.command()
def health() -> None:
    """Check configuration."""
    from nourish.config import get_settings

    console.print("\n[bold]Nourish Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.nourish_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Model: {settings.model_name}")

        if settings.openai_api_key:
            console.print("✅ Model API key configured")
        else:
            console.print("❌ OPENAI_API_KEY missing")

        if settings.has_supabase:
            console.print("✅ Supabase configured")
        else:
            console.print("ℹ️  Supabase not configured (use --memory)")

        console.print(
            f"   Agent: max {settings.agent_max_steps} steps, "
            f"{settings.tool_timeout_seconds:g}s tool timeout"
        )
    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the web API server."""
    import os

    import uvicorn

    # Hosting platforms set PORT
    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]Nourish API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "nourish.web.app:app",
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
    )


@app.command()
def tools() -> None:
    """List the assistant's tools."""
    from nourish.tools.registry import TOOLS

    console.print("\n[bold]Registered Tools[/bold]\n")
    for spec in TOOLS.values():
        console.print(f"  • [bold blue]{spec.name.value}[/bold blue]: {spec.description}")
    console.print(f"\n[dim]Total: {len(TOOLS)} tools[/dim]")


@app.command()
def version() -> None:
    """Show version."""
    from nourish import __version__

    console.print(f"Nourish version {__version__}")


if __name__ == "__main__":
    app()
