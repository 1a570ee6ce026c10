"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.json_store import JsonFileStore
from adapters.wikidata import WikidataClassifier
from adapters.wikipedia import WikipediaContentSource
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import ClassificationError, PersistenceError, SourcingError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_wikipedia(settings: AppSettings) -> tuple[bool, str]:
    try:
        titles = await WikipediaContentSource(settings).random_titles(1)
        return True, f"{settings.wiki_api_url} ({', '.join(titles) or 'no titles'})"
    except SourcingError as exc:
        return False, str(exc)


async def _check_wikidata(settings: AppSettings) -> tuple[bool, str]:
    try:
        # Q42: Douglas Adams, siempre humano.
        result = await WikidataClassifier(settings).classify(["Q42"])
        return True, f"Q42 is a person: {result.get('Q42')}"
    except ClassificationError as exc:
        return False, str(exc)


def _check_state_dir(settings: AppSettings) -> tuple[bool, str]:
    """Escribe y borra una clave de prueba en el directorio de estado."""

    store = JsonFileStore(settings.resolved_state_dir())
    try:
        store.set("_doctor_test", "{}")
        store.remove("_doctor_test")
        return True, str(settings.resolved_state_dir())
    except PersistenceError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Pantomima Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Category", "OK", settings.default_category)
    table.add_row("Round", "OK", f"{settings.round_duration_seconds}s x {settings.total_rounds}")
    table.add_row("Exclude people", "OK", "yes" if settings.exclude_humans else "no")

    # Connectivity (best-effort)
    ok_wiki, detail_wiki = asyncio.run(_check_wikipedia(settings))
    table.add_row("Wikipedia", "OK" if ok_wiki else "FAIL", detail_wiki)

    ok_wd, detail_wd = asyncio.run(_check_wikidata(settings))
    table.add_row("Wikidata", "OK" if ok_wd else "OPTIONAL", detail_wd)

    ok_state, detail_state = _check_state_dir(settings)
    table.add_row("Save directory", "OK" if ok_state else "FAIL", detail_state)

    _console.print(table)

    if not ok_wd:
        _console.print(
            "\n[yellow]Note:[/yellow] Without Wikidata, 'exclude people' lets every word through."
        )


@app.command()
def configure() -> None:
    """Interactive defaults setup (stores config in the user config .env)."""

    settings = AppSettings()

    category = typer.prompt("Default category", default=settings.default_category, show_default=True).strip()
    duration = typer.prompt("Seconds per round", default=settings.round_duration_seconds, type=int)
    rounds = typer.prompt("Rounds per game", default=settings.total_rounds, type=int)
    exclude = typer.confirm("Exclude real people by default?", default=settings.exclude_humans)
    wiki_url = typer.prompt("Wikipedia API URL", default=settings.wiki_api_url, show_default=True).strip()

    if duration < 1 or rounds < 1:
        raise typer.BadParameter("round duration and rounds must be positive")

    env_path = write_user_env_vars(
        {
            "PANTOMIMA_DEFAULT_CATEGORY": category,
            "PANTOMIMA_ROUND_DURATION_SECONDS": str(duration),
            "PANTOMIMA_TOTAL_ROUNDS": str(rounds),
            "PANTOMIMA_EXCLUDE_HUMANS": "true" if exclude else "false",
            "PANTOMIMA_WIKI_API_URL": wiki_url,
        }
    )

    _console.print(f"[green]Saved defaults to:[/green] {env_path}")
