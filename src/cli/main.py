"""CLI principal (Typer).

Comandos:
- `play`: partida completa en la terminal, pasando el dispositivo entre equipos.
- `words`: obtiene un pool de palabras y lo imprime (útil para probar categorías).
- `discard`: borra la partida guardada.
- `doctor`: diagnóstico de entorno y configuración por defecto.

La CLI es solo un adaptador: toda la lógica del juego vive en
`core.services.round_machine`.
"""

from __future__ import annotations

import asyncio
import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from adapters.json_store import JsonFileStore
from adapters.wikidata import WikidataClassifier
from adapters.wikipedia import WikipediaContentSource
from cli import doctor
from cli.ui_components import (
    build_briefing_panel,
    build_description_panel,
    build_scoreboard_table,
    build_words_table,
    describe_result,
    format_time,
    print_banner,
    team_text,
)
from core.config import AppSettings
from core.domain.errors import PersistenceError, SourcingError
from core.domain.models import COLOR_PALETTE, GameSetup, GameState
from core.services.persistence import PersistenceStore
from core.services.round_machine import MachineHooks, RoundStateMachine
from core.services.word_pipeline import WordSourcingPipeline

app = typer.Typer(no_args_is_help=True, help="Pantomima: charades with words from Wikipedia.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_console, show_path=False)],
        force=True,
    )


def build_pipeline(settings: AppSettings) -> WordSourcingPipeline:
    return WordSourcingPipeline(
        WikipediaContentSource(settings),
        WikidataClassifier(settings),
        settings=settings,
    )


def build_store(settings: AppSettings) -> PersistenceStore:
    return PersistenceStore(JsonFileStore(settings.resolved_state_dir()))


async def _ask(prompt: str) -> str:
    # En un hilo: el temporizador sigue corriendo mientras se espera input.
    return await asyncio.to_thread(_console.input, prompt)


class TerminalGame:
    """Adaptador de terminal sobre `RoundStateMachine`."""

    def __init__(self, settings: AppSettings) -> None:
        self._settings = settings
        self._round_over = asyncio.Event()
        self.machine = RoundStateMachine(
            build_pipeline(settings),
            build_store(settings),
            settings=settings,
            hooks=MachineHooks(notice=self._notice, state_changed=self._on_state),
        )

    def _notice(self, message: str) -> None:
        _console.print(f"[yellow]{message}[/yellow]")

    def _on_state(self, state: GameState) -> None:
        if state == GameState.RESULT:
            self._round_over.set()
        elif state == GameState.LOADING:
            _console.print("[dim]Loading words...[/dim]")

    async def run(self) -> None:
        print_banner(_console)
        handlers = {
            GameState.SETUP: self._setup,
            GameState.SELECTION: self._selection,
            GameState.CHOICE: self._choice,
            GameState.BRIEFING: self._briefing,
            GameState.TIMER: self._timer,
            GameState.RESULT: self._result,
            GameState.SCOREBOARD: self._scoreboard,
            GameState.FINAL: self._final,
        }
        while True:
            handler = handlers.get(self.machine.state)
            if handler is None:
                await asyncio.sleep(0)
                continue
            if not await handler():
                return

    # -- pantallas -------------------------------------------------------

    async def _ask_color(self, label: str, default: str) -> str:
        options = "  ".join(f"[{hex_}]{i}) {name}[/{hex_}]" for i, (name, hex_) in enumerate(COLOR_PALETTE, 1))
        _console.print(options)
        raw = (await _ask(f"{label} color (Enter = default): ")).strip()
        if raw.isdigit() and 1 <= int(raw) <= len(COLOR_PALETTE):
            return COLOR_PALETTE[int(raw) - 1][1]
        return default

    async def _setup(self) -> bool:
        if self.machine.has_saved_game():
            choice = (await _ask("Saved game found. (r)esume / (d)iscard / (n)ew: ")).strip().lower()
            if choice.startswith("r") and await self.machine.resume():
                return True
            if choice.startswith("d"):
                self.machine.discard_saved_game()

        s = self._settings
        team_a = (await _ask("Team A name: ")).strip()
        team_a_color = await self._ask_color("Team A", "#4aa3ff")
        team_b = (await _ask("Team B name: ")).strip()
        team_b_color = await self._ask_color("Team B", "#ff6b6b")
        duration = (await _ask(f"Seconds per round ({s.round_duration_seconds}): ")).strip()
        rounds = (await _ask(f"Rounds ({s.total_rounds}): ")).strip()
        category = (await _ask(f"Category ({s.default_category}): ")).strip()
        humans = (await _ask("Exclude real people? (y/N): ")).strip().lower()

        try:
            setup = GameSetup(
                team_a_name=team_a,
                team_b_name=team_b,
                team_a_color=team_a_color,
                team_b_color=team_b_color,
                round_duration=int(duration) if duration else s.round_duration_seconds,
                total_rounds=int(rounds) if rounds else s.total_rounds,
                category=category or s.default_category,
                exclude_humans=humans.startswith("y") or (not humans and s.exclude_humans),
            )
        except (ValueError, ValidationError) as exc:
            _console.print(f"[red]Invalid setup:[/red] {exc}")
            return True

        await self.machine.start_game(setup)
        return True

    async def _selection(self) -> bool:
        session = self.machine.session
        _console.print(team_text(session.active_team, ": Pick 3"))
        _console.print(build_words_table(session.words, selected=session.selected_indices))
        raw = (await _ask("Number(s) to toggle, ?N for description, Enter to commit: ")).strip()

        if not raw:
            if not await self.machine.request_state(GameState.CHOICE):
                self._notice("Select exactly 3.")
            return True
        if raw.startswith("?"):
            index = raw[1:].strip()
            if index.isdigit() and 1 <= int(index) <= len(session.words):
                _console.print(build_description_panel(session.words[int(index) - 1]))
            return True
        for token in raw.replace(",", " ").split():
            if not token.isdigit() or not self.machine.toggle_select(int(token) - 1):
                self._notice("Select only 3.")
                break
        return True

    async def _choice(self) -> bool:
        session = self.machine.session
        _console.print(f"\nPass the device to {session.opponent_team.name}.")
        _console.print(team_text(session.opponent_team, ": Choose 1"))
        _console.print(
            build_words_table(session.words, selected=session.selected_indices, only_selected=True)
        )
        raw = (await _ask("Word number: ")).strip()
        if not raw.isdigit() or not self.machine.choose_option(int(raw) - 1):
            self._notice("Choose one of the 3 highlighted words.")
            return True
        await self.machine.request_state(GameState.BRIEFING)
        return True

    async def _briefing(self) -> bool:
        session = self.machine.session
        word = session.chosen_word
        if word is not None:
            _console.print(build_briefing_panel(word, session.opponent_team))
        await _ask("Press Enter to start the timer...")
        _console.clear()
        self._round_over.clear()
        await self.machine.request_state(GameState.TIMER)
        return True

    async def _timer(self) -> bool:
        self._round_over.clear()
        while self.machine.state == GameState.TIMER:
            session = self.machine.session
            status = " (paused)" if session.is_paused else ""
            _console.print(
                team_text(session.opponent_team, " acting "),
                f"[bold]{format_time(session.timer_remaining)}[/bold]{status}",
            )
            input_task = asyncio.create_task(_ask("(f)ound  (a)bort  (p)ause  (s)neak peek  (Enter) time: "))
            over_task = asyncio.create_task(self._round_over.wait())
            done, _ = await asyncio.wait({input_task, over_task}, return_when=asyncio.FIRST_COMPLETED)

            if input_task not in done:
                _console.print("\n[bold red]Time's up![/bold red] (press Enter)")
                await input_task
                break
            over_task.cancel()

            command = input_task.result().strip().lower()
            if command.startswith("f"):
                self.machine.succeed()
            elif command.startswith("a"):
                self.machine.abandon()
            elif command.startswith("p"):
                self.machine.toggle_pause()
            elif command.startswith("s"):
                peek = self.machine.sneak_peek()
                if peek:
                    _console.print(f"[dim]{peek}[/dim]")
        return True

    async def _result(self) -> bool:
        session = self.machine.session
        _console.print(describe_result(session))
        if session.awaiting_verdict:
            raw = (await _ask("(f)ound it / (x) failed: ")).strip().lower()
            if raw.startswith("f"):
                self.machine.resolve_timeout(True)
            elif raw.startswith("x"):
                self.machine.resolve_timeout(False)
            return True
        await _ask("Press Enter to continue...")
        await self.machine.request_state(GameState.SCOREBOARD)
        return True

    async def _scoreboard(self) -> bool:
        session = self.machine.session
        _console.print(build_scoreboard_table(session))
        _console.print(f"Last round took {format_time(session.elapsed_this_round)}.")
        if session.round < session.total_rounds:
            _console.print(f"Pass the device to {session.opponent_team.name}.")
        raw = (await _ask("(Enter) next round / (e)nd game: ")).strip().lower()
        target = GameState.FINAL if raw.startswith("e") else GameState.SELECTION
        await self.machine.request_state(target)
        return True

    async def _final(self) -> bool:
        _console.print(build_scoreboard_table(self.machine.session, title="Game Over", show_round=False))
        raw = (await _ask("(n)ew game / (q)uit: ")).strip().lower()
        if raw.startswith("n"):
            await self.machine.request_state(GameState.SETUP)
            return True
        return False


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    _configure_logging(verbose)


@app.command()
def play() -> None:
    """Play a full game in this terminal."""

    settings = AppSettings()
    try:
        asyncio.run(TerminalGame(settings).run())
    except (KeyboardInterrupt, EOFError):
        _console.print("\n[dim]Bye. The last finished round is saved.[/dim]")


@app.command()
def words(
    category: str | None = typer.Option(None, "--category", "-c", help="'random' or 'Κατηγορία:...'."),
    exclude_humans: bool | None = typer.Option(
        None,
        "--exclude-humans/--include-humans",
        help="Drop biographies via Wikidata.",
    ),
    describe: bool = typer.Option(False, "--describe", help="Print summaries too."),
) -> None:
    """Fetch one pool of playable words and print it."""

    settings = AppSettings()
    pipeline = build_pipeline(settings)
    effective_category = category or settings.default_category
    effective_exclude = settings.exclude_humans if exclude_humans is None else exclude_humans

    try:
        pool = asyncio.run(pipeline.fetch_words(effective_category, exclude_humans=effective_exclude))
    except SourcingError as exc:
        _console.print(f"[red]Failed to fetch words:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _console.print(build_words_table(pool, title=f"Words ({effective_category})"))
    if describe:
        for word in pool:
            _console.print(build_description_panel(word))


@app.command()
def discard() -> None:
    """Delete the saved game."""

    try:
        build_store(AppSettings()).clear()
    except PersistenceError as exc:
        _console.print(f"[red]Could not discard the saved game:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _console.print("[green]Saved game discarded.[/green]")


def run() -> None:
    app()
