"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar el bucle de juego con detalles visuales.
- Cada pantalla de la partida (selección, elección, marcador...) reutiliza
  las mismas tablas/paneles.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import RoundResult, Session, Team, WordCandidate


def format_time(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("PANTOMIMA", style="bold cyan")
    subtitle = Text("Charades with words from Wikipedia • pass the device", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def team_text(team: Team, suffix: str = "") -> Text:
    return Text(f"{team.name}{suffix}", style=f"bold {team.color}")


def build_words_table(
    words: list[WordCandidate],
    *,
    selected: list[int] | None = None,
    only_selected: bool = False,
    title: str = "Words",
) -> Table:
    selected = selected or []
    table = Table(title=title)
    table.add_column("#", style="cyan", no_wrap=True, justify="right")
    table.add_column("Word", style="white")
    table.add_column("", style="green", no_wrap=True)

    for index, word in enumerate(words):
        if only_selected and index not in selected:
            continue
        mark = "✔" if index in selected else ""
        table.add_row(str(index + 1), word.title, mark)
    return table


def build_description_panel(word: WordCandidate) -> Panel:
    body = Text(word.summary or "(No description available)")
    if word.image_url:
        body.append(f"\n\n{word.image_url}", style="dim")
    return Panel(body, title=Text(word.title, style="bold"), border_style="blue")


def build_briefing_panel(word: WordCandidate, team: Team) -> Panel:
    body = Align.center(Text(word.title, style="bold yellow"), vertical="middle")
    return Panel(
        body,
        title=team_text(team, " plays"),
        subtitle="Only the performer should look",
        border_style=team.color,
        padding=(2, 4),
    )


def describe_result(session: Session) -> str:
    if session.awaiting_verdict:
        return "Time's Up! Decide the outcome."
    label = "Success" if session.last_result == RoundResult.SUCCESS else "Failed"
    return f"{label}. Round took {format_time(session.elapsed_this_round)}."


def build_scoreboard_table(session: Session, *, title: str = "Scoreboard", show_round: bool = True) -> Table:
    table = Table(title=title)
    table.add_column("Team", no_wrap=True)
    table.add_column("Points", justify="right", style="green")
    table.add_column("Time", justify="right", style="magenta")
    for team in session.teams:
        table.add_row(team_text(team), str(team.score), format_time(team.time))
    if show_round:
        table.caption = f"Round {session.round} / {session.total_rounds}"
    return table
