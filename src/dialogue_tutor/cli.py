from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from dialogue_tutor.errors import InputValidationError
from dialogue_tutor.learning.notes_export import notes_to_markdown
from dialogue_tutor.navigation import AutoplayScheduler
from dialogue_tutor.system import CourseSystem
from dialogue_tutor.utils.logging import get_logger

app = typer.Typer(help="Step through a dialogue course, take notes and ask questions.")
console = Console()
log = get_logger(__name__)

load_dotenv(override=False)


def _load_system(config: Optional[Path], api_key: Optional[str] = None) -> CourseSystem:
    """Instantiate `CourseSystem` with an optional config path and API key."""
    return CourseSystem.from_config(config, api_key=api_key)


def _coerce_id(raw: str) -> int | str:
    return int(raw) if raw.isdigit() else raw


def _print_current(system: CourseSystem) -> None:
    turn = system.session.current_turn()
    if turn is None:
        console.print("[yellow]The course has no messages.[/yellow]")
        return
    console.print(
        f"[dim]{turn.section_title} / {turn.subsection_title} "
        f"- message {turn.index + 1} of {len(system.index)}[/dim]"
    )
    console.print(f"[bold]{turn.speaker.value}:[/bold] {turn.text}")
    for kind, items in turn.grouped_media().items():
        console.print(f"[cyan]{len(items)} {kind}(s) attached[/cyan]")


@app.command()
def status(config: Optional[Path] = typer.Option(None, help="Path to configuration YAML.")):
    """Show the current message and the learning statistics."""
    system = _load_system(config)
    _print_current(system)
    report = system.session.report()
    table = Table(title="Learning Statistics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Messages viewed", f"{report['messages_viewed']}/{report['total_messages']}")
    table.add_row("Completion", f"{report['completion_percentage']}%")
    table.add_row("Sections visited", f"{report['sections_visited']}/{report['total_sections']}")
    table.add_row("Subsections visited", f"{report['subsections_visited']}/{report['total_subsections']}")
    table.add_row("Quizzes completed", f"{report['quizzes_completed']}/{report['total_quizzes']}")
    table.add_row("Quiz accuracy", f"{report['accuracy']}%")
    table.add_row("Images viewed", f"{report['images_viewed']}/{report['total_images']}")
    table.add_row("Videos watched", f"{report['videos_watched']}/{report['total_videos']}")
    console.print(table)


@app.command()
def goto(
    target: str = typer.Argument(..., help="'next', 'previous', 'restart', a message number, or SECTION:SUBSECTION."),
    offset: int = typer.Option(0, help="Message offset within the subsection."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Move to another message and print it."""
    system = _load_system(config)
    nav = system.navigation
    if target == "next":
        nav.next()
    elif target == "previous":
        nav.previous()
    elif target == "restart":
        nav.restart()
    elif ":" in target:
        section_id, subsection_id = target.split(":", 1)
        if not nav.jump_to_turn(_coerce_id(section_id), _coerce_id(subsection_id), offset):
            console.print(f"[red]No message found for {target} (offset {offset}).[/red]")
            raise typer.Exit(code=1)
    elif target.isdigit():
        system.session.jump_to(int(target) - 1)
    else:
        console.print(f"[red]Unknown target: {target}[/red]")
        raise typer.Exit(code=2)
    _print_current(system)


@app.command()
def play(
    speed: Optional[int] = typer.Option(None, help="Milliseconds between messages."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Autoplay from the current message to the end of the course."""
    system = _load_system(config)
    session = system.session
    if speed is not None:
        session.set_autoplay_speed(speed)

    async def run() -> None:
        scheduler = AutoplayScheduler(session)
        scheduler.start()
        last_seen = {"index": session.current_index}

        def show(state) -> None:
            if state.current_index != last_seen["index"]:
                last_seen["index"] = state.current_index
                _print_current(system)

        unsubscribe = session.subscribe(show)
        _print_current(system)
        session.set_autoplay(True)
        try:
            await scheduler.wait_until_stopped()
        finally:
            unsubscribe()
            scheduler.stop()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        session.set_autoplay(False)
        console.print("\n[yellow]Autoplay paused.[/yellow]")


@app.command()
def ask(
    question: str = typer.Argument(...),
    message: Optional[int] = typer.Option(None, help="Message number to ask about (defaults to the current one)."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
    api_key: Optional[str] = typer.Option(None, help="OpenAI API key."),
):
    """Ask the AI tutor about the current (or a chosen) message."""
    system = _load_system(config, api_key)
    turn_index = message - 1 if message is not None else None
    try:
        response = asyncio.run(system.ask(question, turn_index))
    except (InputValidationError, IndexError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    log.info("question_answered", message=response.context_index + 1, is_error=response.is_error)
    style = "red" if response.is_error else "green"
    console.print(f"[bold]{response.section_title} / {response.subsection_title}[/bold]")
    console.print(f"[{style}]{response.answer}[/{style}]")


@app.command()
def notes(
    add: Optional[str] = typer.Option(None, help="Title of a note to add at the current message."),
    content: Optional[str] = typer.Option(None, help="Content of the note to add."),
    delete: Optional[int] = typer.Option(None, help="Id of a note to delete."),
    export: Optional[Path] = typer.Option(None, help="Write all notes as markdown to this file."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """List, add, delete or export notes."""
    system = _load_system(config)
    manager = system.notes
    if add is not None:
        try:
            note = manager.create(add, content or "", system.session.current_turn())
        except InputValidationError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1)
        console.print(f"Saved note {note.id}.")
    if delete is not None:
        confirmed = typer.confirm(f"Delete note {delete}?")
        if not manager.delete(delete, confirm=confirmed):
            console.print("Nothing deleted.")
    if export is not None:
        export.write_text(notes_to_markdown(manager.sorted_by_time()), encoding="utf-8")
        console.print(f"Exported {len(manager)} notes to {export}")

    table = Table(title=f"Notes ({len(manager)})")
    table.add_column("Id")
    table.add_column("Title")
    table.add_column("Where")
    table.add_column("When")
    for note in manager.sorted_by_time():
        table.add_row(
            str(note.id),
            note.title,
            f"{note.section_title} / {note.subsection_title}",
            f"{note.timestamp:%Y-%m-%d %H:%M}",
        )
    console.print(table)


@app.command()
def history(
    message: Optional[int] = typer.Option(None, help="Only show questions about this message number."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Show previous questions and answers."""
    system = _load_system(config)
    responses = system.qa.history if message is None else system.qa.responses_for(message - 1)
    if not responses:
        console.print("No AI conversations yet.")
        return
    for response in responses:
        console.print(f"[bold]Q (message {response.context_index + 1}):[/bold] {response.question}")
        style = "red" if response.is_error else "white"
        console.print(f"[{style}]{response.answer}[/{style}]\n")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Clear position and statistics (notes and Q&A history are kept)."""
    if not yes and not typer.confirm("Clear all progress?"):
        raise typer.Exit()
    system = _load_system(config)
    system.session.clear_all_progress()
    log.info("progress_reset", prefix=system.settings.course.storage_prefix)
    console.print("All progress cleared.")


if __name__ == "__main__":
    app()
