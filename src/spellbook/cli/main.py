"""Typer CLI application."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from spellbook.exceptions import CharacterNotFoundError, SaveFailedError
from spellbook.systems.base import AUDIENCE_GM

app = typer.Typer(
    name="spellbook",
    help="Spell and cantrip preparation manager for tabletop spellcasters",
    no_args_is_help=True,
)

_state: dict = {"db": None}


def _app():
    from spellbook.app import SpellbookApp

    return SpellbookApp(db_path=_state["db"])


def _display():
    from spellbook.cli.display import Display

    return Display()


@app.callback()
def main(
    db: Optional[str] = typer.Option(None, "--db", help="Database file to use"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    _state["db"] = db


@app.command("import-character")
def import_character(path: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Import a character sheet from a TOML file."""
    character = _app().import_character(path)
    _display().show_info(f"Imported {character.name} as {character.id}")


@app.command("list")
def list_characters() -> None:
    """List imported characters."""
    _display().show_characters(_app().store.list_characters())


@app.command()
def show(character_id: str) -> None:
    """Show each class's spells and preparation counts."""
    display = _display()
    try:
        session = _app().session(character_id)
    except CharacterNotFoundError as e:
        display.show_error(str(e))
        raise typer.Exit(1)
    classes = session.aggregator.aggregate(session.character)
    for data in classes.values():
        locks = {e.source_id: session.lock_status(e.source_id, data.class_identifier) for e in data.entries}
        display.show_class(data, locks)
    display.show_global(session.aggregator.global_preparation(classes))


@app.command()
def toggle(
    character_id: str,
    spell_id: str,
    uncheck: bool = typer.Option(False, "--uncheck", "-u", help="Unprepare instead of prepare"),
    class_id: Optional[str] = typer.Option(None, "--class", "-c", help="Class the spell is prepared for"),
) -> None:
    """Prepare or unprepare a spell, saving if the change is allowed."""
    display = _display()
    try:
        session = _app().session(character_id)
        spell = session.spell(spell_id, class_id)
    except (CharacterNotFoundError, KeyError) as e:
        display.show_error(str(e))
        raise typer.Exit(1)

    decision = session.toggle(spell_id, not uncheck, class_id)
    display.show_decision(spell.name, not uncheck, decision)
    if not decision.allowed:
        raise typer.Exit(1)
    try:
        result = session.save(finish_swaps=False)
    except SaveFailedError as e:
        display.show_error(str(e))
        raise typer.Exit(1)
    for failure in result.reconcile.failures:
        display.show_error(f"Could not load {failure.source_id}: {failure.reason}")
    display.show_global(result.global_preparation)


@app.command()
def finish(character_id: str) -> None:
    """Close any open level-up or long-rest swap window."""
    display = _display()
    try:
        session = _app().session(character_id)
    except CharacterNotFoundError as e:
        display.show_error(str(e))
        raise typer.Exit(1)
    session.finish_swaps()
    display.show_info(f"Swap windows closed for {session.character.name}")


@app.command("long-rest")
def long_rest(character_id: str) -> None:
    """Record a long rest, opening the wizard cantrip swap window."""
    display = _display()
    try:
        character = _app().long_rest(character_id)
    except CharacterNotFoundError as e:
        display.show_error(str(e))
        raise typer.Exit(1)
    display.show_info(f"{character.name} finishes a long rest.")


@app.command("level-up")
def level_up(
    character_id: str,
    class_id: str,
    cantrips: Optional[int] = typer.Option(None, "--cantrips", help="New cantrips known"),
    prepared: Optional[int] = typer.Option(None, "--prepared", help="New preparation maximum"),
) -> None:
    """Gain a level in a class."""
    display = _display()
    try:
        character, opened = _app().level_up(character_id, class_id, cantrips, prepared)
    except (CharacterNotFoundError, KeyError) as e:
        display.show_error(str(e))
        raise typer.Exit(1)
    cls = character.get_class(class_id)
    display.show_info(f"{character.name} is now a level {cls.levels} {cls.name}.")
    if opened:
        display.show_info("A cantrip swap is available until the next save.")


@app.command()
def learn(
    character_id: str,
    spell_id: str,
    source: Optional[str] = typer.Option(None, "--source", help="free, copied or scroll"),
) -> None:
    """Write a spell into a wizard's personal spellbook."""
    from spellbook.mechanics.wizard_book import SpellbookSource

    spellbook_app = _app()
    display = _display()
    try:
        character = spellbook_app.store.load(character_id)
    except CharacterNotFoundError as e:
        display.show_error(str(e))
        raise typer.Exit(1)
    result = spellbook_app.wizard_book.learn_spell(
        character, spell_id, SpellbookSource(source) if source else None,
    )
    if not result.success:
        display.show_error(result.message)
        raise typer.Exit(1)
    display.show_info(result.message)
    if result.cost or result.time_minutes:
        display.show_info(f"Copying costs {result.cost} gp and takes {result.time_minutes} minutes.")


@app.command()
def notifications(
    character_id: Optional[str] = typer.Argument(None),
    gm: bool = typer.Option(False, "--gm", help="Only GM notifications"),
    mark_read: bool = typer.Option(False, "--mark-read", help="Mark shown notifications read"),
) -> None:
    """Show stored notifications."""
    repo = _app().notifications
    items = repo.list_notifications(character_id, AUDIENCE_GM if gm else None)
    _display().show_notifications(items)
    if mark_read:
        repo.mark_read([n["id"] for n in items])


if __name__ == "__main__":
    app()
