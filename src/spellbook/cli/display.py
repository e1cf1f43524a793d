"""Rich terminal display for spellbook state."""
from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from spellbook.mechanics.preparation import ChangeDecision, LockStatus
from spellbook.systems.aggregator.system import ClassSpellData, PreparationStats, SpellEntry

console = Console()

_LEVEL_NAMES = {0: "Cantrips", 1: "1st Level", 2: "2nd Level", 3: "3rd Level"}


def level_name(level: int) -> str:
    return _LEVEL_NAMES.get(level, f"{level}th Level")


class Display:
    def __init__(self, width: int = 80):
        self.console = console
        self.width = width

    def show_characters(self, characters: list[dict]) -> None:
        if not characters:
            self.console.print("[dim]No characters imported yet.[/dim]")
            return
        table = Table(title="Characters", box=box.SIMPLE)
        table.add_column("ID", style="dim")
        table.add_column("Name", style="bold")
        table.add_column("Imported")
        for c in characters:
            table.add_row(c["id"], c["name"], c["created_at"][:19])
        self.console.print(table)

    def show_class(
        self,
        data: ClassSpellData,
        locks: dict[str, LockStatus] | None = None,
    ) -> None:
        locks = locks or {}
        title = Text()
        title.append(data.class_name, style="bold magenta")
        title.append(f"  prepared {data.stats.current}/{data.stats.maximum}", style="cyan")
        if not data.hide_cantrips:
            title.append(f"  cantrips {data.cantrips.current}/{data.cantrips.maximum}", style="cyan")
        title.append(f"  max level {data.max_spell_level}", style="dim")

        views = [("Spells", data.spells_by_level)]
        if data.is_wizard:
            views = [("Prepared", data.prepared_tab or {}), ("Spellbook reference", data.reference_tab or {})]
        for label, by_level in views:
            table = Table(box=box.SIMPLE_HEAD, show_edge=False, expand=True)
            table.add_column("", width=3)
            table.add_column("Spell")
            table.add_column("Level", width=10)
            table.add_column("ID", style="dim")
            table.add_column("Notes", style="yellow")
            for level, entries in by_level.items():
                for entry in entries:
                    table.add_row(*self._spell_row(entry, level, locks.get(entry.source_id)))
            self.console.print(Panel(table, title=title, subtitle=label, border_style="magenta"))

    @staticmethod
    def _spell_row(entry: SpellEntry, level: int, lock: LockStatus | None) -> tuple[str, ...]:
        mark = "[green]x[/green]" if entry.prepared else " "
        notes = []
        if entry.always_prepared:
            notes.append("always")
        if entry.in_spellbook:
            notes.append("in book")
        if lock is not None and lock.locked:
            notes.append(f"locked: {lock.message}")
        return mark, entry.name, level_name(level), entry.source_id, ", ".join(notes)

    def show_global(self, stats: PreparationStats) -> None:
        self.console.print(
            f"[bold]Total prepared:[/bold] {stats.current}/{stats.maximum} "
            f"[dim]({stats.remaining} remaining)[/dim]"
        )

    def show_decision(self, spell_name: str, checked: bool, decision: ChangeDecision) -> None:
        verb = "Prepare" if checked else "Unprepare"
        if decision.allowed:
            self.console.print(f"[green]{verb} {spell_name}: allowed[/green]")
            if decision.warning:
                self.console.print(f"[yellow]Warning: {decision.message}[/yellow]")
        else:
            self.console.print(f"[red]{verb} {spell_name}: denied[/red] - {decision.message}")

    def show_notifications(self, notifications: list[dict]) -> None:
        if not notifications:
            self.console.print("[dim]No notifications.[/dim]")
            return
        for n in notifications:
            msg = n["message"]
            body = Text()
            if msg.get("type") == "cantrip_changes":
                body.append(f"{msg.get('character')} changed cantrips\n", style="bold")
                body.append(f"Before: {', '.join(msg.get('original_cantrips', [])) or '-'}\n")
                for c in msg.get("added", []):
                    body.append(f"+ {c['name']}\n", style="green")
                for c in msg.get("removed", []):
                    body.append(f"- {c['name']}\n", style="red")
            else:
                body.append(str(msg.get("message") or msg))
            style = "dim" if n["is_read"] else "yellow"
            self.console.print(Panel(body, title=f"{n['audience']} - {n['created_at'][:19]}", border_style=style))

    def show_error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {message}")

    def show_info(self, message: str) -> None:
        self.console.print(f"[cyan]{message}[/cyan]")
