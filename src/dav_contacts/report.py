from __future__ import annotations

from pathlib import Path

import phonenumbers
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .model import Contact

console = Console()

# ── Palette ────────────────────────────────────────────────────────────────────
_ACCENT  = "#4d9fff"
_GREEN   = "#3ecf8e"
_AMBER   = "#f0a500"
_DIM     = "#546075"
_BORDER  = "#2a3347"


def format_phone(phone: str) -> str:
    """International display form of a phone number; the stored text if it won't parse."""
    try:
        n = phonenumbers.parse(phone, None)  # only E.164-style input parses without a region
    except phonenumbers.NumberParseException:
        return phone
    return phonenumbers.format_number(n, phonenumbers.PhoneNumberFormat.INTERNATIONAL)


def contacts_table(contacts: list[Contact], scores: list[float] | None = None) -> Table:
    table = Table(show_header=True, header_style="bold", border_style=_BORDER)
    table.add_column("ID", style=_DIM)
    table.add_column("Name", style=f"bold {_ACCENT}")
    table.add_column("Email")
    table.add_column("Phone")
    if scores is not None:
        table.add_column("Match", justify="right")
    for i, c in enumerate(contacts):
        row = [c.id, c.name, c.email, format_phone(c.phone)]
        if scores is not None:
            row.append(f"{scores[i]:.0f}")
        table.add_row(*row)
    return table


def print_contacts(contacts: list[Contact]) -> None:
    if not contacts:
        console.print(f"[{_DIM}]No contacts yet.[/]")
        return
    console.print(contacts_table(contacts))
    console.print(Text(f"  {len(contacts)} contact(s)", style=f"dim {_DIM}"))


def print_import_summary(
    *,
    files: list[Path],
    parsed: int,
    added: list[str],
    skipped: list[str],
) -> None:
    body = Text()
    body.append(f"{len(added)}", style=f"bold {_GREEN}")
    body.append(" imported   ")
    body.append(f"{len(skipped)}", style=f"bold {_AMBER}")
    body.append(" skipped (id already present)\n")
    body.append(f"{parsed} vCard(s) read from {len(files)} file(s)", style=f"dim {_DIM}")
    console.print(Panel(body, title="Import", title_align="left", border_style=_BORDER, padding=(0, 2)))
    if skipped:
        console.print(f"[{_DIM}]Use --overwrite to replace: {', '.join(skipped)}[/]")
