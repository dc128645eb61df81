from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from rich.logging import RichHandler

from ._similarity import search as fuzzy_search
from .config import Settings, ensure_workspace
from .exporter import contact_to_vcf_text, export_vcards
from .io import read_contacts_from_files
from .model import Contact, ContactError, StoreError
from .report import console, contacts_table, print_contacts, print_import_summary
from .server import serve as run_server
from .store import ContactStore

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="dav-contacts: a personal contact store served over HTTP.",
)

_DATA_DIR_OPTION = typer.Option(
    None, "--data-dir", "-D",
    help="Directory holding contacts.json and dav.conf (default: platform data dir)",
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _open_store(data_dir: Path | None) -> tuple[ContactStore, Settings]:
    """Open the store or exit 1; nothing works without a readable data directory."""
    try:
        paths, settings = ensure_workspace(data_dir)
        return ContactStore.open(paths.contacts_file), settings
    except StoreError as exc:
        console.print(f"[bold red]Cannot open contact store:[/bold red] {exc}")
        raise typer.Exit(code=1)


def _fail(exc: ContactError) -> NoReturn:
    console.print(f"[bold red]{exc}[/bold red]")
    raise typer.Exit(code=1)


# ── `serve` ────────────────────────────────────────────────────────────────────

@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address. Falls back to dav.conf."),
    port: int | None = typer.Option(None, "--port", "-p", help="Listen port. Falls back to dav.conf."),
    data_dir: Path | None = _DATA_DIR_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every request"),
) -> None:
    """Start the HTTP server and run until Ctrl-C."""
    _setup_logging(verbose)
    store, settings = _open_store(data_dir)
    try:
        run_server(store, host or settings.host, port if port is not None else settings.port)
    except OSError as exc:
        console.print(f"[bold red]Cannot start server:[/bold red] {exc}")
        raise typer.Exit(code=1)


# ── Offline address-book commands ──────────────────────────────────────────────

@app.command("list")
def list_contacts(data_dir: Path | None = _DATA_DIR_OPTION) -> None:
    """Show every stored contact."""
    store, _ = _open_store(data_dir)
    print_contacts(store.list())


@app.command()
def show(
    contact_id: str = typer.Argument(..., help="Contact id"),
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Print one contact as VCARD text."""
    store, _ = _open_store(data_dir)
    try:
        contact = store.get(contact_id)
    except ContactError as exc:
        _fail(exc)
    typer.echo(contact_to_vcf_text(contact))


@app.command()
def add(
    contact_id: str = typer.Argument(..., help="Contact id (must be unique)"),
    name: str = typer.Option(..., "--name", "-n"),
    email: str = typer.Option("", "--email", "-e"),
    phone: str = typer.Option("", "--phone", "-t"),
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Create a contact."""
    store, _ = _open_store(data_dir)
    try:
        contact = store.create(Contact.from_dict(
            {"id": contact_id, "name": name, "email": email, "phone": phone}
        ))
    except ContactError as exc:
        _fail(exc)
    console.print(f"[bold green]✓ Added {contact.name} ({contact.id})[/bold green]")


@app.command()
def delete(
    contact_id: str = typer.Argument(..., help="Contact id"),
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Delete a contact."""
    store, _ = _open_store(data_dir)
    try:
        removed = store.delete(contact_id)
    except ContactError as exc:
        _fail(exc)
    console.print(f"[bold green]✓ Deleted {removed.name} ({removed.id})[/bold green]")


@app.command("import")
def import_vcf(
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help=".vcf file(s) to import"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace contacts whose id already exists"),
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Import contacts from vCard files. The UID becomes the contact id."""
    store, _ = _open_store(data_dir)
    contacts = read_contacts_from_files(files)
    try:
        added, skipped = store.import_many(contacts, overwrite=overwrite)
    except ContactError as exc:
        _fail(exc)
    print_import_summary(files=files, parsed=len(contacts), added=added, skipped=skipped)


@app.command()
def export(
    output: Path = typer.Argument(..., help="Destination .vcf path"),
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Write every contact to one .vcf file, sorted by name."""
    store, _ = _open_store(data_dir)
    count = export_vcards(store.list(), output)
    console.print(f"[bold green]✓ Wrote {count} contact(s) → {output}[/bold green]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Name, email or id to look for"),
    limit: int = typer.Option(10, "--limit", "-l"),
    data_dir: Path | None = _DATA_DIR_OPTION,
) -> None:
    """Fuzzy search by name or email."""
    store, _ = _open_store(data_dir)
    hits = fuzzy_search(store.list(), query, limit=limit)
    if not hits:
        console.print("[dim]No matches.[/dim]")
        raise typer.Exit(code=1)
    console.print(contacts_table([c for c, _ in hits], scores=[s for _, s in hits]))


if __name__ == "__main__":
    app()
