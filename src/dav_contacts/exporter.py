from __future__ import annotations

from pathlib import Path

from .model import Contact

VCARD_VERSION = "4.0"


def _escape(value: str) -> str:
    # RFC 6350 §3.4 text escaping
    return (
        value.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def contact_to_vcf_text(contact: Contact) -> str:
    """Render one contact as a VCARD block (newline-separated, no trailing newline)."""
    return "\n".join([
        "BEGIN:VCARD",
        f"VERSION:{VCARD_VERSION}",
        f"FN:{_escape(contact.name)}",
        f"EMAIL:{_escape(contact.email)}",
        f"TEL:{_escape(contact.phone)}",
        "END:VCARD",
    ])


def export_vcards(contacts: list[Contact], path: Path) -> int:
    # sort by name (then id) for stability
    contacts_sorted = sorted(contacts, key=lambda c: (c.name.lower(), c.id))
    text = "".join(contact_to_vcf_text(c) + "\n" for c in contacts_sorted)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return len(contacts_sorted)
