from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

import vobject

from .model import Contact

logger = logging.getLogger(__name__)

# iCloud exports prefix properties with item groups that vobject rejects:
#
#   item1..TEL   double-dot group  -> TEL
#   item1.EMAIL  group prefix      -> EMAIL
#   .FN          bare leading dot  -> FN
#   item1.X-*    Apple label lines -> dropped
#   .X-*         bare dot + X-     -> dropped

_GROUP_X   = re.compile(r"^(?:item\d+)?\.X-", re.IGNORECASE)
_GROUP_STD = re.compile(r"^(?:item\d+\.\.?|\.)(?=[A-Z])", re.IGNORECASE)


def _sanitise_vcf(data: str, source_label: str) -> str:
    """Strip iCloud group prefixes so every card survives vobject's parser."""
    out: list[str] = []
    fixed = dropped = 0
    for line in data.splitlines(keepends=True):
        if _GROUP_X.match(line):
            dropped += 1
            continue
        line, n = _GROUP_STD.subn("", line, count=1)
        fixed += n
        out.append(line)
    if fixed or dropped:
        logger.debug("%s: %d line(s) fixed, %d dropped", source_label, fixed, dropped)
    return "".join(out)


def _get_text(v, default: str = "") -> str:
    if v is None:
        return default
    value = v.value
    if isinstance(value, list):
        value = " ".join(str(p) for p in value if p)
    return str(value).strip()


def vcard_to_contact(vc: vobject.base.Component) -> Contact:
    """Map a parsed VCARD onto a Contact.

    The UID becomes the id (a fresh uuid4 when absent); only the first
    EMAIL and TEL are kept.
    """
    uid = _get_text(getattr(vc, "uid", None))
    emails = [_get_text(e) for e in getattr(vc, "email_list", [])]
    tels = [_get_text(t) for t in getattr(vc, "tel_list", [])]
    return Contact(
        id=uid or str(uuid.uuid4()),
        name=_get_text(getattr(vc, "fn", None)),
        email=next((e for e in emails if e), ""),
        phone=next((t for t in tels if t), ""),
    )


def read_contacts_from_files(paths: list[Path]) -> list[Contact]:
    """Parse every VCARD component in the given .vcf files."""
    contacts: list[Contact] = []
    for p in paths:
        raw = _sanitise_vcf(p.read_text(encoding="utf-8", errors="replace"), p.name)
        count = 0
        for vc in vobject.readComponents(raw, ignoreUnreadable=True):
            if vc.name.upper() == "VCARD":
                contacts.append(vcard_to_contact(vc))
                count += 1
        logger.debug("%s: %d vCard(s)", p.name, count)
    return contacts
