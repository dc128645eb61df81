"""store.py: the durable id → Contact mapping.

The in-memory dict is the working copy; contacts.json is a mirror of it,
rewritten in full after every mutation via a temp file and os.replace.
Every operation, reads included, runs under one lock.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Iterable

from .model import (
    Contact,
    ContactExistsError,
    ContactNotFoundError,
    ContactValidationError,
    StoreError,
)

logger = logging.getLogger(__name__)


class ContactStore:

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._contacts: dict[str, Contact] = {}

    @classmethod
    def open(cls, path: Path) -> ContactStore:
        """Create the parent directory if needed and load any existing contacts."""
        store = cls(path)
        try:
            store.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create {store.path.parent}: {exc}") from exc
        store.load()
        return store

    # ── Persistence ────────────────────────────────────────────────────────────

    def load(self) -> None:
        with self._lock:
            self._contacts = self._read()
        logger.info("Loaded %d contact(s) from %s", len(self._contacts), self.path)

    def _read(self) -> dict[str, Contact]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"{self.path} does not hold a contact mapping")
        try:
            contacts = [Contact.from_dict(v) for v in data.values()]
        except ContactValidationError as exc:
            raise StoreError(f"{self.path} holds an invalid contact: {exc}") from exc
        return {c.id: c for c in contacts}

    def _write(self) -> None:
        payload = {cid: c.to_dict() for cid, c in self._contacts.items()}
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot write {self.path}: {exc}") from exc

    def _commit(self, previous: dict[str, Contact]) -> None:
        """Persist the current mapping, restoring `previous` if the write fails."""
        try:
            self._write()
        except StoreError:
            self._contacts = previous
            raise

    # ── Operations ─────────────────────────────────────────────────────────────

    def create(self, contact: Contact) -> Contact:
        with self._lock:
            if contact.id in self._contacts:
                raise ContactExistsError(contact.id)
            previous = dict(self._contacts)
            self._contacts[contact.id] = contact
            self._commit(previous)
        logger.debug("Created contact %r", contact.id)
        return contact

    def get(self, contact_id: str) -> Contact:
        with self._lock:
            try:
                return self._contacts[contact_id]
            except KeyError:
                raise ContactNotFoundError(contact_id) from None

    def list(self) -> list[Contact]:
        with self._lock:
            return list(self._contacts.values())

    def replace(self, contact: Contact) -> Contact:
        with self._lock:
            if contact.id not in self._contacts:
                raise ContactNotFoundError(contact.id)
            previous = dict(self._contacts)
            self._contacts[contact.id] = contact
            self._commit(previous)
        logger.debug("Replaced contact %r", contact.id)
        return contact

    def delete(self, contact_id: str) -> Contact:
        with self._lock:
            if contact_id not in self._contacts:
                raise ContactNotFoundError(contact_id)
            previous = dict(self._contacts)
            removed = self._contacts.pop(contact_id)
            self._commit(previous)
        logger.debug("Deleted contact %r", contact_id)
        return removed

    def import_many(
        self, contacts: Iterable[Contact], overwrite: bool = False,
    ) -> tuple[list[str], list[str]]:
        """Insert a batch with a single file rewrite.

        Returns (added_ids, skipped_ids). Ids already present are skipped
        unless `overwrite` is set; repeated ids within the batch keep the
        last occurrence.
        """
        added: list[str] = []
        skipped: list[str] = []
        with self._lock:
            previous = dict(self._contacts)
            for c in contacts:
                if c.id in previous and not overwrite:
                    skipped.append(c.id)
                    continue
                self._contacts[c.id] = c
                if c.id not in added:
                    added.append(c.id)
            if added:
                self._commit(previous)
        logger.info("Imported %d contact(s), skipped %d", len(added), len(skipped))
        return added, skipped

    def __len__(self) -> int:
        with self._lock:
            return len(self._contacts)

    def __contains__(self, contact_id: object) -> bool:
        with self._lock:
            return contact_id in self._contacts
