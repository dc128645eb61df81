"""Fuzzy ranking of contacts against a free-text query (CLI `search`)."""
from __future__ import annotations

from rapidfuzz import fuzz

from .model import Contact


def match_score(contact: Contact, query: str) -> float:
    q = query.strip().lower()
    if not q:
        return 0.0
    if q == contact.id.lower() or q == contact.email.lower():
        return 100.0
    name_score = fuzz.token_set_ratio(q, contact.name.lower())
    email_score = fuzz.partial_ratio(q, contact.email.lower()) if contact.email else 0.0
    return max(name_score, email_score)


def search(contacts: list[Contact], query: str, threshold: float = 60.0, limit: int = 10) -> list[tuple[Contact, float]]:
    scored = [(c, match_score(c, query)) for c in contacts]
    hits = [pair for pair in scored if pair[1] >= threshold]
    hits.sort(key=lambda pair: (-pair[1], pair[0].name.lower()))
    return hits[:limit]
