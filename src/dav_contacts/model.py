from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

FIELDS = ("id", "name", "email", "phone")


class ContactError(Exception):
    """Base class for everything the contact store raises."""


class ContactValidationError(ContactError, ValueError):
    pass


class ContactNotFoundError(ContactError):
    def __init__(self, contact_id: str):
        super().__init__(f"Contact {contact_id!r} not found")
        self.contact_id = contact_id


class ContactExistsError(ContactError):
    def __init__(self, contact_id: str):
        super().__init__(f"Contact {contact_id!r} already exists")
        self.contact_id = contact_id


class StoreError(ContactError):
    pass


@dataclass(frozen=True)
class Contact:
    id: str
    name: str
    email: str
    phone: str

    @classmethod
    def from_dict(cls, data: Any) -> Contact:
        """Build a Contact from a decoded JSON object.

        Every field must be present and be a string; unknown keys are ignored.
        """
        if not isinstance(data, dict):
            raise ContactValidationError("Contact must be a JSON object")
        missing = [f for f in FIELDS if f not in data]
        if missing:
            raise ContactValidationError(f"Missing field(s): {', '.join(missing)}")
        bad = [f for f in FIELDS if not isinstance(data[f], str)]
        if bad:
            raise ContactValidationError(f"Field(s) must be strings: {', '.join(bad)}")
        if not data["id"]:
            raise ContactValidationError("Field 'id' must not be empty")
        for f in FIELDS:
            try:
                data[f].encode("utf-8")
            except UnicodeEncodeError:
                # lone surrogates decode from JSON but cannot be stored
                raise ContactValidationError(f"Field '{f}' is not valid UTF-8 text") from None
        return cls(**{f: data[f] for f in FIELDS})

    def to_dict(self) -> dict[str, str]:
        return asdict(self)
