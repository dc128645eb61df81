"""server.py: local HTTP server for the contact store.

Uses only Python stdlib (http.server, json, threading).

Routes:
  GET    /health          liveness probe
  GET    /contacts        JSON array of every contact
  POST   /contacts        create from a JSON body
  GET    /contacts/{id}   single contact as VCARD text
  PUT    /contacts/{id}   full replacement from a JSON body
  DELETE /contacts/{id}   remove
"""
from __future__ import annotations

import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import quote, unquote, urlparse

from .exporter import contact_to_vcf_text
from .model import (
    Contact,
    ContactExistsError,
    ContactNotFoundError,
    ContactValidationError,
    StoreError,
)
from .store import ContactStore

logger = logging.getLogger(__name__)

_VERSION = "0.1.0"
COLLECTION = "/contacts"


class ContactServer(ThreadingHTTPServer):
    """ThreadingHTTPServer that carries the store its handlers operate on."""

    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple[str, int], store: ContactStore):
        super().__init__(address, ContactHandler)
        self.store = store


class ContactHandler(BaseHTTPRequestHandler):

    server: ContactServer
    server_version = f"dav-contacts/{_VERSION}"

    def log_message(self, fmt, *args):
        logger.debug("%s - %s", self.address_string(), fmt % args)

    # ── Response helpers ───────────────────────────────────────────────────────

    def _send_body(self, body: bytes, content_type: str, status: int = 200, headers: dict | None = None):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _send_json(self, data, status: int = 200, headers: dict | None = None):
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._send_body(body, "application/json; charset=utf-8", status, headers)

    def _send_error(self, status: int, message: str, headers: dict | None = None):
        self._send_json({"error": message}, status, headers)

    def _send_empty(self, status: int = 204):
        self.send_response(status)
        if status != 204:
            self.send_header("Content-Length", "0")
        self.end_headers()

    def _read_contact(self) -> Contact:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            raise ContactValidationError("Invalid Content-Length") from None
        raw = self.rfile.read(length) if length > 0 else b""
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ContactValidationError(f"Malformed JSON body: {exc}") from exc
        return Contact.from_dict(data)

    # ── Routing ────────────────────────────────────────────────────────────────

    def _route(self) -> tuple[str, str | None] | None:
        """Return ("health"|"collection"|"item", contact_id) or None for unknown paths."""
        path = urlparse(self.path).path
        if path == "/health":
            return "health", None
        if path in (COLLECTION, COLLECTION + "/"):
            return "collection", None
        prefix = COLLECTION + "/"
        if path.startswith(prefix):
            rest = path[len(prefix):].rstrip("/")
            if rest and "/" not in rest:
                return "item", unquote(rest)
        return None

    _ALLOWED = {
        "health": ("GET", "HEAD"),
        "collection": ("GET", "HEAD", "POST"),
        "item": ("GET", "HEAD", "PUT", "DELETE"),
    }

    def _dispatch(self):
        route = self._route()
        if route is None:
            self._send_error(404, "Not found")
            return
        kind, contact_id = route
        method = self.command
        if method not in self._ALLOWED[kind]:
            self._send_error(405, f"{method} not allowed", {"Allow": ", ".join(self._ALLOWED[kind])})
            return

        store = self.server.store
        try:
            if kind == "health":
                self._send_body(b"OK", "text/plain; charset=utf-8")
            elif kind == "collection" and method in ("GET", "HEAD"):
                self._send_json([c.to_dict() for c in store.list()])
            elif kind == "collection":
                contact = store.create(self._read_contact())
                location = f"{COLLECTION}/{quote(contact.id, safe='')}"
                self._send_json(contact.to_dict(), 201, {"Location": location})
            elif method in ("GET", "HEAD"):
                text = contact_to_vcf_text(store.get(contact_id))
                self._send_body(text.encode("utf-8"), "text/vcard; charset=utf-8")
            elif method == "PUT":
                contact = self._read_contact()
                if contact.id != contact_id:
                    raise ContactValidationError(
                        f"Body id {contact.id!r} does not match path id {contact_id!r}"
                    )
                self._send_json(store.replace(contact).to_dict())
            else:
                store.delete(contact_id)
                self._send_empty(204)
        except ContactValidationError as exc:
            self._send_error(400, str(exc))
        except ContactNotFoundError as exc:
            self._send_error(404, str(exc))
        except ContactExistsError as exc:
            self._send_error(409, str(exc))
        except StoreError as exc:
            logger.exception("Store failure handling %s %s", method, self.path)
            self._send_error(500, str(exc))
        except Exception:
            logger.exception("Unhandled error handling %s %s", method, self.path)
            self._send_error(500, "Internal server error")

    do_GET = _dispatch
    do_HEAD = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_DELETE = _dispatch


# ── Entry points ───────────────────────────────────────────────────────────────

def make_server(store: ContactStore, host: str = "127.0.0.1", port: int = 3000) -> ContactServer:
    return ContactServer((host, port), store)


def serve(store: ContactStore, host: str = "127.0.0.1", port: int = 3000) -> None:
    """Run until interrupted."""
    server = make_server(store, host, port)
    bound_host, bound_port = server.server_address[:2]
    logger.info("Server running at http://%s:%s", bound_host, bound_port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
