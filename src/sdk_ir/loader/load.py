"""Resolve a document location to a parsed OpenAPI document."""

from pathlib import Path

import httpx

from .local import load_local
from .remote import load_remote


def is_remote(location: str) -> bool:
    return location.split(":", 1)[0].lower() in ("http", "https")


def load_spec(location: str, client: httpx.Client | None = None) -> dict:
    """Load a document from a local path or an http(s) URL."""
    if is_remote(location):
        return load_remote(location, client=client)
    return load_local(Path(location))
