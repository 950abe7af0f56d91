"""Fetch an OpenAPI document over HTTP(S)."""

import logging
from pathlib import PurePosixPath
from urllib.parse import urlparse

import httpx

from .detect import SpecLoadError, ensure_openapi, parse_text

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def load_remote(url: str, client: httpx.Client | None = None) -> dict:
    """Download `url` and parse it as JSON or YAML (by extension, JSON first otherwise)."""
    owns_client = client is None
    client = client or httpx.Client(timeout=DEFAULT_TIMEOUT, follow_redirects=True)
    try:
        response = client.get(url)
    except httpx.HTTPError as e:
        raise SpecLoadError(f"Failed to fetch {url}: {e}") from e
    finally:
        if owns_client:
            client.close()

    if response.status_code != 200:
        logger.warning("Failed to fetch OpenAPI spec: %s (%s)", url, response.status_code)
        raise SpecLoadError(f"Failed to fetch {url}: HTTP {response.status_code}")

    extension = PurePosixPath(urlparse(url).path).suffix.lower()
    if extension in (".yaml", ".yml"):
        data = parse_text(response.text, extension)
    else:
        try:
            data = parse_text(response.text, ".json")
        except SpecLoadError:
            data = parse_text(response.text, ".yaml")
    return ensure_openapi(data, url)
