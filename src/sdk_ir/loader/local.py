"""Load an OpenAPI document from the local filesystem."""

from pathlib import Path

from .detect import SpecLoadError, ensure_openapi, parse_text

SUPPORTED_EXTENSIONS = (".json", ".yaml", ".yml")


def load_local(file_path: Path) -> dict:
    """Read a `.json`, `.yaml` or `.yml` OpenAPI file."""
    extension = file_path.suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise SpecLoadError(f"Unsupported file extension: {extension or '(none)'}")
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecLoadError(f"Cannot read {file_path}: {e}") from e
    return ensure_openapi(parse_text(text, extension), str(file_path))
