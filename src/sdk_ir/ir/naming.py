"""Identifier casing and collision-free schema naming."""

import re

from sdk_ir.ir.errors import NameCollisionExhaustion
from sdk_ir.ir.registry import SchemaRegistry

_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")

RESERVED_KEYWORDS = frozenset({
    "await", "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "function", "if", "implements", "import", "in",
    "instanceof", "interface", "let", "new", "null", "package", "private",
    "protected", "public", "return", "static", "super", "switch", "this",
    "throw", "true", "try", "typeof", "var", "void", "while", "with", "yield",
    "arguments",
})

RESERVED_SDK_NAMES = frozenset({"Error", "ClientError", "ConflictError", "Function"})

MAX_SUFFIX = 10_000


def split_words(text: str) -> list[str]:
    return _WORDS.findall(text)


def camelcase(text: str) -> str:
    words = split_words(text)
    if not words:
        return ""
    head, *rest = words
    return head.lower() + "".join(w[:1].upper() + w[1:].lower() for w in rest)


def pascalcase(text: str) -> str:
    return "".join(w[:1].upper() + w[1:].lower() for w in split_words(text))


def is_reserved(name: str, extra: frozenset[str] = frozenset()) -> bool:
    return name in RESERVED_KEYWORDS or name in RESERVED_SDK_NAMES or name in extra


class SchemaNameAllocator:
    """Picks names for synthesized schemas that are free in the registry.

    `allocate` does not register anything; the caller must register the
    returned name before allocating again.
    """

    def __init__(self, registry: SchemaRegistry, reserved: frozenset[str] = frozenset()):
        self.registry = registry
        self.reserved = reserved

    def is_free(self, name: str) -> bool:
        return name not in self.registry and not is_reserved(name, self.reserved)

    def allocate(self, base_candidates: list[str]) -> str:
        """Return the first free candidate, else the first one with a numeric suffix."""
        candidates = [pascalcase(c) or c for c in base_candidates]
        if not candidates:
            raise ValueError("allocate() needs at least one candidate name")
        for name in candidates:
            if self.is_free(name):
                return name
        base = candidates[0]
        for n in range(2, MAX_SUFFIX):
            name = f"{base}{n}"
            if self.is_free(name):
                return name
        raise NameCollisionExhaustion(
            f"No free schema name for {base!r} after {MAX_SUFFIX} attempts"
        )
