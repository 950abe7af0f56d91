"""Named schema store owned by a single IR construction run."""

import logging

from sdk_ir.ir.errors import DuplicateSchemaError, RegistryFrozenError

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Append-only view over a document's `components.schemas`.

    Writes go straight into the document's mapping so that every `$ref`
    pointing at `#/components/schemas/<name>` resolves against it. Names are
    never removed or renamed; after `freeze()` no further writes are allowed.
    """

    def __init__(self, schemas: dict):
        self._schemas = schemas
        self._synthesized: list[str] = []
        self._frozen = False

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def __getitem__(self, name: str) -> dict:
        return self._schemas[name]

    def __iter__(self):
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    @property
    def schemas(self) -> dict:
        return self._schemas

    @property
    def synthesized(self) -> list[str]:
        """Names added during this run, in allocation order."""
        return list(self._synthesized)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self) -> list[str]:
        return list(self._schemas)

    def get(self, name: str, default: dict | None = None) -> dict | None:
        return self._schemas.get(name, default)

    def register(self, name: str, schema: dict) -> str:
        """Store a newly synthesized schema and return its `$ref`."""
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {name!r}: registry is finalized")
        if name in self._schemas:
            raise DuplicateSchemaError(f"Schema name {name!r} is already registered")
        self._schemas[name] = schema
        self._synthesized.append(name)
        logger.debug("Registered schema %s", name)
        return ref_to(name)

    def freeze(self) -> None:
        self._frozen = True


def ref_to(name: str) -> str:
    return f"#/components/schemas/{name}"
