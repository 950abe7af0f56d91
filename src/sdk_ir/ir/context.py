"""Per-run state shared by every construction step."""

import logging

from sdk_ir.config import BuildConfig
from sdk_ir.ir.naming import SchemaNameAllocator
from sdk_ir.ir.ref import RefResolver
from sdk_ir.ir.registry import SchemaRegistry

logger = logging.getLogger(__name__)


class BuildContext:
    """Everything one run reads and writes.

    A context is created for exactly one document and discarded afterwards;
    nothing here is shared between runs.
    """

    def __init__(self, document: dict, config: BuildConfig | None = None):
        self.config = config or BuildConfig()
        self.document = document
        # missing or null sections are treated as empty maps
        components = document.get("components") or {}
        document["components"] = components
        for key in ("schemas", "securitySchemes"):
            if not components.get(key):
                components[key] = {}
        if not document.get("paths"):
            document["paths"] = {}
        self.resolver = RefResolver(document)
        self.registry = SchemaRegistry(components["schemas"])
        self.allocator = SchemaNameAllocator(self.registry, self.config.reserved_names)
        self.warnings: list[UserWarning] = []

    @property
    def security_schemes(self) -> dict:
        return self.document["components"]["securitySchemes"]

    def warn(self, warning: UserWarning) -> None:
        logger.warning("%s", warning)
        self.warnings.append(warning)

    def synthesize(self, candidates: list[str], schema: dict) -> tuple[str, str]:
        """Allocate a name for `schema`, register it and return `(name, $ref)`."""
        name = self.allocator.allocate(candidates)
        return name, self.registry.register(name, schema)
