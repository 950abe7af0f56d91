"""Errors raised while building the intermediate representation.

Fatal errors abort the whole run; nothing partially synthesized is ever
returned. Recoverable conditions are warnings, logged and recorded on the
run context.
"""


class IrError(Exception):
    """Base class for every fatal IR construction error."""


class UnresolvedRefError(IrError):
    """A `$ref` does not point at anything inside the document."""

    def __init__(self, ref: str, reason: str = "not found"):
        self.ref = ref
        self.reason = reason
        super().__init__(f"Cannot resolve {ref!r}: {reason}")


class MissingSchemeFieldError(IrError):
    """An apiKey security scheme lacks its `in` or `name` field."""

    def __init__(self, scheme: str, field: str):
        self.scheme = scheme
        self.field = field
        super().__init__(f'apiKey security scheme {scheme!r} must have an "{field}" field')


class NameCollisionExhaustion(IrError):
    """The allocator ran out of numeric suffixes. Always an internal bug."""


class DuplicateSchemaError(IrError):
    """A schema name was registered twice within one run."""


class RegistryFrozenError(IrError):
    """A write was attempted after the registry was finalized."""


class UnknownAnalyzerError(IrError):
    """No response analyzer is registered under the configured name."""


class EmptyMediaTypeWarning(UserWarning):
    """A media type was declared without a schema."""

    def __init__(self, operation: str, content_type: str):
        self.operation = operation
        self.content_type = content_type
        super().__init__(
            f'Request body schema for content type "{content_type}" of {operation} is empty.'
        )


class DuplicateOperationWarning(UserWarning):
    """Two raw paths normalise to the same path with the same method."""

    def __init__(self, path: str, normalized: str, method: str):
        self.path = path
        self.normalized = normalized
        self.method = method
        super().__init__(
            f"{method.upper()} {path} duplicates {method.upper()} {normalized} after path normalisation; skipped."
        )
