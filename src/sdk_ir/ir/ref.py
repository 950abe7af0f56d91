"""Resolution of document-relative `$ref` pointers."""

from sdk_ir.ir.errors import UnresolvedRefError

MAX_REF_DEPTH = 64


def is_ref(node) -> bool:
    return isinstance(node, dict) and isinstance(node.get("$ref"), str)


def ref_name(ref: str) -> str:
    """Return the last segment of a pointer, e.g. `Cat` for `#/components/schemas/Cat`."""
    return _unescape(ref.rsplit("/", 1)[-1])


def _unescape(part: str) -> str:
    return part.replace("~1", "/").replace("~0", "~")


class RefResolver:
    """Resolves `#/components/<kind>/<name>` pointers against one document.

    Returns the live objects stored in the document, never copies, so callers
    that need to modify a resolved node must copy it first. External
    references are not supported: the loader inlines them before a run.
    """

    def __init__(self, document: dict):
        self._document = document

    def resolve(self, ref: str) -> dict:
        """Resolve a single pointer and follow any chain of refs it leads to."""
        seen: list[str] = []
        current = ref
        while True:
            if current in seen:
                raise UnresolvedRefError(ref, "reference cycle " + " -> ".join([*seen, current]))
            if len(seen) >= MAX_REF_DEPTH:
                raise UnresolvedRefError(ref, "reference chain too deep")
            seen.append(current)
            node = self._lookup(current)
            if not is_ref(node):
                return node
            current = node["$ref"]

    def follow(self, node):
        """Return `node` itself, or its target when it is a `$ref` object."""
        if is_ref(node):
            return self.resolve(node["$ref"])
        return node

    def exists(self, ref: str) -> bool:
        try:
            self.resolve(ref)
        except UnresolvedRefError:
            return False
        return True

    def _lookup(self, ref: str):
        if not ref.startswith("#/"):
            raise UnresolvedRefError(ref, "only document-relative references are supported")
        node = self._document
        for part in ref[2:].split("/"):
            part = _unescape(part)
            if isinstance(node, dict) and part in node:
                node = node[part]
            elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
            else:
                raise UnresolvedRefError(ref)
        if not isinstance(node, dict):
            raise UnresolvedRefError(ref, "target is not an object")
        return node
