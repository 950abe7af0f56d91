"""Document -> IR pipeline.

`build_ir` is all-or-nothing: it works on a private copy of the document
and only writes the synthesized result back into the caller's document
once every operation has been tuned and every `$ref` verified. A fatal
error leaves the input untouched.
"""

import copy
import logging

from sdk_ir.analyzers import get_analyzer, responses_from_items
from sdk_ir.config import BuildConfig
from sdk_ir.ir.context import BuildContext
from sdk_ir.ir.errors import DuplicateOperationWarning
from sdk_ir.ir.models import HTTP_METHODS, IR, TunedOperation
from sdk_ir.ir.operations import (
    OperationNamer,
    merge_parameters,
    normalize_path,
    operation_tag,
    to_param,
)
from sdk_ir.ir.pagination import PaginationInferencer, load_rules
from sdk_ir.ir.ref import is_ref
from sdk_ir.ir.request_body import synthesize_request_body
from sdk_ir.ir.responses import resolve_responses
from sdk_ir.ir.security import client_security_options, compose_security
from sdk_ir.ir.variants import classify_registry

logger = logging.getLogger(__name__)

HANDLER_SOURCE_KEY = "x-handler-source"


class IrBuilder:
    """Runs every construction step over one document."""

    def __init__(self, document: dict, config: BuildConfig | None = None):
        self.ctx = BuildContext(document, config)
        self.config = self.ctx.config
        self.namer = OperationNamer()
        self.analyzer = get_analyzer(self.config.response_analyzer) if self.config.response_analyzer else None
        self.inferencer = (
            PaginationInferencer(self.ctx, load_rules(self.config.pagination_rules))
            if self.config.pagination
            else None
        )
        self.operations: list[TunedOperation] = []
        self.pagination = {}

    def run(self) -> IR:
        document = self.ctx.document
        paths = {}
        for path, path_item in document["paths"].items():
            fixed = normalize_path(path)
            item = paths.setdefault(fixed, {})
            if not isinstance(path_item, dict):
                continue
            for key, value in path_item.items():
                method = key.lower()
                if method in HTTP_METHODS and isinstance(value, dict):
                    if method in item:
                        # `/a/:id` and `/a/{id}` normalise to the same path; the first one wins
                        self.ctx.warn(DuplicateOperationWarning(path, fixed, method))
                        continue
                    item[method] = self.tune(fixed, method, path_item, value)
                else:
                    item.setdefault(key, value)
        document["paths"] = paths

        verify_refs(self.ctx)
        variants, compositions = classify_registry(self.ctx)
        security_options = client_security_options(self.ctx)
        self.ctx.registry.freeze()

        logger.info(
            "Built IR: %d operations, %d schemas (%d synthesized)",
            len(self.operations),
            len(self.ctx.registry),
            len(self.ctx.registry.synthesized),
        )
        return IR(
            document=document,
            operations=self.operations,
            registry=self.ctx.registry,
            pagination=self.pagination,
            variants=variants,
            compositions=compositions,
            security_options=security_options,
            warnings=[str(w) for w in self.ctx.warnings],
        )

    def tune(self, path: str, method: str, path_item: dict, operation: dict) -> dict:
        """Tune one operation, record it and return its rewritten document form."""
        if self.analyzer and not operation.get("responses") and operation.get(HANDLER_SOURCE_KEY):
            items = self.analyzer.analyze(operation[HANDLER_SOURCE_KEY])
            operation = {**operation, "responses": responses_from_items(items)}

        tag = operation_tag(operation, path)
        name = self.namer.canonical_name(operation, method, path, tag)
        raw_parameters = merge_parameters(self.ctx, path_item, operation)
        parameters = [to_param(self.ctx, p) for p in raw_parameters]
        security = compose_security(self.ctx, operation)
        request_body, request_content = synthesize_request_body(self.ctx, name, operation, parameters, security)
        responses, records = resolve_responses(self.ctx, name, operation)

        tuned = {
            **operation,
            "operationId": name,
            "tags": [tag],
            "parameters": raw_parameters,
            "requestBody": request_body,
            "responses": responses,
        }
        op = TunedOperation(
            method=method,
            path=path,
            tag=tag,
            canonical_name=name,
            parameters=parameters,
            security=security,
            request_schema_ref=next(iter(request_content.values())),
            request_content=request_content,
            responses=records,
        )
        self.operations.append(op)

        if self.inferencer is not None:
            hint = self.inferencer.infer(op, tuned)
            self.pagination[name] = hint
            if hint.confidence:
                # a declared x-pagination is kept as written
                tuned.setdefault("x-pagination", hint.model_dump(exclude={"operation_name"}, exclude_none=True))
        logger.debug("Tuned %s %s as %s [%s]", method.upper(), path, name, tag)
        return tuned


def verify_refs(ctx: BuildContext) -> None:
    """Resolve every `$ref` in the document; raises UnresolvedRefError on the first miss."""
    stack = [ctx.document]
    seen: set[int] = set()
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        if isinstance(node, dict):
            if is_ref(node):
                ctx.resolver.resolve(node["$ref"])
            stack.extend(v for v in node.values() if isinstance(v, (dict, list)))
        elif isinstance(node, list):
            stack.extend(v for v in node if isinstance(v, (dict, list)))


def build_ir(document: dict, config: BuildConfig | None = None) -> IR:
    """Build the IR for `document` and mutate it in place with the synthesized result."""
    working = copy.deepcopy(document)
    ir = IrBuilder(working, config).run()
    document.clear()
    document.update(working)
    ir.document = document
    return ir
