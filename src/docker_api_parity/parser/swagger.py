"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents into RestMethod models.
"""

import logging
from pathlib import Path

import yaml

from .base import RestMethod, RestParameter

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Swagger 2.0 request bodies, not parameters
BODY_LOCATIONS = ("body", "formData")

REF_PREFIXES = ("#/parameters/", "#/components/parameters/")


class SpecFormatError(ValueError):
    """The specification document is not an OpenAPI mapping."""


def parse_openapi(file_path: Path) -> list[RestMethod]:
    """Parse an OpenAPI/Swagger file into a list of RestMethod."""
    text = file_path.read_text(encoding="utf-8")
    doc = yaml.safe_load(text)
    methods = parse_openapi_document(doc)
    logger.debug("Found %d REST methods in %s", len(methods), file_path)
    return methods


def parse_openapi_document(doc: dict) -> list[RestMethod]:
    if not isinstance(doc, dict):
        raise SpecFormatError(f"expected a mapping at the document root, got {type(doc).__name__}")

    methods = []
    paths = doc.get("paths") or {}

    for path, operations in paths.items():
        for method, operation in operations.items():
            if method.lower() not in HTTP_METHODS:
                continue

            methods.append(
                RestMethod(
                    method=method,
                    path=path,
                    parameters=_parse_parameters(doc, operation.get("parameters", [])),
                )
            )

    return methods


def _parse_parameters(doc: dict, params: list[dict]) -> list[RestParameter]:
    result = []
    for p in params:
        p = _resolve(doc, p)
        if p is None:
            continue

        location = p.get("in", "")
        if location in BODY_LOCATIONS:
            continue

        schema = p.get("schema") or {}
        result.append(
            RestParameter(
                param_type=schema.get("type") or p.get("type") or "",
                name=p["name"],
                location=location,
            )
        )
    return result


def _resolve(doc: dict, param: dict) -> dict | None:
    ref = param.get("$ref")
    if not ref:
        return param

    for prefix in REF_PREFIXES:
        if ref.startswith(prefix):
            node = doc
            for key in prefix[2:-1].split("/"):
                node = node.get(key, {})
            if ref[len(prefix):] in node:
                return node[ref[len(prefix):]]

    logger.warning("Skipping unresolved parameter reference %s", ref)
    return None
