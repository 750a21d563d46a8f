"""Normalized data models for REST method descriptors.

Both parsers (source definition and OpenAPI) convert their input
into these models so the differ can compare them.
"""

from pydantic import BaseModel, ConfigDict, field_validator

PATH_PARAM_OPENERS = "{("
PATH_PARAM_CLOSERS = "})"
PATH_WILDCARD = "*"


def normalize_path(path: str) -> str:
    """Collapse the first templated segment of a path into a wildcard.

    ``/containers/{id}/json`` and ``/containers/(id)/json`` both become
    ``/containers/*/json``.
    """
    start = _find_any(path, PATH_PARAM_OPENERS)
    if start < 0:
        return path
    end = _find_any(path, PATH_PARAM_CLOSERS, start + 1)
    if end < 0:
        return path
    return path[:start] + PATH_WILDCARD + path[end + 1:]


def _find_any(text: str, chars: str, start: int = 0) -> int:
    for index in range(start, len(text)):
        if text[index] in chars:
            return index
    return -1


class RestParameter(BaseModel):
    """A single REST parameter. Identity is the name only, see parameter_key."""

    model_config = ConfigDict(frozen=True)

    param_type: str = ""
    name: str
    location: str = ""  # query / path / header / ...

    @field_validator("param_type", "name", "location")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower().strip()

    def __str__(self) -> str:
        return f"  {self.name}:{self.param_type}:{self.location}"


class RestMethod(BaseModel):
    """A single REST method. Identity is (method, path), see method_key."""

    model_config = ConfigDict(frozen=True)

    method: str  # GET / POST / PUT / DELETE / HEAD ...
    path: str  # /containers/*/json
    parameters: tuple[RestParameter, ...] = ()
    source_line: int = 0
    is_response: bool = False

    @field_validator("method")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper().strip()

    @field_validator("path")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_path(value).lower().strip()

    @field_validator("parameters")
    @classmethod
    def _sort(cls, value: tuple[RestParameter, ...]) -> tuple[RestParameter, ...]:
        return tuple(sorted(value, key=lambda p: (p.location, p.name)))


def method_key(method: RestMethod) -> tuple[str, str]:
    return (method.method, method.path)


def parameter_key(parameter: RestParameter) -> str:
    return parameter.name.casefold()
