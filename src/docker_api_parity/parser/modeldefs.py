"""Docker.DotNet ``modeldefs.go`` parser.

Best-effort scraper for the code-generation source. A REST method is
declared by a comment line such as ``// GET /containers/(id)/json``
followed by a struct whose fields are its parameters::

    // GET /containers/json
    type ContainerListParameters struct {
        Size    bool `rest:"query"`
        Filters Args `rest:"query,filters"`
    }

Malformed lines degrade to partial field assignment, they never raise.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .base import RestMethod, RestParameter

logger = logging.getLogger(__name__)

COMMENT = "//"
PARAMETER_OFFSET = 2  # comment line, then "type X struct {"
RESPONSE_MARKER = "response"


def parse_modeldefs(file_path: Path, workers: int | None = None) -> list[RestMethod]:
    """Parse a modeldefs.go file into a list of RestMethod."""
    lines = file_path.read_text(encoding="utf-8").splitlines()
    methods = parse_modeldefs_lines(lines, workers=workers)
    logger.debug("Found %d REST methods in %s", len(methods), file_path)
    return methods


def parse_modeldefs_lines(lines: list[str], workers: int | None = None) -> list[RestMethod]:
    with ThreadPoolExecutor(max_workers=workers) as executor:
        candidates = [c for c in executor.map(_candidate, enumerate(lines)) if c is not None]

    return [_parse_method(line_number, line, lines) for line_number, line in candidates]


def _candidate(item: tuple[int, str]) -> tuple[int, str] | None:
    line_number, line = item
    line = line.strip()
    if not line or not line.startswith(COMMENT):
        return None
    if line.count("/") <= 2:
        return None
    return line_number, line


def _parse_method(line_number: int, line: str, lines: list[str]) -> RestMethod:
    tokens = line.split()
    tail = tokens[-2:]
    method, path = tail[0], tail[-1]
    is_response = any(RESPONSE_MARKER in token.lower() for token in tokens)

    return RestMethod(
        method=method,
        path=path,
        parameters=_parse_parameters(lines[line_number + PARAMETER_OFFSET:]),
        source_line=line_number,
        is_response=is_response,
    )


def _parse_parameters(lines: list[str]) -> list[RestParameter]:
    params = []
    for raw in lines:
        if "}" in raw or not raw.strip():
            break
        line = raw.strip()
        if line.startswith(COMMENT):
            continue
        params.append(_parse_parameter(line))
    return params


def _parse_parameter(line: str) -> RestParameter:
    index = line.find(COMMENT)
    if index > -1:
        line = line[:index]

    tokens = line.split()

    if len(tokens) == 3:
        parts = _quoted(tokens[2]).split(",")
        if len(parts) >= 2:
            return RestParameter(param_type=tokens[1], name=parts[1], location=parts[0])
        return RestParameter(param_type=tokens[1], name=tokens[0], location=parts[0])

    if len(tokens) == 2:
        return RestParameter(param_type=tokens[1], name=tokens[0])

    return RestParameter(name=line)


def _quoted(token: str) -> str:
    """Return the first double-quoted value of a struct tag, or ''."""
    parts = token.split('"')
    if len(parts) < 2:
        return ""
    return parts[1]
