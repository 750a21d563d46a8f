"""Cross-references source-definition methods against the OpenAPI specification."""

import logging
from typing import Iterable, TextIO

from pydantic import BaseModel

from docker_api_parity.parser.base import RestMethod, RestParameter, method_key, parameter_key

logger = logging.getLogger(__name__)

SOURCE_LABEL = "source definition"
SPEC_LABEL = "OpenAPI specification"


class MethodDiff(BaseModel):
    """Parameter differences for one method present on both sides."""

    method: str
    path: str
    missing_in_source: list[RestParameter]  # only in the specification
    missing_in_spec: list[RestParameter]  # only in the source definition


class DiffReport(BaseModel):
    source_count: int
    spec_count: int
    diffs: list[MethodDiff] = []
    missing_in_spec: list[RestMethod] = []
    missing_in_source: list[RestMethod] = []


def index_methods(methods: Iterable[RestMethod]) -> dict[tuple[str, str], RestMethod]:
    """Key methods by (method, path). Later duplicates overwrite earlier ones."""
    return {method_key(m): m for m in methods}


def parameters_except(
    parameters: Iterable[RestParameter], other: Iterable[RestParameter]
) -> list[RestParameter]:
    """Ordered, de-duplicated parameters whose name does not occur in other."""
    seen = {parameter_key(p) for p in other}
    result = []
    for p in parameters:
        key = parameter_key(p)
        if key in seen:
            continue
        seen.add(key)
        result.append(p)
    return result


def diff_methods(
    source_methods: Iterable[RestMethod],
    spec_methods: Iterable[RestMethod],
    skip_suffixes: Iterable[str] = (),
) -> DiffReport:
    """Diff source-definition methods against specification methods.

    Response descriptors from the source definition are ignored. Methods
    whose path ends with one of skip_suffixes are never reported as missing.
    """
    source = index_methods(m for m in source_methods if not m.is_response)
    spec = index_methods(spec_methods)
    suffixes = tuple(s.lower() for s in skip_suffixes)

    report = DiffReport(source_count=len(source), spec_count=len(spec))

    for key, definition in sorted(source.items(), key=lambda item: item[1].path):
        try:
            documented = spec[key]
        except KeyError:
            # only absence is expected here; other errors propagate
            if not _skipped(definition, suffixes):
                report.missing_in_spec.append(definition)
            continue

        missing_in_source = [
            p
            for p in parameters_except(documented.parameters, definition.parameters)
            if p.location != "path"
        ]
        missing_in_spec = parameters_except(definition.parameters, documented.parameters)

        if not missing_in_source and not missing_in_spec:
            continue

        report.diffs.append(
            MethodDiff(
                method=definition.method,
                path=definition.path,
                missing_in_source=missing_in_source,
                missing_in_spec=missing_in_spec,
            )
        )

    for key, documented in sorted(spec.items(), key=lambda item: item[1].path):
        if key in source or _skipped(documented, suffixes):
            continue
        report.missing_in_source.append(documented)

    logger.debug(
        "%d methods differ, %d missing in the specification, %d missing in the source definition",
        len(report.diffs),
        len(report.missing_in_spec),
        len(report.missing_in_source),
    )
    return report


def _skipped(method: RestMethod, suffixes: tuple[str, ...]) -> bool:
    return bool(suffixes) and method.path.endswith(suffixes)


def render_report(report: DiffReport) -> list[str]:
    lines = [
        f"~{report.source_count} REST methods found in the {SOURCE_LABEL}",
        f"~{report.spec_count} REST methods found in the {SPEC_LABEL}",
        "",
    ]

    for diff in report.diffs:
        lines.append(f"Diffs in {diff.method} {diff.path}")
        lines.append(f"Found additional parameters in the {SPEC_LABEL}: {len(diff.missing_in_source)}")
        lines.extend(str(p) for p in diff.missing_in_source)
        lines.append(f"Found additional parameters in the {SOURCE_LABEL}: {len(diff.missing_in_spec)}")
        lines.extend(str(p) for p in diff.missing_in_spec)
        lines.append("")

    for m in report.missing_in_spec:
        lines.append(f"{m.method} {m.path} not found in the {SPEC_LABEL}.")
    if report.missing_in_spec:
        lines.append("")

    for m in report.missing_in_source:
        lines.append(f"{m.method} {m.path} not found in the {SOURCE_LABEL}.")

    return lines


def write_report(report: DiffReport, sink: TextIO) -> None:
    for line in render_report(report):
        sink.write(line + "\n")
