"""Concurrent "inspect container" probe for docker-py against a (stub) daemon."""

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Iterable

import docker

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "1.41"
DEFAULT_ID_COUNT = 100


def padded_ids(start: int = 0, count: int = DEFAULT_ID_COUNT) -> list[str]:
    """Zero-padded ids, all as wide as ``str(start + count)``."""
    width = len(str(start + count))
    return [str(i).zfill(width) for i in range(start, start + count)]


def make_client(base_url: str, version: str = DEFAULT_API_VERSION) -> docker.APIClient:
    # An explicit version skips the /version negotiation request.
    return docker.APIClient(base_url=base_url, version=version)


def inspect_one(base_url: str, container_id: str, version: str = DEFAULT_API_VERSION) -> str:
    """Inspect one container on its own client and connection. Returns the ID it reports.

    The stub daemon closes every connection after one response, so pooled
    keep-alive connections must never be reused against it.
    """
    with make_client(base_url, version=version) as client:
        return client.inspect_container(container_id)["ID"]


def inspect_concurrently(
    base_url: str,
    ids: Iterable[str],
    max_workers: int | None = None,
    version: str = DEFAULT_API_VERSION,
) -> dict[str, str]:
    """Inspect every id in parallel. Returns {requested id: returned ID}."""
    ids = list(ids)
    inspect = partial(inspect_one, base_url, version=version)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = dict(zip(ids, executor.map(inspect, ids)))

    logger.debug("Inspected %d containers on %s", len(results), base_url)
    return results


def find_crosstalk(results: dict[str, str]) -> list[tuple[str, str]]:
    """Pairs of (requested, returned) ids that do not match."""
    return [(requested, returned) for requested, returned in results.items() if requested != returned]
