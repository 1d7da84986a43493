"""Registry propagation wait.

Registries may not serve a freshly published version straight away, and a
dependent published too early fails to resolve it. Before publishing the
next package we poll the registry with exponential backoff until the
previous one is visible.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from polyrelease import __version__
from polyrelease.exceptions import RegistryTimeoutError

logger = logging.getLogger(__name__)

CRATES_IO_API = "https://crates.io/api/v1/crates"
NPM_REGISTRY = "https://registry.npmjs.org"
USER_AGENT = f"polyrelease/{__version__}"

# (package name, version) -> None, raising RegistryTimeoutError on timeout
WaitFn = Callable[[str, str], None]


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Delays are in seconds: 1, 2, 4, 8, 16, 16, ... until ``timeout``."""

    initial_delay: float = 1.0
    max_delay: float = 16.0
    timeout: float = 120.0


def crate_url(name: str, version: str) -> str:
    return f"{CRATES_IO_API}/{name}/{version}"


def npm_url(name: str, version: str) -> str:
    # Scoped names keep the @ but encode the slash
    return f"{NPM_REGISTRY}/{quote(name, safe='@')}/{version}"


def wait_for_version(
    url: str,
    label: str,
    *,
    policy: BackoffPolicy | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Poll ``url`` until it answers with a success status.

    Args:
        url: Registry endpoint for the published version
        label: Human readable ``name@version`` for messages
        policy: Backoff delays and overall timeout
        client: HTTP client, a short-lived one is created when omitted
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Raises:
        RegistryTimeoutError: If the version is not visible before the timeout
    """
    policy = policy or BackoffPolicy()
    owns_client = client is None
    http = client or httpx.Client(timeout=10.0, headers={"User-Agent": USER_AGENT})

    try:
        deadline = clock() + policy.timeout
        delay = policy.initial_delay
        while clock() < deadline:
            sleep(delay)
            try:
                response = http.get(url)
            except httpx.HTTPError as e:
                logger.debug("Registry poll for %s failed: %s", label, e)
            else:
                if response.is_success:
                    logger.info("%s is available on the registry", label)
                    return
                logger.debug("Registry answered %s for %s", response.status_code, label)
            delay = min(delay * 2, policy.max_delay)
    finally:
        if owns_client:
            http.close()

    raise RegistryTimeoutError(
        f"Timed out after {policy.timeout:g}s waiting for {label} to appear on the registry"
    )


def registry_waiter(
    url_for: Callable[[str, str], str],
    policy: BackoffPolicy | None = None,
) -> WaitFn:
    """Bind a URL builder and policy into a WaitFn for an adapter."""

    def wait(name: str, version: str) -> None:
        wait_for_version(url_for(name, version), f"{name}@{version}", policy=policy)

    return wait
