"""External command execution for registry tooling.

Adapters receive a CommandRunner so tests can record invocations instead
of spawning npm or cargo.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from polyrelease.exceptions import CommandError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    stdout: str
    stderr: str


class CommandRunner(Protocol):
    def __call__(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult: ...


def run_command(
    command: str,
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run ``command`` with ``args`` and capture its output.

    Args:
        command: Executable name
        args: Arguments
        cwd: Working directory
        env: Extra environment variables merged over the current environment

    Raises:
        CommandError: If the executable is missing, cannot be started or exits
            non-zero
    """
    full_env = {**os.environ, **env} if env else None
    logger.debug("Running %s %s (cwd=%s)", command, " ".join(args), cwd)
    try:
        result = subprocess.run(
            [command, *args],
            cwd=cwd,
            env=full_env,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise CommandError(f"{command} not found on PATH") from e
    except OSError as e:
        raise CommandError(f"Could not run {command}: {e}") from e
    except subprocess.CalledProcessError as e:
        raise CommandError(
            f"{command} {' '.join(args)} failed with exit code {e.returncode}",
            stderr=e.stderr,
        ) from e
    return CommandResult(stdout=result.stdout, stderr=result.stderr)


def binary_exists(name: str) -> bool:
    return shutil.which(name) is not None
