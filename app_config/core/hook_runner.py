"""Writes rendered artifacts and runs the follow-up command.

Order is fixed: every file artifact is written first, then the command
runs.  A write failure stops everything downstream.  A failing command
leaves the freshly written files in place; nothing is reverted.
"""

from __future__ import annotations

import logging
import os
import stat
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import TextIO

from app_config.core.errors import CommandFailedError, HookWriteError
from app_config.models.hooks import RenderedArtifact

logger = logging.getLogger(__name__)


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def atomic_write(path: Path, text: str) -> None:
    """Replace *path* with *text* so readers see either old or new content.

    The data goes to a temporary file in the destination directory, is
    fsynced, then renamed over the target.  An existing file's permission
    bits are carried over.
    """
    target = Path(path).expanduser()
    directory = target.parent
    try:
        mode = stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        mode = _default_file_mode()

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=directory
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class HookRunner:
    """Applies artifacts to disk (or stdout) and invokes the command.

    Parameters
    ----------
    shell:
        Shell used as ``<shell> -c <command>``.
    default_timeout:
        Bound on the command's runtime when the hook sets none.
    stdout:
        Stream for artifacts without an output path.  Defaults to the
        current ``sys.stdout``.
    """

    def __init__(
        self,
        *,
        shell: str = "/bin/sh",
        default_timeout: float | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self._shell = shell
        self._default_timeout = default_timeout
        self._stdout = stdout

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def write(self, artifact: RenderedArtifact) -> None:
        """Write one artifact atomically, or print it when it has no path."""
        if artifact.output_path is None:
            stream = self._stdout or sys.stdout
            stream.write(artifact.text)
            stream.flush()
            return

        try:
            atomic_write(artifact.output_path, artifact.text)
        except OSError as exc:
            raise HookWriteError(
                f"Could not write {artifact.output_path}: {exc}"
            ) from exc
        logger.info("Wrote %s", artifact.output_path)

    def run_command(
        self,
        command: str,
        *,
        stdin_text: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Run *command* through the shell and check its exit status.

        stdout and stderr are inherited from this process.
        """
        effective_timeout = timeout if timeout is not None else self._default_timeout
        logger.info("Running command: %s", command)
        (self._stdout or sys.stdout).flush()
        try:
            completed = subprocess.run(
                [self._shell, "-c", command],
                input=stdin_text,
                text=True,
                timeout=effective_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandFailedError(command, None, timed_out=True) from exc
        except OSError as exc:
            # The shell itself could not be started.
            raise CommandFailedError(command, None) from exc

        if completed.returncode != 0:
            raise CommandFailedError(command, completed.returncode)

    # ------------------------------------------------------------------
    # Combined
    # ------------------------------------------------------------------

    def apply(
        self,
        artifact: RenderedArtifact,
        command: str | None = None,
        *,
        stdin_text: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Write *artifact*, then run *command* if given.

        A failed write raises before the command starts.
        """
        self.write(artifact)
        if command:
            self.run_command(command, stdin_text=stdin_text, timeout=timeout)
