"""Running ripgrep and streaming its JSON output as records."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Iterator, Sequence

from .errors import SearchLaunchError
from .protocol import decode_lines
from .records import MatchRecord

logger = logging.getLogger(__name__)

RG_EXECUTABLE = "rg"
JSON_FLAG = "--json"


def build_command(rg_args: Sequence[str], executable: str = RG_EXECUTABLE) -> list[str]:
    """Return the ``rg`` command line for ``rg_args`` with JSON output enabled.

    A leading ``rg`` in ``rg_args`` is accepted and dropped, so both
    ``cg pattern`` and ``cg rg pattern`` work.
    """
    args = list(rg_args)
    if args and args[0] == executable:
        args = args[1:]
    cmd = [executable, *args]
    if JSON_FLAG not in args:
        cmd.append(JSON_FLAG)
    return cmd


class RipgrepProcess:
    """Context manager owning one ``rg --json`` subprocess.

    Leaving the context early terminates the process; ``returncode`` is set
    once the process has been reaped.
    """

    def __init__(self, cmd: Sequence[str], cwd: str | None = None) -> None:
        self.cmd = list(cmd)
        self.cwd = cwd
        self.proc: subprocess.Popen[str] | None = None
        self.returncode: int | None = None

    def __enter__(self) -> "RipgrepProcess":
        if shutil.which(self.cmd[0]) is None:
            raise SearchLaunchError(f"{self.cmd[0]} is not installed or not in PATH.")
        logger.info("Running command: %s", " ".join(self.cmd))
        try:
            self.proc = subprocess.Popen(
                self.cmd,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise SearchLaunchError(f"failed to run {self.cmd[0]}: {exc}") from exc
        return self

    def records(self) -> Iterator[MatchRecord]:
        assert self.proc is not None and self.proc.stdout is not None
        for record in decode_lines(self.proc.stdout):
            logger.debug("Received record: %r", record)
            yield record

    def __exit__(self, exc_type, exc, tb) -> None:
        proc = self.proc
        if proc is None:
            return
        if proc.poll() is None and exc_type is not None:
            proc.terminate()
        if proc.stdout is not None:
            proc.stdout.close()
        self.returncode = proc.wait()
        logger.debug("Command finished with status: %s", self.returncode)


__all__ = ["RG_EXECUTABLE", "JSON_FLAG", "build_command", "RipgrepProcess"]
