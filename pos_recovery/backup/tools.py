"""mongodump / mongorestore invocation."""

import asyncio
import re
from pathlib import Path
from typing import IO, List, Optional

from .._utils import logger
from ..errors import ExternalToolError, ExternalToolTimeout

# Keep the tail of very chatty tool output
MAX_DIAGNOSTICS_CHARS = 4000

_CREDENTIALS = re.compile(r"(://[^:/@]+:)[^@]+@")


def redact_uri(uri: str) -> str:
    return _CREDENTIALS.sub(r"\1***@", uri)


class BaseToolRunner:
    """Runs the external dump/restore utility.

    Failures surface as ExternalToolError carrying the tool's diagnostics.
    Nothing here retries; that is the caller's decision.
    """

    async def run_dump(self, uri: str, destination: Path) -> None:
        raise NotImplementedError

    async def run_restore(self, uri: str, source: Path) -> None:
        raise NotImplementedError


class MongoToolRunner(BaseToolRunner):
    """Invoke mongodump/mongorestore directly or inside a container.

    In container mode the archive streams over stdout (dump) and stdin
    (restore), so archives always live on the host's backup root.
    A timeout is refused in container mode: killing the exec client does not
    stop the tool running inside the container.
    """

    def __init__(
        self,
        dump_bin: str = "mongodump",
        restore_bin: str = "mongorestore",
        container: Optional[str] = None,
        container_runtime: str = "docker",
        timeout: Optional[float] = None,
    ):
        self.dump_bin = dump_bin
        self.restore_bin = restore_bin
        self.container = container
        self.container_runtime = container_runtime
        self.timeout = timeout or None
        if self.timeout and self.container:
            raise ValueError("a tool timeout cannot be used with a container runner")

    def _exec_prefix(self) -> List[str]:
        if self.container:
            return [self.container_runtime, "exec", "-i", self.container]
        return []

    def dump_command(self, uri: str, destination: Path) -> List[str]:
        archive = "--archive" if self.container else f"--archive={destination}"
        return self._exec_prefix() + [self.dump_bin, f"--uri={uri}", archive, "--gzip"]

    def restore_command(self, uri: str, source: Path) -> List[str]:
        archive = "--archive" if self.container else f"--archive={source}"
        return self._exec_prefix() + [self.restore_bin, f"--uri={uri}", "--drop", archive, "--gzip"]

    async def run_dump(self, uri: str, destination: Path) -> None:
        command = self.dump_command(uri, destination)
        logger.info(f"Running {self.dump_bin} for {redact_uri(uri)} -> {destination}")

        try:
            if self.container:
                with open(destination, "wb") as archive:
                    await self._execute(self.dump_bin, command, stdout=archive)
            else:
                await self._execute(self.dump_bin, command)
        except (ExternalToolError, OSError):
            if destination.exists():
                destination.unlink()
                logger.debug(f"Removed partial archive: {destination}")
            raise

    async def run_restore(self, uri: str, source: Path) -> None:
        command = self.restore_command(uri, source)
        logger.info(f"Running {self.restore_bin} (drop and replace) for {redact_uri(uri)} <- {source}")

        if self.container:
            with open(source, "rb") as archive:
                await self._execute(self.restore_bin, command, stdin=archive)
        else:
            await self._execute(self.restore_bin, command)

    async def _execute(
        self,
        tool: str,
        command: List[str],
        stdin: Optional[IO[bytes]] = None,
        stdout: Optional[IO[bytes]] = None,
    ) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=stdin if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=stdout if stdout is not None else asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalToolError(tool, None, f"could not start {command[0]}: {e}") from e

        try:
            if self.timeout:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            else:
                _, stderr = await process.communicate()
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ExternalToolTimeout(tool, self.timeout)

        diagnostics = (stderr or b"").decode("utf-8", errors="replace")[-MAX_DIAGNOSTICS_CHARS:]
        if process.returncode != 0:
            raise ExternalToolError(tool, process.returncode, diagnostics)

        logger.debug(f"{tool} finished: {diagnostics.strip()[-500:]}")
