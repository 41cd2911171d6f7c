"""Surfaces that put the confirmation question in front of an operator."""

import asyncio
import getpass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .._utils import logger
from ..errors import ConfirmationChannelError, ConfirmationTimeout


class Answer(str, Enum):
    NO_PROBLEM = "no-problem"
    HAS_PROBLEM = "has-problem"
    DISMISSED = "dismissed"
    TIMED_OUT = "timed-out"


class BaseConfirmationChannel:
    """Input/output contract of a confirmation surface.

    A user cancel is an ordinary result (DISMISSED / None). A dialog timeout
    is TIMED_OUT from ``ask`` and ConfirmationTimeout from ``ask_secret``;
    anything else going wrong raises ConfirmationChannelError.
    """

    async def ask(self, prompt: str) -> Answer:
        raise NotImplementedError

    async def ask_secret(self, prompt: str) -> Optional[str]:
        """Return the entered secret, or None when the operator cancels.

        Raises:
            ConfirmationTimeout: the prompt timed out unanswered
        """
        raise NotImplementedError


class ZenityChannel(BaseConfirmationChannel):
    """Native desktop dialogs through the ``zenity`` binary."""

    NO_PROBLEM_LABEL = "No problem"
    HAS_PROBLEM_LABEL = "Has problem"
    # zenity exit codes
    CANCEL_CODE = 1
    TIMEOUT_CODE = 5

    def __init__(self, zenity_bin: str = "zenity", title: str = "System check", timeout: int = 0):
        self.zenity_bin = zenity_bin
        self.title = title
        self.timeout = timeout

    def _common_args(self) -> List[str]:
        args = [f"--title={self.title}", "--width=300"]
        if self.timeout:
            args.append(f"--timeout={self.timeout}")
        return args

    async def _run(self, args: List[str]) -> Tuple[int, str, str]:
        try:
            process = await asyncio.create_subprocess_exec(
                self.zenity_bin,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise ConfirmationChannelError(f"could not run {self.zenity_bin}: {e}") from e
        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def ask(self, prompt: str) -> Answer:
        returncode, stdout, stderr = await self._run([
            "--question",
            f"--text={prompt}",
            "--switch",
            f"--extra-button={self.NO_PROBLEM_LABEL}",
            f"--extra-button={self.HAS_PROBLEM_LABEL}",
            *self._common_args(),
        ])

        choice = stdout.strip()
        if choice == self.NO_PROBLEM_LABEL:
            return Answer.NO_PROBLEM
        if choice == self.HAS_PROBLEM_LABEL:
            return Answer.HAS_PROBLEM
        if returncode == self.CANCEL_CODE:
            return Answer.DISMISSED
        if returncode == self.TIMEOUT_CODE:
            return Answer.TIMED_OUT
        raise ConfirmationChannelError(f"{self.zenity_bin} exited with {returncode}: {stderr.strip()}")

    async def ask_secret(self, prompt: str) -> Optional[str]:
        returncode, stdout, stderr = await self._run([
            "--entry",
            "--hide-text",
            f"--text={prompt}",
            *self._common_args(),
        ])

        if returncode == 0:
            return stdout.rstrip("\n")
        if returncode == self.CANCEL_CODE:
            return None
        if returncode == self.TIMEOUT_CODE:
            raise ConfirmationTimeout(f"No authorization code entered within {self.timeout}s")
        raise ConfirmationChannelError(f"{self.zenity_bin} exited with {returncode}: {stderr.strip()}")


class TerminalChannel(BaseConfirmationChannel):
    """Prompt on the controlling terminal, for headless terminals and debugging."""

    NO_PROBLEM_REPLIES = {"n", "no"}
    HAS_PROBLEM_REPLIES = {"p", "problem", "y", "yes"}

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        secret_func: Callable[[str], str] = getpass.getpass,
    ):
        self.input_func = input_func
        self.secret_func = secret_func

    async def ask(self, prompt: str) -> Answer:
        question = f"{prompt}\n[n] no problem / [p] has problem: "
        while True:
            try:
                reply = await asyncio.to_thread(self.input_func, question)
            except EOFError as e:
                raise ConfirmationChannelError("terminal input closed") from e

            reply = reply.strip().lower()
            if reply in self.NO_PROBLEM_REPLIES:
                return Answer.NO_PROBLEM
            if reply in self.HAS_PROBLEM_REPLIES:
                return Answer.HAS_PROBLEM
            if not reply:
                return Answer.DISMISSED
            logger.debug(f"Unrecognized reply: {reply!r}")

    async def ask_secret(self, prompt: str) -> Optional[str]:
        try:
            secret = await asyncio.to_thread(self.secret_func, f"{prompt} ")
        except EOFError as e:
            raise ConfirmationChannelError("terminal input closed") from e
        return secret or None
