"""Turn an abnormality signal into a binary operator decision."""

import hmac
from dataclasses import dataclass, field
from datetime import datetime

from .._utils import logger, utc_now
from ..errors import ConfirmationChannelError, ConfirmationTimeout
from .channels import Answer, BaseConfirmationChannel


@dataclass(frozen=True)
class ConfirmationContext:
    reason: str
    detected_at: datetime = field(default_factory=utc_now)

    @property
    def prompt(self) -> str:
        return f"{self.reason}\nIs the system having problems?"


class BaseConfirmationGate:
    """``confirm`` returns True when the operator reports a problem.

    A channel failure (not a user cancel) resolves to True so the cycle takes
    the restore path rather than silently backing up a broken database.
    ConfirmationTimeout propagates: an unanswered gate decides nothing.
    """

    def __init__(self, channel: BaseConfirmationChannel):
        self.channel = channel

    async def confirm(self, context: ConfirmationContext) -> bool:
        try:
            return await self._decide(context)
        except ConfirmationChannelError as e:
            logger.error(f"Confirmation channel failed ({e.kind}), resolving to has-problem: {e}")
            return True

    async def _decide(self, context: ConfirmationContext) -> bool:
        raise NotImplementedError


class SimpleConfirmationGate(BaseConfirmationGate):
    """One yes/no question; anything but "no problem" means a problem."""

    async def _decide(self, context: ConfirmationContext) -> bool:
        answer = await self.channel.ask(context.prompt)
        logger.info(f"Operator answered: {answer.value}")
        return answer != Answer.NO_PROBLEM


class AuthorizedConfirmationGate(BaseConfirmationGate):
    """Reporting a problem must be confirmed with a shared secret.

    A wrong secret re-prompts; cancelling the secret prompt goes back to the
    original question. A timed-out question or secret prompt raises
    ConfirmationTimeout instead of asking again.
    """

    SECRET_PROMPT = "Enter the authorization code to restore the last backup:"
    RETRY_PROMPT = "Wrong authorization code. Try again:"

    def __init__(self, channel: BaseConfirmationChannel, secret: str):
        super().__init__(channel)
        if not secret:
            raise ValueError("AuthorizedConfirmationGate requires a non-empty secret")
        self._secret = secret.encode("utf-8")

    async def _decide(self, context: ConfirmationContext) -> bool:
        while True:
            answer = await self.channel.ask(context.prompt)
            logger.info(f"Operator answered: {answer.value}")
            if answer == Answer.NO_PROBLEM:
                return False
            if answer == Answer.TIMED_OUT:
                raise ConfirmationTimeout("Confirmation question timed out unanswered")
            if await self._authorize():
                return True
            logger.info("Authorization cancelled, asking again")

    async def _authorize(self) -> bool:
        prompt = self.SECRET_PROMPT
        attempts = 0
        while True:
            secret = await self.channel.ask_secret(prompt)
            if secret is None:
                return False
            if hmac.compare_digest(secret.encode("utf-8"), self._secret):
                logger.info("Restore authorized")
                return True
            attempts += 1
            logger.warning(f"Wrong authorization code (attempt {attempts})")
            prompt = self.RETRY_PROMPT
