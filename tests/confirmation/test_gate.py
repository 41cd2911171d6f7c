"""Tests for the confirmation gates."""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from pos_recovery.confirmation import (
    Answer,
    AuthorizedConfirmationGate,
    ConfirmationContext,
    SimpleConfirmationGate,
    ZenityChannel,
)
from pos_recovery.errors import ConfirmationChannelError, ConfirmationTimeout
from tests.fakes import ScriptedChannel

CONTEXT = ConfirmationContext(reason="No sales were recorded in the last 5 minutes.")


class TestSimpleGate:
    """Test the single-question gate."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer,expected", [
        (Answer.NO_PROBLEM, False),
        (Answer.HAS_PROBLEM, True),
        (Answer.DISMISSED, True),
        (Answer.TIMED_OUT, True),
    ])
    async def test_answers(self, answer, expected):
        channel = ScriptedChannel(answers=[answer])

        assert await SimpleConfirmationGate(channel).confirm(CONTEXT) is expected
        assert channel.questions == [
            "No sales were recorded in the last 5 minutes.\nIs the system having problems?"
        ]

    @pytest.mark.asyncio
    async def test_channel_failure_means_problem(self):
        channel = ScriptedChannel(answers=[ConfirmationChannelError("no display")])

        assert await SimpleConfirmationGate(channel).confirm(CONTEXT) is True


class TestAuthorizedGate:
    """Test the secret-protected gate."""

    def test_requires_secret(self):
        with pytest.raises(ValueError):
            AuthorizedConfirmationGate(ScriptedChannel(), secret="")

    @pytest.mark.asyncio
    async def test_no_problem_skips_secret(self):
        channel = ScriptedChannel(answers=[Answer.NO_PROBLEM])

        assert await AuthorizedConfirmationGate(channel, "4321").confirm(CONTEXT) is False
        assert channel.secret_prompts == []

    @pytest.mark.asyncio
    async def test_correct_secret(self):
        channel = ScriptedChannel(answers=[Answer.HAS_PROBLEM], secrets=["4321"])

        assert await AuthorizedConfirmationGate(channel, "4321").confirm(CONTEXT) is True
        assert channel.secret_prompts == [AuthorizedConfirmationGate.SECRET_PROMPT]

    @pytest.mark.asyncio
    async def test_wrong_secrets_reprompt(self):
        channel = ScriptedChannel(
            answers=[Answer.HAS_PROBLEM],
            secrets=["0000", "1111", "2222", "4321"],
        )

        assert await AuthorizedConfirmationGate(channel, "4321").confirm(CONTEXT) is True
        assert len(channel.questions) == 1
        assert channel.secret_prompts == [
            AuthorizedConfirmationGate.SECRET_PROMPT,
            AuthorizedConfirmationGate.RETRY_PROMPT,
            AuthorizedConfirmationGate.RETRY_PROMPT,
            AuthorizedConfirmationGate.RETRY_PROMPT,
        ]

    @pytest.mark.asyncio
    async def test_cancel_returns_to_question(self):
        channel = ScriptedChannel(
            answers=[Answer.HAS_PROBLEM, Answer.NO_PROBLEM],
            secrets=[None],
        )

        assert await AuthorizedConfirmationGate(channel, "4321").confirm(CONTEXT) is False
        assert len(channel.questions) == 2

    @pytest.mark.asyncio
    async def test_dismiss_asks_for_secret(self):
        channel = ScriptedChannel(answers=[Answer.DISMISSED], secrets=["4321"])

        assert await AuthorizedConfirmationGate(channel, "4321").confirm(CONTEXT) is True

    @pytest.mark.asyncio
    async def test_channel_failure_during_secret(self):
        channel = ScriptedChannel(
            answers=[Answer.HAS_PROBLEM],
            secrets=[ConfirmationChannelError("zenity crashed")],
        )

        assert await AuthorizedConfirmationGate(channel, "4321").confirm(CONTEXT) is True

    @pytest.mark.asyncio
    async def test_unattended_dialog_timeout_ends_gate(self):
        """Every zenity dialog times out; the gate gives up instead of re-asking."""
        process = MagicMock()
        process.returncode = 5
        process.communicate = AsyncMock(return_value=(b"", b""))
        mock_exec = AsyncMock(return_value=process)
        gate = AuthorizedConfirmationGate(ZenityChannel(timeout=1), "4321")

        with patch("pos_recovery.confirmation.channels.asyncio.create_subprocess_exec", mock_exec):
            with pytest.raises(ConfirmationTimeout):
                await asyncio.wait_for(gate.confirm(CONTEXT), timeout=2)

        assert mock_exec.await_count == 1

    @pytest.mark.asyncio
    async def test_secret_prompt_timeout_ends_gate(self):
        channel = ScriptedChannel(
            answers=[Answer.HAS_PROBLEM],
            secrets=["0000", ConfirmationTimeout("no code entered")],
        )

        with pytest.raises(ConfirmationTimeout):
            await AuthorizedConfirmationGate(channel, "4321").confirm(CONTEXT)

        assert len(channel.questions) == 1
