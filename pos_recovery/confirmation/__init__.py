from .channels import Answer, BaseConfirmationChannel, TerminalChannel, ZenityChannel
from .gate import (
    AuthorizedConfirmationGate,
    BaseConfirmationGate,
    ConfirmationContext,
    SimpleConfirmationGate,
)

__all__ = [
    "Answer",
    "AuthorizedConfirmationGate",
    "BaseConfirmationChannel",
    "BaseConfirmationGate",
    "ConfirmationContext",
    "SimpleConfirmationGate",
    "TerminalChannel",
    "ZenityChannel",
]
