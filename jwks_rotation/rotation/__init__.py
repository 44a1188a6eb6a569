"""
Rotation package: the lifecycle state machine and its event dispatch.
"""

from .types import OutcomeStatus, StepOutcome
from .machine import RotationStateMachine, NEXT_KEY_CREATED, NEXT_TOKEN_PREFIX, next_key_token
from .handler import (
    handle_event,
    build_state_machine,
    get_state_machine,
    lambda_handler,
    CLEANUP_ACTION,
)

__all__ = [
    "OutcomeStatus",
    "StepOutcome",
    "RotationStateMachine",
    "NEXT_KEY_CREATED",
    "NEXT_TOKEN_PREFIX",
    "next_key_token",
    "handle_event",
    "build_state_machine",
    "get_state_machine",
    "lambda_handler",
    "CLEANUP_ACTION",
]
