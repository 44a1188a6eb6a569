"""
Event dispatch and the serverless entry point.

Two event shapes are accepted:

- rotation: ``{"Step": ..., "SecretId": ..., "ClientRequestToken": ...}``
- cleanup: ``{"action": "cleanup", "secretArn": ...}``
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from ..config import RotationConfig, load_config
from ..errors import InvalidEventError, NextKeyCreatedError, RotationAbortedError
from ..jwks.builder import JwksBuilder
from ..jwks.publisher import JwksPublisher
from ..keys.generator import KeyGenerator
from ..logger import configure_logging
from ..monitoring.metrics_exporter import MetricsRegistry, get_registry
from ..objectstore.s3 import S3ObjectStore
from ..objectstore.store import ObjectStore
from ..secretstore.aws import SecretsManagerStore
from ..secretstore.redis import RedisSecretStore
from ..secretstore.store import SecretStore
from .machine import RotationStateMachine
from .types import StepOutcome

logger = logging.getLogger(__name__)

CLEANUP_ACTION = "cleanup"


def build_state_machine(
    config: RotationConfig,
    secret_store: Optional[SecretStore] = None,
    object_store: Optional[ObjectStore] = None,
    clock: Optional[Callable[[], datetime]] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> RotationStateMachine:
    """Wire a state machine from configuration.

    Stores default to the backends named by the configuration.
    """
    if secret_store is None:
        if config.secret_store_backend == "redis":
            secret_store = RedisSecretStore(url=config.redis_url)
        else:
            secret_store = SecretsManagerStore()
    if object_store is None:
        object_store = S3ObjectStore()

    builder = JwksBuilder(
        secret_store,
        max_token_validity_duration_seconds=config.max_token_validity_duration_seconds,
        min_key_cleanup_grace_period_seconds=config.min_key_cleanup_grace_period_seconds,
        clock=clock,
    )
    publisher = JwksPublisher(
        object_store,
        config.bucket_name,
        config.bucket_path,
        cache_control=config.cache_control,
        metrics=metrics,
    )
    return RotationStateMachine(
        secret_store,
        builder,
        publisher,
        KeyGenerator(config.key_spec, clock),
        min_activation_grace_period_seconds=config.min_activation_grace_period_seconds,
        clock=clock,
    )


async def _run_step(
    step: str,
    invocation: Awaitable[StepOutcome],
    metrics: Optional[MetricsRegistry],
) -> StepOutcome:
    try:
        outcome = await invocation
    except RotationAbortedError as e:
        logger.warning(f"Step {step} aborted: {e}")
        if metrics:
            metrics.observe_step(step, "aborted")
        raise
    except Exception as e:
        logger.error(f"Error in step {step}: {e}")
        if metrics:
            metrics.observe_step(step, "failed")
        raise

    if outcome.is_aborted:
        logger.warning(f"Step {step} aborted: {outcome.reason}")
        if metrics:
            metrics.observe_step(step, "aborted")
        raise NextKeyCreatedError(outcome.reason or "Rotation aborted")

    if metrics:
        metrics.observe_step(step, "completed")
    logger.info(f"Successfully completed step: {step}")
    return outcome


def _require(event: Mapping[str, Any], name: str) -> str:
    value = event.get(name)
    if not isinstance(value, str) or not value:
        raise InvalidEventError(f"Event is missing {name}")
    return value


async def handle_event(
    event: Mapping[str, Any],
    machine: RotationStateMachine,
    metrics: Optional[MetricsRegistry] = None,
) -> StepOutcome:
    """Dispatch one trigger event to the state machine.

    An aborted outcome is raised as ``NextKeyCreatedError`` so the scheduler
    sees a failed invocation and retries later.
    """
    if not isinstance(event, Mapping):
        raise InvalidEventError("Invalid event action")
    logger.info(f"Received event: {json.dumps(dict(event), default=str)}")

    if "action" in event:
        if event["action"] != CLEANUP_ACTION:
            raise InvalidEventError("Invalid event action")
        secret_arn = _require(event, "secretArn")
        return await _run_step(CLEANUP_ACTION, machine.cleanup_expired_keys(secret_arn), metrics)

    if "Step" not in event:
        raise InvalidEventError("Invalid event action")

    step = event["Step"]
    steps: Dict[str, Callable[[str, str], Awaitable[StepOutcome]]] = {
        "createSecret": machine.create_secret,
        "setSecret": machine.set_secret,
        "testSecret": machine.test_secret,
        "finishSecret": machine.finish_secret,
    }
    run = steps.get(step)
    if run is None:
        raise InvalidEventError(f"Invalid step: {step}")

    secret_id = _require(event, "SecretId")
    token = _require(event, "ClientRequestToken")
    return await _run_step(step, run(secret_id, token), metrics)


_machine: Optional[RotationStateMachine] = None


def get_state_machine() -> RotationStateMachine:
    """Process-wide state machine, built from the environment on first use."""
    global _machine
    if _machine is None:
        config = load_config()
        configure_logging(config.log_level)
        _machine = build_state_machine(config, metrics=get_registry())
    return _machine


async def _invoke(event: Mapping[str, Any], machine: RotationStateMachine) -> StepOutcome:
    try:
        return await handle_event(event, machine, get_registry())
    finally:
        # connections are bound to this invocation's event loop
        await machine.close()


def lambda_handler(event: Dict[str, Any], context: Any = None) -> None:
    machine = get_state_machine()
    asyncio.run(_invoke(event, machine))


__all__ = [
    "handle_event",
    "build_state_machine",
    "get_state_machine",
    "lambda_handler",
    "CLEANUP_ACTION",
]
