"""AWS Secrets Manager backed secret store.

boto3 clients are synchronous; each call runs in a worker thread so the
rotation coroutines keep one calling convention across backends.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Optional

import boto3
from botocore.exceptions import ClientError

from ..keys.types import KeyRecord, StoredKey
from .store import SecretStore, StageLike, decode_record, stage_name

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"ResourceNotFoundException"}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class SecretsManagerStore(SecretStore):
    def __init__(self, client: Optional[Any] = None, **client_kwargs: Any):
        self._client = client if client is not None else boto3.client("secretsmanager", **client_kwargs)

    @property
    def client(self) -> Any:
        return self._client

    async def get(self, secret_id: str, stage: StageLike, version_id: Optional[str] = None) -> Optional[StoredKey]:
        params = {"SecretId": secret_id, "VersionStage": stage_name(stage)}
        if version_id is not None:
            params["VersionId"] = version_id
        try:
            response = await asyncio.to_thread(self._client.get_secret_value, **params)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return None
            raise
        raw = response.get("SecretString")
        if not raw:
            return None
        version = response.get("VersionId")
        if not version:
            raise ValueError("Secret version has no VersionId")
        return StoredKey(
            version_id=version,
            record=decode_record(secret_id, version, raw),
            stages=list(response.get("VersionStages") or []),
        )

    async def put(self, secret_id: str, token: str, stages: Iterable[StageLike], record: KeyRecord) -> str:
        response = await asyncio.to_thread(
            self._client.put_secret_value,
            SecretId=secret_id,
            ClientRequestToken=token,
            SecretString=record.to_json(),
            VersionStages=[stage_name(s) for s in stages],
        )
        logger.debug("put_secret_value %s -> %s", secret_id, response.get("VersionId"))
        return response.get("VersionId") or token

    async def move_stage(
        self,
        secret_id: str,
        stage: StageLike,
        move_to: str,
        remove_from: Optional[str] = None,
    ) -> None:
        params = {
            "SecretId": secret_id,
            "VersionStage": stage_name(stage),
            "MoveToVersionId": move_to,
        }
        if remove_from is not None:
            params["RemoveFromVersionId"] = remove_from
        await asyncio.to_thread(self._client.update_secret_version_stage, **params)


__all__ = ["SecretsManagerStore"]
