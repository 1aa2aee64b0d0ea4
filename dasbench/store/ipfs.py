from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from dasbench.core.config import SUPPORTED_LEAF_COUNTS, Settings, get_settings
from dasbench.core.errors import LeafDecodeError, StoreError
from dasbench.store.base import LeafNode, StoreHealth


class IpfsDagStore:
    """Leaf store backed by a local IPFS daemon's HTTP RPC API."""

    backend_name = "ipfs"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.ipfs_api_url.rstrip("/")
        self.timeout = self.settings.fetch_timeout_seconds
        # One connection per concurrent sample of the widest supported round.
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            limits=httpx.Limits(max_connections=max(SUPPORTED_LEAF_COUNTS)),
            transport=transport,
        )

    async def __aenter__(self) -> IpfsDagStore:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _rpc(self, command: str, arg: str | None = None) -> Any:
        params = {"arg": arg} if arg is not None else None
        response = await self.client.post(f"/api/v0/{command}", params=params)
        if response.is_error:
            raise self._rpc_error(command, response)
        try:
            return response.json()
        except ValueError as exc:
            raise LeafDecodeError(f"{command} returned a non-JSON body: {exc}") from exc

    @staticmethod
    def _rpc_error(command: str, response: httpx.Response) -> StoreError:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("Message"):
            code = payload.get("Code")
            return StoreError(
                f"{command} failed ({response.status_code}): {payload['Message']}",
                code=code if isinstance(code, int) else None,
            )
        return StoreError(f"{command} failed ({response.status_code}): {response.text[:200]}")

    async def health(self) -> StoreHealth:
        try:
            payload = await self._rpc("id")
        except Exception as exc:
            return StoreHealth(backend=self.backend_name, healthy=False, detail=str(exc), raw=None)
        if not isinstance(payload, dict) or not payload.get("ID"):
            return StoreHealth(
                backend=self.backend_name,
                healthy=False,
                detail=f"unexpected id payload: {payload}",
                raw=payload if isinstance(payload, dict) else None,
            )
        return StoreHealth(backend=self.backend_name, healthy=True, detail=f"peer {payload['ID']}", raw=payload)

    async def get_leaf(self, path: str) -> LeafNode:
        payload = await self._rpc("dag/get", path)
        if not isinstance(payload, dict):
            raise LeafDecodeError(f"expected a leaf object at {path}, got {type(payload).__name__}")
        try:
            return LeafNode.model_validate(payload)
        except ValidationError as exc:
            raise LeafDecodeError(f"malformed leaf object at {path}: {exc}") from exc
