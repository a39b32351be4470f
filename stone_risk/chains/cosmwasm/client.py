"""CosmWasm LCD client with endpoint fallback."""
import asyncio
import base64
import json
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import ContractQueryError, EndpointUnavailableError

logger = logging.getLogger(__name__)


def encode_query(query: dict[str, Any]) -> str:
    """Base64 of the compact JSON query, as the LCD smart-query route expects."""
    payload = json.dumps(query, separators=(",", ":"), sort_keys=True)
    return base64.b64encode(payload.encode()).decode()


class CosmWasmClient:
    """Smart-query client over the LCD REST API with automatic endpoint fallback.

    Transport failures rotate to the next endpoint; the endpoint that answers
    becomes the first one tried next time. A contract-level error is final and
    is raised without trying other endpoints, since every node would give the
    same answer.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = [e.rstrip("/") for e in config.lcd_endpoints]
        self.timeout = config.request_timeout
        self.current_endpoint_index = 0

    async def _get(self, url: str) -> tuple[int, Any]:
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.get(
                url, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                payload = await response.json(content_type=None)
                return response.status, payload

    async def query_smart(self, contract_address: str, query: dict[str, Any]) -> Any:
        """Run a smart query and return the response's ``data`` field."""
        if not self.endpoints:
            raise EndpointUnavailableError("No LCD endpoints configured")

        path = (
            f"/cosmwasm/wasm/v1/contract/{contract_address}"
            f"/smart/{encode_query(query)}"
        )

        last_error: Exception | str | None = None
        for attempt in range(len(self.endpoints)):
            index = (self.current_endpoint_index + attempt) % len(self.endpoints)
            endpoint = self.endpoints[index]

            try:
                status, payload = await self._get(endpoint + path)
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
                last_error = e
                logger.warning("LCD endpoint %s failed: %s", endpoint, e)
                continue

            if status == 200 and isinstance(payload, dict) and "data" in payload:
                if index != self.current_endpoint_index:
                    logger.info("Switched to LCD endpoint: %s", endpoint)
                    self.current_endpoint_index = index
                return payload["data"]

            # Failed queries come back in the gRPC-gateway shape {"code": n, "message": ...}
            if isinstance(payload, dict) and payload.get("code") and payload.get("message"):
                raise ContractQueryError(str(payload["message"]))

            last_error = f"HTTP {status}"
            if isinstance(payload, dict) and payload.get("message"):
                last_error += f": {payload['message']}"
            logger.warning("LCD endpoint %s returned %s", endpoint, last_error)

        raise EndpointUnavailableError(f"All LCD endpoints failed. Last error: {last_error}")
