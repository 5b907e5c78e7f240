"""BscScan-compatible block explorer client.

Every call goes through ``_request``, which turns transport failures,
non-2xx answers, undecodable bodies and explorer-level ``status: "0"``
errors into ``ExplorerError``. The one ``status: "0"`` answer that is not an
error is "No transactions found", which yields an empty list.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from cryptoguard.core.config import Settings, settings
from cryptoguard.core.errors import ExplorerError
from cryptoguard.core.logging import get_logger

logger = get_logger("bscscan")

NO_RESULTS_MESSAGE = "No transactions found"


class BscScanClient:
    def __init__(
        self,
        api_key: str = "",
        api_url: str = "https://api.bscscan.com/api",
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "BscScanClient":
        return cls(
            api_key=config.bscscan_api_key,
            api_url=config.bscscan_api_url,
            timeout=config.explorer_timeout_seconds,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": "CryptoGuard/2.0"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, params: Dict[str, Any]) -> Any:
        query = {**params, "apikey": self.api_key}
        label = f"{params.get('module')}.{params.get('action')}"
        try:
            client = await self._get_client()
            response = await client.get(self.api_url, params=query)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("❌ BscScan %s returned HTTP %s", label, e.response.status_code)
            raise ExplorerError(
                "Block explorer request failed", details=f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("❌ BscScan %s request failed: %s", label, e)
            raise ExplorerError("Block explorer unreachable", details=str(e)) from e
        except ValueError as e:
            logger.error("❌ BscScan %s returned invalid JSON", label)
            raise ExplorerError("Block explorer returned invalid JSON") from e

        if not isinstance(data, dict):
            raise ExplorerError("Block explorer returned an unexpected payload")

        if str(data.get("status", "1")) == "0":
            message = str(data.get("message") or "")
            if message.startswith(NO_RESULTS_MESSAGE):
                return []
            logger.warning("⚠️ BscScan %s error: %s (%s)", label, message, data.get("result"))
            raise ExplorerError(
                f"Block explorer error: {message or 'NOTOK'}",
                details=str(data.get("result") or ""),
            )

        if "error" in data:
            raise ExplorerError("Block explorer error", details=str(data["error"]))
        return data.get("result")

    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        result = await self._request(
            {"module": "account", "action": "balance", "address": address, "tag": "latest"}
        )
        try:
            return int(result)
        except (TypeError, ValueError) as e:
            raise ExplorerError("Block explorer returned an invalid balance", details=str(result)) from e

    async def get_transactions(self, address: str, limit: int = 100) -> List[Dict[str, Any]]:
        result = await self._request(
            {
                "module": "account",
                "action": "txlist",
                "address": address,
                "startblock": 0,
                "endblock": 99999999,
                "page": 1,
                "offset": limit,
                "sort": "desc",
            }
        )
        return _as_list(result)

    async def get_token_transfers(self, address: str, limit: int = 100) -> List[Dict[str, Any]]:
        result = await self._request(
            {
                "module": "account",
                "action": "tokentx",
                "address": address,
                "page": 1,
                "offset": limit,
                "sort": "desc",
            }
        )
        return _as_list(result)

    async def get_contract_source(self, address: str) -> Dict[str, Any]:
        result = await self._request(
            {"module": "contract", "action": "getsourcecode", "address": address}
        )
        entries = _as_list(result)
        return entries[0] if entries else {}

    async def get_gas_oracle(self) -> Dict[str, Any]:
        result = await self._request({"module": "gastracker", "action": "gasoracle"})
        if not isinstance(result, dict):
            raise ExplorerError("Block explorer returned an invalid gas oracle", details=str(result))
        return result

    async def get_latest_block(self) -> int:
        result = await self._request({"module": "proxy", "action": "eth_blockNumber"})
        try:
            return int(str(result), 16)
        except ValueError as e:
            raise ExplorerError("Block explorer returned an invalid block number", details=str(result)) from e


def _as_list(result: Any) -> List[Dict[str, Any]]:
    if isinstance(result, list):
        return result
    raise ExplorerError("Block explorer returned an unexpected result", details=str(result)[:200])
