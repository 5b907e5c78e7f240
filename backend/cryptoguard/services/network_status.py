from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from cryptoguard.core.errors import ExplorerError
from cryptoguard.core.logging import get_logger
from cryptoguard.services.bscscan import BscScanClient

logger = get_logger("network_status")

BSC_CHAIN_ID = 56
BSC_NETWORK_NAME = "BNB Smart Chain"

FALLBACK_GAS_PRICES = {"fast": "6", "standard": "5", "safe": "4"}
FALLBACK_BLOCK_NUMBER = 45_000_000


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class NetworkStatusService:
    def __init__(self, explorer: BscScanClient):
        self.explorer = explorer

    async def gas_prices(self) -> Dict[str, Any]:
        try:
            oracle = await self.explorer.get_gas_oracle()
            fast = oracle["FastGasPrice"]
            standard = oracle["ProposeGasPrice"] if "ProposeGasPrice" in oracle else oracle["StandardGasPrice"]
            safe = oracle["SafeGasPrice"]
            source = "live"
        except (ExplorerError, KeyError) as e:
            logger.warning("⚠️ Gas oracle unavailable, serving fallback prices: %s", e)
            fast, standard, safe = (
                FALLBACK_GAS_PRICES["fast"],
                FALLBACK_GAS_PRICES["standard"],
                FALLBACK_GAS_PRICES["safe"],
            )
            source = "simulated"

        return {
            "gasPrice": f"{safe} gwei",
            "fastGasPrice": f"{fast} gwei",
            "standardGasPrice": f"{standard} gwei",
            "safeGasPrice": f"{safe} gwei",
            "timestamp": _now(),
            "source": source,
        }

    async def latest_block(self) -> Dict[str, Any]:
        try:
            block_number = await self.explorer.get_latest_block()
            network = BSC_NETWORK_NAME
            source = "live"
        except ExplorerError as e:
            logger.warning("⚠️ Latest block unavailable, serving fallback: %s", e.message)
            block_number = FALLBACK_BLOCK_NUMBER
            network = f"{BSC_NETWORK_NAME} (Fallback)"
            source = "simulated"

        return {
            "blockNumber": block_number,
            "chainId": BSC_CHAIN_ID,
            "network": network,
            "timestamp": _now(),
            "source": source,
        }
