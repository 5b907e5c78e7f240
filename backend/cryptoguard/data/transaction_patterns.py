from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class TransactionPattern:
    key: str
    method_ids: Tuple[str, ...]
    description: str
    explanation: str
    risk_level: str


# 4-byte selectors of common token and DeFi calls.
KNOWN_METHODS: Mapping[str, str] = MappingProxyType(
    {
        "0xa9059cbb": "transfer(address,uint256)",
        "0x23b872dd": "transferFrom(address,address,uint256)",
        "0x095ea7b3": "approve(address,uint256)",
        "0x7ff36ab5": "swapExactETHForTokens",
        "0x38ed1739": "swapExactTokensForTokens",
        "0x8803dbee": "swapTokensForExactTokens",
        "0xe8eda9df": "deposit(address,uint256,address,uint16)",
        "0xa415bcad": "borrow(address,uint256,uint256,uint16,address)",
        "0x1249c58b": "mint(uint256)",
        "0xdb006a75": "redeem(uint256)",
        "0x2e1a7d4d": "withdraw(uint256)",
        "0xf305d719": "addLiquidity",
    }
)

TRANSACTION_PATTERNS: Tuple[TransactionPattern, ...] = (
    TransactionPattern(
        "dex_swap",
        ("0x7ff36ab5", "0x38ed1739", "0x8803dbee"),
        "Token swap on a DEX",
        "Exchange one token for another using an automated market maker such as Uniswap or PancakeSwap",
        "Low-Medium",
    ),
    TransactionPattern(
        "aave_deposit",
        ("0xe8eda9df", "0x617ba037"),
        "Deposit to Aave lending pool",
        "Deposit cryptocurrency to earn interest in Aave protocol",
        "Medium",
    ),
    TransactionPattern(
        "aave_borrow",
        ("0xa415bcad", "0xc858f5f9"),
        "Borrow from Aave",
        "Borrow cryptocurrency using collateral in Aave protocol",
        "Medium-High",
    ),
    TransactionPattern(
        "compound_supply",
        ("0x1249c58b", "0xa0712d68"),
        "Supply to Compound",
        "Supply cryptocurrency to Compound protocol to earn interest",
        "Medium",
    ),
    TransactionPattern(
        "yield_farming",
        ("0x2e1a7d4d", "0xf305d719"),
        "Yield farming operation",
        "Participating in yield farming to earn additional tokens",
        "Medium-High",
    ),
    TransactionPattern(
        "liquidity_provision",
        ("0xe8e33700", "0xf305d719"),
        "Liquidity provision",
        "Adding liquidity to a trading pair to earn fees",
        "Medium",
    ),
    TransactionPattern(
        "nft_purchase",
        ("0x96b5a755", "0xfb0f3ee1"),
        "NFT purchase",
        "Buying a non-fungible token",
        "High",
    ),
    TransactionPattern(
        "flash_loan",
        ("0x5cffe9de", "0xab9c4b5d"),
        "Flash loan execution",
        "Borrowing and repaying funds within a single transaction",
        "High",
    ),
)

KNOWN_CONTRACTS: Mapping[str, str] = MappingProxyType(
    {
        "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984": "Uniswap Token (UNI)",
        "0x7d1afa7b718fb893db30a3abc0cfc608aacfebb0": "Polygon Matic Token",
        "0xa0b86a33e6776c8e9e49b0f7d5b72c7c2cb7d38e": "Aave Protocol",
        "0x5d3a536e4d6dbd6114cc1ead35777bab161c2115": "Compound cDAI",
        "0x39aa39c021dfbae8fac545936693ac917d5e7563": "Compound cUSDC",
        "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2": "Wrapped Ether (WETH)",
        "0xa0b73e1ff0b80914ab6fe0444e65848c4c34450b": "Cronos Token (CRO)",
        "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599": "Wrapped Bitcoin (WBTC)",
        "0x10ed43c718714eb63d5aa57b78b54704e256024e": "PancakeSwap Router v2",
        "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c": "Wrapped BNB (WBNB)",
    }
)


def match_pattern(method_id: str) -> Optional[TransactionPattern]:
    """First pattern listing ``method_id``; selectors shared by two patterns resolve to the earlier one."""
    method_id = method_id.lower()
    for pattern in TRANSACTION_PATTERNS:
        if method_id in pattern.method_ids:
            return pattern
    return None


def contract_name(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    return KNOWN_CONTRACTS.get(address.lower())
