from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class DefiProtocol:
    key: str
    name: str
    type: str
    blockchain: str
    description: str
    risk_level: str
    tvl: str
    features: Tuple[str, ...] = field(default_factory=tuple)
    risks: Tuple[str, ...] = field(default_factory=tuple)
    how_it_works: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "protocol": self.name,
            "type": self.type,
            "description": self.description,
            "blockchain": self.blockchain,
            "tvl": self.tvl,
            "riskLevel": self.risk_level,
            "features": list(self.features),
            "risks": list(self.risks),
            "howItWorks": self.how_it_works,
        }


# Base points per protocol risk label, used by the amount-based risk assessment.
RISK_LEVEL_SCORES: Mapping[str, int] = MappingProxyType(
    {"Low": 1, "Medium": 2, "Medium-High": 3, "High": 4}
)

_PROTOCOLS = (
    DefiProtocol(
        key="uniswap",
        name="Uniswap",
        type="Decentralized Exchange (DEX)",
        blockchain="Ethereum, Polygon, Arbitrum",
        description="Automated market maker (AMM) allowing users to swap tokens and provide liquidity",
        risk_level="Medium",
        tvl="$4.2B+",
        features=("Token swapping", "Liquidity provision", "Yield farming", "Governance"),
        risks=("Impermanent loss", "Smart contract risk", "Front-running"),
        how_it_works="Users provide liquidity to trading pairs and earn fees from trades",
    ),
    DefiProtocol(
        key="aave",
        name="Aave",
        type="Lending Protocol",
        blockchain="Ethereum, Polygon, Avalanche",
        description="Decentralized lending platform for borrowing and lending cryptocurrencies",
        risk_level="Medium-High",
        tvl="$6.8B+",
        features=("Lending", "Borrowing", "Flash loans", "Collateral swapping"),
        risks=("Liquidation risk", "Interest rate volatility", "Smart contract risk"),
        how_it_works="Users deposit crypto to earn interest or use it as collateral to borrow other assets",
    ),
    DefiProtocol(
        key="compound",
        name="Compound",
        type="Lending Protocol",
        blockchain="Ethereum",
        description="Algorithmic money market protocol for lending and borrowing",
        risk_level="Medium",
        tvl="$2.1B+",
        features=("Lending", "Borrowing", "Algorithmic interest rates", "Governance"),
        risks=("Liquidation risk", "Governance attacks", "Smart contract risk"),
        how_it_works="Interest rates are determined algorithmically based on supply and demand",
    ),
    DefiProtocol(
        key="makerdao",
        name="MakerDAO",
        type="CDP Platform",
        blockchain="Ethereum",
        description="Decentralized protocol for generating DAI stablecoin through collateralized debt positions",
        risk_level="Medium-High",
        tvl="$8.5B+",
        features=("DAI stablecoin", "Collateralized debt positions", "Governance", "Stability fee"),
        risks=("Liquidation risk", "Governance risk", "Black swan events"),
        how_it_works="Users lock collateral to mint DAI stablecoin, maintaining overcollateralization",
    ),
    DefiProtocol(
        key="curve",
        name="Curve Finance",
        type="Stableswap DEX",
        blockchain="Ethereum, Polygon, Arbitrum",
        description="DEX optimized for stablecoin and similar asset trading with low slippage",
        risk_level="Medium",
        tvl="$3.8B+",
        features=("Stablecoin swapping", "Liquidity provision", "Yield farming", "Vote-locked governance"),
        risks=("Impermanent loss", "Smart contract risk", "Governance manipulation"),
        how_it_works="Uses specialized bonding curves for efficient stablecoin and similar asset trading",
    ),
    DefiProtocol(
        key="pancakeswap",
        name="PancakeSwap",
        type="Decentralized Exchange (DEX)",
        blockchain="BNB Smart Chain, Ethereum",
        description="Leading AMM on BNB Chain for swapping BEP-20 tokens, farming and staking CAKE",
        risk_level="Medium",
        tvl="$1.8B+",
        features=("Token swapping", "Liquidity farms", "Syrup pools", "Lottery and prediction markets"),
        risks=("Impermanent loss", "Smart contract risk", "Scam tokens listed permissionlessly"),
        how_it_works="Liquidity providers deposit token pairs and earn trading fees plus CAKE farm rewards",
    ),
    DefiProtocol(
        key="venus",
        name="Venus Protocol",
        type="Lending Protocol",
        blockchain="BNB Smart Chain",
        description="Algorithmic money market and synthetic stablecoin (VAI) protocol on BNB Chain",
        risk_level="Medium-High",
        tvl="$1.5B+",
        features=("Lending", "Borrowing", "VAI stablecoin minting", "XVS governance"),
        risks=("Liquidation risk", "Oracle manipulation", "Collateral price crashes"),
        how_it_works="Users supply assets as collateral to earn interest and borrow other assets against it",
    ),
)

DEFI_PROTOCOLS: Mapping[str, DefiProtocol] = MappingProxyType({p.key: p for p in _PROTOCOLS})


def resolve_protocol(text: str) -> Optional[DefiProtocol]:
    """First protocol whose key occurs in ``text`` (case-insensitive)."""
    lowered = text.lower()
    for key, protocol in DEFI_PROTOCOLS.items():
        if key in lowered:
            return protocol
    return None
