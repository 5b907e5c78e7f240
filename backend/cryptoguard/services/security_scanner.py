"""Heuristic risk scoring for BNB Smart Chain wallets and contracts.

Scores are additive weights over explorer data (transaction history, token
transfers, verified source code), clamped to 0..100 and bucketed into
safe / warning / danger. When the explorer cannot be used the scan service
answers with a deterministic simulated report seeded by the address and
tagged ``source="simulated"`` so callers never mistake it for live data.
"""

from __future__ import annotations

import hashlib
import random
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from cryptoguard.core.errors import ExplorerError, RequestValidationFailed
from cryptoguard.core.logging import get_logger
from cryptoguard.models.common import RiskLevel
from cryptoguard.models.scanner import (
    ContractDetails,
    DefiInteraction,
    NetworkInfo,
    ScanReport,
    ScanSource,
    SecurityStatus,
)
from cryptoguard.services.bscscan import BscScanClient
from cryptoguard.services.result_cache import ResultCache

logger = get_logger("security_scanner")

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
WEI_PER_BNB = Decimal(10**18)
HIGH_GAS_PRICE_WEI = 20_000_000_000
DAY_SECONDS = 24 * 60 * 60
UNKNOWN_PROTOCOL = "Unknown"

TRUSTED_CONTRACTS: Mapping[str, str] = {
    address.lower(): name
    for address, name in (
        ("0x10ED43C718714eb63d5aA57B78B54704E256024E", "PancakeSwap Router V2"),
        ("0xcA143Ce32Fe78f1f7019d7d551a6402fC5350c73", "PancakeSwap Factory"),
        ("0xfb6115445Bff7b52FeB98650C87f44907E58f802", "Venus Protocol"),
        ("0x0E09FaBB73Bd3Ade0a17ECC321fD13a19e81cE82", "CAKE Token"),
        ("0xe9e7CEA3DedcA5984780Bafc599bD69ADd087D56", "BUSD"),
        ("0x55d398326f99059fF775485246999027B3197955", "USDT"),
        ("0x2170Ed0880ac9A755fd29B2688956BD959F933F8", "ETH"),
        ("0x7130d2A12B9BCbFAe4f2634d864A1Ee1Ce3Ead9c", "BTCB"),
    )
}

# Optional probes; each returns None when the answer is unknown.
HoneypotProbe = Callable[[str], Awaitable[Optional[bool]]]
LiquidityProbe = Callable[[str], Awaitable[Optional[bool]]]


@dataclass
class Findings:
    threats: List[str] = field(default_factory=list)
    score: int = 0

    def add(self, threat: Optional[str], points: int) -> None:
        if threat:
            self.threats.append(threat)
        self.score += points

    def merge(self, other: "Findings") -> None:
        self.threats.extend(other.threats)
        self.score += other.score


def validate_address(address: Any, kind: str = "Wallet") -> str:
    if not isinstance(address, str) or not address.strip():
        raise RequestValidationFailed(f"{kind} address is required")
    address = address.strip()
    if not ADDRESS_PATTERN.match(address):
        raise RequestValidationFailed("Invalid BNB Chain address format")
    return address


def security_status(score: int) -> SecurityStatus:
    if score <= 30:
        return SecurityStatus.SAFE
    if score <= 60:
        return SecurityStatus.WARNING
    return SecurityStatus.DANGER


def clamp_score(score: int) -> int:
    return max(0, min(100, score))


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def format_bnb(wei: int) -> str:
    return str((Decimal(wei) / WEI_PER_BNB).quantize(Decimal("0.0001")))


def analyze_transaction_patterns(transactions: List[Dict[str, Any]], now: float) -> Findings:
    findings = Findings()
    if not transactions:
        return findings
    total = len(transactions)

    recent = [tx for tx in transactions if now - _int(tx.get("timeStamp")) < DAY_SECONDS]
    if len(recent) > 50:
        findings.add("High-frequency transaction activity detected", 20)

    failed = [tx for tx in transactions if str(tx.get("isError")) == "1"]
    if len(failed) > total * 0.3:
        findings.add("High failed transaction rate - possible failed attacks", 15)

    high_gas = [tx for tx in transactions if _int(tx.get("gasPrice")) > HIGH_GAS_PRICE_WEI]
    if len(high_gas) > total * 0.5:
        findings.add("Frequent high gas price transactions - MEV activity possible", 10)

    value_counts: Dict[str, int] = {}
    for tx in transactions:
        value = str(tx.get("value", "0"))
        value_counts[value] = value_counts.get(value, 0) + 1
    if any(count > 10 and value != "0" for value, count in value_counts.items()):
        findings.add("Repetitive transaction amounts detected", 10)

    return findings


def find_flagged_counterparties(
    transactions: Iterable[Dict[str, Any]], blacklist: FrozenSet[str]
) -> List[str]:
    flagged: List[str] = []
    for tx in transactions:
        for party in (tx.get("to"), tx.get("from")):
            if party and party.lower() in blacklist and party.lower() not in flagged:
                flagged.append(party.lower())
    return flagged


def analyze_defi_interactions(
    transactions: Iterable[Dict[str, Any]], trusted: Mapping[str, str]
) -> Tuple[List[DefiInteraction], Findings]:
    interactions: List[DefiInteraction] = []
    findings = Findings()

    for tx in transactions:
        if str(tx.get("value")) != "0" or tx.get("input") in (None, "", "0x"):
            continue
        to_address = (tx.get("to") or "").lower()
        protocol = trusted.get(to_address, UNKNOWN_PROTOCOL)
        interactions.append(
            DefiInteraction(
                protocol=protocol,
                contract_address=to_address or None,
                risk_level=RiskLevel.MEDIUM if protocol == UNKNOWN_PROTOCOL else RiskLevel.LOW,
                timestamp=datetime.fromtimestamp(_int(tx.get("timeStamp")), tz=timezone.utc),
            )
        )
        if protocol == UNKNOWN_PROTOCOL:
            findings.add(None, 5)

    unknown = sum(1 for i in interactions if i.protocol == UNKNOWN_PROTOCOL)
    if unknown > 10:
        findings.add("Multiple interactions with unverified DeFi protocols", 15)
    return interactions, findings


def analyze_token_holdings(transfers: Iterable[Dict[str, Any]]) -> Tuple[int, Findings]:
    findings = Findings()
    tokens = {str(t.get("contractAddress", "")).lower() for t in transfers if t.get("contractAddress")}
    if len(tokens) > 50:
        findings.add("Holding unusually large number of different tokens", 10)
    return len(tokens), findings


def analyze_source_code(source: str) -> Dict[str, Any]:
    lowered = source.lower()
    features: Dict[str, Any] = {
        "is_bep20": "ibep20" in lowered
        or "bep20" in lowered
        or ("totalsupply" in lowered and "transfer" in lowered),
        "can_mint": "function mint" in lowered or "_mint" in lowered,
        "can_pause": "pausable" in lowered or "function pause" in lowered,
        "has_blacklist": any(marker in lowered for marker in ("blacklist", "blocked", "banned")),
        "has_proxy_pattern": any(marker in lowered for marker in ("delegatecall", "proxy", "implementation")),
        "has_upgradeability": "upgrade" in lowered,
        "vulnerabilities": [],
    }
    if "selfdestruct" in lowered:
        features["vulnerabilities"].append("Contract contains selfdestruct function")
    if "tx.origin" in lowered:
        features["vulnerabilities"].append("Uses tx.origin instead of msg.sender")
    features["ownership_risk"] = ownership_risk(lowered, features)
    return features


def ownership_risk(lowered_source: str, features: Dict[str, Any]) -> RiskLevel:
    """Owner-gated privileges (mint, blacklist, pause) raise ownership risk unless ownership is renounced."""
    owner_gated = "onlyowner" in lowered_source or "ownable" in lowered_source
    if not owner_gated or "renounceownership()" in lowered_source.replace(" ", ""):
        return RiskLevel.LOW
    privileges = sum(1 for key in ("can_mint", "has_blacklist", "can_pause") if features[key])
    if privileges >= 2:
        return RiskLevel.HIGH
    if privileges == 1:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def rug_pull_risk(details: ContractDetails) -> RiskLevel:
    factors = 0
    if not details.is_verified:
        factors += 2
    if details.can_mint:
        factors += 2
    if details.liquidity_locked is False:
        factors += 3
    if details.has_blacklist:
        factors += 1
    if details.ownership_risk == RiskLevel.HIGH:
        factors += 2

    if factors >= 6:
        return RiskLevel.HIGH
    if factors >= 3:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def wallet_recommendations(report: ScanReport) -> List[str]:
    recommendations = [
        "Use a hardware wallet for large BNB amounts",
        "Regularly review and revoke token approvals",
        "Be cautious with new DeFi protocols on BSC",
        "Monitor transactions for unusual patterns",
    ]
    if Decimal(report.bnb_balance or "0") > 10:
        recommendations.append("Consider using a multi-signature wallet for large holdings")
    if (report.token_count or 0) > 20:
        recommendations.append("Review your token portfolio for unused/risky tokens")
    if report.risk_score > 50:
        recommendations.insert(0, "URGENT: Review recent transactions for unauthorized activity")
    return recommendations


def contract_recommendations(details: ContractDetails) -> List[str]:
    recommendations: List[str] = []
    if not details.is_verified:
        recommendations.append("CRITICAL: Verify contract source code before interaction")
    if details.is_honeypot:
        recommendations.append("⚠️ AVOID: This appears to be a honeypot contract")
    if details.rug_pull_risk == RiskLevel.HIGH:
        recommendations.append("HIGH RISK: Significant rug pull indicators detected")
    if details.can_mint:
        recommendations.append("Be aware of unlimited minting capability")
    if details.liquidity_locked is False:
        recommendations.append("Liquidity not locked - verify team commitment")
    recommendations.extend(
        [
            "Check for recent security audits",
            "Start with small test transactions",
            "Research the project team and community",
        ]
    )
    return recommendations


class RiskHeuristicScorer:
    def __init__(
        self,
        explorer: BscScanClient,
        trusted_contracts: Mapping[str, str] = TRUSTED_CONTRACTS,
        blacklist: Iterable[str] = (),
        honeypot_probe: Optional[HoneypotProbe] = None,
        liquidity_probe: Optional[LiquidityProbe] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.explorer = explorer
        self.trusted_contracts = {k.lower(): v for k, v in trusted_contracts.items()}
        self.blacklist = frozenset(address.lower() for address in blacklist)
        self.honeypot_probe = honeypot_probe
        self.liquidity_probe = liquidity_probe
        self._clock = clock

    async def score_wallet(self, address: str) -> ScanReport:
        balance_wei = await self.explorer.get_balance(address)
        transactions = await self.explorer.get_transactions(address)
        transfers = await self.explorer.get_token_transfers(address)

        findings = analyze_transaction_patterns(transactions, self._clock())

        flagged = find_flagged_counterparties(transactions, self.blacklist)
        if flagged:
            findings.add(f"Interactions with {len(flagged)} flagged addresses", 40)

        interactions, defi_findings = analyze_defi_interactions(transactions, self.trusted_contracts)
        findings.merge(defi_findings)

        token_count, token_findings = analyze_token_holdings(transfers)
        findings.merge(token_findings)

        score = clamp_score(findings.score)
        report = ScanReport(
            address=address,
            risk_score=score,
            status=security_status(score),
            threats=findings.threats,
            bnb_balance=format_bnb(balance_wei),
            token_count=token_count,
            defi_interactions=interactions,
            source=ScanSource.LIVE,
            last_scanned=datetime.now(timezone.utc),
        )
        report.recommendations = wallet_recommendations(report)
        logger.info("🛡️ Wallet %s scored %s (%s)", address, score, report.status.value)
        return report

    async def score_contract(self, address: str) -> ScanReport:
        source_info = await self.explorer.get_contract_source(address)
        source_code = str(source_info.get("SourceCode") or "")
        details = ContractDetails(
            is_verified=bool(source_code),
            compiler=str(source_info.get("CompilerVersion") or ""),
        )
        findings = Findings()

        if not details.is_verified:
            findings.add("Contract source code not verified", 30)
        else:
            for key, value in analyze_source_code(source_code).items():
                setattr(details, key, value)
            if details.can_mint:
                findings.add("Contract can mint unlimited tokens", 20)
            if details.has_blacklist:
                findings.add("Contract can blacklist addresses", 25)
            if details.has_proxy_pattern:
                findings.add("Contract uses proxy pattern - code can be changed", 15)
            for vulnerability in details.vulnerabilities:
                findings.add(vulnerability, 0)

        if self.honeypot_probe is not None and await self.honeypot_probe(address):
            details.is_honeypot = True
            findings.add("WARNING: Potential honeypot detected", 60)

        if self.liquidity_probe is not None:
            details.liquidity_locked = await self.liquidity_probe(address)
        if details.liquidity_locked is False and details.is_bep20:
            findings.add("Liquidity not locked - rug pull risk", 30)

        details.rug_pull_risk = rug_pull_risk(details)

        score = clamp_score(findings.score)
        report = ScanReport(
            address=address,
            risk_score=score,
            status=security_status(score),
            threats=findings.threats,
            recommendations=contract_recommendations(details),
            contract_details=details,
            source=ScanSource.LIVE,
            last_scanned=datetime.now(timezone.utc),
        )
        logger.info("🛡️ Contract %s scored %s (%s)", address, score, report.status.value)
        return report


def _seeded_random(address: str) -> random.Random:
    digest = hashlib.sha256(address.lower().encode("utf-8")).hexdigest()
    return random.Random(int(digest[:16], 16))


def simulated_wallet_report(address: str, reason: str) -> ScanReport:
    rng = _seeded_random(address)
    findings = Findings(score=rng.randint(5, 35))
    if rng.random() > 0.8:
        findings.add("High-frequency PancakeSwap interactions detected", 20)
    if rng.random() > 0.9:
        findings.add("Interaction with unverified BEP-20 contracts", 15)
    if rng.random() > 0.85:
        findings.add("Multiple DeFi yield farming activities", 10)

    score = clamp_score(findings.score)
    report = ScanReport(
        address=address,
        risk_score=score,
        status=security_status(score),
        threats=findings.threats,
        bnb_balance=f"{rng.uniform(0, 10):.4f}",
        token_count=rng.randint(0, 14),
        network_info=NetworkInfo(gas_price="5 gwei"),
        source=ScanSource.SIMULATED,
        simulation_reason=reason,
        last_scanned=datetime.now(timezone.utc),
    )
    report.recommendations = wallet_recommendations(report)
    return report


def simulated_contract_report(address: str, reason: str) -> ScanReport:
    rng = _seeded_random(address)
    details = ContractDetails(
        is_verified=rng.random() > 0.3,
        compiler="v0.8.19+commit.7dd6d404",
        is_bep20=True,
        can_mint=rng.random() > 0.7,
        has_blacklist=rng.random() > 0.85,
    )
    findings = Findings(score=rng.randint(0, 15))
    if not details.is_verified:
        findings.add("Contract source code not verified", 30)
    if details.can_mint:
        findings.add("Contract can mint unlimited tokens", 20)
    if details.has_blacklist:
        findings.add("Contract can blacklist addresses", 25)
    details.rug_pull_risk = rug_pull_risk(details)

    score = clamp_score(findings.score)
    return ScanReport(
        address=address,
        risk_score=score,
        status=security_status(score),
        threats=findings.threats,
        recommendations=contract_recommendations(details),
        contract_details=details,
        source=ScanSource.SIMULATED,
        simulation_reason=reason,
        last_scanned=datetime.now(timezone.utc),
    )


class SecurityScanService:
    """Live scans through the scorer, cached; simulated reports when the explorer fails."""

    def __init__(self, scorer: RiskHeuristicScorer, cache: ResultCache[ScanReport]):
        self.scorer = scorer
        self.cache = cache

    async def scan_wallet(self, address: str) -> ScanReport:
        return await self._scan("wallet", address, self.scorer.score_wallet, simulated_wallet_report)

    async def scan_contract(self, address: str) -> ScanReport:
        return await self._scan("contract", address, self.scorer.score_contract, simulated_contract_report)

    async def _scan(
        self,
        kind: str,
        address: str,
        score: Callable[[str], Awaitable[ScanReport]],
        simulate: Callable[[str, str], ScanReport],
    ) -> ScanReport:
        key = f"{kind}:{address.lower()}"
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s scan of %s", kind, address)
            return cached

        try:
            report = await score(address)
        except ExplorerError as e:
            logger.warning("⚠️ %s scan of %s fell back to simulation: %s", kind.capitalize(), address, e.message)
            return simulate(address, f"Block explorer unavailable: {e.message}")

        self.cache.set(key, report)
        return report
