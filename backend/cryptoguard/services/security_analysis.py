"""AI security review of a wallet's recent activity.

The dashboard posts what it already fetched from the explorer (transactions,
token transfers, internal transactions, balance and the scanner's risk
factors). The activity is condensed into a summary for the provider; when the
provider cannot be used the answer is built from transaction-pattern rules.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.core.logging import get_logger
from cryptoguard.models.security_analysis import (
    RecommendationCategory,
    RecommendationPriority,
    SecurityAnalysisResult,
    SecurityRecommendation,
)
from cryptoguard.services.ai_pipeline import (
    AIResponsePipeline,
    AnswerSource,
    FallbackAnswer,
    assemble_response,
)
from cryptoguard.services.security_scanner import validate_address
from cryptoguard.services.transaction_analysis import contains_non_finite

logger = get_logger("security_analysis")

RECENT_WINDOW = 20
PATTERN_WINDOW = 10
WEI_PER_BNB = 10**18
HIGH_VALUE_WEI = 10**17
UINT256_LIMIT = 2**256
RAPID_INTERVAL_SECONDS = 60
HIGH_AVERAGE_GAS = 100_000
RISKY_TOKEN_MARKERS = ("safe", "moon", "doge")

SYSTEM_PROMPT = """You are CryptoGuard AI, an expert blockchain security analyst specializing in BNB Smart Chain wallet security.

You receive a summary of one wallet's recent activity: balance, transaction behaviour, token activity, contract interactions and the risk factors found by an automated scanner. Cross-reference transaction patterns with token activity, look for risky DeFi protocol interactions, possible MEV or sandwich attacks, gas optimisation opportunities and token approval risks.

Respond with a single JSON object and nothing else:
{
  "analysis": "Security assessment covering the overall risk level, key findings and best practices for this wallet",
  "riskLevel": "Critical|High|Medium|Low",
  "recommendations": [
    {
      "title": "Short title",
      "description": "What was found and why it matters",
      "priority": "low|medium|high|critical",
      "category": "transaction|token|defi|security|gas",
      "actionable": true,
      "recommendation": "The concrete step to take"
    }
  ]
}

Give at most 8 recommendations, most important first, specific to this wallet's risk profile."""


@dataclass
class WalletActivity:
    wallet_address: Optional[str] = None
    balance_wei: int = 0
    transactions: List[Dict[str, Any]] = field(default_factory=list)
    token_transfers: List[Dict[str, Any]] = field(default_factory=list)
    internal_transactions: List[Dict[str, Any]] = field(default_factory=list)
    risk_factors: List[str] = field(default_factory=list)

    @property
    def balance_bnb(self) -> float:
        return self.balance_wei / WEI_PER_BNB


def _records(value: Any, message: str) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise RequestValidationFailed(message)
    return value


def _to_wei(value: Any) -> Optional[int]:
    """Non-negative uint256 from an integer or decimal string, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0 or amount.adjusted() > 77:
        return None
    wei = int(amount)
    return wei if wei < UINT256_LIMIT else None


def parse_balance(balance: Any) -> int:
    """Balance in wei; accepts integers and decimal strings."""
    if balance is None or balance == "":
        return 0
    wei = _to_wei(balance)
    if wei is None:
        raise RequestValidationFailed("Balance must be a non-negative amount in wei")
    return wei


def validate_security_analysis_request(
    wallet_address: Any,
    balance: Any,
    transactions: Any,
    token_transfers: Any,
    internal_transactions: Any,
    risk_factors: Any,
) -> WalletActivity:
    if not isinstance(transactions, list) or not all(isinstance(tx, dict) for tx in transactions):
        raise RequestValidationFailed("Invalid transactions data")
    transfers = _records(token_transfers, "Invalid token transfers data")
    internal = _records(internal_transactions, "Invalid internal transactions data")

    if risk_factors is None:
        risk_factors = []
    if not isinstance(risk_factors, list):
        raise RequestValidationFailed("Risk factors must be a list")

    if contains_non_finite([transactions, transfers, internal, risk_factors, balance]):
        raise RequestValidationFailed("Wallet activity must not contain NaN or Infinity")

    address = None
    if wallet_address:
        address = validate_address(wallet_address, "Wallet")

    return WalletActivity(
        wallet_address=address,
        balance_wei=parse_balance(balance),
        transactions=transactions,
        token_transfers=transfers,
        internal_transactions=internal,
        risk_factors=[str(factor) for factor in risk_factors],
    )


def _wei(value: Any) -> int:
    return _to_wei(value) or 0


def _bnb(wei: int) -> str:
    return f"{wei / WEI_PER_BNB:.4f}"


def _timestamp(tx: Dict[str, Any]) -> int:
    try:
        return int(str(tx.get("timeStamp", "0")))
    except ValueError:
        return 0


def _failed(tx: Dict[str, Any]) -> bool:
    return str(tx.get("isError")) == "1"


def _short(address: Any, wallet_address: Optional[str]) -> str:
    text = str(address or "")
    if wallet_address and text.lower() == wallet_address.lower():
        return "YOU"
    return text[:6] + "..."


def suspicious_patterns(transactions: List[Dict[str, Any]]) -> List[str]:
    patterns = []
    if not transactions:
        return patterns

    window = transactions[:PATTERN_WINDOW]
    rapid = [
        tx
        for previous, tx in zip(window, window[1:])
        if _timestamp(previous) - _timestamp(tx) < RAPID_INTERVAL_SECONDS
    ]
    if len(rapid) > 3:
        patterns.append("Rapid transaction pattern detected (potential bot activity)")

    failed = [tx for tx in transactions if _failed(tx)]
    if len(failed) > len(transactions) * 0.1:
        patterns.append("High failure rate detected (>10% of transactions failed)")

    average_gas = sum(_wei(tx.get("gasUsed")) for tx in transactions) / len(transactions)
    if average_gas > HIGH_AVERAGE_GAS:
        patterns.append("High average gas usage detected (complex contract interactions)")

    return patterns


def base_security_score(
    transactions: List[Dict[str, Any]],
    token_transfers: List[Dict[str, Any]],
    risk_factors: List[str],
) -> int:
    """100 minus weighted deductions, floored at 10."""
    score = 100.0
    score -= len(risk_factors) * 15
    if transactions:
        score -= sum(1 for tx in transactions if _failed(tx)) / len(transactions) * 30
    risky_tokens = [
        tx
        for tx in token_transfers
        if any(marker in str(tx.get("tokenSymbol") or "").lower() for marker in RISKY_TOKEN_MARKERS)
    ]
    score -= len(risky_tokens) * 10
    return max(round(score), 10)


def summarize_wallet_activity(activity: WalletActivity) -> Dict[str, Any]:
    recent = activity.transactions[:RECENT_WINDOW]
    recent_gas = [_wei(tx.get("gasUsed")) for tx in recent]
    return {
        "walletAddress": activity.wallet_address,
        "balance": {"bnb": _bnb(activity.balance_wei), "raw": str(activity.balance_wei)},
        "transactionAnalysis": {
            "totalTransactions": len(activity.transactions),
            "recentCount": len(recent),
            "failedTransactions": sum(1 for tx in recent if _failed(tx)),
            "averageGasUsed": round(sum(recent_gas) / len(recent_gas)) if recent_gas else 0,
            "highValueTransactions": sum(1 for tx in recent if _wei(tx.get("value")) > HIGH_VALUE_WEI),
            "totalValueBnb": _bnb(sum(_wei(tx.get("value")) for tx in recent)),
            "uniqueContracts": len({str(tx.get("to") or "").lower() for tx in recent}),
        },
        "tokenActivity": {
            "totalTokenTransfers": len(activity.token_transfers),
            "uniqueTokens": len({str(tx.get("contractAddress") or "").lower() for tx in activity.token_transfers}),
            "recentTokenTransfers": [
                {
                    "token": tx.get("tokenSymbol") or "Unknown",
                    "value": str(tx.get("value") or "0"),
                    "from": _short(tx.get("from"), activity.wallet_address),
                    "to": _short(tx.get("to"), activity.wallet_address),
                }
                for tx in activity.token_transfers[:10]
            ],
        },
        "internalActivity": {
            "totalInternalTransactions": len(activity.internal_transactions),
            "contractCalls": sum(1 for tx in activity.internal_transactions if tx.get("type") == "call"),
            "creates": sum(1 for tx in activity.internal_transactions if tx.get("type") == "create"),
        },
        "securityIndicators": {
            "riskFactors": activity.risk_factors,
            "suspiciousPatterns": suspicious_patterns(recent),
            "securityScore": base_security_score(recent, activity.token_transfers, activity.risk_factors),
        },
        "recentActivity": [
            {
                "hash": str(tx.get("hash") or "")[:10] + "...",
                "type": "Transfer" if str(tx.get("input") or "0x") == "0x" else "Contract Call",
                "valueBnb": _bnb(_wei(tx.get("value"))),
                "status": "FAILED" if _failed(tx) else "SUCCESS",
                "timeStamp": _timestamp(tx),
            }
            for tx in recent[:5]
        ],
    }


def _risk_band(risk_count: int) -> Tuple[str, int]:
    if risk_count >= 5:
        return "HIGH", 8
    if risk_count >= 3:
        return "MEDIUM", 5
    if risk_count >= 1:
        return "LOW-MEDIUM", 3
    return "LOW", 0


def security_analysis_fallback(activity: WalletActivity) -> FallbackAnswer:
    """Pattern-based report from transaction, token and risk-factor counts. Never raises."""
    total_tx = len(activity.transactions)
    risk_count = len(activity.risk_factors)
    balance_bnb = activity.balance_bnb
    has_high_value = any(_wei(tx.get("value")) > WEI_PER_BNB for tx in activity.transactions[:PATTERN_WINDOW])
    has_frequent = total_tx > 50
    has_tokens = bool(activity.token_transfers)
    has_internal = bool(activity.internal_transactions)
    risk_level, risk_score = _risk_band(risk_count)

    findings = [
        "High-value transactions detected: consider a hardware wallet or a multi-sig setup."
        if has_high_value
        else "Transaction values appear normal for typical usage.",
        "High trading activity: consider a dedicated trading wallet and regular security audits."
        if has_frequent
        else "Moderate activity level.",
        "Token transfers found: review token approvals regularly and be cautious of unknown token contracts."
        if has_tokens
        else "Limited token activity, mostly BNB transfers.",
        "Smart contract interactions detected: review contract permissions and monitor for suspicious calls."
        if has_internal
        else "Transactions appear to be direct wallet-to-wallet transfers.",
    ]
    analysis = "\n".join(
        [
            "CRYPTOGUARD SECURITY ANALYSIS (pattern-based)",
            "",
            f"Address: {activity.wallet_address or 'Unknown'}",
            f"Balance: {balance_bnb:.4f} BNB",
            f"Total transactions: {total_tx}",
            f"Token transfers: {len(activity.token_transfers)}",
            f"Internal transactions: {len(activity.internal_transactions)}",
            "",
            f"Risk level: {risk_level}",
            f"Risk score: {risk_score}/10",
            f"Risk factors detected: {risk_count}",
            "",
            *(f"- {finding}" for finding in findings),
            "",
            "This analysis was generated from transaction patterns without AI.",
        ]
    )

    if risk_count > 3:
        review_priority = RecommendationPriority.HIGH
    elif risk_count > 1:
        review_priority = RecommendationPriority.MEDIUM
    else:
        review_priority = RecommendationPriority.LOW
    large_holdings = balance_bnb > 10

    recommendations = [
        SecurityRecommendation(
            id="1",
            title="Review Risk Factors",
            description=f"{risk_count} risk factors detected in your wallet activity. Review and address these security concerns.",
            priority=review_priority,
            category=RecommendationCategory.SECURITY,
            recommendation="Check the risk factors section and take recommended actions",
        ),
        SecurityRecommendation(
            id="2",
            title="Hardware Wallet Recommendation",
            description=(
                "Your wallet holds significant funds. Consider using a hardware wallet for enhanced security."
                if large_holdings
                else "As your holdings grow, consider upgrading to a hardware wallet."
            ),
            priority=RecommendationPriority.HIGH if large_holdings else RecommendationPriority.MEDIUM,
            category=RecommendationCategory.SECURITY,
            recommendation="Research Ledger or Trezor hardware wallets",
        ),
        SecurityRecommendation(
            id="3",
            title="Enable Transaction Monitoring",
            description="Set up alerts for large transactions and suspicious activities.",
            priority=RecommendationPriority.MEDIUM,
            category=RecommendationCategory.SECURITY,
            recommendation="Configure wallet notifications and monitoring tools",
        ),
    ]
    if has_tokens:
        recommendations.append(
            SecurityRecommendation(
                id="4",
                title="Token Approval Management",
                description="Token transfer activity detected. Regularly review and revoke unused token approvals.",
                priority=RecommendationPriority.MEDIUM,
                category=RecommendationCategory.TOKEN,
                recommendation="Use tools like Revoke.cash to manage token approvals",
            )
        )
    if has_frequent:
        recommendations.append(
            SecurityRecommendation(
                id="5",
                title="Separate Trading Wallet",
                description="High transaction frequency detected. Consider using a separate wallet for trading activities.",
                priority=RecommendationPriority.LOW,
                category=RecommendationCategory.SECURITY,
                recommendation="Create dedicated wallets for different activities (trading, holding, DeFi)",
            )
        )

    result = SecurityAnalysisResult(analysis=analysis, risk_level=risk_level, recommendations=recommendations)
    return FallbackAnswer(payload=result.to_payload(), source=AnswerSource.FALLBACK_PATTERN)


class SecurityAnalysisService:
    def __init__(self, pipeline: AIResponsePipeline):
        self.pipeline = pipeline

    async def analyze(self, activity: WalletActivity) -> Dict[str, Any]:
        logger.info(
            "🛡️ Security analysis for %s: %d transactions, %d token transfers, %d risk factors",
            activity.wallet_address or "unknown wallet",
            len(activity.transactions),
            len(activity.token_transfers),
            len(activity.risk_factors),
        )
        summary = summarize_wallet_activity(activity)

        outcome = await self.pipeline.run(
            SYSTEM_PROMPT,
            f"Wallet activity summary:\n{json.dumps(summary, indent=2)}",
            SecurityAnalysisResult,
            lambda: security_analysis_fallback(activity),
        )

        response = assemble_response(
            outcome,
            self.pipeline.quota,
            walletAddress=activity.wallet_address,
            walletBalance=str(activity.balance_wei),
            totalTransactions=len(activity.transactions),
            totalTokenTransfers=len(activity.token_transfers),
            totalInternalTransactions=len(activity.internal_transactions),
            riskFactors=len(activity.risk_factors),
        )
        response["securityScore"] = summary["securityIndicators"]["securityScore"]
        response["suspiciousPatterns"] = summary["securityIndicators"]["suspiciousPatterns"]
        return response
