from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, Optional, Tuple

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.core.logging import get_logger
from cryptoguard.data.transaction_patterns import KNOWN_METHODS, contract_name, match_pattern
from cryptoguard.models.transaction import (
    TransactionAnalysisResult,
    TransactionAnalysisType,
    TransactionSummary,
)
from cryptoguard.services.ai_pipeline import (
    AIResponsePipeline,
    AnswerSource,
    FallbackAnswer,
    assemble_response,
)

logger = get_logger("transaction_analysis")

TX_HASH_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")
WEI_PER_BNB = 10**18
HIGH_GAS_COST_BNB = 0.01
UINT256_LIMIT = 2**256

SYSTEM_PROMPT = """You are an expert blockchain transaction analyst specializing in DeFi protocols on BNB Smart Chain and Ethereum. Analyze the provided transaction data and explain it in simple terms.

Analysis Type: {analysis_type}

Respond with a single JSON object and nothing else:
{{
  "analysis": {{
    "type": "Transaction type (swap, deposit, borrow, etc.)",
    "protocol": "DeFi protocol involved",
    "description": "What this transaction does",
    "explanation": "Detailed explanation in simple terms",
    "riskLevel": "Low|Medium|High",
    "purpose": "Why someone would make this transaction",
    "breakdown": {{"from": "sender", "to": "receiver or contract", "value": "value transferred"}}
  }},
  "risks": ["immediate or ongoing risks"],
  "recommendations": ["what to monitor or do next"],
  "warnings": ["red flags, if any"]
}}

Focus on making complex DeFi transactions understandable."""


def validate_transaction_request(
    transaction_hash: Any, transaction_data: Any, analysis_type: Any
) -> Tuple[Optional[str], Optional[Dict[str, Any]], TransactionAnalysisType]:
    if not transaction_hash and not transaction_data:
        raise RequestValidationFailed("Either transaction hash or transaction data is required")
    if transaction_hash and (
        not isinstance(transaction_hash, str) or not TX_HASH_PATTERN.match(transaction_hash)
    ):
        raise RequestValidationFailed(
            "Invalid transaction hash format. Expected 0x followed by 64 hex characters"
        )
    if transaction_data is not None and not isinstance(transaction_data, dict):
        raise RequestValidationFailed("Transaction data must be an object")
    if transaction_data is not None and contains_non_finite(transaction_data):
        raise RequestValidationFailed("Transaction data must not contain NaN or Infinity")
    try:
        kind = TransactionAnalysisType(analysis_type or TransactionAnalysisType.FULL.value)
    except ValueError:
        raise RequestValidationFailed("Invalid analysis type. Use: full, quick, or security")
    return transaction_hash or None, transaction_data or None, kind


def decode_transaction_input(input_data: Optional[str]) -> Dict[str, Any]:
    if not input_data or input_data == "0x":
        return {"type": "Simple Transfer", "description": "Direct token or BNB transfer"}

    method_id = input_data[:10].lower()
    method_name = KNOWN_METHODS.get(method_id)
    return {
        "methodId": method_id,
        "methodName": method_name or "Unknown Method",
        "inputData": input_data,
        "decodedPartially": method_name is not None,
    }


def contains_non_finite(value: Any) -> bool:
    """True when a decoded JSON value holds a NaN or infinite float anywhere."""
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(contains_non_finite(item) for item in value.values())
    if isinstance(value, list):
        return any(contains_non_finite(item) for item in value)
    return False


def _to_int(value: Any) -> Optional[int]:
    """Best-effort uint256 for gas fields; anything unusable is None."""
    number = _parse_int(value)
    if number is None or not 0 <= number < UINT256_LIMIT:
        return None
    return number


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                return int(text, 16)
            return int(float(text))
        except (ValueError, OverflowError):
            return None
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def analyze_gas_fees(gas_used: int, gas_price: int) -> Dict[str, Any]:
    gas_cost_wei = gas_used * gas_price
    gas_cost_bnb = gas_cost_wei / WEI_PER_BNB

    if gas_used < 50_000:
        efficiency = "Very Efficient"
    elif gas_used < 100_000:
        efficiency = "Efficient"
    elif gas_used < 200_000:
        efficiency = "Moderate"
    elif gas_used < 500_000:
        efficiency = "High"
    else:
        efficiency = "Very High"

    if gas_cost_bnb > HIGH_GAS_COST_BNB:
        recommendations = [
            "Consider using Layer 2 solutions",
            "Use gas optimization techniques",
            "Time transactions during low network activity",
        ]
    else:
        recommendations = ["Gas cost is reasonable", "Transaction was efficient"]

    return {
        "gasCostBnb": gas_cost_bnb,
        "gasCostWei": str(gas_cost_wei),
        "gasUsed": gas_used,
        "gasPrice": gas_price,
        "efficiency": efficiency,
        "recommendations": recommendations,
    }


def transaction_fallback(tx_hash: str, tx_data: Dict[str, Any]) -> FallbackAnswer:
    """Classify the transaction from its method selector and destination contract."""
    summary = TransactionSummary(
        hash=tx_hash,
        type="Unknown Transaction",
        description="Transaction details could not be fully analyzed",
        explanation="This appears to be a blockchain transaction. Without AI analysis, detailed analysis is limited.",
        risk_level="Medium",
        breakdown={
            "from": tx_data.get("from") or "Unknown",
            "to": tx_data.get("to") or "Unknown",
            "value": tx_data.get("value") or "0",
            "gasUsed": tx_data.get("gasUsed") or 0,
            "status": tx_data.get("status") or "Unknown",
        },
    )
    source = AnswerSource.FALLBACK_DICTIONARY

    input_data = tx_data.get("input")
    if isinstance(input_data, str) and input_data:
        pattern = match_pattern(input_data[:10])
        if pattern is not None:
            summary.type = pattern.description
            summary.explanation = pattern.explanation
            summary.risk_level = pattern.risk_level
            source = AnswerSource.FALLBACK_PATTERN

    to_address = tx_data.get("to")
    known = contract_name(to_address) if isinstance(to_address, str) else None
    if known:
        summary.breakdown["to"] = known
        summary.protocol = known

    result = TransactionAnalysisResult(
        analysis=summary,
        recommendations=[
            "Verify transaction details on a blockchain explorer",
            "Ensure the transaction achieved its intended purpose",
            "Check for any unexpected token transfers",
            "Monitor wallet balance changes",
        ],
        warnings=[
            "Always verify transaction details independently",
            "Be cautious of unexpected transactions",
            "Keep records of all DeFi interactions",
        ],
    )
    return FallbackAnswer(payload=result.to_payload(), source=source)


class TransactionAnalysisService:
    def __init__(self, pipeline: AIResponsePipeline):
        self.pipeline = pipeline

    async def analyze(
        self,
        transaction_hash: Optional[str],
        transaction_data: Optional[Dict[str, Any]],
        analysis_type: TransactionAnalysisType = TransactionAnalysisType.FULL,
    ) -> Dict[str, Any]:
        logger.info("🔍 Analyzing transaction: %s", transaction_hash or "custom data")

        tx_data = transaction_data or {
            "hash": transaction_hash,
            "note": "Limited data - hash only provided",
        }
        tx_hash = transaction_hash or "custom"

        decoded_input = None
        if tx_data.get("input"):
            decoded_input = decode_transaction_input(str(tx_data["input"]))

        gas_analysis = None
        gas_used, gas_price = _to_int(tx_data.get("gasUsed")), _to_int(tx_data.get("gasPrice"))
        if gas_used and gas_price:
            gas_analysis = analyze_gas_fees(gas_used, gas_price)

        outcome = await self.pipeline.run(
            SYSTEM_PROMPT.format(analysis_type=analysis_type.value),
            f"Transaction Hash: {tx_hash}\nTransaction Data: {json.dumps(tx_data, indent=2, default=str)}\n\n"
            "Please provide a comprehensive analysis of this transaction.",
            TransactionAnalysisResult,
            lambda: transaction_fallback(tx_hash, tx_data),
        )

        response = assemble_response(
            outcome,
            self.pipeline.quota,
            transactionHash=transaction_hash,
            analysisType=analysis_type.value,
            hasFullData=transaction_data is not None,
        )
        response["decodedInput"] = decoded_input
        response["gasAnalysis"] = gas_analysis
        return response
