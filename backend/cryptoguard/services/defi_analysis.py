from __future__ import annotations

import math
from typing import Any, Dict, Optional, Tuple

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.core.logging import get_logger
from cryptoguard.data.defi_protocols import RISK_LEVEL_SCORES, resolve_protocol
from cryptoguard.models.defi import (
    AnalysisType,
    DefiAnalysisBody,
    DefiAnalysisResult,
    RiskAssessment,
    UserLevel,
)
from cryptoguard.services.ai_pipeline import (
    AIResponsePipeline,
    AnswerSource,
    FallbackAnswer,
    assemble_response,
)

logger = get_logger("defi_analysis")

ANALYSIS_TYPES = [
    {"id": "protocol", "name": "Protocol Analysis", "description": "Analyze specific DeFi protocols"},
    {"id": "strategy", "name": "Strategy Analysis", "description": "Evaluate DeFi strategies"},
    {"id": "transaction", "name": "Transaction Analysis", "description": "Analyze DeFi transactions"},
    {"id": "risk", "name": "Risk Assessment", "description": "Assess risks and safety"},
    {"id": "yield", "name": "Yield Analysis", "description": "Analyze yield opportunities"},
]

PROTOCOL_RECOMMENDATIONS = [
    "Research the protocol documentation thoroughly",
    "Start with small amounts to test",
    "Understand the tokenomics and governance",
    "Monitor for security audits and updates",
]

GENERIC_GUIDANCE: Dict[AnalysisType, Dict[str, Any]] = {
    AnalysisType.PROTOCOL: {
        "summary": "DeFi protocols are smart contract-based financial applications that automate traditional financial services without intermediaries.",
        "risks": ["Smart contract vulnerabilities", "Governance attacks", "Economic exploits", "Regulatory uncertainty"],
        "recommendations": ["Use established protocols with good track records", "Diversify across multiple protocols", "Keep up with security audits"],
    },
    AnalysisType.STRATEGY: {
        "summary": "DeFi strategies involve various ways to earn yield through lending, providing liquidity, staking, and farming.",
        "risks": ["Impermanent loss", "Protocol risks", "Market volatility", "Gas fee optimization"],
        "recommendations": ["Understand all risks before investing", "Calculate potential returns vs risks", "Have clear entry and exit strategies"],
    },
    AnalysisType.TRANSACTION: {
        "summary": "DeFi transactions interact with smart contracts and can be complex, involving multiple steps and protocols.",
        "risks": ["Failed transactions", "Front-running", "MEV attacks", "High gas fees"],
        "recommendations": ["Check transaction details carefully", "Use appropriate gas fees", "Consider transaction timing"],
    },
    AnalysisType.RISK: {
        "summary": "DeFi risk comes from code, markets and people: contracts can be exploited, collateral can be liquidated and anonymous teams can exit with user funds.",
        "risks": ["Smart contract exploits", "Liquidation cascades", "Rug pulls", "Oracle manipulation"],
        "recommendations": ["Size positions so a total loss is survivable", "Prefer audited protocols with long track records", "Revoke unused token approvals"],
    },
    AnalysisType.YIELD: {
        "summary": "DeFi yield is paid from trading fees, borrower interest or token emissions; emission-funded yields usually fall as the reward token is sold.",
        "risks": ["Reward token price collapse", "Impermanent loss", "Unsustainable APYs", "Smart contract risk"],
        "recommendations": ["Check where the yield comes from", "Compare APY net of fees and impermanent loss", "Be wary of yields far above the market"],
    },
}

UNKNOWN_PROTOCOL_ASSESSMENT = RiskAssessment(
    overall="Unknown",
    factors=["Protocol not in database - exercise extreme caution"],
    recommendations=["Research thoroughly before proceeding", "Start with very small amounts", "Verify contract addresses"],
)

SYSTEM_PROMPT = """You are a DeFi (Decentralized Finance) expert analyst with deep knowledge of:
- DeFi protocols, mechanisms, and risks
- Yield farming strategies and optimization
- Liquidity provision and impermanent loss
- Smart contract security and audits
- DeFi tokenomics and governance
- Cross-chain DeFi opportunities
- Risk management in DeFi

Analysis Type: {analysis_type}
User Level: {user_level}

Respond with a single JSON object and nothing else:
{{
  "analysis": {{
    "summary": "High-level overview",
    "detailedExplanation": "In-depth technical explanation",
    "mechanism": "How it works technically",
    "tokenomics": "Token economics if applicable"
  }},
  "risks": ["most critical risk first"],
  "recommendations": ["advice suited to the user level"],
  "opportunities": ["yield or growth opportunities"],
  "redFlags": ["warning signs to watch for"],
  "protocol": "protocol name, if one is being analyzed"
}}

Be thorough, practical, and emphasize risk management."""


def parse_amount(amount: Any) -> Optional[float]:
    if amount is None or amount == "":
        return None
    if isinstance(amount, bool):
        raise RequestValidationFailed("Amount must be a number")
    try:
        value = float(amount)
    except (TypeError, ValueError, OverflowError):
        raise RequestValidationFailed("Amount must be a number")
    if not math.isfinite(value):
        raise RequestValidationFailed("Amount must be a number")
    return value


def validate_defi_request(
    input_text: Any, analysis_type: Any, user_level: Any, amount: Any
) -> Tuple[str, AnalysisType, UserLevel, Optional[float]]:
    if not isinstance(input_text, str) or not input_text.strip():
        raise RequestValidationFailed("Input is required for DeFi analysis")
    try:
        kind = AnalysisType(analysis_type or AnalysisType.PROTOCOL.value)
    except ValueError:
        raise RequestValidationFailed(
            "Invalid analysis type. Use: protocol, strategy, transaction, risk, or yield"
        )
    try:
        level = UserLevel(user_level or UserLevel.INTERMEDIATE.value)
    except ValueError:
        raise RequestValidationFailed("Invalid user level. Use: beginner, intermediate, or advanced")
    return input_text, kind, level, parse_amount(amount)


def assess_defi_risk(input_text: str, amount: float, user_level: UserLevel) -> RiskAssessment:
    protocol = resolve_protocol(input_text)
    if protocol is None:
        return UNKNOWN_PROTOCOL_ASSESSMENT

    score = RISK_LEVEL_SCORES.get(protocol.risk_level, 0)
    if amount > 10000:
        score += 2
    elif amount > 1000:
        score += 1
    if user_level == UserLevel.BEGINNER:
        score += 1

    if score <= 2:
        overall = "Low"
    elif score <= 4:
        overall = "Medium"
    else:
        overall = "High"

    return RiskAssessment(
        overall=overall,
        score=score,
        factors=list(protocol.risks),
        recommendations=[
            "Start with small amounts",
            "Understand the protocol mechanics",
            "Monitor positions regularly",
            "Have an exit strategy",
        ],
    )


def defi_fallback(input_text: str, analysis_type: AnalysisType) -> FallbackAnswer:
    """Protocol profile when the input names a known protocol, else generic guidance."""
    protocol = resolve_protocol(input_text)
    if protocol is not None:
        profile = protocol.to_dict()
        result = DefiAnalysisResult(
            analysis=DefiAnalysisBody(summary=protocol.description, **profile),
            risks=list(protocol.risks),
            recommendations=PROTOCOL_RECOMMENDATIONS,
            protocol=protocol.name,
        )
        return FallbackAnswer(payload=result.to_payload(), source=AnswerSource.FALLBACK_DICTIONARY)

    guidance = GENERIC_GUIDANCE[analysis_type]
    result = DefiAnalysisResult(
        analysis=DefiAnalysisBody(summary=guidance["summary"]),
        risks=guidance["risks"],
        recommendations=guidance["recommendations"],
    )
    return FallbackAnswer(payload=result.to_payload(), source=AnswerSource.FALLBACK_PATTERN)


class DefiAnalysisService:
    def __init__(self, pipeline: AIResponsePipeline):
        self.pipeline = pipeline

    async def analyze(
        self,
        input_text: str,
        analysis_type: AnalysisType = AnalysisType.PROTOCOL,
        user_level: UserLevel = UserLevel.INTERMEDIATE,
        amount: Optional[float] = None,
    ) -> Dict[str, Any]:
        logger.info("🔬 DeFi analysis - type: %s, input: %r", analysis_type.value, input_text[:50])

        outcome = await self.pipeline.run(
            SYSTEM_PROMPT.format(analysis_type=analysis_type.value, user_level=user_level.value),
            f"Please analyze: {input_text}",
            DefiAnalysisResult,
            lambda: defi_fallback(input_text, analysis_type),
        )

        risk_assessment = None
        if amount is not None and analysis_type == AnalysisType.RISK:
            risk_assessment = assess_defi_risk(input_text, amount, user_level)

        response = assemble_response(
            outcome,
            self.pipeline.quota,
            analysisType=analysis_type.value,
            userLevel=user_level.value,
            amount=amount,
        )
        response["riskAssessment"] = (
            risk_assessment.model_dump(mode="json", exclude_none=True) if risk_assessment else None
        )
        return response
