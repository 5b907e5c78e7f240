from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.core.logging import get_logger
from cryptoguard.data.crypto_dictionary import CRYPTO_DICTIONARY
from cryptoguard.models.common import RiskLevel
from cryptoguard.models.query import QueryAnswer
from cryptoguard.services.ai_pipeline import (
    AIResponsePipeline,
    AnswerSource,
    FallbackAnswer,
    assemble_response,
)
from cryptoguard.services.smart_translator import analyze_text_for_crypto_terms

logger = get_logger("crypto_query")

QUERY_MAX_LENGTH = 1000
UNCATEGORIZED = "General"

QUERY_CATEGORIES: Dict[str, List[str]] = {
    "DeFi": [
        "defi", "yield farming", "liquidity pool", "amm", "automated market maker",
        "staking", "governance", "dao", "flash loan", "impermanent loss",
        "liquidity provider", "farming", "compound", "aave", "uniswap", "sushiswap",
    ],
    "Trading": [
        "buy", "sell", "trade", "exchange", "price", "market", "order",
        "arbitrage", "slippage", "volume", "chart", "analysis", "strategy",
    ],
    "Security": [
        "safe", "secure", "risk", "scam", "audit", "vulnerability", "hack",
        "private key", "seed phrase", "wallet", "cold storage", "multi-sig",
    ],
    "Technical": [
        "blockchain", "smart contract", "gas", "transaction", "mining",
        "consensus", "node", "validator", "fork", "layer 2", "rollup",
    ],
    "Investment": [
        "invest", "portfolio", "returns", "profit", "loss", "hodl",
        "diversify", "allocation", "market cap", "valuation",
    ],
    "Beginner": [
        "what is", "how to", "explain", "beginner", "start", "learn",
        "basics", "introduction", "simple", "understand",
    ],
}

SAMPLE_QUERIES = [
    "What is yield farming and how does it work?",
    "How to safely store cryptocurrency?",
    "Explain smart contracts in simple terms",
    "What are the risks of DeFi investing?",
    "How to start investing in cryptocurrency?",
]

FALLBACK_RESPONSES: Dict[str, Dict[str, Any]] = {
    "what is defi": {
        "answer": "DeFi (Decentralized Finance) is a blockchain-based form of finance that does not rely on central financial intermediaries like banks or exchanges. Instead, it uses smart contracts on blockchains to provide financial services.",
        "explanation": "DeFi applications allow you to lend, borrow, trade, and earn interest on your cryptocurrency without going through traditional banks.",
        "risks": ["Smart contract vulnerabilities", "Impermanent loss in liquidity pools", "Regulatory uncertainty"],
        "gettingStarted": ["Start with small amounts", "Use reputable protocols", "Understand the risks before investing"],
        "riskLevel": "medium",
    },
    "what is yield farming": {
        "answer": "Yield farming is the practice of lending or staking cryptocurrency tokens to generate returns or rewards in the form of additional cryptocurrency.",
        "explanation": "Users provide liquidity to DeFi protocols and earn rewards, often in the form of the protocol's native tokens.",
        "risks": ["Impermanent loss", "Smart contract risks", "Token price volatility", "Rug pulls"],
        "gettingStarted": ["Research the protocol thoroughly", "Start with established platforms", "Diversify across multiple pools"],
        "riskLevel": "medium",
    },
    "how to start crypto": {
        "answer": "To start with cryptocurrency: 1) Choose a reputable exchange, 2) Verify your identity, 3) Start with small amounts, 4) Learn about wallet security, 5) Understand the risks.",
        "explanation": "Cryptocurrency investing requires understanding both the technology and financial risks involved.",
        "risks": ["Price volatility", "Regulatory changes", "Security breaches", "Loss of private keys"],
        "gettingStarted": ["Use dollar-cost averaging", "Only invest what you can afford to lose", "Keep most funds in cold storage"],
        "riskLevel": "medium",
    },
    "how to store crypto safely": {
        "answer": "Keep long-term holdings in a hardware wallet or other cold storage, back up your seed phrase offline, and only keep small spending amounts in hot wallets.",
        "explanation": "Whoever controls the private keys controls the funds, so storage security is about protecting keys and the seed phrase from theft and loss.",
        "risks": ["Phishing and fake wallet apps", "Lost or exposed seed phrase", "Malicious token approvals"],
        "gettingStarted": ["Buy hardware wallets only from the manufacturer", "Write the seed phrase on paper and store it offline", "Review and revoke token approvals regularly"],
        "riskLevel": "low",
    },
    "what is a smart contract": {
        "answer": "A smart contract is a program stored on a blockchain that runs automatically when its conditions are met, with no one able to change how it behaves after deployment unless it was built to be upgradeable.",
        "explanation": "DeFi protocols, tokens and NFTs are all smart contracts; interacting with one means trusting its code rather than a company.",
        "risks": ["Bugs and exploits in contract code", "Upgradeable contracts can be changed by their owners", "Unverified source code hides behaviour"],
        "gettingStarted": ["Prefer audited, verified contracts", "Read what you are approving before signing", "Test with small amounts first"],
        "riskLevel": "medium",
    },
    "risks of defi": {
        "answer": "The main DeFi risks are smart contract exploits, impermanent loss, liquidations of borrowed positions, rug pulls by anonymous teams, and oracle manipulation.",
        "explanation": "DeFi removes intermediaries, which also removes the safety nets they provide; losses from hacks or scams are usually unrecoverable.",
        "risks": ["Smart contract exploits", "Impermanent loss", "Liquidation", "Rug pulls", "Oracle manipulation"],
        "gettingStarted": ["Use protocols with long track records and audits", "Never invest more than you can afford to lose", "Spread funds across protocols"],
        "riskLevel": "high",
    },
    "what is a rug pull": {
        "answer": "A rug pull is a scam where a project's creators drain the liquidity pool or abandon the project after attracting investors, leaving holders with worthless tokens.",
        "explanation": "Rug pulls are common with new tokens whose liquidity is not locked and whose owners can mint tokens or block sales.",
        "risks": ["Unlocked liquidity", "Unlimited minting by the owner", "Anonymous teams", "Honeypot contracts that block selling"],
        "gettingStarted": ["Check that liquidity is locked", "Scan the contract before buying", "Be wary of guaranteed returns"],
        "riskLevel": "high",
    },
}

_STOPWORDS = frozenset(
    "what is a an the how to do does i of and in it are my for with work works "
    "explain on can about me should why".split()
)

SYSTEM_PROMPT = """You are CryptoGuard AI, an expert blockchain and DeFi consultant. Your role is to:

1. Provide accurate, beginner-friendly explanations of cryptocurrency and DeFi concepts
2. Always highlight potential risks and security considerations
3. Give practical, actionable advice
4. Prioritize user safety and education

Query Category: {category}

Respond with a single JSON object and nothing else:
{{
  "answer": "Direct answer to the user's question",
  "explanation": "Detailed explanation with context",
  "risks": ["risk1", "risk2", "risk3"],
  "benefits": ["benefit1", "benefit2"],
  "gettingStarted": ["step1", "step2", "step3"],
  "relatedConcepts": ["concept1", "concept2"],
  "recommendedReading": ["resource1", "resource2"],
  "riskLevel": "low|medium|high",
  "complexity": "beginner|intermediate|advanced"
}}

Focus on being educational, practical, and safety-conscious."""


def validate_query(query: Any) -> str:
    if not isinstance(query, str) or not query.strip():
        raise RequestValidationFailed("Query is required and must be a non-empty string")
    if len(query) > QUERY_MAX_LENGTH:
        raise RequestValidationFailed(
            f"Query is too long. Maximum {QUERY_MAX_LENGTH} characters allowed."
        )
    return query


def _normalize(text: str) -> str:
    return " ".join(re.sub(r"[^a-z0-9\- ]", " ", text.lower()).split())


def categorize_query(query: str) -> Dict[str, Any]:
    """Pick the category with the most keyword hits; ties go to the alphabetically first."""
    lowered = query.lower()
    matches = {
        category: [keyword for keyword in keywords if keyword in lowered]
        for category, keywords in QUERY_CATEGORIES.items()
    }
    category, found = min(matches.items(), key=lambda item: (-len(item[1]), item[0]))
    if not found:
        return {"category": UNCATEGORIZED, "confidence": 0.0, "keywords": []}
    return {
        "category": category,
        "confidence": len(found) / len(QUERY_CATEGORIES[category]),
        "keywords": found,
    }


def _match_canned_response(query: str) -> Optional[str]:
    normalized = _normalize(query)
    phrase_hits = [key for key in FALLBACK_RESPONSES if key in normalized]
    if phrase_hits:
        return max(phrase_hits, key=len)

    words = set(normalized.split())
    best: Optional[Tuple[int, str]] = None
    for key in FALLBACK_RESPONSES:
        significant = set(key.split()) - _STOPWORDS
        if significant and significant <= words:
            if best is None or len(significant) > best[0]:
                best = (len(significant), key)
    return best[1] if best else None


def _dictionary_answer(query: str) -> Optional[QueryAnswer]:
    terms = analyze_text_for_crypto_terms(query)
    if not terms:
        return None
    primary = CRYPTO_DICTIONARY[max(terms, key=len)]
    risks = {
        RiskLevel.HIGH: ["High risk of losing funds", "Frequently involved in scams or exploits"],
        RiskLevel.MEDIUM: ["Smart contract risk", "Price volatility"],
        RiskLevel.LOW: ["Price volatility"],
    }[primary.risk_level]
    return QueryAnswer(
        answer=f"{primary.term.capitalize()}: {primary.simple_definition}",
        explanation=primary.technical_definition,
        risks=risks,
        related_concepts=[term for term in terms if term != primary.term][:5],
        risk_level=primary.risk_level,
    )


def query_fallback(query: str) -> FallbackAnswer:
    """Canned answer, else one composed from dictionary terms in the query. Never raises."""
    key = _match_canned_response(query)
    if key is not None:
        answer = QueryAnswer.model_validate(FALLBACK_RESPONSES[key])
        return FallbackAnswer(payload=answer.to_payload(), source=AnswerSource.FALLBACK_DICTIONARY)

    composed = _dictionary_answer(query)
    if composed is not None:
        return FallbackAnswer(payload=composed.to_payload(), source=AnswerSource.FALLBACK_PATTERN)

    return FallbackAnswer(
        payload={
            "success": False,
            "error": "API quota exhausted and no suitable fallback found",
            "suggestion": "Please try again tomorrow or rephrase your question",
        },
        source=AnswerSource.FALLBACK_DICTIONARY,
    )


class CryptoQueryService:
    def __init__(self, pipeline: AIResponsePipeline):
        self.pipeline = pipeline

    async def answer(self, query: str, context: Optional[str] = None) -> Dict[str, Any]:
        preview = query[:100] + ("..." if len(query) > 100 else "")
        categorization = categorize_query(query)
        logger.info(
            "📂 Query %r categorized as %s (confidence %.2f)",
            preview,
            categorization["category"],
            categorization["confidence"],
        )

        outcome = await self.pipeline.run(
            SYSTEM_PROMPT.format(category=categorization["category"]),
            f"User Question: {query}",
            QueryAnswer,
            lambda: query_fallback(query),
        )
        return assemble_response(
            outcome,
            self.pipeline.quota,
            query=preview,
            category=categorization["category"],
            confidence=categorization["confidence"],
            keywords=categorization["keywords"],
            context=context or "general",
        )
