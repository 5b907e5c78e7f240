"""Plain-English translation of crypto / DeFi jargon.

The AI provider is asked for structured translations; when it cannot be used
the dictionary answers instead: an exact (then fuzzy) lookup in term mode, a
whole-word vocabulary scan in text mode.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Pattern, Tuple

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.core.logging import get_logger
from cryptoguard.data.crypto_dictionary import CRYPTO_DICTIONARY, DictionaryEntry
from cryptoguard.models.translator import TranslationItem, TranslatorResult
from cryptoguard.services.ai_pipeline import (
    AIResponsePipeline,
    AnswerSource,
    FallbackAnswer,
    assemble_response,
)

logger = get_logger("smart_translator")

TEXT_MAX_LENGTH = 5000
MODES = ("term", "text")
VERSION = "2.0"

_TERM_PATTERNS: Dict[str, Pattern[str]] = {
    term: re.compile(r"\b" + re.escape(term) + r"\b") for term in CRYPTO_DICTIONARY
}

# Broader vocabulary sweep; a match only counts when its normalised form is a dictionary term.
_VOCABULARY_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(r"\b(?:" + alternatives + r")\b")
    for alternatives in (
        r"yield|liquidity|farming|staking|defi|crypto|blockchain|smart\s+contract|dao|nft|dapp",
        r"bitcoin|ethereum|ether|btc|eth|bnb",
        r"wallet|address|private\s+key|public\s+key|seed\s+phrase",
        r"gas|fee|transaction|mining|validator",
        r"token|coin|currency|digital\s+asset",
        r"exchange|trading|market|price|volume",
        r"pool|liquidity|provider|automated\s+market\s+maker|amm",
        r"governance|voting|proposal|treasury",
        r"layer\s*2|rollup|sidechain|bridge|cross-chain",
        r"apy|apr|rewards|compound|interest",
    )
)

_DEFI_MARKERS = ("defi", "yield", "liquidity", "farming")

SYSTEM_PROMPT = """You are CryptoGuard AI's Smart Translator, an expert at explaining complex DeFi, blockchain, and cryptocurrency concepts in simple, understandable terms.

Your role is to:
1. Identify crypto/DeFi terms in user input
2. Provide clear, beginner-friendly explanations
3. Include technical explanations for reference
4. Give real-world examples from the BNB Chain/BSC ecosystem
5. Assess risk levels and categorize terms

Risk Level Guidelines:
- low: Basic concepts, established protocols, minimal financial risk
- medium: DeFi protocols, some complexity, moderate risk
- high: Advanced strategies, experimental protocols, significant risk potential

Categories: DeFi, Trading, Security, Technical, Governance, Gaming

Respond with a single JSON object and nothing else:
{
  "translations": [
    {
      "original": "term as it appears in the input",
      "simplified": "Simple explanation in plain English",
      "explanation": "Detailed technical explanation with context",
      "context": "Where this term is commonly used",
      "riskLevel": "low|medium|high",
      "category": "DeFi|Trading|Security|Technical|Governance|Gaming",
      "examples": ["practical example 1", "practical example 2"]
    }
  ],
  "summary": "Overall explanation of what the input is about",
  "riskAssessment": "Overall risk level and important warnings"
}

Return at most 5 translations, most important first."""


def validate_translator_request(text: Any, mode: Any) -> Tuple[str, str]:
    if not isinstance(text, str) or not text.strip():
        raise RequestValidationFailed("Text is required and must be a non-empty string")
    if len(text) > TEXT_MAX_LENGTH:
        raise RequestValidationFailed(
            f"Text is too long. Maximum {TEXT_MAX_LENGTH} characters allowed."
        )
    mode = mode or "text"
    if mode not in MODES:
        raise RequestValidationFailed('Mode must be either "term" or "text"')
    return text, mode


def find_dictionary_entry(text: str) -> Optional[DictionaryEntry]:
    """Exact case-insensitive match first, then substring containment either way."""
    key = " ".join(text.lower().split())
    if not key:
        return None

    exact = CRYPTO_DICTIONARY.get(key)
    if exact is not None:
        return exact

    contained = [term for term in CRYPTO_DICTIONARY if term in key]
    if contained:
        return CRYPTO_DICTIONARY[max(contained, key=len)]

    containing = [term for term in CRYPTO_DICTIONARY if key in term]
    if containing:
        return CRYPTO_DICTIONARY[min(containing, key=len)]
    return None


def analyze_text_for_crypto_terms(text: str) -> List[str]:
    """Dictionary terms occurring as whole words in ``text``, deduplicated, in discovery order."""
    lowered = text.lower()
    found: List[str] = [term for term, pattern in _TERM_PATTERNS.items() if pattern.search(lowered)]
    seen = set(found)

    for pattern in _VOCABULARY_PATTERNS:
        for match in pattern.finditer(lowered):
            normalized = " ".join(match.group().split())
            if normalized in CRYPTO_DICTIONARY and normalized not in seen:
                seen.add(normalized)
                found.append(normalized)

    logger.debug("Found %d crypto terms: %s", len(found), found)
    return found


def dominant_category(terms: List[str]) -> Optional[str]:
    """Category with the most matched terms; ties go to the alphabetically first category."""
    counts: Dict[str, int] = {}
    for term in terms:
        category = CRYPTO_DICTIONARY[term].category
        counts[category] = counts.get(category, 0) + 1
    if not counts:
        return None
    return min(counts.items(), key=lambda item: (-item[1], item[0]))[0]


def _context_snippet(text: str, term: str, radius: int = 50) -> str:
    index = text.lower().find(term)
    if index < 0:
        return text[: radius * 2]
    return text[max(0, index - radius) : min(len(text), index + len(term) + radius)]


def _translation_for(entry: DictionaryEntry, original: str, context: Optional[str]) -> TranslationItem:
    return TranslationItem(
        original=original,
        simplified=entry.simple_definition,
        explanation=entry.technical_definition,
        context=context,
        risk_level=entry.risk_level,
        category=entry.category,
    )


def dictionary_analysis(text: str, mode: str = "text") -> FallbackAnswer:
    """Answer from the static dictionary. Never raises."""
    if mode == "term":
        entry = find_dictionary_entry(text)
        if entry is None:
            return FallbackAnswer(
                payload={
                    "success": False,
                    "error": "Term not found in crypto dictionary",
                    "suggestion": "Try analyzing full text instead of individual terms",
                },
                source=AnswerSource.FALLBACK_DICTIONARY,
            )
        result = TranslatorResult(
            translations=[_translation_for(entry, entry.term, f"{entry.category} terminology")],
            summary=f"'{entry.term}' is a {entry.category} term.",
            category=entry.category,
        )
        return FallbackAnswer(payload=result.to_payload(), source=AnswerSource.FALLBACK_DICTIONARY)

    terms = analyze_text_for_crypto_terms(text)
    if not terms:
        return FallbackAnswer(
            payload={
                "success": False,
                "error": "No crypto terms found in the text",
                "suggestion": "Try using more specific blockchain or DeFi terminology",
            },
            source=AnswerSource.FALLBACK_PATTERN,
        )

    defi_count = sum(1 for term in terms if any(marker in term for marker in _DEFI_MARKERS))
    result = TranslatorResult(
        translations=[
            _translation_for(CRYPTO_DICTIONARY[term], term, _context_snippet(text, term))
            for term in terms
        ],
        summary=f"Found {len(terms)} crypto/DeFi terms. {defi_count} DeFi-related terms detected.",
        category=dominant_category(terms),
    )
    return FallbackAnswer(payload=result.to_payload(), source=AnswerSource.FALLBACK_PATTERN)


def build_user_prompt(text: str, mode: str) -> str:
    if mode == "term":
        return f'Explain this cryptocurrency/DeFi term for a beginner.\n\nTerm: "{text}"'
    return (
        "Identify and explain every cryptocurrency, blockchain or DeFi term in this text. "
        "Focus on DeFi mechanisms, trading terms, security implications and risk factors.\n\n"
        f'Text: "{text}"'
    )


class SmartTranslator:
    def __init__(self, pipeline: AIResponsePipeline):
        self.pipeline = pipeline

    async def translate(self, text: str, mode: str = "text") -> Dict[str, Any]:
        preview = text[:100] + ("..." if len(text) > 100 else "")
        logger.info("🔍 Analyzing %s mode: %r", mode, preview)

        outcome = await self.pipeline.run(
            SYSTEM_PROMPT,
            build_user_prompt(text, mode),
            TranslatorResult,
            lambda: dictionary_analysis(text, mode),
        )
        return assemble_response(
            outcome,
            self.pipeline.quota,
            version=VERSION,
            mode=mode,
            textLength=len(text),
        )
