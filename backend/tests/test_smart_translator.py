"""Tests for the smart translator: dictionary fallback, AI path and routes."""

import json

import pytest

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.data.crypto_dictionary import CRYPTO_DICTIONARY
from cryptoguard.services.ai_pipeline import AnswerSource
from cryptoguard.services.smart_translator import (
    analyze_text_for_crypto_terms,
    dictionary_analysis,
    dominant_category,
    find_dictionary_entry,
    validate_translator_request,
)
from fakes import FakeCompletionClient, api_client, make_services


class TestDictionary:
    @pytest.mark.parametrize("term", sorted(CRYPTO_DICTIONARY))
    def test_every_term_is_found_case_insensitively(self, term):
        for variant in (term, term.upper(), term.title()):
            entry = find_dictionary_entry(variant)
            assert entry is not None
            assert entry.term == term

    def test_fuzzy_match_prefers_longest_contained_term(self):
        assert find_dictionary_entry("what is a liquidity pool exactly").term == "liquidity pool"

    def test_unknown_term(self):
        assert find_dictionary_entry("zzzz-unknown") is None


class TestTextAnalysis:
    def test_terms_in_discovery_order(self):
        assert analyze_text_for_crypto_terms("yield farming with AMM") == ["yield farming", "amm", "farming"]

    def test_whole_words_only(self):
        # "gas" must not match inside "pegasus", nor "dao" inside "daonly"
        assert analyze_text_for_crypto_terms("pegasus daonly") == []

    def test_dominant_category_tie_breaks_alphabetically(self):
        # one Trading term, one Technical term
        assert dominant_category(["dex", "gas"]) == "Technical"
        assert dominant_category([]) is None

    @pytest.mark.parametrize("text", ["", " ", "x" * 6000, "hello world"])
    @pytest.mark.parametrize("mode", ["term", "text"])
    def test_fallback_never_raises(self, text, mode):
        answer = dictionary_analysis(text, mode)
        assert answer.payload["success"] is False
        assert answer.payload["error"]

    def test_term_mode_payload(self):
        answer = dictionary_analysis("Staking", "term")
        assert answer.source == AnswerSource.FALLBACK_DICTIONARY
        translation = answer.payload["translations"][0]
        assert translation["original"] == "staking"
        assert translation["riskLevel"] == "low"
        assert answer.payload["category"] == "DeFi"


class TestValidation:
    @pytest.mark.parametrize(
        "text, mode, message",
        [
            (None, "text", "Text is required"),
            ("   ", "text", "Text is required"),
            (42, "text", "Text is required"),
            ("a" * 5001, "text", "Text is too long"),
            ("gas", "sentence", "Mode must be"),
        ],
    )
    def test_rejected(self, text, mode, message):
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_translator_request(text, mode)
        assert exc_info.value.message.startswith(message)

    def test_mode_defaults_to_text(self):
        assert validate_translator_request("gas", None) == ("gas", "text")


class TestTranslatorRoutes:
    @pytest.mark.asyncio
    async def test_text_without_ai_uses_pattern_fallback(self, client):
        response = await client.post("/api/smart-translator", json={"text": "yield farming with AMM"})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["aiUsed"] is False
        assert data["source"] == "fallback-pattern"
        assert data["fallbackReason"] == "AI provider not configured"
        assert [t["original"] for t in data["translations"]] == ["yield farming", "amm", "farming"]
        assert data["category"] == "DeFi"
        assert data["metadata"]["mode"] == "text"
        assert data["metadata"]["textLength"] == len("yield farming with AMM")

    @pytest.mark.asyncio
    async def test_no_terms_found_is_still_200(self, client):
        response = await client.post("/api/smart-translator", json={"text": "hello world"})
        assert response.status_code == 200
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{}, {"text": ""}, {"text": "gas", "mode": "poem"}, {"text": "a" * 5001}, {"text": 123}],
    )
    async def test_invalid_body_is_400(self, client, body):
        response = await client.post("/api/smart-translator", json=body)
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_ai_translation_is_used_and_normalized(self, clock):
        completion = "Sure, here it is:\n" + json.dumps(
            {
                "translations": [
                    {
                        "original": "impermanent loss",
                        "simplified": "Losing value versus just holding",
                        "explanation": "Divergence loss in an AMM pool",
                        "riskLevel": "Medium-High",
                        "category": "DeFi",
                    }
                ],
                "summary": "About liquidity provision",
            }
        )
        fake = FakeCompletionClient([completion])
        async with api_client(make_services(completion_client=fake, clock=clock)) as ac:
            response = await ac.post(
                "/api/smart-translator", json={"text": "impermanent loss", "mode": "term"}
            )
        data = response.json()
        assert data["aiUsed"] is True
        assert data["source"] == "ai"
        assert data["translations"][0]["riskLevel"] == "high"
        assert data["apiCallsRemaining"] == 44
        assert "impermanent loss" in fake.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_get_term(self, client):
        response = await client.get("/api/smart-translator", params={"term": "Rug Pull"})
        assert response.status_code == 200
        data = response.json()
        assert data["term"] == "rug pull"
        assert data["category"] == "Security"
        assert data["aiUsed"] is False

    @pytest.mark.asyncio
    async def test_get_unknown_term_is_404(self, client):
        response = await client.get("/api/smart-translator", params={"term": "moonboy"})
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Term not found",
            "details": "'moonboy' is not in the crypto dictionary",
        }

    @pytest.mark.asyncio
    async def test_list_terms(self, client):
        data = (await client.get("/api/smart-translator")).json()
        assert len(data["availableTerms"]) == 50
        assert data["totalTerms"] == len(CRYPTO_DICTIONARY)
        assert sum(data["categories"].values()) == len(CRYPTO_DICTIONARY)
