"""Tests for the AI wallet security analysis and its pattern-based fallback."""

import json

import pytest

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.models.security_analysis import (
    RecommendationCategory,
    RecommendationPriority,
    SecurityAnalysisResult,
    SecurityRecommendation,
)
from cryptoguard.services.ai_pipeline import REASON_QUOTA_EXHAUSTED, REASON_WRONG_SHAPE, AnswerSource
from cryptoguard.services.quota import SECURITY_ANALYSIS
from cryptoguard.services.security_analysis import (
    WalletActivity,
    base_security_score,
    parse_balance,
    security_analysis_fallback,
    suspicious_patterns,
    validate_security_analysis_request,
)
from fakes import FakeCompletionClient, api_client, make_services

WALLET = "0x8894E0a0c962CB723c1976a4421c95949bE2D4E3"
ONE_BNB = 10**18


def _tx(index: int, spacing: int = 3600, **overrides):
    tx = {
        "hash": "0x" + f"{index:064x}",
        "from": WALLET,
        "to": "0x2222222222222222222222222222222222222222",
        "value": "0",
        "input": "0x",
        "gasUsed": "21000",
        "timeStamp": str(1_700_000_000 - index * spacing),
        "isError": "0",
    }
    tx.update(overrides)
    return tx


def _body(**overrides):
    body = {
        "walletAddress": WALLET,
        "balance": str(2 * ONE_BNB),
        "transactions": [_tx(0), _tx(1, input="0xa9059cbb")],
        "tokenTransfers": [{"tokenSymbol": "CAKE", "contractAddress": "0xcake", "from": WALLET, "to": "0x3333", "value": "5"}],
        "internalTransactions": [{"type": "call"}],
        "riskFactors": ["Unverified contract interaction"],
    }
    body.update(overrides)
    return body


class TestValidation:
    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"transactions": None}, "Invalid transactions data"),
            ({"transactions": "0xabc"}, "Invalid transactions data"),
            ({"transactions": [1, 2]}, "Invalid transactions data"),
            ({"tokenTransfers": "none"}, "Invalid token transfers data"),
            ({"internalTransactions": [None]}, "Invalid internal transactions data"),
            ({"riskFactors": "many"}, "Risk factors must be a list"),
            ({"walletAddress": "0x123"}, "Invalid BNB Chain address format"),
            ({"balance": "lots"}, "Balance must be a non-negative amount in wei"),
            ({"balance": "-1"}, "Balance must be a non-negative amount in wei"),
            ({"balance": "nan"}, "Balance must be a non-negative amount in wei"),
            ({"balance": "1e400"}, "Balance must be a non-negative amount in wei"),
            ({"transactions": [{"gasUsed": float("inf")}]}, "Wallet activity must not contain NaN or Infinity"),
        ],
    )
    def test_rejected(self, overrides, message):
        body = _body(**overrides)
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_security_analysis_request(
                body["walletAddress"],
                body["balance"],
                body["transactions"],
                body["tokenTransfers"],
                body["internalTransactions"],
                body["riskFactors"],
            )
        assert exc_info.value.message == message

    def test_optional_collections_default_to_empty(self):
        activity = validate_security_analysis_request(None, None, [], None, None, None)
        assert activity == WalletActivity()

    @pytest.mark.parametrize(
        "balance, wei",
        [(None, 0), ("", 0), ("25000000000000000000", 25 * ONE_BNB), (ONE_BNB, ONE_BNB), ("1.5e18", 15 * 10**17)],
    )
    def test_parse_balance(self, balance, wei):
        assert parse_balance(balance) == wei


class TestActivityHeuristics:
    def test_rapid_transactions(self):
        transactions = [_tx(i, spacing=10) for i in range(10)]
        assert suspicious_patterns(transactions) == [
            "Rapid transaction pattern detected (potential bot activity)"
        ]

    def test_failure_rate(self):
        transactions = [_tx(i, isError="1" if i < 2 else "0") for i in range(10)]
        assert suspicious_patterns(transactions) == [
            "High failure rate detected (>10% of transactions failed)"
        ]

    def test_high_average_gas(self):
        transactions = [_tx(i, gasUsed="150000") for i in range(3)]
        assert suspicious_patterns(transactions) == [
            "High average gas usage detected (complex contract interactions)"
        ]

    def test_quiet_wallet(self):
        assert suspicious_patterns([]) == []
        assert suspicious_patterns([_tx(i) for i in range(5)]) == []

    def test_security_score_deductions(self):
        transactions = [_tx(i, isError="1" if i == 0 else "0") for i in range(10)]
        transfers = [{"tokenSymbol": "SafeMoon"}, {"tokenSymbol": "BUSD"}]
        # 2 risk factors 30, 10% failed 3, one meme token 10
        assert base_security_score(transactions, transfers, ["a", "b"]) == 57

    def test_security_score_floor(self):
        assert base_security_score([], [], ["risk"] * 7) == 10


class TestSecurityFallback:
    def test_quiet_wallet(self):
        answer = security_analysis_fallback(WalletActivity(transactions=[_tx(i) for i in range(3)]))
        assert answer.source == AnswerSource.FALLBACK_PATTERN
        payload = answer.payload
        assert payload["success"] is True
        assert payload["riskLevel"] == "LOW"
        assert "Risk score: 0/10" in payload["analysis"]
        assert [r["id"] for r in payload["recommendations"]] == ["1", "2", "3"]
        assert payload["recommendations"][0]["priority"] == "low"
        assert payload["recommendations"][1]["priority"] == "medium"

    def test_busy_wallet_with_large_holdings(self):
        transactions = [_tx(i) for i in range(60)]
        transactions[3]["value"] = str(2 * ONE_BNB)
        activity = WalletActivity(
            wallet_address=WALLET,
            balance_wei=20 * ONE_BNB,
            transactions=transactions,
            token_transfers=[{"tokenSymbol": "CAKE"}],
            internal_transactions=[{"type": "call"}],
            risk_factors=["r1", "r2", "r3", "r4", "r5"],
        )
        payload = security_analysis_fallback(activity).payload
        assert payload["riskLevel"] == "HIGH"
        assert "Risk score: 8/10" in payload["analysis"]
        assert "Balance: 20.0000 BNB" in payload["analysis"]
        assert "High-value transactions detected" in payload["analysis"]
        recommendations = payload["recommendations"]
        assert [r["id"] for r in recommendations] == ["1", "2", "3", "4", "5"]
        assert recommendations[0]["priority"] == "high"
        assert recommendations[1]["priority"] == "high"
        assert recommendations[3]["category"] == "token"


class TestRecommendationModel:
    def test_unknown_labels_are_inferred_from_text(self):
        recommendation = SecurityRecommendation.model_validate(
            {"title": "Urgent: revoke unused token approvals", "priority": "P0"}
        )
        assert recommendation.priority == RecommendationPriority.CRITICAL
        assert recommendation.category == RecommendationCategory.TOKEN

    def test_known_labels_are_case_insensitive(self):
        recommendation = SecurityRecommendation.model_validate(
            {"title": "Batch transfers", "priority": "High", "category": "GAS"}
        )
        assert recommendation.priority == RecommendationPriority.HIGH
        assert recommendation.category == RecommendationCategory.GAS

    def test_recommendations_are_numbered_and_capped(self):
        result = SecurityAnalysisResult.model_validate(
            {
                "analysis": "Wallet looks fine",
                "recommendations": [{"title": f"Step {i}", "priority": "low"} for i in range(10)],
            }
        )
        assert [r.id for r in result.recommendations] == [str(i) for i in range(1, 9)]


class TestSecurityAnalysisRoute:
    @pytest.mark.asyncio
    async def test_fallback_without_ai(self, client):
        response = await client.post("/api/ai-security-analysis", json=_body())
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["aiUsed"] is False
        assert data["source"] == "fallback-pattern"
        assert data["fallbackReason"] == "AI provider not configured"
        assert data["riskLevel"] == "LOW-MEDIUM"
        assert data["recommendations"][3]["title"] == "Token Approval Management"
        assert data["securityScore"] == 85
        assert data["suspiciousPatterns"] == []
        metadata = data["metadata"]
        assert metadata["walletAddress"] == WALLET
        assert metadata["walletBalance"] == str(2 * ONE_BNB)
        assert metadata["totalTransactions"] == 2
        assert metadata["totalTokenTransfers"] == 1
        assert metadata["totalInternalTransactions"] == 1
        assert metadata["riskFactors"] == 1

    @pytest.mark.asyncio
    async def test_huge_balance_is_summarized(self, client):
        response = await client.post("/api/ai-security-analysis", json=_body(balance=str(2**255)))
        assert response.status_code == 200
        data = response.json()
        assert data["metadata"]["walletBalance"] == str(2**255)
        assert data["recommendations"][1]["priority"] == "high"

    @pytest.mark.asyncio
    async def test_ai_recommendations(self, clock):
        completion = json.dumps(
            {
                "analysis": "Mostly plain transfers; one token approval outstanding.",
                "riskLevel": "Medium",
                "recommendations": [
                    {
                        "title": "Lower gas fees",
                        "description": "Batch small transfers",
                        "priority": "Medium",
                        "recommendation": "Send during quiet hours",
                    }
                ],
            }
        )
        fake = FakeCompletionClient([completion])
        services = make_services(completion_client=fake, clock=clock)
        async with api_client(services) as ac:
            data = (await ac.post("/api/ai-security-analysis", json=_body())).json()

        assert data["aiUsed"] is True
        assert data["source"] == "ai"
        assert data["recommendations"] == [
            {
                "id": "1",
                "title": "Lower gas fees",
                "description": "Batch small transfers",
                "priority": "medium",
                "category": "gas",
                "actionable": True,
                "recommendation": "Send during quiet hours",
            }
        ]
        assert data["apiCallsRemaining"] == 49
        assert services.quotas.get(SECURITY_ANALYSIS).snapshot().calls_used == 1
        assert '"totalTransactions": 2' in fake.calls[0]["user"]
        assert '"from": "YOU"' in fake.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_wrong_shape_falls_back(self, clock):
        fake = FakeCompletionClient(['{"recommendations": []}'])
        async with api_client(make_services(completion_client=fake, clock=clock)) as ac:
            data = (await ac.post("/api/ai-security-analysis", json=_body())).json()
        assert data["aiUsed"] is False
        assert data["fallbackReason"] == REASON_WRONG_SHAPE
        assert data["analysis"].startswith("CRYPTOGUARD SECURITY ANALYSIS")

    @pytest.mark.asyncio
    async def test_exhausted_quota_skips_provider(self, clock):
        fake = FakeCompletionClient(['{"analysis": "unused"}'])
        services = make_services(completion_client=fake, clock=clock)
        services.quotas.get(SECURITY_ANALYSIS).exhaust()
        async with api_client(services) as ac:
            data = (await ac.post("/api/ai-security-analysis", json=_body())).json()
        assert fake.calls == []
        assert data["fallbackReason"] == REASON_QUOTA_EXHAUSTED
        assert data["apiCallsRemaining"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{}, {"transactions": {}}, _body(walletAddress="0xnope"), _body(balance="-5")],
    )
    async def test_invalid_body_is_400(self, client, body):
        response = await client.post("/api/ai-security-analysis", json=body)
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_non_finite_json_numbers_are_400(self, client):
        response = await client.post(
            "/api/ai-security-analysis",
            content='{"transactions": [{"value": Infinity}]}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Wallet activity must not contain NaN or Infinity"
