"""Tests for transaction decoding, gas analysis and the transaction analysis route."""

import pytest

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.data.transaction_patterns import KNOWN_CONTRACTS, TRANSACTION_PATTERNS, match_pattern
from cryptoguard.models.transaction import TransactionAnalysisType
from cryptoguard.services.ai_pipeline import AnswerSource
from cryptoguard.services.quota import TRANSACTION_ANALYSIS
from cryptoguard.services.transaction_analysis import (
    _to_int,
    analyze_gas_fees,
    decode_transaction_input,
    transaction_fallback,
    validate_transaction_request,
)
from fakes import FakeCompletionClient, api_client, make_services

TX_HASH = "0x" + "ab" * 32
PANCAKE_ROUTER = "0x10ED43C718714eb63d5aA57B78B54704E256024E"

SWAP_TX = {
    "from": "0x1111111111111111111111111111111111111111",
    "to": PANCAKE_ROUTER,
    "value": "100000000000000000",
    "input": "0x7ff36ab5000000000000000000000000000000000000000000000000000000000000",
    "gasUsed": "0x2bf20",
    "gasPrice": "5000000000",
    "status": "success",
}


class TestDecodeInput:
    @pytest.mark.parametrize("data", [None, "", "0x"])
    def test_plain_transfer(self, data):
        assert decode_transaction_input(data)["type"] == "Simple Transfer"

    def test_known_selector(self):
        decoded = decode_transaction_input("0xA9059CBB" + "00" * 64)
        assert decoded["methodId"] == "0xa9059cbb"
        assert decoded["methodName"] == "transfer(address,uint256)"
        assert decoded["decodedPartially"] is True

    def test_unknown_selector(self):
        decoded = decode_transaction_input("0xdeadbeef")
        assert decoded["methodName"] == "Unknown Method"
        assert decoded["decodedPartially"] is False


class TestGasAnalysis:
    @pytest.mark.parametrize(
        "gas_used, efficiency",
        [
            (21_000, "Very Efficient"),
            (50_000, "Efficient"),
            (150_000, "Moderate"),
            (200_000, "High"),
            (500_000, "Very High"),
        ],
    )
    def test_efficiency_buckets(self, gas_used, efficiency):
        assert analyze_gas_fees(gas_used, 5 * 10**9)["efficiency"] == efficiency

    def test_cost_and_recommendations(self):
        cheap = analyze_gas_fees(21_000, 5 * 10**9)
        assert cheap["gasCostWei"] == str(21_000 * 5 * 10**9)
        assert cheap["gasCostBnb"] == pytest.approx(0.000105)
        assert cheap["recommendations"] == ["Gas cost is reasonable", "Transaction was efficient"]

        expensive = analyze_gas_fees(1_000_000, 20 * 10**9)
        assert expensive["gasCostBnb"] == pytest.approx(0.02)
        assert "Consider using Layer 2 solutions" in expensive["recommendations"]


class TestGasParsing:
    @pytest.mark.parametrize(
        "raw", ["inf", "-inf", "nan", "1e400", "0x", "abc", "-5", "0x1" + "0" * 70, True, None]
    )
    def test_unusable_values_are_dropped(self, raw):
        assert _to_int(raw) is None

    @pytest.mark.parametrize(
        "raw, expected", [("0x5208", 21_000), (" 21000 ", 21_000), ("2.1e4", 21_000), (21_000.0, 21_000)]
    )
    def test_usable_values(self, raw, expected):
        assert _to_int(raw) == expected


class TestPatterns:
    def test_first_listed_pattern_wins(self):
        # 0xf305d719 is listed by both yield_farming and liquidity_provision
        assert match_pattern("0xf305d719").key == "yield_farming"

    def test_fallback_uses_selector_and_contract(self):
        answer = transaction_fallback(TX_HASH, SWAP_TX)
        assert answer.source == AnswerSource.FALLBACK_PATTERN
        analysis = answer.payload["analysis"]
        assert analysis["type"] == "Token swap on a DEX"
        assert analysis["riskLevel"] == "Low-Medium"
        assert analysis["protocol"] == "PancakeSwap Router v2"
        assert analysis["breakdown"]["to"] == "PancakeSwap Router v2"
        assert analysis["breakdown"]["from"] == SWAP_TX["from"]

    def test_fallback_without_input(self):
        answer = transaction_fallback("custom", {"to": "0x" + "9" * 40})
        assert answer.source == AnswerSource.FALLBACK_DICTIONARY
        analysis = answer.payload["analysis"]
        assert analysis["type"] == "Unknown Transaction"
        assert analysis["riskLevel"] == "Medium"
        assert "protocol" not in analysis
        assert analysis["breakdown"]["status"] == "Unknown"


class TestValidation:
    @pytest.mark.parametrize(
        "tx_hash, tx_data, analysis_type, message",
        [
            (None, None, "full", "Either transaction hash or transaction data is required"),
            ("0x1234", None, "full", "Invalid transaction hash format"),
            (None, ["not", "an", "object"], "full", "Transaction data must be an object"),
            (TX_HASH, None, "deep", "Invalid analysis type"),
            (None, {"gasUsed": float("nan")}, "full", "Transaction data must not contain NaN or Infinity"),
            (None, {"logs": [{"value": float("inf")}]}, "full", "Transaction data must not contain NaN or Infinity"),
        ],
    )
    def test_rejected(self, tx_hash, tx_data, analysis_type, message):
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_transaction_request(tx_hash, tx_data, analysis_type)
        assert exc_info.value.message.startswith(message)

    def test_hash_only(self):
        assert validate_transaction_request(TX_HASH, None, None) == (
            TX_HASH,
            None,
            TransactionAnalysisType.FULL,
        )


class TestTransactionRoutes:
    @pytest.mark.asyncio
    async def test_full_data_without_ai(self, client):
        body = {"transactionHash": TX_HASH, "transactionData": SWAP_TX, "analysisType": "security"}
        response = await client.post("/api/transaction-analysis", json=body)
        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "fallback-pattern"
        assert data["decodedInput"]["methodName"] == "swapExactETHForTokens"
        assert data["gasAnalysis"]["gasUsed"] == 0x2BF20
        assert data["gasAnalysis"]["efficiency"] == "Moderate"
        assert data["metadata"]["hasFullData"] is True
        assert data["metadata"]["analysisType"] == "security"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("gas_used", ["inf", "1e400", "-inf"])
    async def test_overflowing_gas_strings_skip_gas_analysis(self, client, gas_used):
        body = {"transactionData": {"gasUsed": gas_used, "gasPrice": "5"}}
        response = await client.post("/api/transaction-analysis", json=body)
        assert response.status_code == 200
        data = response.json()
        assert data["gasAnalysis"] is None
        assert data["analysis"]["breakdown"]["gasUsed"] == gas_used

    @pytest.mark.asyncio
    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    async def test_non_finite_json_numbers_are_400(self, client, literal):
        content = '{"transactionData": {"gasUsed": ' + literal + ', "gasPrice": 5}}'
        response = await client.post(
            "/api/transaction-analysis",
            content=content,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Transaction data must not contain NaN or Infinity",
        }

    @pytest.mark.asyncio
    async def test_hash_only(self, client):
        data = (await client.post("/api/transaction-analysis", json={"transactionHash": TX_HASH})).json()
        assert data["success"] is True
        assert data["analysis"]["hash"] == TX_HASH
        assert data["decodedInput"] is None
        assert data["gasAnalysis"] is None
        assert data["metadata"]["hasFullData"] is False

    @pytest.mark.asyncio
    async def test_ai_uses_transaction_quota(self, clock):
        fake = FakeCompletionClient(
            ['{"analysis": {"type": "Swap", "protocol": "PancakeSwap", "riskLevel": "Low"}, "risks": []}']
        )
        services = make_services(completion_client=fake, clock=clock)
        async with api_client(services) as ac:
            data = (
                await ac.post("/api/transaction-analysis", json={"transactionData": SWAP_TX})
            ).json()
        assert data["aiUsed"] is True
        assert data["analysis"]["protocol"] == "PancakeSwap"
        assert services.quotas.get(TRANSACTION_ANALYSIS).snapshot().calls_used == 1
        assert data["apiCallsRemaining"] == 24

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"transactionHash": "0xnothex"},
            {"transactionData": "0xf86c"},
            {"transactionHash": TX_HASH, "analysisType": "deep"},
        ],
    )
    async def test_invalid_body_is_400(self, client, body):
        response = await client.post("/api/transaction-analysis", json=body)
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_patterns_action(self, client):
        data = (await client.get("/api/transaction-analysis", params={"action": "patterns"})).json()
        assert [p["id"] for p in data["transactionPatterns"]] == [p.key for p in TRANSACTION_PATTERNS]

    @pytest.mark.asyncio
    async def test_contracts_action(self, client):
        data = (await client.get("/api/transaction-analysis", params={"action": "contracts"})).json()
        assert len(data["knownContracts"]) == len(KNOWN_CONTRACTS)

    @pytest.mark.asyncio
    async def test_status_action(self, client):
        data = (await client.get("/api/transaction-analysis", params={"action": "status"})).json()
        assert data["status"] == {"apiCallsUsed": 0, "apiCallsRemaining": 25, "canAnalyze": True}
