"""Tests for the wallet / contract risk scanner."""

from typing import Optional

import pytest

from cryptoguard.core.errors import RequestValidationFailed
from cryptoguard.models.common import RiskLevel
from cryptoguard.models.scanner import ScanSource, SecurityStatus
from cryptoguard.services.result_cache import ResultCache
from cryptoguard.services.security_scanner import (
    RiskHeuristicScorer,
    SecurityScanService,
    analyze_source_code,
    analyze_transaction_patterns,
    clamp_score,
    security_status,
    validate_address,
)
from fakes import FakeClock, make_explorer

WALLET = "0x8894E0a0c962CB723c1976a4421c95949bE2D4E3"
CONTRACT = "0x0E09FaBB73Bd3Ade0a17ECC321fD13a19e81cE82"
PANCAKE_ROUTER = "0x10ED43C718714eb63d5aA57B78B54704E256024E"
SCAMMER = "0x000000000000000000000000000000000000dEaD"

OK = {"status": "1", "message": "OK"}
NO_TRANSACTIONS = {"status": "0", "message": "No transactions found", "result": []}

MINT_AND_BLACKLIST_SOURCE = """
pragma solidity ^0.8.0;
contract Token is IBEP20, Ownable {
    mapping(address => bool) private _blacklist;
    function mint(address to, uint256 amount) external onlyOwner { _mint(to, amount); }
    function addToBlacklist(address account) external onlyOwner { _blacklist[account] = true; }
}
"""

PLAIN_TOKEN_SOURCE = """
pragma solidity ^0.8.0;
contract Token is IBEP20 {
    function totalSupply() external view returns (uint256) { return _supply; }
    function transfer(address to, uint256 amount) external returns (bool) { return true; }
}
"""


def _source_route(source_code: str):
    return {**OK, "result": [{"SourceCode": source_code, "CompilerVersion": "v0.8.19+commit.7dd6d404"}]}


def _service(
    routes,
    calls=None,
    clock: Optional[FakeClock] = None,
    blacklist=(),
    honeypot: Optional[bool] = None,
    liquidity_locked: Optional[bool] = None,
    probes: bool = False,
) -> SecurityScanService:
    async def honeypot_probe(address: str) -> Optional[bool]:
        return honeypot

    async def liquidity_probe(address: str) -> Optional[bool]:
        return liquidity_locked

    scorer = RiskHeuristicScorer(
        make_explorer(routes, calls),
        blacklist=blacklist,
        honeypot_probe=honeypot_probe if probes else None,
        liquidity_probe=liquidity_probe if probes else None,
        clock=clock or FakeClock(),
    )
    return SecurityScanService(scorer, ResultCache(max_entries=16, ttl_seconds=300))


def _tx(clock: FakeClock, **overrides):
    tx = {
        "timeStamp": str(int(clock.now) - 3600),
        "from": WALLET,
        "to": "0x2222222222222222222222222222222222222222",
        "value": "0",
        "input": "0x",
        "gasPrice": "5000000000",
        "isError": "0",
    }
    tx.update(overrides)
    return tx


class TestScoringPrimitives:
    @pytest.mark.parametrize(
        "score, status",
        [(0, SecurityStatus.SAFE), (30, SecurityStatus.SAFE), (31, SecurityStatus.WARNING),
         (60, SecurityStatus.WARNING), (61, SecurityStatus.DANGER), (100, SecurityStatus.DANGER)],
    )
    def test_status_boundaries(self, score, status):
        assert security_status(score) == status

    @pytest.mark.parametrize("raw, clamped", [(-5, 0), (0, 0), (55, 55), (100, 100), (175, 100)])
    def test_clamp(self, raw, clamped):
        assert clamp_score(raw) == clamped

    @pytest.mark.parametrize(
        "address, message",
        [
            (None, "Wallet address is required"),
            ("  ", "Wallet address is required"),
            ("0x123", "Invalid BNB Chain address format"),
            ("8894E0a0c962CB723c1976a4421c95949bE2D4E3", "Invalid BNB Chain address format"),
            ("0x" + "g" * 40, "Invalid BNB Chain address format"),
        ],
    )
    def test_address_validation(self, address, message):
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_address(address)
        assert exc_info.value.message == message

    def test_transaction_pattern_heuristics(self, clock):
        transactions = [
            _tx(clock, isError="1", gasPrice="30000000000", value="1000000000000000000") for _ in range(12)
        ]
        findings = analyze_transaction_patterns(transactions, clock.now)
        # failed rate, high gas and repeated amounts; only 12 recent transactions
        assert findings.score == 15 + 10 + 10
        assert len(findings.threats) == 3

    def test_source_code_features(self):
        features = analyze_source_code(MINT_AND_BLACKLIST_SOURCE)
        assert features["is_bep20"] is True
        assert features["can_mint"] is True
        assert features["has_blacklist"] is True
        assert features["has_proxy_pattern"] is False
        assert features["ownership_risk"] == RiskLevel.HIGH

    def test_renounced_ownership_is_low_risk(self):
        source = MINT_AND_BLACKLIST_SOURCE + "\nfunction renounceOwnership() public onlyOwner {}"
        assert analyze_source_code(source)["ownership_risk"] == RiskLevel.LOW


class TestWalletScan:
    @pytest.mark.asyncio
    async def test_live_wallet_scan(self, clock):
        transactions = [_tx(clock) for _ in range(55)]
        transactions.append(_tx(clock, to=PANCAKE_ROUTER, input="0x38ed1739"))
        transactions.append(_tx(clock, to=SCAMMER, input="0xa9059cbb"))
        routes = {
            "account.balance": {**OK, "result": "25000000000000000000"},
            "account.txlist": {**OK, "result": transactions},
            "account.tokentx": NO_TRANSACTIONS,
        }
        service = _service(routes, clock=clock, blacklist=[SCAMMER])

        report = await service.scan_wallet(WALLET)

        # high frequency 20, flagged counterparty 40, one unknown protocol 5
        assert report.risk_score == 65
        assert report.status == SecurityStatus.DANGER
        assert report.source == ScanSource.LIVE
        assert report.bnb_balance == "25.0000"
        assert report.token_count == 0
        assert [i.protocol for i in report.defi_interactions] == ["PancakeSwap Router V2", "Unknown"]
        assert report.recommendations[0].startswith("URGENT")
        assert "Consider using a multi-signature wallet for large holdings" in report.recommendations

    @pytest.mark.asyncio
    async def test_live_reports_are_cached_per_address(self, clock):
        calls = []
        routes = {
            "account.balance": {**OK, "result": "0"},
            "account.txlist": NO_TRANSACTIONS,
            "account.tokentx": NO_TRANSACTIONS,
        }
        service = _service(routes, calls=calls, clock=clock)

        first = await service.scan_wallet(WALLET)
        second = await service.scan_wallet(WALLET.lower())

        assert second is first
        assert calls == ["account.balance", "account.txlist", "account.tokentx"]
        assert first.risk_score == 0

    @pytest.mark.asyncio
    async def test_explorer_failure_serves_deterministic_simulation(self):
        calls = []
        service = _service({}, calls=calls)

        first = await service.scan_wallet(WALLET)
        second = await service.scan_wallet(WALLET.lower())

        assert first.source == ScanSource.SIMULATED
        assert first.simulation_reason.startswith("Block explorer unavailable")
        assert 0 <= first.risk_score <= 100
        assert (first.risk_score, first.threats, first.bnb_balance, first.token_count) == (
            second.risk_score,
            second.threats,
            second.bnb_balance,
            second.token_count,
        )
        # simulated reports are never cached
        assert calls == ["account.balance", "account.balance"]


class TestContractScan:
    @pytest.mark.asyncio
    async def test_unverified_contract(self):
        service = _service({"contract.getsourcecode": _source_route("")})
        report = await service.scan_contract(CONTRACT)
        assert report.risk_score == 30
        assert report.status == SecurityStatus.SAFE
        assert report.threats == ["Contract source code not verified"]
        assert report.contract_details.is_verified is False
        assert report.recommendations[0].startswith("CRITICAL")

    @pytest.mark.asyncio
    async def test_mint_and_blacklist(self):
        service = _service({"contract.getsourcecode": _source_route(MINT_AND_BLACKLIST_SOURCE)})
        report = await service.scan_contract(CONTRACT)
        assert report.risk_score == 45
        assert report.status == SecurityStatus.WARNING
        assert report.contract_details.ownership_risk == RiskLevel.HIGH
        # mint 2 + blacklist 1 + high ownership risk 2
        assert report.contract_details.rug_pull_risk == RiskLevel.MEDIUM

    @pytest.mark.asyncio
    async def test_proxy_pattern_reaches_warning_ceiling(self):
        source = MINT_AND_BLACKLIST_SOURCE + "\n// forwards calls with delegatecall\n"
        service = _service({"contract.getsourcecode": _source_route(source)})
        report = await service.scan_contract(CONTRACT)
        assert report.risk_score == 60
        assert report.status == SecurityStatus.WARNING

    @pytest.mark.asyncio
    async def test_vulnerabilities_are_reported_without_points(self):
        source = PLAIN_TOKEN_SOURCE + "\nfunction kill() external { require(tx.origin == owner); selfdestruct(payable(owner)); }"
        service = _service({"contract.getsourcecode": _source_route(source)})
        report = await service.scan_contract(CONTRACT)
        assert report.risk_score == 0
        assert len(report.contract_details.vulnerabilities) == 2
        assert set(report.threats) == set(report.contract_details.vulnerabilities)

    @pytest.mark.asyncio
    async def test_honeypot_probe_pushes_to_danger(self):
        service = _service(
            {"contract.getsourcecode": _source_route(MINT_AND_BLACKLIST_SOURCE)},
            honeypot=True,
            probes=True,
        )
        report = await service.scan_contract(CONTRACT)
        assert report.risk_score == 100
        assert report.status == SecurityStatus.DANGER
        assert report.contract_details.is_honeypot is True

    @pytest.mark.asyncio
    async def test_unlocked_liquidity(self):
        service = _service(
            {"contract.getsourcecode": _source_route(PLAIN_TOKEN_SOURCE)},
            liquidity_locked=False,
            probes=True,
        )
        report = await service.scan_contract(CONTRACT)
        assert report.risk_score == 30
        assert report.contract_details.liquidity_locked is False
        assert report.contract_details.rug_pull_risk == RiskLevel.MEDIUM
        assert "Liquidity not locked - verify team commitment" in report.recommendations

    @pytest.mark.asyncio
    async def test_unknown_probes_do_not_score(self):
        service = _service({"contract.getsourcecode": _source_route(PLAIN_TOKEN_SOURCE)}, probes=True)
        report = await service.scan_contract(CONTRACT)
        assert report.risk_score == 0
        assert report.contract_details.liquidity_locked is None


class TestScannerRoutes:
    @pytest.mark.asyncio
    async def test_wallet_route_serves_simulation_when_explorer_is_down(self, client):
        response = await client.post("/api/scanner/wallet", json={"address": WALLET})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["source"] == "simulated"
        assert data["status"] in ("safe", "warning", "danger")
        assert "simulationReason" in data
        assert data["networkInfo"]["chainId"] == 56

    @pytest.mark.asyncio
    async def test_contract_route(self, client):
        data = (await client.post("/api/scanner/contract", json={"address": CONTRACT})).json()
        assert data["source"] == "simulated"
        assert data["contractDetails"]["isBEP20"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path, body, message",
        [
            ("/api/scanner/wallet", {}, "Wallet address is required"),
            ("/api/scanner/contract", {}, "Contract address is required"),
            ("/api/scanner/wallet", {"address": "0xnope"}, "Invalid BNB Chain address format"),
        ],
    )
    async def test_invalid_address_is_400(self, client, path, body, message):
        response = await client.post(path, json=body)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": message}

    @pytest.mark.asyncio
    async def test_status_reports_cache_counters(self, client):
        await client.post("/api/scanner/wallet", json={"address": WALLET})
        data = (await client.get("/api/scanner/status")).json()
        assert data["success"] is True
        assert data["explorerConfigured"] is True
        # the simulated report is served without being stored
        assert data["cache"]["entries"] == 0
        assert (data["cache"]["hits"], data["cache"]["misses"]) == (0, 1)
