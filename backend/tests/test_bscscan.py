"""Tests for the BscScan client's response handling."""

import httpx
import pytest

from cryptoguard.core.errors import ExplorerError
from fakes import make_explorer

ADDRESS = "0x8894E0a0c962CB723c1976a4421c95949bE2D4E3"


@pytest.mark.asyncio
async def test_api_key_and_params_are_sent():
    seen = []

    def balance(request: httpx.Request):
        seen.append(dict(request.url.params))
        return {"status": "1", "message": "OK", "result": "1500000000000000000"}

    explorer = make_explorer({"account.balance": balance})
    assert await explorer.get_balance(ADDRESS) == 1_500_000_000_000_000_000
    assert seen[0]["apikey"] == "test-key"
    assert seen[0]["address"] == ADDRESS
    await explorer.close()


@pytest.mark.asyncio
async def test_no_transactions_is_empty_list():
    explorer = make_explorer(
        {"account.txlist": {"status": "0", "message": "No transactions found", "result": []}}
    )
    assert await explorer.get_transactions(ADDRESS) == []
    await explorer.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "route, message",
    [
        (httpx.Response(500, text="boom"), "Block explorer request failed"),
        (httpx.Response(200, text="<html>rate limited</html>"), "Block explorer returned invalid JSON"),
        ({"status": "0", "message": "NOTOK", "result": "Invalid API Key"}, "Block explorer error: NOTOK"),
        ({"status": "1", "message": "OK", "result": "not-a-list"}, "Block explorer returned an unexpected result"),
        (["unexpected"], "Block explorer returned an unexpected payload"),
    ],
)
async def test_errors_become_explorer_errors(route, message):
    explorer = make_explorer({"account.txlist": route})
    with pytest.raises(ExplorerError) as exc_info:
        await explorer.get_transactions(ADDRESS)
    assert exc_info.value.message == message
    await explorer.close()


@pytest.mark.asyncio
async def test_transport_failure():
    def unreachable(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    explorer = make_explorer({"account.balance": unreachable})
    with pytest.raises(ExplorerError, match="unreachable"):
        await explorer.get_balance(ADDRESS)
    await explorer.close()


@pytest.mark.asyncio
async def test_rpc_error_payload():
    explorer = make_explorer({"proxy.eth_blockNumber": {"jsonrpc": "2.0", "error": {"code": -32005}}})
    with pytest.raises(ExplorerError):
        await explorer.get_latest_block()
    await explorer.close()


@pytest.mark.asyncio
async def test_contract_source_without_entries():
    explorer = make_explorer({"contract.getsourcecode": {"status": "1", "message": "OK", "result": []}})
    assert await explorer.get_contract_source(ADDRESS) == {}
    await explorer.close()
