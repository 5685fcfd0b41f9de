import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from traktdash import config
from traktdash.trakt import (
    TraktError,
    authorize_url,
    exchange_code,
    has_valid_credentials,
    load_token,
    save_token,
    token_status,
)


def test_credentials_come_from_env(trakt_configured):
    assert has_valid_credentials() is True


def test_no_credentials_by_default():
    assert has_valid_credentials() is False


def test_authorize_url_carries_state(trakt_configured):
    url = authorize_url("abc123")
    query = parse_qs(urlsplit(url).query)
    assert url.startswith("https://trakt.tv/oauth/authorize?")
    assert query["state"] == ["abc123"]
    assert query["client_id"] == ["client-id"]
    assert query["response_type"] == ["code"]


def test_token_round_trip_and_removal():
    assert load_token() is None
    save_token({"access_token": "tok", "created_at": 1, "expires_in": 10})
    assert load_token()["access_token"] == "tok"
    save_token(None)
    assert load_token() is None
    assert not config.token_path().exists()


def test_unreadable_token_file_reads_as_signed_out():
    path = config.token_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{not json", encoding="utf-8")
    assert load_token() is None


def test_token_status_without_token():
    assert token_status(None) == {"ok": True, "hasToken": False, "needsAuth": True}


def test_token_status_expiry_math():
    status = token_status(
        {"access_token": "t", "refresh_token": "r", "created_at": 1000, "expires_in": 3 * 86400},
        now=1000 + 86400,
    )
    assert status["hasToken"] is True
    assert status["hasRefreshToken"] is True
    assert status["expiresInDays"] == 2
    assert status["needsRefresh"] is False
    assert status["expired"] is False

    expired = token_status({"access_token": "t", "created_at": 1000, "expires_in": 10}, now=2000)
    assert expired["expired"] is True
    assert expired["needsRefresh"] is True


@pytest.mark.asyncio
async def test_exchange_code_posts_authorization_code(trakt_configured):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"access_token": "tok", "expires_in": 7776000})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://api.trakt.tv") as client:
        token = await exchange_code("the-code", client=client)

    assert token["access_token"] == "tok"
    assert seen["path"] == "/oauth/token"
    assert seen["body"]["code"] == "the-code"
    assert seen["body"]["grant_type"] == "authorization_code"
    assert seen["body"]["client_secret"] == "client-secret"


@pytest.mark.asyncio
async def test_exchange_code_raises_on_error_status(trakt_configured):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "invalid_grant"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://api.trakt.tv") as client:
        with pytest.raises(TraktError) as excinfo:
            await exchange_code("bad", client=client)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_exchange_code_wraps_transport_errors(trakt_configured):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://api.trakt.tv") as client:
        with pytest.raises(TraktError):
            await exchange_code("code", client=client)
