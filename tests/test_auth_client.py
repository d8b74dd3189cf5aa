from unittest.mock import MagicMock

import pytest

from plany.sessions import IDENTITY_BASE_URL, SECURE_TOKEN_URL, FirebaseAuthClient
from src.errors import IdentityProviderError


class FakeResponse:
    def __init__(self, status, payload=None, text=""):
        self.status_code = status
        self.ok = status < 400
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _client(*responses):
    http = MagicMock()
    http.post.side_effect = list(responses)
    return FirebaseAuthClient("key-123", http=http), http


def test_missing_api_key_is_a_configuration_error():
    with pytest.raises(RuntimeError):
        FirebaseAuthClient("")


def test_sign_in_posts_credentials():
    client, http = _client(FakeResponse(200, {"localId": "u1", "idToken": "t"}))
    assert client.sign_in("a@b.c", "pw")["localId"] == "u1"
    args, kwargs = http.post.call_args
    assert args[0] == f"{IDENTITY_BASE_URL}/accounts:signInWithPassword"
    assert kwargs["params"] == {"key": "key-123"}
    assert kwargs["json"] == {"email": "a@b.c", "password": "pw", "returnSecureToken": True}


def test_provider_code_and_detail_are_split():
    body = {"error": {"code": 400, "message": "TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled."}}
    client, _ = _client(FakeResponse(400, body))
    with pytest.raises(IdentityProviderError) as excinfo:
        client.sign_in("a@b.c", "pw")
    assert excinfo.value.code == "TOO_MANY_ATTEMPTS_TRY_LATER"
    assert excinfo.value.message == "Access disabled."


def test_plain_provider_code():
    client, _ = _client(FakeResponse(400, {"error": {"message": "EMAIL_EXISTS"}}))
    with pytest.raises(IdentityProviderError) as excinfo:
        client.sign_up("a@b.c", "pw1234")
    assert excinfo.value.code == "EMAIL_EXISTS"


def test_refresh_uses_token_endpoint_and_reports_oauth_errors():
    ok = FakeResponse(200, {"id_token": "new", "refresh_token": "r2", "user_id": "u1"})
    bad = FakeResponse(400, {"error": "invalid_grant", "error_description": "TOKEN_EXPIRED"})
    client, http = _client(ok, bad)

    assert client.refresh("r1")["user_id"] == "u1"
    args, kwargs = http.post.call_args
    assert args[0] == SECURE_TOKEN_URL
    assert kwargs["data"] == {"grant_type": "refresh_token", "refresh_token": "r1"}

    with pytest.raises(IdentityProviderError) as excinfo:
        client.refresh("r1")
    assert excinfo.value.code == "invalid_grant"


def test_non_json_error_uses_http_status():
    client, _ = _client(FakeResponse(503, None, text="Service Unavailable"))
    with pytest.raises(IdentityProviderError) as excinfo:
        client.lookup("t")
    assert excinfo.value.code == "HTTP_503"


def test_lookup_returns_first_user_or_empty():
    client, _ = _client(FakeResponse(200, {"users": [{"localId": "u1"}]}), FakeResponse(200, {}))
    assert client.lookup("t") == {"localId": "u1"}
    assert client.lookup("t") == {}
