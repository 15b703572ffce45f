"""
Tests for the access gate: header parsing, the pure ``authorize`` stage
and its HTTP mapping (401 without a token, 403 for a bad one).
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from auth.dependencies import (
    AuthContext,
    ForbiddenError,
    NotAuthenticatedError,
    authorize,
    split_authorization,
    require_user,
)
from auth.tokens import TokenService

SECRET = "gate-test-signing-secret-0123456789abcdef"


def _flip_signature(token: str) -> str:
    header, payload, sig = token.split(".")
    swapped = "B" if sig[0] == "A" else "A"
    return ".".join([header, payload, swapped + sig[1:]])


class TestSplitAuthorization:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("Bearer abc.def.ghi", ("Bearer", "abc.def.ghi")),
            ("bearer abc", ("bearer", "abc")),
            ("Basic dXNlcjpwdw==", ("Basic", "dXNlcjpwdw==")),
            ("Bearer", ("Bearer", "")),
            (None, ("", "")),
            ("", ("", "")),
        ],
    )
    def test_parsing(self, header, expected):
        assert split_authorization(header) == expected


class TestAuthorize:
    def setup_method(self):
        self.tokens = TokenService(secret=SECRET)

    def test_valid_token_yields_context(self):
        context = authorize(f"Bearer {self.tokens.issue('5')}", self.tokens)
        assert context == AuthContext(user_id="5")

    def test_missing_header_is_unauthenticated(self):
        with pytest.raises(NotAuthenticatedError):
            authorize(None, self.tokens)

    def test_tampered_token_is_forbidden(self):
        token = _flip_signature(self.tokens.issue("5"))
        with pytest.raises(ForbiddenError):
            authorize(f"Bearer {token}", self.tokens)

    def test_expired_token_is_forbidden(self):
        past = TokenService(
            secret=SECRET,
            clock=lambda: datetime.now(timezone.utc) - timedelta(hours=3),
        )
        with pytest.raises(ForbiddenError):
            authorize(f"Bearer {past.issue('5')}", self.tokens)

    def test_bare_scheme_is_unauthenticated(self):
        with pytest.raises(NotAuthenticatedError):
            authorize("Bearer", self.tokens)

    def test_non_bearer_credentials_are_forbidden(self):
        with pytest.raises(ForbiddenError):
            authorize(f"Basic {self.tokens.issue('5')}", self.tokens)

    def test_garbage_token_is_forbidden(self):
        with pytest.raises(ForbiddenError):
            authorize("Bearer definitely-not-a-jwt", self.tokens)


def _gated_app(tokens: TokenService) -> FastAPI:
    app = FastAPI()
    app.state.token_service = tokens

    @app.get("/private")
    async def private(request: Request, auth: AuthContext = Depends(require_user)):
        return {"user_id": auth.user_id, "state_user_id": request.state.user_id}

    return app


class TestRequireUser:
    def setup_method(self):
        self.tokens = TokenService(secret=SECRET)
        self.client = TestClient(_gated_app(self.tokens))

    def test_no_header_returns_401(self):
        resp = self.client.get("/private")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Not authenticated"
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_non_bearer_scheme_returns_403(self):
        resp = self.client.get("/private", headers={"Authorization": "Basic dXNlcjpwdw=="})
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Invalid or expired token"

    def test_scheme_without_credentials_returns_401(self):
        resp = self.client.get("/private", headers={"Authorization": "Bearer"})
        assert resp.status_code == 401

    def test_tampered_token_returns_403(self):
        token = _flip_signature(self.tokens.issue("9"))
        resp = self.client.get("/private", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Invalid or expired token"

    def test_expired_token_returns_403_with_same_message(self):
        past = TokenService(
            secret=SECRET,
            clock=lambda: datetime.now(timezone.utc) - timedelta(hours=2),
        )
        resp = self.client.get(
            "/private", headers={"Authorization": f"Bearer {past.issue('9')}"}
        )
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Invalid or expired token"

    def test_foreign_secret_returns_403(self):
        other = TokenService(secret="someone-elses-secret-abcdefghijklmnop")
        resp = self.client.get(
            "/private", headers={"Authorization": f"Bearer {other.issue('9')}"}
        )
        assert resp.status_code == 403

    def test_valid_token_reaches_handler_with_identity(self):
        resp = self.client.get(
            "/private", headers={"Authorization": f"Bearer {self.tokens.issue('9')}"}
        )
        assert resp.status_code == 200
        assert resp.json() == {"user_id": "9", "state_user_id": "9"}
