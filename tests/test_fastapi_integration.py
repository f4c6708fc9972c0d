# tests/test_fastapi_integration.py
from datetime import datetime, timezone

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from pkg_authn.adapters.jwt.token_codec import JWTTokenCodec
from pkg_authn.domain.entities import ClaimSet
from pkg_authn.integrations.fastapi import create_fastapi_auth


@pytest.fixture
def live_codec(settings):
    return JWTTokenCodec.from_settings(settings)


@pytest.fixture
def client(settings):
    fastapi_auth = create_fastapi_auth(settings=settings)
    app = FastAPI()

    @app.get("/me")
    async def me(claims: ClaimSet = Depends(fastapi_auth.get_current_claims)):
        return {"email": claims.subject, "roles": sorted(claims.roles or ())}

    @app.get("/maybe")
    async def maybe(claims: ClaimSet | None = Depends(fastapi_auth.get_optional_claims)):
        return {"anonymous": claims is None}

    @app.get("/admin")
    async def admin(claims: ClaimSet = Depends(fastapi_auth.require_roles("ADMIN"))):
        return {"ok": True}

    @app.get("/managers")
    async def managers(claims: ClaimSet = Depends(fastapi_auth.require_roles("MANAGER"))):
        return {"ok": True}

    @app.get("/tenant/7")
    async def tenant(claims: ClaimSet = Depends(fastapi_auth.require_tenant(7))):
        return {"ok": True}

    return TestClient(app)


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_missing_token(client):
    resp = client.get("/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


def test_bearer_header(client, live_codec, principal):
    resp = client.get("/me", headers=_bearer(live_codec.issue_access_token(principal)))
    assert resp.status_code == 200
    assert resp.json() == {"email": "admin@demo.example", "roles": ["ADMIN", "CLERK"]}


def test_cookie_fallback(client, live_codec, principal):
    client.cookies.set("access_token", live_codec.issue_access_token(principal))
    assert client.get("/me").status_code == 200


def test_expired_token(client, live_codec, principal):
    token = live_codec.issue_access_token(principal, datetime(2020, 1, 1, tzinfo=timezone.utc))
    resp = client.get("/me", headers=_bearer(token))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


def test_refresh_token_is_not_a_bearer_credential(client, live_codec, principal):
    resp = client.get("/me", headers=_bearer(live_codec.issue_refresh_token(principal)))
    assert resp.status_code == 401


def test_optional_claims(client, live_codec, principal):
    assert client.get("/maybe").json() == {"anonymous": True}
    assert client.get("/maybe", headers=_bearer("garbage")).json() == {"anonymous": True}
    token = live_codec.issue_access_token(principal)
    assert client.get("/maybe", headers=_bearer(token)).json() == {"anonymous": False}


def test_role_requirements(client, live_codec, principal):
    headers = _bearer(live_codec.issue_access_token(principal))
    assert client.get("/admin", headers=headers).status_code == 200
    assert client.get("/managers", headers=headers).status_code == 403
    assert client.get("/tenant/7", headers=headers).status_code == 200
