# tests/test_auth_service.py
"""Unit tests for bearer-token resolution against the hosted auth service."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from unittest.mock import patch
from fastapi import HTTPException
from app.services import auth_service
from app.services.auth_service import resolve_user


def client_for(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture(autouse=True)
def auth_configured():
    with patch.object(auth_service.settings, "AUTH_URL", "https://auth.example.test"), \
         patch.object(auth_service.settings, "AUTH_API_KEY", "anon-key"):
        yield


class TestResolveUser:
    @pytest.mark.asyncio
    async def test_missing_header_rejected(self):
        with pytest.raises(HTTPException) as exc:
            await resolve_user(None)
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_token(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["apikey"] = request.headers["apikey"]
            seen["path"] = request.url.path
            return httpx.Response(200, json={"id": "user-1", "email": "chief@station.test"})

        async with client_for(handler) as client:
            user = await resolve_user("Bearer tok123", client=client)

        assert user.id == "user-1"
        assert seen == {"auth": "Bearer tok123", "apikey": "anon-key", "path": "/auth/v1/user"}

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        async with client_for(lambda request: httpx.Response(401, json={"msg": "bad jwt"})) as client:
            with pytest.raises(HTTPException) as exc:
                await resolve_user("Bearer expired", client=client)
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unconfigured_backend_rejects(self):
        with patch.object(auth_service.settings, "AUTH_URL", None):
            with pytest.raises(HTTPException) as exc:
                await resolve_user("Bearer tok123")
        assert exc.value.status_code == 401
