"""Integration tests for sign-up, sign-in and sign-out."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import PASSWORD
from workspace_hub.auth.events import get_auth_events
from workspace_hub.config import get_settings
from workspace_hub.core.security import decode_access_token
from workspace_hub.models.user import User
from workspace_hub.schemas.auth import AuthEventType


@pytest.fixture
def published():
    """Records every auth event published during the test."""
    listener = AsyncMock()
    subscription = asyncio.run(get_auth_events().subscribe(listener))
    yield listener
    asyncio.run(subscription.unsubscribe())


class TestSignup:

    def test_signup_creates_account(self, root_client, db):
        response = root_client.post("/auth/signup", json={
            "email": "New.Person@acme.com",
            "password": "a-long-password",
            "full_name": "New Person"
        })

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new.person@acme.com"
        assert "hashed_password" not in data

        user = db.query(User).filter(User.email == "new.person@acme.com").one()
        assert user.has_password

    def test_signup_with_existing_email_fails(self, root_client, seed):
        response = root_client.post("/auth/signup", json={
            "email": "owner@acme.com",
            "password": "a-long-password"
        })

        assert response.status_code == 400

    def test_signup_completes_invited_placeholder(self, root_client, db, seed):
        db.add(User(email="invited@acme.com"))
        db.commit()

        response = root_client.post("/auth/signup", json={
            "email": "invited@acme.com",
            "password": "a-long-password"
        })

        assert response.status_code == 201
        assert db.query(User).filter(User.email == "invited@acme.com").count() == 1

    def test_short_password_is_rejected(self, root_client):
        response = root_client.post("/auth/signup", json={"email": "x@acme.com", "password": "short"})

        assert response.status_code == 422


class TestSignin:

    def test_signin_issues_token_cookie_and_event(self, root_client, seed, published):
        response = root_client.post("/auth/signin", json={"email": "member@acme.com", "password": PASSWORD})

        assert response.status_code == 200
        token = response.json()
        payload = decode_access_token(token["access_token"])
        assert payload["sub"] == seed.member_id
        assert payload["sid"] == token["session_id"]
        assert get_settings().SESSION_COOKIE_NAME in response.cookies

        event = published.await_args.args[0]
        assert event.type == AuthEventType.SIGNED_IN
        assert event.user_id == seed.member_id
        assert event.session_id == token["session_id"]

    def test_client_key_is_carried_on_events(self, root_client, seed, published):
        token = root_client.post(
            "/auth/signin",
            json={"email": "member@acme.com", "password": PASSWORD},
            headers={"X-Client-Id": "device-1"}
        ).json()
        root_client.post(
            "/auth/signout",
            headers={"Authorization": f"Bearer {token['access_token']}", "X-Client-Id": "device-1"}
        )

        signed_in, signed_out = [call.args[0] for call in published.await_args_list]
        assert signed_in.client_id == "device-1"
        assert signed_out.client_id == "device-1"
        assert signed_out.type == AuthEventType.SIGNED_OUT

    def test_wrong_password_is_401(self, root_client, seed, published):
        response = root_client.post("/auth/signin", json={"email": "member@acme.com", "password": "wrong-password"})

        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"
        published.assert_not_awaited()

    def test_unknown_email_gets_same_error(self, root_client, seed):
        response = root_client.post("/auth/signin", json={"email": "nobody@acme.com", "password": PASSWORD})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_placeholder_account_cannot_sign_in(self, root_client, db, seed):
        db.add(User(email="invited@acme.com"))
        db.commit()

        response = root_client.post("/auth/signin", json={"email": "invited@acme.com", "password": PASSWORD})

        assert response.status_code == 401

    def test_token_opens_the_tenant(self, root_client, client, seed):
        token = root_client.post(
            "/auth/signin", json={"email": "member@acme.com", "password": PASSWORD}
        ).json()["access_token"]

        response = client.get("/dashboard", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["role"] == "member"


class TestSignout:

    def test_signout_publishes_event_for_session(self, root_client, seed, published):
        token = root_client.post(
            "/auth/signin", json={"email": "member@acme.com", "password": PASSWORD}
        ).json()
        published.reset_mock()

        response = root_client.post("/auth/signout", headers={"Authorization": f"Bearer {token['access_token']}"})

        assert response.status_code == 204
        event = published.await_args.args[0]
        assert event.type == AuthEventType.SIGNED_OUT
        assert event.session_id == token["session_id"]

    def test_signout_requires_session(self, root_client):
        response = root_client.post("/auth/signout")

        assert response.status_code == 401


class TestRedirectPages:

    def test_signin_page_is_public(self, client):
        assert client.get("/auth/signin").status_code == 200

    def test_unauthorized_page(self, client):
        response = client.get("/auth/unauthorized")

        assert response.status_code == 403
        assert response.json()["page"] == "unauthorized"

    def test_not_found_page_is_public(self, client):
        response = client.get("/404")

        assert response.status_code == 404
        assert response.json()["page"] == "not_found"
