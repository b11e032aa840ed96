"""
Grammable — Account & Session Tests
=====================================

What:  Password hashing, session tokens and the /users endpoints.
How:   Unit tests for the token helpers; endpoint tests through test_client
       against a real (SQLite) database.

What we test:
    ✅ bcrypt hash/verify
    ✅ Token round trip, expired and tampered tokens
    ✅ Sign up / sign in / sign out set and clear the session cookie
    ✅ A stale or forged cookie counts as signed out
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt

from grammable.auth import LOGIN_PATH
from grammable.config import settings
from grammable.services.auth_service import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

COOKIE = settings.session_cookie_name


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("secretPassword")
        assert hashed != "secretPassword"
        assert verify_password("secretPassword", hashed)
        assert not verify_password("wrongPassword", hashed)


class TestSessionTokens:

    def test_round_trip(self):
        user_id = uuid4()
        assert decode_access_token(create_access_token(user_id)) == user_id

    def test_expired_token(self):
        token = create_access_token(uuid4(), expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None

    def test_token_signed_with_another_key(self):
        token = jwt.encode({"sub": str(uuid4())}, "some-other-key", algorithm="HS256")
        assert decode_access_token(token) is None

    def test_garbage_token(self):
        assert decode_access_token("not-a-token") is None

    def test_subject_not_a_uuid(self):
        token = jwt.encode(
            {"sub": "admin"}, settings.secret_key, algorithm=settings.jwt_algorithm
        )
        assert decode_access_token(token) is None


class TestSignUp:

    @pytest.mark.asyncio
    async def test_form_context(self, test_client):
        response = await test_client.get("/users/sign_up")
        assert response.status_code == 200
        assert response.json()["action"] == "/users"

    @pytest.mark.asyncio
    async def test_creates_account_and_signs_in(self, test_client):
        response = await test_client.post(
            "/users",
            data={
                "email": "New.User@Example.com",
                "password": "secretPassword",
                "password_confirmation": "secretPassword",
            },
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert COOKIE in response.cookies

        # The new session is usable right away
        assert (await test_client.get("/grams/new")).status_code == 200

    @pytest.mark.asyncio
    async def test_duplicate_email_is_unprocessable(self, test_client, create_user):
        await create_user(email="taken@example.com")

        response = await test_client.post(
            "/users",
            data={"email": "TAKEN@example.com", "password": "secretPassword"},
        )

        assert response.status_code == 422
        assert response.json()["details"]["errors"] == {"email": ["has already been taken"]}

    @pytest.mark.asyncio
    async def test_invalid_attributes_are_unprocessable(self, test_client):
        response = await test_client.post(
            "/users",
            data={"email": "nope", "password": "123", "password_confirmation": "456"},
        )

        assert response.status_code == 422
        errors = response.json()["details"]["errors"]
        assert set(errors) == {"email", "password", "password_confirmation"}
        assert COOKIE not in response.cookies


class TestSignIn:

    @pytest.mark.asyncio
    async def test_form_context(self, test_client):
        response = await test_client.get(LOGIN_PATH)
        assert response.status_code == 200
        assert response.json()["action"] == LOGIN_PATH

    @pytest.mark.asyncio
    async def test_valid_credentials(self, test_client, create_user):
        await create_user(email="user@example.com", password="secretPassword")

        response = await test_client.post(
            LOGIN_PATH, data={"email": "user@example.com", "password": "secretPassword"}
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert COOKIE in response.cookies

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, create_user):
        await create_user(email="user@example.com", password="secretPassword")

        response = await test_client.post(
            LOGIN_PATH, data={"email": "user@example.com", "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "invalid_credentials"

    @pytest.mark.asyncio
    async def test_unknown_email(self, test_client):
        response = await test_client.post(
            LOGIN_PATH, data={"email": "nobody@example.com", "password": "secretPassword"}
        )
        assert response.status_code == 401


class TestSession:

    @pytest.mark.asyncio
    async def test_sign_out_clears_the_session(self, test_client, create_user):
        await create_user(email="user@example.com", password="secretPassword")
        await test_client.post(
            LOGIN_PATH, data={"email": "user@example.com", "password": "secretPassword"}
        )
        assert (await test_client.get("/grams/new")).status_code == 200

        response = await test_client.delete("/users/sign_out")

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert (await test_client.get("/grams/new")).status_code == 302

    @pytest.mark.asyncio
    async def test_forged_cookie_counts_as_signed_out(self, test_client):
        test_client.cookies.set(COOKIE, "forged")

        response = await test_client.get("/grams/new")

        assert response.status_code == 302
        assert response.headers["location"] == LOGIN_PATH

    @pytest.mark.asyncio
    async def test_cookie_for_deleted_user_counts_as_signed_out(self, test_client):
        test_client.cookies.set(COOKIE, create_access_token(uuid4()))

        response = await test_client.get("/grams/new")

        assert response.status_code == 302
        assert response.headers["location"] == LOGIN_PATH
