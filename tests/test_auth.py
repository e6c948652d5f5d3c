import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from survey_api.models import PersonalAccessToken, User

from conftest import VALID_PASSWORD, bearer, make_user_data, register


async def count_tokens(db_session) -> int:
    result = await db_session.execute(select(func.count(PersonalAccessToken.id)))
    count = result.scalar_one()
    await db_session.commit()
    return count


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient, test_user_data, db_session):
    """Registration returns the user and a working token"""
    response = await client.post("/register", json=test_user_data)

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == test_user_data["email"]
    assert data["user"]["name"] == test_user_data["name"]
    assert "password" not in data["user"]
    assert data["token"]

    me = await client.get("/user", headers=bearer(data["token"]))
    assert me.status_code == 200
    assert me.json()["id"] == data["user"]["id"]

    user = (await db_session.execute(select(User))).scalar_one()
    assert user.password != VALID_PASSWORD


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, test_user_data):
    await client.post("/register", json=test_user_data)

    response = await client.post("/register", json=test_user_data)

    assert response.status_code == 409
    assert response.json()["errors"]["email"] == ["The email has already been taken."]


@pytest.mark.asyncio
async def test_register_weak_password_lists_every_rule(client: AsyncClient):
    response = await client.post(
        "/register",
        json=make_user_data(password="abc", password_confirmation="abd"),
    )

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert len(errors["password"]) == 5


@pytest.mark.asyncio
async def test_register_validates_fields(client: AsyncClient):
    response = await client.post(
        "/register",
        json={"name": "   ", "email": "not-an-email", "password": VALID_PASSWORD},
    )

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert "name" in errors
    assert "email" in errors
    assert "password_confirmation" in errors


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, email, expected",
    [
        ("Ana", "bad", {"email", "password"}),
        ("  ", "ana@mail.com", {"name", "password"}),
        ("  ", "bad", {"name", "email", "password"}),
    ],
)
async def test_register_reports_all_fields_together(
    client: AsyncClient, name, email, expected
):
    response = await client.post(
        "/register",
        json={
            "name": name,
            "email": email,
            "password": "abc",
            "password_confirmation": "abc",
        },
    )

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert set(errors) == expected
    assert errors["password"][0] == "The password must be at least 8 characters."


@pytest.mark.asyncio
async def test_login_success_returns_fresh_token(client: AsyncClient, test_user_data):
    registered = await register(client, **test_user_data)

    response = await client.post(
        "/login",
        json={"email": test_user_data["email"], "password": VALID_PASSWORD},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == registered["user"]["id"]
    assert data["token"] != registered["token"]


@pytest.mark.asyncio
async def test_login_invalid_credentials(client: AsyncClient, test_user_data, db_session):
    await register(client, **test_user_data)
    tokens_before = await count_tokens(db_session)

    response = await client.post(
        "/login",
        json={"email": test_user_data["email"], "password": "Wrongpass1!"},
    )

    assert response.status_code == 422
    assert response.json() == {"error": "The provided credentials are not correct"}
    assert await count_tokens(db_session) == tokens_before


@pytest.mark.asyncio
async def test_login_unknown_email(client: AsyncClient):
    response = await client.post(
        "/login", json={"email": "nobody@mail.com", "password": VALID_PASSWORD}
    )

    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["The selected email is invalid."]


@pytest.mark.asyncio
async def test_logout_revokes_only_presented_token(client: AsyncClient, test_user_data):
    first = (await register(client, **test_user_data))["token"]
    login = await client.post(
        "/login",
        json={"email": test_user_data["email"], "password": VALID_PASSWORD},
    )
    second = login.json()["token"]

    response = await client.post("/logout", headers=bearer(first))

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert (await client.get("/user", headers=bearer(first))).status_code == 401
    assert (await client.get("/user", headers=bearer(second))).status_code == 200


@pytest.mark.asyncio
async def test_logout_requires_token(client: AsyncClient):
    response = await client.post("/logout")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client: AsyncClient, auth_headers):
    token = auth_headers["Authorization"].split(" ", 1)[1]
    token_id = token.split("|", 1)[0]

    for bad in (f"{token_id}|wrongsecret", "abc|def", "garbage"):
        response = await client.get("/user", headers=bearer(bad))
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_malformed_token_id_is_rejected(client: AsyncClient, auth_headers):
    # non-ASCII digits and ids too large for the primary key column
    for token_id in ("\u00b2", "9" * 23):
        header = f"Bearer {token_id}|secret".encode("latin-1")
        response = await client.get("/user", headers={"Authorization": header})
        assert response.status_code == 401


@pytest.mark.asyncio
async def test_register_login_logout_example(client: AsyncClient):
    """Ana registers (T1), logs in (T2), logs out with T1; T2 keeps working"""
    registered = await client.post(
        "/register",
        json={
            "name": "Ana",
            "email": "ana@x.com",
            "password": "Abcdef1!",
            "password_confirmation": "Abcdef1!",
        },
    )
    assert registered.status_code == 200
    t1 = registered.json()["token"]

    logged_in = await client.post(
        "/login", json={"email": "ana@x.com", "password": "Abcdef1!"}
    )
    assert logged_in.status_code == 200
    t2 = logged_in.json()["token"]
    assert t2 != t1

    assert (await client.post("/logout", headers=bearer(t1))).status_code == 200
    assert (await client.get("/user", headers=bearer(t2))).status_code == 200
