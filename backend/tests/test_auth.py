"""
Ember Ascent - Authentication API Tests
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test the health check endpoint."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient, sample_user_data):
    """Test user registration."""
    response = await client.post("/api/auth/register", json=sample_user_data)
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == sample_user_data["email"]
    assert data["fullName"] == sample_user_data["full_name"]
    assert data["role"] == "user"
    assert data["subscriptionTier"] == "free"
    assert "id" in data


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, sample_user_data):
    """Test that duplicate email registration fails."""
    # First registration
    await client.post("/api/auth/register", json=sample_user_data)

    # Second registration with same email
    response = await client.post("/api/auth/register", json=sample_user_data)
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "already registered" in body["error"].lower()


@pytest.mark.asyncio
async def test_register_weak_password_rejected(client: AsyncClient, sample_user_data):
    sample_user_data["password"] = "weakpassword"
    response = await client.post("/api/auth/register", json=sample_user_data)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert any(issue["field"] == "password" for issue in body["details"])


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, sample_user_data):
    """Test successful login."""
    # Register user first
    await client.post("/api/auth/register", json=sample_user_data)

    # Login
    response = await client.post("/api/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_login_invalid_credentials(client: AsyncClient, sample_user_data):
    """Test login with invalid credentials."""
    # Register user first
    await client.post("/api/auth/register", json=sample_user_data)

    # Login with wrong password
    response = await client.post("/api/auth/login", json={
        "email": sample_user_data["email"],
        "password": "WrongPassword123!",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_account_locks_after_repeated_failures(client: AsyncClient, sample_user_data):
    await client.post("/api/auth/register", json=sample_user_data)
    wrong = {"email": sample_user_data["email"], "password": "WrongPassword123!"}

    for _ in range(5):
        assert (await client.post("/api/auth/login", json=wrong)).status_code == 401

    response = await client.post("/api/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    assert response.status_code == 423


@pytest.mark.asyncio
async def test_get_current_user(client: AsyncClient, sample_user_data):
    """Test getting current user profile."""
    # Register and login
    await client.post("/api/auth/register", json=sample_user_data)
    login_response = await client.post("/api/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    token = login_response.json()["access_token"]

    # Get current user
    response = await client.get(
        "/api/auth/me",
        headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == sample_user_data["email"]
    assert data["impersonatedBy"] is None


@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(client: AsyncClient):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_garbage_token_is_unauthorized(client: AsyncClient):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token(client: AsyncClient, sample_user_data):
    """Test token refresh."""
    # Register and login
    await client.post("/api/auth/register", json=sample_user_data)
    login_response = await client.post("/api/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    refresh_token = login_response.json()["refresh_token"]

    # Refresh tokens
    response = await client.post("/api/auth/refresh", json={
        "refresh_token": refresh_token
    })
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert "refresh_token" in data

    # The old refresh token was rotated out
    reused = await client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert reused.status_code == 401
