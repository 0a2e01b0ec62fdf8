import uuid

from fastapi.testclient import TestClient

from heartwise.core.config import settings

PROFILES = f"{settings.API_V1_STR}/profiles"


def test_read_profile_anonymous_is_null(client: TestClient) -> None:
    r = client.get(f"{PROFILES}/me")
    assert r.status_code == 200
    assert r.json() is None


def test_read_profile_before_creation(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    r = client.get(f"{PROFILES}/me", headers=normal_user_token_headers)
    assert r.status_code == 200
    assert r.json() is None


def test_create_then_update_profile(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    r = client.put(
        f"{PROFILES}/me",
        headers=normal_user_token_headers,
        json={"display_name": "Ruth", "bio": "Loyal friend", "age": 27, "location": "Moab"},
    )
    assert r.status_code == 200
    created = r.json()
    assert created["display_name"] == "Ruth"
    assert created["is_private"] is False
    assert created["profile_image_url"] is None

    r = client.put(
        f"{PROFILES}/me",
        headers=normal_user_token_headers,
        json={"display_name": "Ruth B.", "is_private": True},
    )
    updated = r.json()
    assert updated["id"] == created["id"]
    assert updated["display_name"] == "Ruth B."
    assert updated["is_private"] is True

    r = client.get(f"{PROFILES}/me", headers=normal_user_token_headers)
    assert r.json()["display_name"] == "Ruth B."


def test_profile_name_used_as_author_name(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    client.put(
        f"{PROFILES}/me", headers=normal_user_token_headers, json={"display_name": "Boaz"}
    )
    r = client.post(
        f"{settings.API_V1_STR}/posts/",
        headers=normal_user_token_headers,
        json={"title": "Hello", "content": "First post", "category": "encouragement"},
    )
    assert r.json()["author_name"] == "Boaz"


def test_profile_age_is_validated(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    r = client.put(
        f"{PROFILES}/me",
        headers=normal_user_token_headers,
        json={"display_name": "Too young", "age": 9},
    )
    assert r.status_code == 422


def test_profile_image_must_be_uploaded_by_caller(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    r = client.put(
        f"{PROFILES}/me",
        headers=normal_user_token_headers,
        json={"display_name": "Ruth", "profile_image": str(uuid.uuid4())},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Unknown profile image"


def test_update_profile_requires_auth(client: TestClient) -> None:
    r = client.put(f"{PROFILES}/me", json={"display_name": "Ghost"})
    assert r.status_code == 401
