import uuid

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from heartwise.core.config import settings
from heartwise.tests.utils.user import authentication_token_from_email

CALLS = f"{settings.API_V1_STR}/video-calls"


@pytest.fixture
def room_id(client: TestClient) -> str:
    client.post(f"{settings.API_V1_STR}/live-chat/rooms/seed-defaults")
    return client.get(f"{settings.API_V1_STR}/live-chat/rooms").json()[0]["id"]


def _schedule(client: TestClient, headers: dict[str, str], room_id: str, **overrides) -> dict:
    data = {"room_id": room_id, "title": "Friday prayer call"}
    data.update(overrides)
    r = client.post(f"{CALLS}/", headers=headers, json=data)
    assert r.status_code == 200
    return r.json()


def test_create_and_list_calls(
    client: TestClient, normal_user_token_headers: dict[str, str], room_id: str
) -> None:
    created = _schedule(client, normal_user_token_headers, room_id)
    assert created["meeting_url"].startswith(f"{settings.MEETING_BASE_URL}/HeartWise-")

    calls = client.get(f"{CALLS}/").json()
    assert len(calls) == 1
    call = calls[0]
    assert call["id"] == created["call_id"]
    assert call["host_name"] == "member@heartwise.com"
    assert call["max_participants"] == 10
    assert call["current_participants"] == 0

    assert client.get(f"{CALLS}/", params={"room_id": room_id}).json()[0]["id"] == call["id"]
    assert client.get(f"{CALLS}/", params={"room_id": str(uuid.uuid4())}).json() == []


def test_meeting_urls_are_unique(
    client: TestClient, normal_user_token_headers: dict[str, str], room_id: str
) -> None:
    a = _schedule(client, normal_user_token_headers, room_id)
    b = _schedule(client, normal_user_token_headers, room_id)
    assert a["meeting_url"] != b["meeting_url"]


def test_create_call_in_unknown_room(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    r = client.post(
        f"{CALLS}/",
        headers=normal_user_token_headers,
        json={"room_id": str(uuid.uuid4()), "title": "Nowhere"},
    )
    assert r.status_code == 404


def test_join_is_idempotent(
    client: TestClient,
    normal_user_token_headers: dict[str, str],
    other_user_token_headers: dict[str, str],
    room_id: str,
) -> None:
    call = _schedule(client, normal_user_token_headers, room_id)
    url = f"{CALLS}/{call['call_id']}/join"

    r = client.post(url, headers=other_user_token_headers)
    assert r.json() == {"meeting_url": call["meeting_url"], "already_joined": False}

    r = client.post(url, headers=other_user_token_headers)
    assert r.json()["already_joined"] is True

    assert client.get(f"{CALLS}/").json()[0]["current_participants"] == 1

    participants = client.get(f"{CALLS}/{call['call_id']}/participants").json()
    assert [p["name"] for p in participants] == ["visitor@heartwise.com"]


def test_full_call_rejects_new_participants(
    client: TestClient,
    session: Session,
    normal_user_token_headers: dict[str, str],
    other_user_token_headers: dict[str, str],
    room_id: str,
) -> None:
    call = _schedule(client, normal_user_token_headers, room_id, max_participants=2)
    url = f"{CALLS}/{call['call_id']}/join"
    client.post(url, headers=normal_user_token_headers)
    client.post(url, headers=other_user_token_headers)

    late_headers = authentication_token_from_email(
        client=client, email="latecomer@heartwise.com", session=session
    )
    r = client.post(url, headers=late_headers)
    assert r.status_code == 409
    assert r.json()["detail"] == "Call is full"


def test_leave_decrements_and_never_goes_negative(
    client: TestClient,
    normal_user_token_headers: dict[str, str],
    other_user_token_headers: dict[str, str],
    room_id: str,
) -> None:
    call = _schedule(client, normal_user_token_headers, room_id)
    call_id = call["call_id"]
    client.post(f"{CALLS}/{call_id}/join", headers=other_user_token_headers)

    r = client.post(f"{CALLS}/{call_id}/leave", headers=other_user_token_headers)
    assert r.status_code == 200
    r = client.post(f"{CALLS}/{call_id}/leave", headers=other_user_token_headers)
    assert r.status_code == 200

    assert client.get(f"{CALLS}/").json()[0]["current_participants"] == 0
    assert client.get(f"{CALLS}/{call_id}/participants").json() == []


def test_only_host_can_end_call(
    client: TestClient,
    normal_user_token_headers: dict[str, str],
    other_user_token_headers: dict[str, str],
    room_id: str,
) -> None:
    call = _schedule(client, normal_user_token_headers, room_id)
    call_id = call["call_id"]
    client.post(f"{CALLS}/{call_id}/join", headers=other_user_token_headers)

    r = client.post(f"{CALLS}/{call_id}/end", headers=other_user_token_headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "Unauthorized to end this call"

    r = client.post(f"{CALLS}/{call_id}/end", headers=normal_user_token_headers)
    assert r.status_code == 200

    assert client.get(f"{CALLS}/").json() == []
    assert client.get(f"{CALLS}/{call_id}/participants").json() == []

    r = client.post(f"{CALLS}/{call_id}/join", headers=other_user_token_headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "Call not found or inactive"


def test_max_participants_bounds(
    client: TestClient, normal_user_token_headers: dict[str, str], room_id: str
) -> None:
    r = client.post(
        f"{CALLS}/",
        headers=normal_user_token_headers,
        json={"room_id": room_id, "title": "Solo", "max_participants": 1},
    )
    assert r.status_code == 422


def test_host_and_participant_names_skip_full_name(
    client: TestClient, named_user_token_headers: dict[str, str], room_id: str
) -> None:
    created = _schedule(client, named_user_token_headers, room_id)
    assert client.get(f"{CALLS}/").json()[0]["host_name"] == "named@heartwise.com"

    client.post(f"{CALLS}/{created['call_id']}/join", headers=named_user_token_headers)
    participants = client.get(f"{CALLS}/{created['call_id']}/participants").json()
    assert [p["name"] for p in participants] == ["named@heartwise.com"]
