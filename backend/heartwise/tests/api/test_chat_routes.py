from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from heartwise.core.config import settings
from heartwise.counsel.prompts import FALLBACK_REPLY
from heartwise.models import AdminNotification, NotificationType

CHAT = f"{settings.API_V1_STR}/chat"


def _new_conversation(client: TestClient, headers: dict[str, str], title: str = "Dating advice") -> str:
    r = client.post(f"{CHAT}/conversations", headers=headers, json={"title": title})
    assert r.status_code == 200
    return r.json()["id"]


def test_list_conversations_anonymous_is_empty(client: TestClient) -> None:
    r = client.get(f"{CHAT}/conversations")
    assert r.status_code == 200
    assert r.json() == []


def test_create_and_list_conversations(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    first = _new_conversation(client, normal_user_token_headers, "First")
    second = _new_conversation(client, normal_user_token_headers, "Second")

    r = client.get(f"{CHAT}/conversations", headers=normal_user_token_headers)
    ids = [c["id"] for c in r.json()]
    assert set(ids) == {first, second}


def test_send_message_queues_ai_reply(
    client: TestClient,
    session: Session,
    llm: MagicMock,
    normal_user_token_headers: dict[str, str],
) -> None:
    conversation_id = _new_conversation(client, normal_user_token_headers)

    r = client.post(
        f"{CHAT}/conversations/{conversation_id}/messages",
        headers=normal_user_token_headers,
        json={"content": "How do I know if I'm ready to date?"},
    )
    assert r.status_code == 200
    sent = r.json()
    assert sent["is_ai"] is False

    r = client.get(
        f"{CHAT}/conversations/{conversation_id}/messages", headers=normal_user_token_headers
    )
    messages = r.json()
    assert len(messages) == 2
    assert messages[0]["id"] == sent["id"]
    reply = messages[1]
    assert reply["is_ai"] is True
    assert reply["biblical_references"] == ["Proverbs 4:23", "Psalm 27:14"]

    history = llm.generate_reply.await_args.args[0]
    assert history[0]["role"] == "system"
    assert history[-1] == {"role": "user", "content": "How do I know if I'm ready to date?"}

    notification = session.exec(
        select(AdminNotification).where(AdminNotification.type == NotificationType.new_message)
    ).first()
    assert notification is not None
    assert notification.related_id == sent["id"]


def test_notification_preview_is_truncated(
    client: TestClient, session: Session, normal_user_token_headers: dict[str, str]
) -> None:
    conversation_id = _new_conversation(client, normal_user_token_headers)
    content = "x" * 80
    client.post(
        f"{CHAT}/conversations/{conversation_id}/messages",
        headers=normal_user_token_headers,
        json={"content": content},
    )
    notification = session.exec(select(AdminNotification)).first()
    assert notification is not None
    assert notification.description == f'User sent: "{"x" * 50}..."'


def test_ai_failure_writes_fallback(
    client: TestClient, llm: MagicMock, normal_user_token_headers: dict[str, str]
) -> None:
    llm.generate_reply.side_effect = RuntimeError("provider down")
    conversation_id = _new_conversation(client, normal_user_token_headers)

    client.post(
        f"{CHAT}/conversations/{conversation_id}/messages",
        headers=normal_user_token_headers,
        json={"content": "Hello?"},
    )
    r = client.get(
        f"{CHAT}/conversations/{conversation_id}/messages", headers=normal_user_token_headers
    )
    messages = r.json()
    assert len(messages) == 2
    assert messages[1]["content"] == FALLBACK_REPLY
    assert messages[1]["biblical_references"] == ["Proverbs 3:5"]


def test_other_users_conversation_is_forbidden(
    client: TestClient,
    normal_user_token_headers: dict[str, str],
    other_user_token_headers: dict[str, str],
) -> None:
    conversation_id = _new_conversation(client, normal_user_token_headers)

    r = client.get(
        f"{CHAT}/conversations/{conversation_id}/messages", headers=other_user_token_headers
    )
    assert r.status_code == 403
    assert r.json()["detail"] == "Unauthorized"

    r = client.post(
        f"{CHAT}/conversations/{conversation_id}/messages",
        headers=other_user_token_headers,
        json={"content": "sneaky"},
    )
    assert r.status_code == 403


def test_rename_conversation(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    conversation_id = _new_conversation(client, normal_user_token_headers)

    r = client.patch(
        f"{CHAT}/conversations/{conversation_id}",
        headers=normal_user_token_headers,
        json={"title": "  Marriage prep  "},
    )
    assert r.status_code == 200

    r = client.get(f"{CHAT}/conversations", headers=normal_user_token_headers)
    assert r.json()[0]["title"] == "Marriage prep"

    r = client.patch(
        f"{CHAT}/conversations/{conversation_id}",
        headers=normal_user_token_headers,
        json={"title": "   "},
    )
    assert r.status_code == 400


def test_delete_conversation_hides_it(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    conversation_id = _new_conversation(client, normal_user_token_headers)

    r = client.delete(f"{CHAT}/conversations/{conversation_id}", headers=normal_user_token_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Conversation deleted successfully"

    r = client.get(f"{CHAT}/conversations", headers=normal_user_token_headers)
    assert r.json() == []


def test_send_message_requires_auth(client: TestClient) -> None:
    r = client.post(
        f"{CHAT}/conversations/00000000-0000-0000-0000-000000000000/messages",
        json={"content": "hi"},
    )
    assert r.status_code == 401
