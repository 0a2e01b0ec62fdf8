"""
Deferred AI counselor reply.

Queued by the chat router after a user message is stored. Always writes exactly
one assistant message: the model's reply, or the canned fallback on any failure.
"""
import logging
import uuid

from sqlmodel import Session, col, select

from heartwise.core import db
from heartwise.core.config import settings
from heartwise.counsel.llm_client import ChatTurn, LLMClient
from heartwise.counsel.prompts import COUNSELOR_SYSTEM_PROMPT, FALLBACK_REFERENCES, FALLBACK_REPLY
from heartwise.counsel.references import extract_biblical_references
from heartwise.models import Conversation, Message

logger = logging.getLogger(__name__)


def build_chat_history(messages: list[Message], window: int | None = None) -> list[ChatTurn]:
    window = settings.AI_HISTORY_WINDOW if window is None else window
    recent = messages[-window:] if window > 0 else []
    history: list[ChatTurn] = [{"role": "system", "content": COUNSELOR_SYSTEM_PROMPT}]
    for msg in recent:
        history.append(
            {"role": "assistant" if msg.is_ai else "user", "content": msg.content}
        )
    return history


def save_ai_message(
    *,
    session: Session,
    conversation: Conversation,
    content: str,
    biblical_references: list[str],
) -> Message:
    message = Message(
        conversation_id=conversation.id,
        user_id=conversation.user_id,
        content=content,
        is_ai=True,
        biblical_references=biblical_references,
    )
    session.add(message)
    session.commit()
    session.refresh(message)
    return message


def load_conversation_messages(session: Session, conversation_id: uuid.UUID) -> list[Message]:
    statement = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(col(Message.created_at))
    )
    return list(session.exec(statement).all())


async def generate_ai_response(
    *,
    session: Session,
    conversation_id: uuid.UUID,
    llm: LLMClient | None = None,
) -> Message | None:
    conversation = session.get(Conversation, conversation_id)
    if not conversation:
        logger.warning("Conversation %s vanished before the AI reply was generated", conversation_id)
        return None

    try:
        messages = load_conversation_messages(session, conversation_id)
        client = llm or LLMClient()
        reply = await client.generate_reply(build_chat_history(messages))
        references = extract_biblical_references(reply)
    except Exception as exc:
        logger.error("AI response generation failed for conversation %s: %s", conversation_id, exc)
        session.rollback()
        reply = FALLBACK_REPLY
        references = list(FALLBACK_REFERENCES)

    return save_ai_message(
        session=session,
        conversation=conversation,
        content=reply,
        biblical_references=references,
    )


async def run_ai_response_job(conversation_id: uuid.UUID) -> None:
    """Background-task entrypoint; opens its own session on the shared engine."""
    with Session(db.engine) as session:
        await generate_ai_response(session=session, conversation_id=conversation_id)
