import logging
from typing import Any

from fastapi import APIRouter
from sqlmodel import Session, col, select

from heartwise import verses
from heartwise.api.deps import SessionDep
from heartwise.models import DailyVerse, DailyVersePublic, VerseRequest

router = APIRouter(prefix="/daily-verse", tags=["daily-verse"])
logger = logging.getLogger(__name__)


def _latest_for_date(session: Session, date: str) -> DailyVerse | None:
    statement = (
        select(DailyVerse)
        .where(DailyVerse.date == date)
        .order_by(col(DailyVerse.created_at).desc())
    )
    return session.exec(statement).first()


def _by_minute_key(session: Session, key: str) -> DailyVerse | None:
    return session.exec(select(DailyVerse).where(DailyVerse.minute_key == key)).first()


def _store_verse(session: Session, *, key: str, topic: str | None = None) -> DailyVerse:
    generated = verses.generate_ai_verse(topic)
    verse = DailyVerse(
        verse=generated.verse,
        reference=generated.reference,
        reflection=generated.reflection,
        topic=generated.topic,
        date=verses.today_key(),
        minute_key=key,
    )
    session.add(verse)
    session.commit()
    session.refresh(verse)
    logger.info("Generated verse %s on %s for %s", verse.reference, verse.topic, key)
    return verse


@router.get("/today", response_model=DailyVersePublic | None)
def read_todays_verse(session: SessionDep) -> Any:
    return _latest_for_date(session, verses.today_key())


@router.get("/current", response_model=DailyVersePublic | None)
def read_current_verse(session: SessionDep) -> Any:
    """
    Verse for the current minute, falling back to the latest verse of the day.
    """
    return _by_minute_key(session, verses.minute_key()) or _latest_for_date(
        session, verses.today_key()
    )


@router.post("/current", response_model=DailyVersePublic)
def generate_current_verse(session: SessionDep) -> Any:
    key = verses.minute_key()
    existing = _by_minute_key(session, key)
    if existing:
        return existing
    return _store_verse(session, key=key)


@router.post("/", response_model=DailyVersePublic)
def generate_new_verse(session: SessionDep, body: VerseRequest | None = None) -> Any:
    topic = body.topic if body else None
    return _store_verse(session, key=verses.minute_key(manual=True), topic=topic or None)
