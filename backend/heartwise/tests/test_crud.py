from unittest.mock import patch

import pytest
from sqlmodel import Session, func, select

from heartwise import crud
from heartwise.models import Post, PostCategory, Reaction, ReactionType, User
from heartwise.tests.utils.user import create_user


@pytest.fixture
def users(session: Session) -> tuple[User, User]:
    return (
        create_user(session=session, email="ruth@heartwise.com"),
        create_user(session=session, email="boaz@heartwise.com"),
    )


@pytest.fixture
def post(session: Session, users: tuple[User, User]) -> Post:
    post = Post(
        title="Waiting well",
        content="How do you stay patient?",
        category=PostCategory.question,
        user_id=users[0].id,
    )
    session.add(post)
    session.commit()
    session.refresh(post)
    return post


def _row_count(session: Session, post: Post, reaction: ReactionType) -> int:
    statement = select(func.count()).where(
        Reaction.post_id == post.id, Reaction.reaction == reaction
    )
    return session.exec(statement).one()


def test_toggle_adds_switches_and_removes(
    session: Session, users: tuple[User, User], post: Post
) -> None:
    user = users[1]
    assert crud.toggle_reaction(
        session=session, post=post, user_id=user.id, reaction=ReactionType.like
    ) == ReactionType.like
    assert (post.likes, post.dislikes) == (1, 0)

    assert crud.toggle_reaction(
        session=session, post=post, user_id=user.id, reaction=ReactionType.dislike
    ) == ReactionType.dislike
    assert (post.likes, post.dislikes) == (0, 1)

    assert crud.toggle_reaction(
        session=session, post=post, user_id=user.id, reaction=ReactionType.dislike
    ) is None
    assert (post.likes, post.dislikes) == (0, 0)


def test_reactions_from_separate_sessions_are_all_counted(
    engine, users: tuple[User, User], post: Post
) -> None:
    ruth_id, boaz_id = users[0].id, users[1].id
    with Session(engine) as first, Session(engine) as second:
        # both requests load the post before either reaction lands
        first_post = first.get(Post, post.id)
        second_post = second.get(Post, post.id)
        assert first_post.likes == second_post.likes == 0

        crud.toggle_reaction(
            session=first, post=first_post, user_id=ruth_id, reaction=ReactionType.like
        )
        crud.toggle_reaction(
            session=second, post=second_post, user_id=boaz_id, reaction=ReactionType.like
        )

    with Session(engine) as check:
        stored = check.get(Post, post.id)
        assert stored.likes == 2
        assert stored.likes == _row_count(check, stored, ReactionType.like)


def test_duplicate_insert_retries_against_stored_reaction(
    session: Session, users: tuple[User, User], post: Post
) -> None:
    user = users[1]
    crud.toggle_reaction(session=session, post=post, user_id=user.id, reaction=ReactionType.like)

    real_lookup = crud.get_user_reaction
    calls = []

    def stale_lookup(**kwargs):
        # the first lookup misses the row another request already stored
        calls.append(kwargs)
        return None if len(calls) == 1 else real_lookup(**kwargs)

    with patch("heartwise.crud.get_user_reaction", side_effect=stale_lookup):
        result = crud.toggle_reaction(
            session=session, post=post, user_id=user.id, reaction=ReactionType.like
        )

    assert len(calls) == 2
    assert result is None
    assert post.likes == 0
    assert _row_count(session, post, ReactionType.like) == 0
