import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import Session, col, func, select

from heartwise import crud
from heartwise.api.deps import CurrentUser, OptionalUser, SessionDep
from heartwise.models import (
    Comment,
    CommentCreate,
    CommentPublic,
    InfoMessage,
    Post,
    PostCategory,
    PostCreate,
    PostWithDetails,
    ReactionResult,
    ReactionToggle,
    User,
)
from heartwise.storage import get_storage

router = APIRouter(prefix="/posts", tags=["posts"])
logger = logging.getLogger(__name__)

FEED_LIMIT = 20
ANONYMOUS = "Anonymous"


def comment_count(session: Session, post_id: uuid.UUID) -> int:
    return session.exec(
        select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
    ).one()


def resolve_post_image(session: Session, post: Post) -> str | None:
    if post.image:
        return get_storage().get_url(session=session, storage_id=post.image) or post.image_url
    return post.image_url


def post_with_details(session: Session, post: Post, viewer: User | None) -> PostWithDetails:
    name, profile, _ = crud.author_details(session=session, user_id=post.user_id)
    storage = get_storage()

    user_reaction = None
    if viewer is not None:
        reaction = crud.get_user_reaction(session=session, user_id=viewer.id, post_id=post.id)
        user_reaction = reaction.reaction if reaction else None

    anonymous = post.is_anonymous
    return PostWithDetails.model_validate(
        post,
        update={
            "user_id": None if anonymous else post.user_id,
            "image_url": resolve_post_image(session, post),
            "author_name": ANONYMOUS if anonymous else name,
            "author_image": None
            if anonymous or not profile
            else storage.get_url(session=session, storage_id=profile.profile_image),
            "author_bio": None if anonymous or not profile else profile.bio,
            "user_reaction": user_reaction,
            "comment_count": comment_count(session, post.id),
        },
    )


def _get_post_or_404(session: Session, post_id: uuid.UUID) -> Post:
    post = session.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get("/", response_model=list[PostWithDetails])
def read_posts(
    session: SessionDep, current_user: OptionalUser, category: str | None = None
) -> Any:
    statement = select(Post)
    if category and category != "all":
        try:
            statement = statement.where(Post.category == PostCategory(category))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown category: {category}")
    statement = statement.order_by(col(Post.created_at).desc()).limit(FEED_LIMIT)
    posts = session.exec(statement).all()
    return [post_with_details(session, post, current_user) for post in posts]


@router.post("/", response_model=PostWithDetails)
def create_post(
    *, session: SessionDep, current_user: CurrentUser, post_in: PostCreate
) -> Any:
    post = Post.model_validate(
        post_in, update={"user_id": current_user.id, "likes": 0, "dislikes": 0}
    )
    session.add(post)
    session.commit()
    session.refresh(post)
    return post_with_details(session, post, current_user)


@router.post("/{id}/reactions", response_model=ReactionResult)
def toggle_reaction(
    *,
    id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    reaction_in: ReactionToggle,
) -> Any:
    post = _get_post_or_404(session, id)
    user_reaction = crud.toggle_reaction(
        session=session, post=post, user_id=current_user.id, reaction=reaction_in.reaction
    )
    return ReactionResult(
        post_id=post.id,
        likes=post.likes,
        dislikes=post.dislikes,
        user_reaction=user_reaction,
    )


@router.get("/{id}/comments", response_model=list[CommentPublic])
def read_post_comments(id: uuid.UUID, session: SessionDep) -> Any:
    statement = (
        select(Comment)
        .where(Comment.post_id == id)
        .order_by(col(Comment.created_at).desc())
    )
    storage = get_storage()
    comments = []
    for comment in session.exec(statement).all():
        name, profile, _ = crud.author_details(
            session=session, user_id=comment.user_id, use_email=False
        )
        anonymous = comment.is_anonymous
        comments.append(
            CommentPublic.model_validate(
                comment,
                update={
                    "author_name": ANONYMOUS if anonymous else name,
                    "author_image": None
                    if anonymous or not profile
                    else storage.get_url(session=session, storage_id=profile.profile_image),
                },
            )
        )
    return comments


@router.post("/{id}/comments", response_model=CommentPublic)
def add_comment(
    *,
    id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    comment_in: CommentCreate,
) -> Any:
    content = comment_in.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    _get_post_or_404(session, id)

    comment = Comment(
        post_id=id,
        user_id=current_user.id,
        content=content,
        is_anonymous=comment_in.is_anonymous,
    )
    session.add(comment)
    session.commit()
    session.refresh(comment)

    name, _, _ = crud.author_details(
        session=session, user_id=current_user.id, use_email=False
    )
    return CommentPublic.model_validate(
        comment, update={"author_name": ANONYMOUS if comment.is_anonymous else name}
    )


@router.delete("/{id}", response_model=InfoMessage)
def delete_post(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    post = _get_post_or_404(session, id)
    if post.user_id != current_user.id and not crud.is_admin(current_user):
        raise HTTPException(status_code=403, detail="Unauthorized")
    # comments and reactions go with the post (cascade_delete relationships)
    session.delete(post)
    session.commit()
    logger.info("Post %s deleted by %s", id, current_user.id)
    return InfoMessage(message="Post deleted successfully")
