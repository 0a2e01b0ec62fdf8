from fastapi import APIRouter

from heartwise.api.routes import (
    admin,
    chat,
    daily_verse,
    files,
    live_chat,
    login,
    password_reset,
    posts,
    profiles,
    testimonies,
    users,
    utils,
    video_calls,
)

api_router = APIRouter()
api_router.include_router(login.router)
api_router.include_router(users.router)
api_router.include_router(utils.router)
api_router.include_router(chat.router)
api_router.include_router(posts.router)
api_router.include_router(profiles.router)
api_router.include_router(testimonies.router)
api_router.include_router(live_chat.router)
api_router.include_router(video_calls.router)
api_router.include_router(password_reset.router)
api_router.include_router(daily_verse.router)
api_router.include_router(files.router)
api_router.include_router(admin.router)
