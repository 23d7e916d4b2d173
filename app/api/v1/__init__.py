"""
API Router
All endpoints are registered here.
"""

from fastapi import APIRouter

from app.api.v1 import messages, search

api_router = APIRouter()

# Message search and batch fetch
api_router.include_router(messages.router, prefix="/messages", tags=["Messages"])

# Unified search screen
api_router.include_router(search.router, prefix="/search", tags=["Search"])


@api_router.get("/ping")
async def ping() -> dict:
    """
    Simple ping endpoint for testing API is working.
    """
    return {"message": "pong", "status": "ok"}
