from fastapi import APIRouter

from instant_bookmark.app.api.routes import bookmark_steps, ingest

api_router = APIRouter()
api_router.include_router(ingest.router, prefix="/api")
api_router.include_router(bookmark_steps.router, prefix="/api")
# Bare /ingest alias for clients configured without the /api prefix.
api_router.include_router(ingest.router, include_in_schema=False)
