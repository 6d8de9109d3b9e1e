"""
FastAPI application for Feed Service
"""
from fastapi import FastAPI, Depends, HTTPException, status, Query
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import List, Optional
import logging

from .config import settings
from .controller import FeedController
from .dependencies import get_bearer_token, get_feed_controller
from .exceptions import FeedServiceError
from .service_client import service_client
from .sessions import FeedSessions
from .schemas import Category, FeedPageRequest, FeedView, MessageResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting Feed Service...")

    await service_client.start()

    sessions = FeedSessions(service_client)
    await sessions.start()
    app.state.sessions = sessions
    logger.info("Feed sessions initialized")

    logger.info(f"Feed Service started successfully on port {settings.PORT}")

    yield

    # Shutdown
    logger.info("Shutting down Feed Service...")

    await sessions.stop()
    await service_client.stop()

    logger.info("Feed Service shut down successfully")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Public post feed - paginated, category-filtered, assembled from posts, categories and profiles",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION
    }


# Feed endpoints
@app.get(
    "/api/v1/feed",
    response_model=FeedView,
    tags=["Feed"],
    summary="Get a page of the public feed",
)
async def get_feed(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    category: Optional[str] = Query(None, description="Category slug"),
    controller: FeedController = Depends(get_feed_controller),
    token: Optional[str] = Depends(get_bearer_token),
):
    """
    Get one page of published posts, newest first

    - Filtered by category when a slug is given; an unknown slug yields an empty page
    - `pagination.estimated_total_pages` is an estimate (page + 1 while more pages exist)
    - Backend failures come back as `status: "error"` with the previous page kept
    """
    try:
        request = FeedPageRequest(category_slug=category or None, page=page)
        return await controller.render(request, token)

    except Exception as e:
        logger.error(f"Error assembling feed page {page} ({category or 'all'}): {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve feed"
        )


@app.post(
    "/api/v1/feed/retry",
    response_model=FeedView,
    tags=["Feed"],
    summary="Retry the last feed request",
)
async def retry_feed(
    controller: FeedController = Depends(get_feed_controller),
):
    """Re-run this session's last feed request, e.g. after an error"""
    try:
        return await controller.render_retry()

    except Exception as e:
        logger.error(f"Error retrying feed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retry feed"
        )


@app.post(
    "/api/v1/feed/refresh",
    response_model=MessageResponse,
    tags=["Feed"],
    summary="Invalidate cached feed data",
)
async def refresh_feed(
    controller: FeedController = Depends(get_feed_controller),
):
    """
    Drop this session's cached categories, slug lookups and pages

    The next feed request refetches everything.
    """
    await controller.refresh()
    return MessageResponse(message="Feed caches cleared")


@app.get(
    "/api/v1/categories",
    response_model=List[Category],
    tags=["Categories"],
    summary="List categories",
)
async def list_categories(
    controller: FeedController = Depends(get_feed_controller),
    token: Optional[str] = Depends(get_bearer_token),
):
    """Category catalog, ordered by name"""
    try:
        await controller.category_index.load(token)
        return controller.category_index.categories

    except FeedServiceError as e:
        logger.error(f"Error loading categories: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to load categories"
        )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "feed_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
