"""
Pydantic schemas for Feed Service
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from .config import settings


# Reader schema (from the identity provider's JWT)
class Reader(BaseModel):
    """Authenticated reader"""
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


# Backend records
class Post(BaseModel):
    """Published post as returned by the backend"""
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    category_id: Optional[str] = None
    author_id: Optional[str] = None
    published_at: Optional[datetime] = None
    is_published: bool = True

    class Config:
        from_attributes = True


class Category(BaseModel):
    """Post category"""
    id: str
    name: str
    slug: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class Profile(BaseModel):
    """Author display profile"""
    id: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or "Anonymous"

    class Config:
        from_attributes = True


UNCATEGORIZED = Category(id="", name="Uncategorized", slug="uncategorized")
ANONYMOUS = Profile(id="")


# Paging
class FeedPageRequest(BaseModel):
    """One navigation: which page of which category"""
    category_slug: Optional[str] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(default_factory=lambda: settings.POSTS_PER_PAGE, gt=0)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class CursorState(BaseModel):
    """Forward/backward cursor flags, used in place of a total count"""
    has_next: bool = False
    has_previous: bool = False


class PostPage(BaseModel):
    """One raw page of posts plus its cursor flags"""
    posts: List[Post] = []
    cursor: CursorState = CursorState()
    category_key: Optional[str] = None
    offset: int = 0
    limit: int = 0
    sequence: int = 0
    from_cache: bool = False
    # Only filled by the join strategy
    embedded_profiles: Optional[Dict[str, Optional[Profile]]] = None


class PaginationState(BaseModel):
    """UI-facing paging controls"""
    page: int = 1
    previous_enabled: bool = False
    next_enabled: bool = False
    estimated_total_pages: int = Field(
        1,
        description="Estimate, not an exact count: page + 1 while more pages exist",
    )
    is_estimate: bool = True


# Merged display record
class FeedPost(BaseModel):
    """Post joined with its category and author"""
    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    excerpt_preview: str = ""
    cover_image: Optional[str] = None
    published_at: Optional[datetime] = None
    category: Category
    author: Profile
    category_name: str
    author_name: str


class FeedStatus(str, Enum):
    """FeedController states"""
    IDLE = "idle"
    RESOLVING_CATEGORY = "resolving_category"
    FETCHING_PAGE = "fetching_page"
    LOADING_PROFILES = "loading_profiles"
    READY = "ready"
    ERROR = "error"


class FeedView(BaseModel):
    """Observable feed state"""
    status: FeedStatus = FeedStatus.IDLE
    request: Optional[FeedPageRequest] = None
    posts: List[FeedPost] = []
    pagination: PaginationState = PaginationState()
    error: Optional[str] = None
    is_stale: bool = False


# Message responses
class MessageResponse(BaseModel):
    """Generic message response"""
    message: str
