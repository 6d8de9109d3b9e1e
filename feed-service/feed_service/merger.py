"""
Join raw posts with categories and author profiles
"""
from typing import Dict, List, Mapping, Optional

from .config import settings
from .schemas import ANONYMOUS, UNCATEGORIZED, Category, FeedPost, Post, Profile


def excerpt_preview(excerpt: Optional[str], limit: Optional[int] = None) -> str:
    limit = settings.EXCERPT_PREVIEW_LENGTH if limit is None else limit
    if not excerpt:
        return ""
    if len(excerpt) > limit:
        return excerpt[:limit] + "..."
    return excerpt


def merge_posts(
    posts: List[Post],
    category_map: Mapping[str, Category],
    profile_map: Mapping[str, Optional[Profile]],
) -> List[FeedPost]:
    """
    Build display records, keeping the order of `posts`

    A null or unknown category becomes "Uncategorized"; a null author or a
    missing profile becomes "Anonymous". Does no I/O.
    """
    merged = []
    for post in posts:
        if not isinstance(post, Post):
            raise TypeError(f"Expected Post, got {type(post).__name__}")

        category = category_map.get(post.category_id) if post.category_id else None
        author = profile_map.get(post.author_id) if post.author_id else None
        category = category or UNCATEGORIZED
        author = author or ANONYMOUS

        merged.append(FeedPost(
            id=post.id,
            title=post.title,
            slug=post.slug,
            excerpt=post.excerpt,
            excerpt_preview=excerpt_preview(post.excerpt),
            cover_image=post.cover_image,
            published_at=post.published_at,
            category=category,
            author=author,
            category_name=category.name,
            author_name=author.display_name,
        ))
    return merged


class FeedMerger:
    """Stateless wrapper around merge_posts"""

    def merge(
        self,
        posts: List[Post],
        category_map: Mapping[str, Category],
        profile_map: Mapping[str, Optional[Profile]],
    ) -> List[FeedPost]:
        return merge_posts(posts, category_map, profile_map)
