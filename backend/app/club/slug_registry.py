"""
Uniqueness of slugs against the database.

slugify() is pure; whether a slug is free depends on the rows already in the
entity's table. When editing, the entity's own row is excluded.
"""
from typing import Any, Optional

from sqlalchemy.orm import Session

EMPTY_SLUG_FALLBACK = "item"
MAX_SUFFIX_ATTEMPTS = 1000


class SlugTakenError(Exception):
    def __init__(self, slug: str):
        super().__init__(f"Slug already taken: {slug}")
        self.slug = slug


def slug_is_taken(db: Session, model: Any, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(model.id).filter(model.slug == slug)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    return query.limit(1).first() is not None


def assign_unique_slug(db: Session, model: Any, base: str, exclude_id: Optional[int] = None) -> str:
    """
    Return `base` when it is free, otherwise the first free `base-N` (N >= 2).
    """
    base = base or EMPTY_SLUG_FALLBACK
    if not slug_is_taken(db, model, base, exclude_id):
        return base

    for counter in range(2, MAX_SUFFIX_ATTEMPTS + 2):
        candidate = f"{base}-{counter}"
        if not slug_is_taken(db, model, candidate, exclude_id):
            return candidate

    raise SlugTakenError(base)


def ensure_slug_available(db: Session, model: Any, slug: str, exclude_id: Optional[int] = None) -> str:
    """Validate an explicitly chosen slug, raising SlugTakenError on conflict"""
    if slug_is_taken(db, model, slug, exclude_id):
        raise SlugTakenError(slug)
    return slug
