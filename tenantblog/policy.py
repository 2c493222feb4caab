"""Ownership and tenant-visibility rules.

Everything here is pure: no database access, so the rules can be checked
against plain dicts. The Mongo filters built at the bottom express the same
predicates for list queries.
"""
import re
from typing import Any, Dict, Mapping, Optional
from .errors import Unauthorized
from .models.user import Identity


def can_modify(identity: Optional[Identity], owner_id: Any) -> bool:
    if identity is None:
        return False
    return identity.is_admin or str(owner_id) == identity.id


def ensure_can_modify(identity: Optional[Identity], owner_id: Any, action: str = "modify", entity: str = "blog") -> None:
    if not can_modify(identity, owner_id):
        raise Unauthorized(f"Not authorized to {action} this {entity}")


def is_visible_to_site(blog: Mapping[str, Any], site_id: str) -> bool:
    """A blog is visible to a tenant when published and tied to it or global."""
    if blog.get("published") is not True:
        return False
    return (
        blog.get("site_id") == site_id
        or site_id in (blog.get("sites") or [])
        or blog.get("is_global") is True
    )


def site_visibility_filter(site_id: str) -> Dict[str, Any]:
    return {
        "published": True,
        "$or": [
            {"site_id": site_id},
            {"sites": site_id},
            {"is_global": True},
        ],
    }


def keyword_filter(keyword: str) -> Dict[str, Any]:
    pattern = {"$regex": re.escape(keyword), "$options": "i"}
    return {"$or": [{"title": pattern}, {"content": pattern}, {"tags": pattern}]}


def parse_published(value: Optional[str]) -> Optional[bool]:
    # only the literal strings select a state, anything else means "any"
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def build_blog_filter(
    keyword: Optional[str] = None,
    published: Optional[bool] = None,
    category: Optional[str] = None,
    site_id: Optional[str] = None,
) -> Dict[str, Any]:
    parts = []
    if keyword:
        parts.append(keyword_filter(keyword))
    if published is not None:
        parts.append({"published": published})
    if category:
        parts.append({"category": category})
    if site_id:
        parts.append(site_visibility_filter(site_id))

    if not parts:
        return {}
    if len(parts) == 1:
        return parts[0]
    return {"$and": parts}
