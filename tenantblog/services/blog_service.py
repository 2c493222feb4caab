import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError
from ..config import settings
from ..errors import NotFound, ValidationFailed, conflict_from_duplicate_key
from ..logging_config import get_logger
from ..models.blog import Blog
from ..models.user import Identity
from ..policy import build_blog_filter, ensure_can_modify
from ..utils import make_shareable_link, parse_object_id, slugify, to_string_list

logger = get_logger(__name__)

UTC = timezone.utc

REQUIRED_FIELDS = ("title", "content", "excerpt")
LIST_FIELDS = ("tags", "sites")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def derive_slug(title: str) -> str:
    slug = slugify(title)
    if not slug:
        raise ValidationFailed("title", "Title must contain at least one letter or digit")
    return slug


def apply_publication(blog: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Stamp publishedAt and the shareable link the first time a blog is published.

    Returns only the fields that were set, so callers can persist them.
    """
    changes = {}
    if blog.get("published") is not True:
        return changes
    if not blog.get("published_at"):
        changes["published_at"] = now
    if not blog.get("shareable_link"):
        changes["shareable_link"] = make_shareable_link(blog["slug"], now)
    blog.update(changes)
    return changes


async def _find_blog(db, blog_id: str):
    object_id = parse_object_id(blog_id)
    blog = await db.blogs.find_one({"_id": object_id}) if object_id else None
    if not blog:
        raise NotFound("Blog not found")
    return blog


async def with_author_names(db, blogs):
    """Attach each blog's author name as ``author_name`` (None when the user is gone)."""
    author_ids = {parse_object_id(blog["author"]) for blog in blogs} - {None}
    names = {}
    if author_ids:
        users = await db.users.find({"_id": {"$in": list(author_ids)}}, {"name": 1}).to_list(length=None)
        names = {str(user["_id"]): user.get("name") for user in users}
    for blog in blogs:
        blog["author_name"] = names.get(str(blog["author"]))
    return blogs


async def _count_view(db, blog):
    # best-effort: a failed increment must not fail the read
    try:
        await db.blogs.update_one({"_id": blog["_id"]}, {"$inc": {"view_count": 1}})
    except PyMongoError as e:
        logger.warning("Could not record view for blog %s: %s", blog["_id"], e)
        return blog
    blog["view_count"] = blog.get("view_count", 0) + 1
    return blog


async def list_blogs(
    db,
    keyword: Optional[str] = None,
    published: Optional[bool] = None,
    category: Optional[str] = None,
    site_id: Optional[str] = None,
    page: int = 1,
) -> dict:
    page_size = settings.PAGE_SIZE
    if page < 1:
        page = 1
    skip = (page - 1) * page_size

    query = build_blog_filter(keyword=keyword, published=published, category=category, site_id=site_id)
    total = await db.blogs.count_documents(query)
    blogs = await db.blogs.find(query).sort("created_at", DESCENDING).skip(skip).limit(page_size).to_list(length=page_size)
    await with_author_names(db, blogs)

    return {"items": blogs, "page": page, "pages": math.ceil(total / page_size), "total": total}


async def get_blog_by_id(db, blog_id: str):
    blog = await _find_blog(db, blog_id)
    await _count_view(db, blog)
    return (await with_author_names(db, [blog]))[0]


async def get_blog_by_slug(db, slug: str):
    blog = await db.blogs.find_one({"slug": slug})
    if not blog:
        raise NotFound("Blog not found")
    await _count_view(db, blog)
    return (await with_author_names(db, [blog]))[0]


async def get_blog_by_shareable_link(db, link: str):
    blog = await db.blogs.find_one({"shareable_link": link})
    if not blog:
        raise NotFound("Blog not found")
    await _count_view(db, blog)
    return (await with_author_names(db, [blog]))[0]


async def create_blog(db, identity: Identity, fields: Dict[str, Any], now: Optional[datetime] = None):
    """Create a blog authored by ``identity``.

    ``fields`` holds the snake_case values the caller supplied. The slug is
    derived from the title; a blog created as published gets its
    publication stamp and shareable link straight away.
    """
    for field in REQUIRED_FIELDS:
        if _is_blank(fields.get(field)):
            raise ValidationFailed(field)

    now = now or datetime.now(UTC)
    blog = Blog(
        title=fields["title"],
        content=fields["content"],
        excerpt=fields["excerpt"],
        featured_image=fields.get("featured_image") or settings.DEFAULT_FEATURED_IMAGE,
        author=identity.id,
        tags=to_string_list(fields.get("tags")),
        category=fields.get("category") or settings.DEFAULT_CATEGORY,
        published=bool(fields.get("published")),
        slug=derive_slug(fields["title"]),
        site_id=fields.get("site_id"),
        sites=to_string_list(fields.get("sites")),
        is_global=bool(fields.get("is_global")),
        created_at=now,
        updated_at=now,
    )
    document = blog.model_dump()
    apply_publication(document, now)
    # absent, not null: the sparse unique index on shareable_link skips missing keys only
    document = {key: value for key, value in document.items() if value is not None}

    try:
        result = await db.blogs.insert_one(document)
    except DuplicateKeyError as e:
        raise conflict_from_duplicate_key(e)

    document["_id"] = result.inserted_id
    logger.info("Blog %s created by %s", document["slug"], identity.id)
    document["author_name"] = identity.name
    return document


async def update_blog(db, identity: Identity, blog_id: str, fields: Dict[str, Any], now: Optional[datetime] = None):
    blog = await _find_blog(db, blog_id)
    ensure_can_modify(identity, blog["author"], action="edit")

    for field in REQUIRED_FIELDS:
        if field in fields and _is_blank(fields[field]):
            raise ValidationFailed(field, f"{field.capitalize()} cannot be empty")

    now = now or datetime.now(UTC)
    changes: Dict[str, Any] = {}
    for field in ("title", "content", "excerpt"):
        if field in fields:
            changes[field] = fields[field]
    if "title" in changes and changes["title"] != blog["title"]:
        changes["slug"] = derive_slug(changes["title"])
    if "featured_image" in fields:
        changes["featured_image"] = fields["featured_image"] or settings.DEFAULT_FEATURED_IMAGE
    if "category" in fields:
        changes["category"] = fields["category"] or settings.DEFAULT_CATEGORY
    for field in LIST_FIELDS:
        if field in fields:
            changes[field] = to_string_list(fields[field])
    if "published" in fields:
        changes["published"] = bool(fields["published"])
    if "site_id" in fields:
        changes["site_id"] = fields["site_id"]
    if "is_global" in fields:
        changes["is_global"] = bool(fields["is_global"])
    changes["updated_at"] = now

    updated = {**blog, **changes}
    changes.update(apply_publication(updated, now))

    try:
        await db.blogs.update_one({"_id": blog["_id"]}, {"$set": changes})
    except DuplicateKeyError as e:
        raise conflict_from_duplicate_key(e)

    return (await with_author_names(db, [updated]))[0]


async def delete_blog(db, identity: Identity, blog_id: str) -> None:
    blog = await _find_blog(db, blog_id)
    ensure_can_modify(identity, blog["author"], action="delete")
    await db.blogs.delete_one({"_id": blog["_id"]})
    logger.info("Blog %s deleted by %s", blog["_id"], identity.id)


async def list_user_blogs(db, identity: Identity):
    blogs = await db.blogs.find({"author": identity.id}).sort("created_at", DESCENDING).to_list(length=None)
    for blog in blogs:
        blog["author_name"] = identity.name
    return blogs


async def distinct_categories(db):
    categories = await db.blogs.distinct("category")
    return sorted(category for category in categories if category)
