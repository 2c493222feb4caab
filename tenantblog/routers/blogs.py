from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from tenantblog.db import get_db
from tenantblog.errors import Forbidden
from tenantblog.models.user import Identity
from tenantblog.policy import parse_published
from tenantblog.schemas import BlogPostCreation, BlogPostUpdate, page_serializer, single_blog_serializer
from tenantblog.security import get_api_site, get_current_user
from tenantblog.services import blog_service
from tenantblog.utils import to_page_number

router = APIRouter()


def _page_response(result: dict) -> dict:
    items = [single_blog_serializer(blog) for blog in result["items"]]
    return page_serializer(items, result["page"], result["pages"], result["total"])


@router.get("")
async def list_blogs(
    keyword: Optional[str] = None,
    published: Optional[str] = None,
    category: Optional[str] = None,
    site_id: Optional[str] = Query(None, alias="siteId"),
    page_number: Optional[str] = Query(None, alias="pageNumber"),
    db=Depends(get_db),
):
    """
    List blogs, newest first, ten per page.
    Args:
        keyword (str, optional): case-insensitive match against title, content or tags
        published (str, optional): "true" or "false"; any other value lists both
        category (str, optional): exact category
        site_id (str, optional): restrict to blogs visible to this tenant
        page_number (str, optional): page number; missing, non-numeric or below 1 means 1
    Returns:
        dict: {items, page, pages, total}
    """
    result = await blog_service.list_blogs(
        db,
        keyword=keyword,
        published=parse_published(published),
        category=category,
        site_id=site_id,
        page=to_page_number(page_number),
    )
    return _page_response(result)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_blog(blog_form: BlogPostCreation, db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    """
    Create a blog post authored by the current user.
    Args:
        blog_form (BlogPostCreation): title, content and excerpt are required; tags and sites
            may be a comma-separated string or a list
        db: Database connection dependency
        current_user (Identity): The authenticated author
    Returns:
        dict: The created blog, including its derived slug and the author's name
    Raises:
        ValidationFailed: a required field is missing or the title yields an empty slug
        Conflict: another blog already uses the derived slug
    """
    blog = await blog_service.create_blog(db, current_user, blog_form.model_dump(exclude_unset=True))
    return single_blog_serializer(blog)


@router.get("/categories")
async def list_categories(db=Depends(get_db)):
    return await blog_service.distinct_categories(db)


@router.get("/user")
async def list_user_blogs(db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    blogs = await blog_service.list_user_blogs(db, current_user)
    return [single_blog_serializer(blog) for blog in blogs]


@router.get("/slug/{slug}")
async def get_blog_by_slug(slug: str, db=Depends(get_db)):
    blog = await blog_service.get_blog_by_slug(db, slug)
    return single_blog_serializer(blog)


@router.get("/share/{link}")
async def get_blog_by_shareable_link(link: str, db=Depends(get_db)):
    blog = await blog_service.get_blog_by_shareable_link(db, link)
    return single_blog_serializer(blog)


@router.get("/site/{site_id}")
async def list_site_blogs(
    site_id: str,
    keyword: Optional[str] = None,
    category: Optional[str] = None,
    page_number: Optional[str] = Query(None, alias="pageNumber"),
    db=Depends(get_db),
):
    result = await blog_service.list_blogs(db, keyword=keyword, category=category, site_id=site_id, page=to_page_number(page_number))
    return _page_response(result)


@router.get("/external/site/{site_id}")
async def list_external_site_blogs(
    site_id: str,
    keyword: Optional[str] = None,
    category: Optional[str] = None,
    page_number: Optional[str] = Query(None, alias="pageNumber"),
    db=Depends(get_db),
    site=Depends(get_api_site),
):
    """Feed for embed widgets, authenticated by the tenant's API key."""
    if site["site_id"] != site_id:
        raise Forbidden("API key does not belong to this site")

    result = await blog_service.list_blogs(db, keyword=keyword, category=category, site_id=site_id, page=to_page_number(page_number))
    return _page_response(result)


@router.get("/{blog_id}")
async def get_blog(blog_id: str, db=Depends(get_db)):
    blog = await blog_service.get_blog_by_id(db, blog_id)
    return single_blog_serializer(blog)


@router.put("/{blog_id}")
async def update_blog(blog_id: str, blog_form: BlogPostUpdate, db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    """
    Update the fields present in the request body of a blog post.
    Changing the title re-derives the slug. The first time the post is
    published it gets its publishedAt stamp and a shareable link; later
    updates never change either.
    Args:
        blog_id (str): The ID of the blog post to edit
        blog_form (BlogPostUpdate): Fields to change; absent fields are left untouched
        db: Database connection dependency
        current_user (Identity): The authenticated caller, author or admin
    Returns:
        dict: The updated blog
    Raises:
        NotFound: no blog with this ID
        Unauthorized: the caller is neither the author nor an admin
        ValidationFailed: title, content or excerpt supplied blank
        Conflict: the new title collides with another blog's slug
    """
    blog = await blog_service.update_blog(db, current_user, blog_id, blog_form.model_dump(exclude_unset=True))
    return single_blog_serializer(blog)


@router.delete("/{blog_id}")
async def delete_blog(blog_id: str, db=Depends(get_db), current_user: Identity = Depends(get_current_user)):
    """
    Delete a blog post.
    Args:
        blog_id (str): The ID of the blog post to delete
        db: Database connection dependency
        current_user (Identity): The authenticated caller, author or admin
    Returns:
        dict: A message confirming the deletion
    Raises:
        NotFound: no blog with this ID
        Unauthorized: the caller is neither the author nor an admin
    """
    await blog_service.delete_blog(db, current_user, blog_id)
    return {"message": "Blog removed"}
