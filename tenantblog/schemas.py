from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel
from typing import List, Optional, Union


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str


class BlogPostCreation(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: Optional[Union[str, List[str]]] = None
    category: Optional[str] = None
    published: Optional[bool] = None
    site_id: Optional[str] = None
    sites: Optional[Union[str, List[str]]] = None
    is_global: Optional[bool] = None


class BlogPostUpdate(BlogPostCreation):
    pass


class SiteCreation(CamelModel):
    name: Optional[str] = None
    domain: Optional[str] = None
    description: Optional[str] = None
    site_id: Optional[str] = None
    allowed_origins: Optional[Union[str, List[str]]] = None


class SiteUpdate(CamelModel):
    name: Optional[str] = None
    domain: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    allowed_origins: Optional[Union[str, List[str]]] = None


def single_user_serializer(user) -> dict:
    return {
        "id": str(user["_id"]),
        "name": user["name"],
        "email": user.get("email"),
        "isAdmin": user.get("is_admin", False),
    }


def single_blog_serializer(blog) -> dict:
    return {
        "id": str(blog["_id"]),
        "title": blog["title"],
        "content": blog["content"],
        "excerpt": blog["excerpt"],
        "featuredImage": blog.get("featured_image"),
        "author": str(blog["author"]),
        "authorName": blog.get("author_name"),
        "tags": blog.get("tags", []),
        "category": blog.get("category"),
        "published": blog.get("published", False),
        "publishedAt": blog.get("published_at"),
        "viewCount": blog.get("view_count", 0),
        "slug": blog["slug"],
        "shareableLink": blog.get("shareable_link"),
        "siteId": blog.get("site_id"),
        "sites": blog.get("sites", []),
        "isGlobal": blog.get("is_global", False),
        "createdAt": blog.get("created_at"),
        "updatedAt": blog.get("updated_at"),
    }


def single_site_serializer(site) -> dict:
    return {
        "id": str(site["_id"]),
        "siteId": site["site_id"],
        "name": site["name"],
        "domain": site["domain"],
        "description": site.get("description"),
        "apiKey": site["api_key"],
        "isActive": site.get("is_active", True),
        "owner": str(site["owner"]),
        "allowedOrigins": site.get("allowed_origins", []),
        "createdAt": site.get("created_at"),
        "updatedAt": site.get("updated_at"),
    }


def page_serializer(items, page: int, pages: int, total: int) -> dict:
    return {"items": items, "page": page, "pages": pages, "total": total}
