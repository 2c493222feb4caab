from datetime import timedelta

import pytest
from bson import ObjectId
from jose import jwt

from tenantblog.config import settings
from tenantblog.errors import Forbidden, Unauthenticated
from tenantblog.security import get_api_site, get_current_user, origin_allowed
from tenantblog.utils import create_access_token


@pytest.mark.parametrize("origin, allowed, expected", [
    ("blog.example.com", ["*.example.com"], True),
    ("https://blog.example.com", ["*.example.com"], True),
    ("evil.com", ["*.example.com"], False),
    ("example.com", ["example.com"], True),
    ("example.com.evil.net", ["example.com"], False),
    ("anything", [], False),
])
def test_origin_allowed(origin, allowed, expected):
    assert origin_allowed(origin, allowed) is expected


@pytest.mark.asyncio
async def test_session_resolves_identity_without_password(db, author_doc):
    db.users.documents.append(author_doc)
    token = create_access_token(author_doc["email"], str(author_doc["_id"]))

    identity = await get_current_user(token=token, db=db)

    assert identity.id == str(author_doc["_id"])
    assert identity.name == "Ada"
    assert identity.is_admin is False
    assert not hasattr(identity, "password")


@pytest.mark.asyncio
async def test_session_rejects_bad_tokens(db, author_doc):
    db.users.documents.append(author_doc)

    with pytest.raises(Unauthenticated):
        await get_current_user(token=None, db=db)
    with pytest.raises(Unauthenticated):
        await get_current_user(token="not.a.jwt", db=db)

    forged = jwt.encode({"id": str(author_doc["_id"])}, "another-secret", algorithm=settings.ALGORITHM)
    with pytest.raises(Unauthenticated):
        await get_current_user(token=forged, db=db)

    expired = create_access_token(author_doc["email"], str(author_doc["_id"]), expires_delta=timedelta(minutes=-5))
    with pytest.raises(Unauthenticated):
        await get_current_user(token=expired, db=db)

    unknown = create_access_token("ghost@example.com", str(ObjectId()))
    with pytest.raises(Unauthenticated) as exc_info:
        await get_current_user(token=unknown, db=db)
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def _site(**overrides):
    site = {
        "_id": ObjectId(),
        "site_id": "example",
        "api_key": "k" * 64,
        "is_active": True,
        "allowed_origins": ["example.com", "*.example.com"],
    }
    site.update(overrides)
    return site


@pytest.mark.asyncio
async def test_api_key_resolves_site(db):
    db.sites.documents.append(_site())

    site = await get_api_site(api_key="k" * 64, origin="blog.example.com", db=db)
    assert site["site_id"] == "example"

    no_origin = await get_api_site(api_key="k" * 64, origin=None, db=db)
    assert no_origin["site_id"] == "example"


@pytest.mark.asyncio
async def test_api_key_rejections(db):
    db.sites.documents.append(_site())
    db.sites.documents.append(_site(site_id="dormant", api_key="d" * 64, is_active=False))

    with pytest.raises(Unauthenticated):
        await get_api_site(api_key=None, origin=None, db=db)
    with pytest.raises(Unauthenticated):
        await get_api_site(api_key="wrong", origin=None, db=db)
    with pytest.raises(Unauthenticated):
        await get_api_site(api_key="d" * 64, origin=None, db=db)
    with pytest.raises(Forbidden) as exc_info:
        await get_api_site(api_key="k" * 64, origin="evil.com", db=db)
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_empty_allow_list_accepts_any_origin(db):
    db.sites.documents.append(_site(allowed_origins=[]))
    site = await get_api_site(api_key="k" * 64, origin="evil.com", db=db)
    assert site["site_id"] == "example"
