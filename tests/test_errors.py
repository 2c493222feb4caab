import pytest
from pymongo.errors import DuplicateKeyError

from fakes import FakeDatabase
from tenantblog.db import ensure_indexes
from tenantblog.errors import Conflict, NotFound, ValidationFailed, conflict_from_duplicate_key


def test_conflict_from_key_value():
    error = DuplicateKeyError("E11000 duplicate key", 11000, {"keyValue": {"shareable_link": "x-1"}})
    conflict = conflict_from_duplicate_key(error)
    assert isinstance(conflict, Conflict)
    assert conflict.field == "shareableLink"
    assert conflict.to_dict()["kind"] == "Conflict"


def test_conflict_falls_back_to_index_name():
    message = "E11000 duplicate key error collection: db.sites index: site_id_1 dup key: { site_id: \"a\" }"
    error = DuplicateKeyError(message, 11000, {"errmsg": message})
    assert conflict_from_duplicate_key(error).field == "siteId"


def test_error_bodies():
    assert ValidationFailed("title").to_dict() == {"message": "Title is required", "kind": "ValidationFailed", "field": "title"}
    assert NotFound("Site not found").status_code == 404


@pytest.mark.asyncio
async def test_ensure_indexes_declares_unique_constraints():
    db = FakeDatabase()
    await ensure_indexes(db)

    blog_indexes = dict((keys, options) for keys, options in db.blogs.indexes if isinstance(keys, str))
    assert blog_indexes["slug"] == {"unique": True}
    assert blog_indexes["shareable_link"] == {"unique": True, "sparse": True}
    assert ("site_id", {"unique": True}) in db.sites.indexes
    assert ("email", {"unique": True}) in db.users.indexes
