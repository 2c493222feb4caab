import pytest

from tenantblog.errors import Unauthorized
from tenantblog.policy import (build_blog_filter, can_modify, ensure_can_modify, is_visible_to_site,
                               parse_published, site_visibility_filter)
from fakes import matches


def blog(**overrides):
    document = {"published": True, "site_id": None, "sites": [], "is_global": False}
    document.update(overrides)
    return document


def test_unpublished_blog_is_never_visible():
    for candidate in (
        blog(published=False, site_id="A"),
        blog(published=False, sites=["A"]),
        blog(published=False, is_global=True),
    ):
        assert not is_visible_to_site(candidate, "A")


def test_global_published_blog_is_visible_everywhere():
    candidate = blog(is_global=True)
    for site_id in ("A", "B", "anything"):
        assert is_visible_to_site(candidate, site_id)


def test_site_scoped_blog():
    candidate = blog(site_id="A")
    assert is_visible_to_site(candidate, "A")
    assert not is_visible_to_site(candidate, "B")
    assert is_visible_to_site(blog(site_id="A", sites=["B"]), "B")


def test_visibility_filter_agrees_with_predicate():
    candidates = [
        blog(site_id="A"),
        blog(sites=["A", "C"]),
        blog(is_global=True),
        blog(published=False, site_id="A"),
        blog(site_id="B"),
        blog(),
    ]
    for site_id in ("A", "B", "C"):
        query = site_visibility_filter(site_id)
        for candidate in candidates:
            assert matches(candidate, query) == is_visible_to_site(candidate, site_id)


def test_can_modify(author, other, admin):
    assert can_modify(author, author.id)
    assert not can_modify(other, author.id)
    assert can_modify(admin, author.id)
    assert not can_modify(None, author.id)


def test_ensure_can_modify_raises_unauthorized(other, author):
    with pytest.raises(Unauthorized) as exc_info:
        ensure_can_modify(other, author.id, action="edit")
    assert exc_info.value.status_code == 401
    assert "edit this blog" in exc_info.value.message


@pytest.mark.parametrize("raw, expected", [("true", True), ("false", False), ("yes", None), (None, None)])
def test_parse_published(raw, expected):
    assert parse_published(raw) is expected


def test_build_blog_filter_composes_parts():
    assert build_blog_filter() == {}
    assert build_blog_filter(category="news") == {"category": "news"}

    query = build_blog_filter(keyword="py", published=True, category="news", site_id="A")
    assert len(query["$and"]) == 4

    document = blog(title="Intro to Python", content="", tags=[], category="news", site_id="A")
    assert matches(document, query)
    assert not matches(dict(document, category="misc"), query)


def test_keyword_matches_title_content_or_tag_case_insensitively():
    query = build_blog_filter(keyword="PyThOn")
    assert matches({"title": "python tips", "content": "", "tags": []}, query)
    assert matches({"title": "", "content": "I like Python", "tags": []}, query)
    assert matches({"title": "", "content": "", "tags": ["python3"]}, query)
    assert not matches({"title": "rust", "content": "go", "tags": ["c"]}, query)


def test_keyword_is_escaped():
    query = build_blog_filter(keyword="c++")
    assert matches({"title": "Modern C++", "content": "", "tags": []}, query)
