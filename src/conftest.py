"""Global pytest fixtures."""

import pytest
from django.core.cache import cache

from restbase.exceptions import BacklinkSourceError
from restbase.services.endpoint import RestbaseEndpoint
from restbase.services.wiki_backend import Backlink, BacklinkPage, WikiBackend
from restbase.titles import NAMESPACES, Title


class FakeWikiBackend(WikiBackend):
    """In-memory wiki: revision histories plus backlink tables ordered by page id."""

    def __init__(self):
        self.revisions: dict[Title, list[int]] = {}
        self.links: dict[tuple, list[Backlink]] = {}
        self.namespaces = dict(NAMESPACES)
        self.fail_backlinks = False
        self.backlink_calls = []

    def add_page(self, title: Title, *revisions: int):
        self.revisions[title] = list(revisions)

    def add_backlinks(self, title: Title, table, count: int, first_page_id: int = 1):
        page_ids = range(first_page_id, first_page_id + count)
        rows = [Backlink(page_id, Title(0, f"Page_{page_id}")) for page_id in page_ids]
        self.links[(title, table)] = rows
        for row in rows:
            self.revisions.setdefault(row.title, [row.page_id * 10])
        return rows

    def namespace_names(self):
        return self.namespaces

    def latest_revision_id(self, title):
        history = self.revisions.get(title)
        return history[-1] if history else None

    def previous_revision_id(self, title, revision_id):
        history = self.revisions.get(title, [])
        if revision_id in history and history.index(revision_id) > 0:
            return history[history.index(revision_id) - 1]
        return None

    def backlinks(self, title, table, cursor=None, limit=500):
        self.backlink_calls.append((title, table, cursor, limit))
        if self.fail_backlinks:
            raise BacklinkSourceError("backlink source unreachable")

        rows = self.links.get((title, table), [])
        if cursor is not None:
            rows = [row for row in rows if row.page_id > int(cursor)]
        batch = rows[:limit]
        more = len(rows) > limit
        return BacklinkPage(rows=batch, cursor=str(batch[-1].page_id) if more else None)


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear the de-duplication cache around each test."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def wiki_backend():
    return FakeWikiBackend()


@pytest.fixture
def endpoint():
    return RestbaseEndpoint(server="http://cache/svc", domain="en.example.org", api_version="v1")
