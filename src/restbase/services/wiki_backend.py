"""Access to wiki revision data and backlink tables."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from itertools import islice
from typing import NamedTuple

import requests
from django.conf import settings
from django.utils.module_loading import import_string

from ..exceptions import BacklinkSourceError
from ..jobs import DependencyTable
from ..titles import NAMESPACES, NS_MAIN, Title, to_dbkey

logger = logging.getLogger(__name__)

# Query modules and parameter prefixes used to list backlinks per link table
BACKLINK_MODULES = {
    DependencyTable.TEMPLATELINKS: ("embeddedin", "ei"),
    DependencyTable.IMAGELINKS: ("imageusage", "iu"),
}

API_MAX_LIMIT = 500
API_MAX_IDS = 50


class Backlink(NamedTuple):
    """A page linking to (transcluding or embedding) another page."""

    page_id: int
    title: Title


@dataclass
class BacklinkPage:
    """One page of backlink rows.

    ``cursor`` resumes enumeration after the last row, and is None once no
    rows remain.
    """

    rows: list[Backlink] = field(default_factory=list)
    cursor: str | None = None


class WikiBackend(ABC):
    """Revision and backlink lookups the invalidation jobs depend on."""

    @abstractmethod
    def latest_revision_id(self, title: Title) -> int | None:
        """Latest revision of ``title``, or None if the page does not exist."""

    @abstractmethod
    def previous_revision_id(self, title: Title, revision_id: int) -> int | None:
        """Revision preceding ``revision_id``, or None for a page's first revision."""

    @abstractmethod
    def backlinks(
        self, title: Title, table: DependencyTable, cursor: str | None = None, limit: int = API_MAX_LIMIT
    ) -> BacklinkPage:
        """Fetch up to ``limit`` backlinks of ``title`` from ``table``, starting after ``cursor``."""

    def namespace_names(self) -> Mapping[int, str]:
        """Namespace prefixes in DB key form, keyed by namespace number."""
        return NAMESPACES

    def prefixed_dbkey(self, title: Title) -> str:
        """DB key of ``title`` carrying this wiki's own namespace prefix."""
        if title.namespace == NS_MAIN:
            return title.dbkey
        return title.prefixed_dbkey_in(self.namespace_names())

    def latest_revision_ids(self, pages: Mapping[int, Title]) -> dict[int, int]:
        """Latest revision per page id; pages that no longer exist are left out."""
        result = {}
        for page_id, title in pages.items():
            revision_id = self.latest_revision_id(title)
            if revision_id:
                result[page_id] = revision_id
        return result


def chunked(iterable, size):
    """Yield consecutive lists of at most ``size`` items."""
    iterator = iter(iterable)
    while chunk := list(islice(iterator, size)):
        yield chunk


def _strip_namespace(namespace: int, text: str) -> str:
    if namespace != 0 and ":" in text:
        return text.split(":", 1)[1]
    return text


class MediaWikiApiBackend(WikiBackend):
    """Wiki backend backed by the MediaWiki Action API."""

    def __init__(
        self,
        api_url: str | None = None,
        timeout: float | None = None,
        session=None,
        namespaces: Mapping[int, str] | None = None,
    ):
        self.api_url = api_url or settings.RESTBASE_WIKI_API_URL
        self.timeout = timeout if timeout is not None else settings.RESTBASE_REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = settings.RESTBASE_USER_AGENT
        self._namespaces = dict(namespaces) if namespaces is not None else None

    def _query(self, **params) -> dict:
        params.update(action="query", format="json", formatversion=2)
        try:
            response = self.session.get(self.api_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise BacklinkSourceError(f"Wiki API request failed: {e}") from e

        if "error" in data:
            error = data["error"]
            raise BacklinkSourceError(f"Wiki API error {error.get('code')}: {error.get('info')}")
        return data

    def namespace_names(self) -> Mapping[int, str]:
        # Localized and extension namespaces only exist in the wiki's siteinfo
        if self._namespaces is None:
            data = self._query(meta="siteinfo", siprop="namespaces")
            namespaces = data.get("query", {}).get("namespaces", {})
            self._namespaces = {int(ns["id"]): to_dbkey(ns.get("name", "")) for ns in namespaces.values()}
            logger.debug("Loaded %d namespace names from %s", len(self._namespaces), self.api_url)
        return self._namespaces

    def _prefixed_text(self, title: Title) -> str:
        return self.prefixed_dbkey(title).replace("_", " ")

    def latest_revision_id(self, title: Title) -> int | None:
        data = self._query(prop="revisions", titles=self._prefixed_text(title), rvprop="ids")
        pages = data.get("query", {}).get("pages", [])
        if not pages or pages[0].get("missing") or not pages[0].get("revisions"):
            return None
        return pages[0]["revisions"][0]["revid"]

    def previous_revision_id(self, title: Title, revision_id: int) -> int | None:
        data = self._query(prop="revisions", revids=revision_id, rvprop="ids")
        pages = data.get("query", {}).get("pages", [])
        if not pages or not pages[0].get("revisions"):
            return None
        return pages[0]["revisions"][0].get("parentid") or None

    def latest_revision_ids(self, pages: Mapping[int, Title]) -> dict[int, int]:
        result = {}
        for chunk in chunked(pages, API_MAX_IDS):
            data = self._query(prop="revisions", pageids="|".join(str(page_id) for page_id in chunk), rvprop="ids")
            for page in data.get("query", {}).get("pages", []):
                if page.get("missing") or not page.get("revisions"):
                    continue
                result[page["pageid"]] = page["revisions"][0]["revid"]
        return result

    def backlinks(
        self, title: Title, table: DependencyTable, cursor: str | None = None, limit: int = API_MAX_LIMIT
    ) -> BacklinkPage:
        module, prefix = BACKLINK_MODULES[table]
        rows: list[Backlink] = []

        # The API caps each response, so keep following continuations until
        # the requested number of rows is reached.
        while len(rows) < limit:
            params = {
                "list": module,
                f"{prefix}title": self._prefixed_text(title),
                f"{prefix}limit": min(limit - len(rows), API_MAX_LIMIT),
            }
            if cursor:
                params[f"{prefix}continue"] = cursor
            data = self._query(**params)

            for row in data.get("query", {}).get(module, []):
                namespace = row["ns"]
                rows.append(Backlink(row["pageid"], Title(namespace, _strip_namespace(namespace, row["title"]))))

            cursor = data.get("continue", {}).get(f"{prefix}continue")
            if not cursor:
                break

        logger.debug("Fetched %d %s backlinks for %s", len(rows), table.value, title)
        return BacklinkPage(rows=rows, cursor=cursor or None)


_wiki_backend = None


def get_wiki_backend() -> WikiBackend:
    """Get the configured wiki backend singleton."""
    global _wiki_backend
    if _wiki_backend is None:
        backend_class = import_string(settings.RESTBASE_WIKI_BACKEND)
        _wiki_backend = backend_class()
    return _wiki_backend
