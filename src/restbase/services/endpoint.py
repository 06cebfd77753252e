"""RESTBase invalidation URL builder."""

import re
from dataclasses import dataclass

from django.conf import settings

from ..titles import Title, encode_title

_DOMAIN_RE = re.compile(r"^(https?://)?([^/:]+?)(/|:\d+/?)?$")


def domain_from_url(url: str) -> str:
    """Extract the host name from a site URL ("https://en.example.org/" -> "en.example.org")."""
    return _DOMAIN_RE.sub(r"\2", url.strip())


@dataclass(frozen=True)
class RestbaseEndpoint:
    """Location of the RESTBase API for one wiki."""

    server: str
    domain: str
    api_version: str = "v1"

    @classmethod
    def from_settings(cls) -> "RestbaseEndpoint":
        domain = settings.RESTBASE_DOMAIN or domain_from_url(settings.SITE_URL)
        return cls(
            server=settings.RESTBASE_SERVER.rstrip("/"),
            domain=domain,
            api_version=settings.RESTBASE_API_VERSION,
        )

    @property
    def base(self) -> str:
        return "/".join([self.server, self.domain, self.api_version])

    def revision_url(self, revision_id: int) -> str:
        """URL for a revision; used to signal visibility changes."""
        return "/".join([self.base, "page", "revision", str(revision_id)])

    def page_url(self, title: Title | str, revision_id: int | None = None) -> str:
        """URL for the HTML of a page at a given revision, or of the page itself."""
        dbkey = title.prefixed_dbkey if isinstance(title, Title) else title
        parts = [self.base, "page", "html", encode_title(dbkey)]
        if revision_id:
            parts.append(str(revision_id))
        return "/".join(parts)
