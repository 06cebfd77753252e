"""Wiki page identity: namespaces, DB keys and URL encoding."""

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import quote

NS_MAIN = 0
NS_FILE = 6
NS_TEMPLATE = 10

# Canonical namespace names, keyed by namespace number. A wiki may use
# localized names and define extra namespaces; see WikiBackend.namespace_names
NAMESPACES = {
    -2: "Media",
    -1: "Special",
    0: "",
    1: "Talk",
    2: "User",
    3: "User_talk",
    4: "Project",
    5: "Project_talk",
    6: "File",
    7: "File_talk",
    8: "MediaWiki",
    9: "MediaWiki_talk",
    10: "Template",
    11: "Template_talk",
    12: "Help",
    13: "Help_talk",
    14: "Category",
    15: "Category_talk",
}

# Characters wfUrlencode leaves unescaped
URL_SAFE_CHARS = ";@$!*(),/~:"


def to_dbkey(text: str) -> str:
    """Convert display text ("Foo Bar") to its DB key form ("Foo_Bar")."""
    return text.strip().replace(" ", "_")


def encode_title(dbkey: str) -> str:
    """Percent-encode a DB key for use in a URL path segment."""
    return quote(to_dbkey(dbkey), safe=URL_SAFE_CHARS)


@dataclass(frozen=True)
class Title:
    """A page title: namespace number plus DB key."""

    namespace: int
    dbkey: str

    def __post_init__(self):
        object.__setattr__(self, "dbkey", to_dbkey(self.dbkey))

    @classmethod
    def parse(cls, text: str) -> "Title":
        """Parse a prefixed title such as "Template:Foo bar"."""
        text = to_dbkey(text)
        if ":" in text:
            prefix, rest = text.split(":", 1)
            for number, name in NAMESPACES.items():
                if name and name.lower() == prefix.lower():
                    return cls(number, rest)
        return cls(NS_MAIN, text)

    @property
    def is_file(self) -> bool:
        return self.namespace == NS_FILE

    def prefixed_dbkey_in(self, namespaces: Mapping[int, str]) -> str:
        """DB key prefixed with the name ``namespaces`` gives this title's namespace."""
        if self.namespace == NS_MAIN:
            return self.dbkey
        prefix = namespaces.get(self.namespace, str(self.namespace))
        return f"{prefix}:{self.dbkey}" if prefix else self.dbkey

    @property
    def prefixed_dbkey(self) -> str:
        """DB key including the canonical namespace prefix ("Template:Foo_bar")."""
        return self.prefixed_dbkey_in(NAMESPACES)

    @property
    def prefixed_text(self) -> str:
        """Human-readable prefixed title ("Template:Foo bar")."""
        return self.prefixed_dbkey.replace("_", " ")

    def as_pair(self) -> list:
        """Return the JSON-compatible (namespace, dbkey) pair."""
        return [self.namespace, self.dbkey]

    def __str__(self):
        return self.prefixed_text
