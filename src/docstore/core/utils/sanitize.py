"""URL normalization and filesystem-safe document identifiers"""

import re
from urllib.parse import quote, urlsplit, urlunsplit

from docstore.core.errors import InvalidURL
from docstore.core.utils.hashing import sha256


ALLOWED_SCHEMES = {"http", "https"}
MAX_SLUG_LENGTH = 80
HASH_SUFFIX_LENGTH = 16

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = "/?%:@!$&'()*+,;=-._~"


def normalize_url(url: str) -> str:
    """Validate url and return its canonical, percent-encoded form.

    Raises InvalidURL unless url has an http(s) scheme and a host.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURL(str(url), "empty")
    try:
        parts = urlsplit(url.strip())
        parts.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise InvalidURL(url, str(e)) from e

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidURL(url, "expected an http or https scheme")
    if not parts.hostname or re.search(r"\s", parts.netloc):
        raise InvalidURL(url, "missing or malformed host")

    userinfo, sep, hostport = parts.netloc.rpartition("@")
    return urlunsplit((
        scheme,
        f"{userinfo}{sep}{hostport.lower()}",
        quote(parts.path, safe=_PATH_SAFE) or "/",
        quote(parts.query, safe=_QUERY_SAFE),
        quote(parts.fragment, safe=_QUERY_SAFE),
    ))


def sanitize(url: str) -> str:
    """Derive a deterministic, filesystem-safe document identifier from url.

    The readable prefix is a slug of the URL without its scheme; the suffix is
    a hash of the normalized URL so distinct URLs never share an identifier
    just because their slugs collide or were truncated.
    """
    normalized = normalize_url(url)
    _, _, rest = normalized.partition("://")
    slug = _UNSAFE_RE.sub("_", rest).strip("._-")[:MAX_SLUG_LENGTH].rstrip("._-")
    return f"{slug or 'doc'}-{sha256(normalized)[:HASH_SUFFIX_LENGTH]}"
