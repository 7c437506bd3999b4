"""URL and domain normalization rules.

All functions here are pure. Lookups and ingestion must produce identical
strings for the same site, otherwise digests will never match.
"""

import hashlib
import re
from typing import NamedTuple
from urllib.parse import quote, urlsplit

import structlog
from pydantic import BaseModel, ConfigDict

from common import ParseError

logger = structlog.get_logger()

# Schemes whose empty path is serialized as "/"
SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp", "file"})

SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*$")

HEX_DIGEST_PATTERN = re.compile(r"^[0-9a-f]{64}$", re.IGNORECASE)

# Characters a URL parser refuses inside a host name
FORBIDDEN_HOST_CHARS = frozenset(" \t#%/:<>?@[\\]^|")

WWW_PREFIX = "www."

_PRINTABLE = "".join(chr(code) for code in range(0x21, 0x7F))

# Printable ASCII left as is per URL component; controls, space and
# non-ASCII are always escaped as UTF-8 %XX
FRAGMENT_SAFE = "".join(c for c in _PRINTABLE if c not in "\"<>`")
QUERY_SAFE = "".join(c for c in _PRINTABLE if c not in "\"#<>")
SPECIAL_QUERY_SAFE = QUERY_SAFE.replace("'", "")
PATH_SAFE = "".join(c for c in QUERY_SAFE if c not in "?`{}")


class ParsedUrl(NamedTuple):
    """Components of an absolute URL after parsing."""

    scheme: str
    hostname: str
    path: str
    query: str
    fragment: str


class NormalizedUrl(BaseModel):
    """Canonical forms of a URL used as digest inputs."""

    domain: str
    full_url: str
    original_url: str

    model_config = ConfigDict(frozen=True)


def strip_www(hostname: str) -> str:
    """Drop a single leading ``www.`` label."""
    if hostname.startswith(WWW_PREFIX):
        return hostname[len(WWW_PREFIX) :]
    return hostname


def remove_dot_segments(path: str) -> str:
    """
    Resolve ``.`` and ``..`` segments of an absolute path.

    Examples:
        >>> remove_dot_segments("/a/b/../c")
        '/a/c'
        >>> remove_dot_segments("/a/./")
        '/a/'
        >>> remove_dot_segments("/..")
        '/'
    """
    if not path.startswith("/"):
        return path

    segments = path[1:].split("/")
    resolved = []

    for index, segment in enumerate(segments):
        is_last = index == len(segments) - 1
        if segment == ".":
            if is_last:
                resolved.append("")
            continue
        if segment == "..":
            if resolved:
                resolved.pop()
            if is_last:
                resolved.append("")
            continue
        resolved.append(segment)

    return "/" + "/".join(resolved)


def _encode_hostname(hostname: str, raw: str) -> str:
    if hostname.isascii():
        return hostname
    try:
        return hostname.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise ParseError(
            "Host name cannot be IDNA-encoded",
            context={"url": raw, "reason": "idna"},
            original_error=e,
        )


def parse_url(raw: str) -> ParsedUrl:
    """
    Parse an absolute URL.

    Args:
        raw: URL string; surrounding whitespace is ignored

    Returns:
        ParsedUrl with a lowercase scheme and host

    Raises:
        ParseError: If the input has no scheme, no host, a bad port or an
            invalid host name
    """
    candidate = raw.strip()

    try:
        parts = urlsplit(candidate)
        # Accessing .port validates it
        parts.port
    except ValueError as e:
        raise ParseError("Invalid URL", context={"url": raw}, original_error=e)

    scheme = parts.scheme.lower()
    if not scheme or not SCHEME_PATTERN.match(scheme):
        raise ParseError("URL has no scheme", context={"url": raw, "reason": "scheme"})

    hostname = parts.hostname
    if not hostname:
        raise ParseError("URL has no host", context={"url": raw, "reason": "host"})

    if "[" in parts.netloc:
        # IPv6 literal, serialized with brackets
        hostname = f"[{hostname}]"
    else:
        if any(char in FORBIDDEN_HOST_CHARS for char in hostname):
            raise ParseError(
                "URL host contains forbidden characters",
                context={"url": raw, "reason": "host"},
            )
        hostname = _encode_hostname(hostname, raw).lower()

    special = scheme in SPECIAL_SCHEMES

    path = remove_dot_segments(quote(parts.path, safe=PATH_SAFE))
    if not path and special:
        path = "/"

    return ParsedUrl(
        scheme=scheme,
        hostname=hostname,
        path=path,
        query=quote(parts.query, safe=SPECIAL_QUERY_SAFE if special else QUERY_SAFE),
        fragment=quote(parts.fragment, safe=FRAGMENT_SAFE),
    )


def normalize_url(raw: str) -> NormalizedUrl:
    """
    Turn a raw URL into its domain, full URL and original forms.

    Never raises for string input: unparseable input falls back to its
    lowercase form for all three values.

    Examples:
        >>> n = normalize_url("https://WWW.Example.com:8443/a/../b?q=1#top")
        >>> n.domain, n.full_url
        ('example.com', 'example.com/b?q=1#top')
        >>> normalize_url("not a url").domain
        'not a url'
    """
    try:
        parsed = parse_url(raw)
    except ParseError as e:
        logger.debug("URL normalization fell back to raw input", url=raw, error=str(e))
        lowered = raw.lower()
        return NormalizedUrl(domain=lowered, full_url=lowered, original_url=lowered)

    domain = strip_www(parsed.hostname)
    full_url = domain + parsed.path
    if parsed.query:
        full_url += f"?{parsed.query}"
    if parsed.fragment:
        full_url += f"#{parsed.fragment}"

    return NormalizedUrl(domain=domain, full_url=full_url, original_url=raw.lower())


def looks_like_domain(value: str) -> bool:
    """Whether a domain-level blocklist value is plaintext rather than a digest."""
    return "." in value or value.startswith(WWW_PREFIX)


def looks_like_url(value: str) -> bool:
    """Whether a URL-level blocklist value is plaintext rather than a digest."""
    return "://" in value or value.startswith(WWW_PREFIX)


def normalize_domain_entry(value: str) -> str:
    """
    Canonical domain for a plaintext domain-level blocklist value.

    Examples:
        >>> normalize_domain_entry("www.Evil.example")
        'evil.example'
    """
    return strip_www(value.strip().lower())


def normalize_url_entry(value: str) -> str:
    """
    Canonical full URL for a plaintext URL-level blocklist value.

    A bare ``www.`` form is read as an http URL. If the value cannot be
    parsed it is returned unchanged.

    Examples:
        >>> normalize_url_entry("https://www.evil.example/login")
        'evil.example/login'
        >>> normalize_url_entry("www.evil.example")
        'evil.example/'
    """
    value = value.strip()
    candidate = value if "://" in value else f"http://{value}"

    try:
        parse_url(candidate)
    except ParseError:
        return value

    return normalize_url(candidate).full_url


def calculate_hash(text: str) -> str:
    """SHA-256 hex digest of the lowercased text."""
    return hashlib.sha256(text.lower().encode("utf-8")).hexdigest()


def is_hex_digest(value: str) -> bool:
    """Whether ``value`` already is a SHA-256 hex digest."""
    return bool(HEX_DIGEST_PATTERN.match(value))
