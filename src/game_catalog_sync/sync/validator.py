"""
Catalog schema validation and input sanitization.

Pure functions over untrusted JSON: no I/O, no logging, never raises.
A catalog is accepted only if every entry passes; the report still
lists every error found so failures can be diagnosed in one pass.
"""

import ipaddress
import re
import socket
from typing import Any
from urllib.parse import urlsplit

import httpx
from pydantic import ValidationError as PydanticValidationError

from game_catalog_sync.contracts.catalog import (
    MAX_CATALOG_SIZE,
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_DISABLED_REASON_LENGTH,
    MAX_ID_LENGTH,
    MAX_TITLE_LENGTH,
    MAX_URL_LENGTH,
    GameEntry,
    Orientation,
)
from game_catalog_sync.contracts.results import ValidationReport

# Markup that rejects the whole entry when found in any string field
UNSAFE_MARKUP_PATTERNS = [
    re.compile(r"<\s*script\b", re.IGNORECASE),
    re.compile(r"<\s*iframe\b", re.IGNORECASE),
    re.compile(r"<\s*object\b", re.IGNORECASE),
    re.compile(r"<\s*embed\b", re.IGNORECASE),
    re.compile(r"<\s*form\b", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"vbscript\s*:", re.IGNORECASE),
    re.compile(r"data\s*:\s*[a-z]+/[a-z0-9.+-]+", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
]

# Scheme tokens never allowed anywhere in a URL field
DANGEROUS_URL_PATTERNS = [
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"data:", re.IGNORECASE),
    re.compile(r"file:", re.IGNORECASE),
    re.compile(r"ftp:", re.IGNORECASE),
]

CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
TRAVERSAL = re.compile(r"\.\.|%2e%2e|%2e\.|\.%2e", re.IGNORECASE)
# Hosts made only of decimal, octal or hex labels are IPv4 addresses
NUMERIC_HOST = re.compile(
    r"^(0x[0-9a-f]*|[0-9]+)(\.(0x[0-9a-f]*|[0-9]+))*\.?$", re.IGNORECASE
)

ALLOWED_URL_SCHEMES = ("http", "https")
REQUIRED_FIELDS = {
    "id": ("id",),
    "title": ("title",),
    "image": ("image", "imageUrl"),
    "url": ("url", "playUrl"),
}


def _pick(raw: dict[str, Any], names: tuple[str, ...]) -> Any:
    """Return the first present value among alternative field names."""
    for name in names:
        if name in raw:
            return raw[name]
    return None


def contains_unsafe_markup(value: str) -> bool:
    """Check a raw string against the unsafe-markup patterns."""
    return any(pattern.search(value) for pattern in UNSAFE_MARKUP_PATTERNS)


def sanitize_string(value: Any, max_length: int) -> str | None:
    """
    Clean a string field.

    Returns None when the value is not a string, contains unsafe
    markup, or is empty once control characters and surrounding
    whitespace are removed.
    """
    if not isinstance(value, str):
        return None
    if contains_unsafe_markup(value):
        return None

    cleaned = CONTROL_CHARS.sub("", value).strip()[:max_length]
    return cleaned or None


def parse_ip_host(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    """
    Parse a literal IP host the way browsers resolve it.

    Numeric hosts in shorthand, decimal, octal or hex form (``127.1``,
    ``2130706433``, ``0x7f000001``) resolve to the IPv4 address they
    denote. Returns None for domain names.

    Raises:
        ValueError: Host is numeric but not a valid IPv4 address
    """
    host = host.strip("[]").lower()
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        if not NUMERIC_HOST.match(host):
            return None
    try:
        return ipaddress.IPv4Address(socket.inet_aton(host.rstrip(".")))
    except OSError as e:
        raise ValueError(f"Invalid IPv4 host: {host}") from e


def is_loopback_host(host: str) -> bool:
    """Loopback and unspecified hosts, by name or address."""
    host = host.strip("[]").lower()
    if host == "localhost" or host.endswith(".localhost"):
        return True
    try:
        address = parse_ip_host(host)
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return address is not None and (address.is_loopback or address.is_unspecified)


def canonical_url(url: httpx.URL) -> str:
    """
    Re-serialize a parsed URL in canonical form.

    The host is kept in its ASCII (punycode) form and numeric hosts are
    written as dotted IPv4. The fragment stays percent-encoded.

    Raises:
        ValueError: Host is numeric but not a valid IPv4 address
    """
    host = url.raw_host.decode("ascii").lower()
    address = parse_ip_host(host)
    if isinstance(address, ipaddress.IPv6Address):
        host = f"[{address.compressed}]"
    elif address is not None:
        host = str(address)

    userinfo = url.userinfo.decode("ascii")
    authority = f"{userinfo}@{host}" if userinfo else host
    if url.port is not None:
        authority = f"{authority}:{url.port}"

    canonical = f"{url.scheme.lower()}://{authority}{url.raw_path.decode('ascii')}"
    _, has_fragment, fragment = str(url).partition("#")
    if has_fragment and fragment:
        canonical = f"{canonical}#{fragment}"
    return canonical


def validate_url(
    value: Any,
    *,
    allowed_schemes: tuple[str, ...] = ALLOWED_URL_SCHEMES,
) -> tuple[str | None, list[str]]:
    """
    Validate a URL field and return its canonical form.

    Returns:
        (canonical_url, errors): canonical_url is None when errors is non-empty
    """
    if not isinstance(value, str) or not value.strip():
        return None, ["URL must be a non-empty string"]

    candidate = value.strip()

    if len(candidate) > MAX_URL_LENGTH:
        return None, [f"URL too long (max: {MAX_URL_LENGTH})"]

    if any(pattern.search(candidate) for pattern in DANGEROUS_URL_PATTERNS):
        return None, ["URL contains dangerous protocol or pattern"]

    # Traversal is checked on the raw text, before the parser collapses dot segments
    try:
        raw_parts = urlsplit(candidate)
    except ValueError:
        return None, ["Invalid URL format"]
    if TRAVERSAL.search(raw_parts.netloc) or TRAVERSAL.search(raw_parts.path):
        return None, ["URLs with path traversal patterns are not allowed"]

    try:
        parsed = httpx.URL(candidate)
        scheme = parsed.scheme.lower()
        # Decoding the host rejects malformed punycode labels
        has_host = bool(parsed.host)
        host = parsed.raw_host.decode("ascii")
    except (httpx.InvalidURL, ValueError, TypeError, UnicodeError):
        return None, ["Invalid URL format"]

    if scheme not in allowed_schemes:
        return None, [
            f"Unsupported protocol: {scheme or '(none)'}. Allowed: {', '.join(allowed_schemes)}"
        ]

    if not has_host:
        return None, ["URL must have a valid hostname"]

    try:
        canonical = canonical_url(parsed)
    except ValueError:
        return None, ["Invalid URL format"]

    if is_loopback_host(host):
        return None, ["Localhost URLs are not allowed"]

    return canonical, []


class CatalogValidator:
    """
    Validates and sanitizes raw catalogs.

    Example:
        >>> report = CatalogValidator().validate(json.loads(body))
        >>> if report.valid:
        ...     games = report.sanitized
    """

    def validate(self, raw: Any, *, strict: bool = True) -> ValidationReport:
        """
        Validate a raw catalog.

        Args:
            raw: Decoded JSON value
            strict: Reject entries with malformed optional fields. When False
                such fields are dropped instead; URL validation and the
                unsafe-markup check apply either way.

        Returns:
            ValidationReport: valid only if every entry passed
        """
        if not isinstance(raw, list):
            return ValidationReport(valid=False, errors=["Catalog must be an array"])

        if len(raw) > MAX_CATALOG_SIZE:
            return ValidationReport(
                valid=False,
                errors=[f"Catalog too large: {len(raw)} items (max: {MAX_CATALOG_SIZE})"],
            )

        sanitized: list[GameEntry] = []
        all_errors: list[str] = []

        for index, item in enumerate(raw):
            entry, errors = self.validate_game(item, strict=strict)
            if entry is not None and not errors:
                sanitized.append(entry)
            else:
                all_errors.append(f"Game {index}: {', '.join(errors)}")

        return ValidationReport(
            valid=not all_errors,
            errors=all_errors,
            sanitized=sanitized,
        )

    def validate_game(
        self, raw: Any, *, strict: bool = True
    ) -> tuple[GameEntry | None, list[str]]:
        """
        Validate and sanitize a single game object.

        Returns:
            (entry, errors): entry is None when errors is non-empty
        """
        if not isinstance(raw, dict):
            return None, ["Game must be an object"]

        errors: list[str] = []
        for field, names in REQUIRED_FIELDS.items():
            value = _pick(raw, names)
            if not value:
                errors.append(f"Missing required field: {field}")
            elif not isinstance(value, str):
                errors.append(f"Field {field} must be a string")

        if errors:
            return None, errors

        clean: dict[str, Any] = {}

        clean["id"] = sanitize_string(raw["id"], MAX_ID_LENGTH)
        if clean["id"] is None:
            errors.append("Invalid or unsafe ID")

        clean["title"] = sanitize_string(raw["title"], MAX_TITLE_LENGTH)
        if clean["title"] is None:
            errors.append("Invalid or unsafe title")

        image_url, image_errors = validate_url(_pick(raw, REQUIRED_FIELDS["image"]))
        if image_errors:
            errors.append(f"Invalid image URL: {', '.join(image_errors)}")
        clean["image_url"] = image_url

        play_url, play_errors = validate_url(_pick(raw, REQUIRED_FIELDS["url"]))
        if play_errors:
            errors.append(f"Invalid game URL: {', '.join(play_errors)}")
        clean["play_url"] = play_url

        orientation = _pick(raw, ("preferredOrientation", "orientation"))
        if orientation:
            if orientation in (Orientation.PORTRAIT.value, Orientation.LANDSCAPE.value):
                clean["orientation"] = orientation
            elif strict:
                errors.append('Invalid preferredOrientation, must be "portrait" or "landscape"')

        optional_strings = (
            ("category", ("category",), MAX_CATEGORY_LENGTH),
            ("description", ("description",), MAX_DESCRIPTION_LENGTH),
            ("disabled_reason", ("disabledReason", "disabled_reason"), MAX_DISABLED_REASON_LENGTH),
        )
        for field, names, max_length in optional_strings:
            value = _pick(raw, names)
            if not value:
                continue
            cleaned = sanitize_string(value, max_length)
            if cleaned is not None:
                clean[field] = cleaned
            elif strict or (isinstance(value, str) and contains_unsafe_markup(value)):
                errors.append(f"Invalid or unsafe {field.replace('_', ' ')}")

        if isinstance(raw.get("enabled"), bool):
            clean["enabled"] = raw["enabled"]

        if errors:
            return None, errors

        # Canonical URLs can outgrow the raw length once percent-encoded
        return self._build_entry(clean)

    @staticmethod
    def _build_entry(data: dict[str, Any]) -> tuple[GameEntry | None, list[str]]:
        try:
            return GameEntry.model_validate(data), []
        except PydanticValidationError as e:
            return None, [
                f"{'.'.join(str(part) for part in err['loc']) or 'entry'}: {err['msg']}"
                for err in e.errors()
            ]

    @staticmethod
    def is_json_content_type(content_type: str | None) -> bool:
        """Check whether a Content-Type header denotes JSON."""
        if not content_type:
            return False
        media_type = content_type.split(";", 1)[0].strip().lower()
        return media_type == "application/json" or media_type.endswith("+json")
