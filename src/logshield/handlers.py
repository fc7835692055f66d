"""Replacement handlers for rules that cannot be expressed as a template."""

import re
from typing import Callable

PASSWORD_PLACEHOLDER = "<REDACTED_PASSWORD>"
URL_PARAM_PLACEHOLDER = "<REDACTED_URL_PARAM>"

PLACEHOLDER_RE = re.compile(r"<REDACTED_[A-Z0-9_]+>")

SENSITIVE_URL_PARAMS = frozenset(
    {
        "access_token",
        "refresh_token",
        "id_token",
        "token",
        "auth",
        "auth_token",
        "api_key",
        "apikey",
        "api-key",
        "key",
        "secret",
        "client_secret",
        "password",
        "passwd",
        "pwd",
        "sig",
        "signature",
        "x-amz-signature",
        "x-amz-credential",
        "x-amz-security-token",
    }
)


def _is_placeholder(value: str) -> bool:
    return PLACEHOLDER_RE.fullmatch(value) is not None


def _redact_params(params: str) -> str:
    """Redact the values of sensitive key=value pairs in a query or fragment."""
    pairs = []
    for pair in params.split("&"):
        key, sep, value = pair.partition("=")
        if sep and value and key.lower() in SENSITIVE_URL_PARAMS and not _is_placeholder(value):
            pair = f"{key}={URL_PARAM_PLACEHOLDER}"
        pairs.append(pair)
    return "&".join(pairs)


def redact_url_credentials(url: str) -> str:
    """
    Redact the credential-bearing parts of a URL.

    Only the userinfo password and the values of sensitive query/fragment
    parameters change; every other character is returned as-is.

    Args:
        url: URL including scheme

    Returns:
        URL with credentials replaced by placeholders
    """
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url

    # Authority ends at the first path, query or fragment delimiter
    end = len(rest)
    for delim in "/?#":
        idx = rest.find(delim)
        if idx != -1 and idx < end:
            end = idx
    authority, tail = rest[:end], rest[end:]

    if "@" in authority:
        userinfo, _, host = authority.rpartition("@")
        user, colon, password = userinfo.partition(":")
        if colon and password and not _is_placeholder(password):
            authority = f"{user}:{PASSWORD_PLACEHOLDER}@{host}"

    tail, hash_sep, fragment = tail.partition("#")
    path, query_sep, query = tail.partition("?")
    if query:
        query = _redact_params(query)
    if fragment:
        fragment = _redact_params(fragment)

    return f"{scheme}://{authority}{path}{query_sep}{query}{hash_sep}{fragment}"


# Handlers a catalog entry can reference by name
HANDLERS: dict[str, Callable[[str], str]] = {
    "url_credentials": redact_url_credentials,
}
