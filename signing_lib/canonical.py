"""
Canonical request construction.

The canonical request is five newline-joined fields:

    METHOD
    CANONICAL_URI
    CANONICAL_QUERY_STRING
    CANONICAL_HEADERS      (each header line already ends with a newline)
    HASHED_PAYLOAD
"""

import hashlib
from typing import Dict, Iterable, List, Tuple

from signing_lib.encoding import percent_decode, uri_encode, uri_encode_path
from signing_lib.frame import FRAME_CHARSET, RequestFrame

# SHA-256 of zero bytes
EMPTY_PAYLOAD_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

_HEADER_WHITESPACE = " \t\r\n\x0b\x0c"


def canonical_query_string(raw_query: str) -> str:
    """
    Normalize a raw query string.

    Names and values are decoded with the tolerant percent-decoder, values
    sharing a decoded name are merged with a comma in order of appearance,
    then names and merged values are re-encoded and sorted by encoded name.

    Args:
        raw_query: Query string without the leading '?'

    Returns:
        Canonical query string (empty if there are no parameters)
    """
    merged: Dict[bytes, List[bytes]] = {}
    for token in raw_query.encode(FRAME_CHARSET).split(b"&"):
        if not token:
            continue
        raw_name, _, raw_value = token.partition(b"=")
        name = percent_decode(raw_name)
        merged.setdefault(name, []).append(percent_decode(raw_value))

    encoded = [
        (uri_encode(name), uri_encode(b",".join(values)))
        for name, values in merged.items()
    ]
    encoded.sort(key=lambda pair: pair[0])
    return "&".join(f"{name}={value}" for name, value in encoded)


def canonical_headers(headers: Iterable[Tuple[str, str]]) -> Tuple[str, List[str]]:
    """
    Merge, trim, lowercase and sort headers.

    Args:
        headers: Ordered (name, value) pairs; duplicate names are allowed

    Returns:
        Tuple of (canonical_headers, signed_header_names) where:
        - canonical_headers: "name:value\\n" lines sorted by lowercase name
        - signed_header_names: the sorted lowercase names
    """
    grouped: Dict[str, List[str]] = {}
    for name, value in headers:
        grouped.setdefault(name.lower(), []).append(value.strip(_HEADER_WHITESPACE))

    names = sorted(grouped)
    lines = "".join(f"{name}:{','.join(grouped[name])}\n" for name in names)
    return lines, names


def hash_payload(body: bytes) -> str:
    """Lowercase hex SHA-256 of the body bytes."""
    return hashlib.sha256(body).hexdigest()


def build_canonical_request(frame: RequestFrame) -> str:
    """
    Assemble the canonical request for a parsed frame.

    The method is used verbatim. The path is percent-encoded without
    collapsing repeated slashes or resolving dot-segments.

    Args:
        frame: Parsed request frame

    Returns:
        The canonical request string
    """
    headers, _ = canonical_headers(frame.headers)
    return "\n".join(
        [
            frame.method,
            uri_encode_path(frame.path.encode(FRAME_CHARSET)),
            canonical_query_string(frame.raw_query),
            headers,
            hash_payload(frame.body),
        ]
    )
