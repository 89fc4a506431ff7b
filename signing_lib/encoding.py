"""
Percent-encoding primitives shared by the canonicalization steps.

All functions operate on raw bytes so multi-byte sequences (e.g. UTF-8) are
escaped byte by byte.
"""

import re
from urllib.parse import quote_from_bytes

_ESCAPE_PATTERN = re.compile(rb"%([0-9A-Fa-f]{2})")


def uri_encode(data: bytes) -> str:
    """
    Percent-encode every byte outside the unreserved set.

    Unreserved bytes (A-Z, a-z, 0-9, '-', '.', '_', '~') are emitted verbatim,
    everything else (space included) as '%' plus two uppercase hex digits.

    Args:
        data: Raw bytes to encode

    Returns:
        ASCII string safe for use in a canonical request
    """
    return quote_from_bytes(data, safe="")


def uri_encode_path(path: bytes) -> str:
    """Encode a request path, keeping '/' so segments are not normalized."""
    return quote_from_bytes(path, safe="/")


def percent_decode(data: bytes) -> bytes:
    """
    Tolerant percent-decode used for query names and values.

    '+' decodes to a space. '%XX' with two hex digits decodes to that byte.
    A '%' that is not followed by two hex digits stays a literal '%'.

    Args:
        data: Raw, possibly malformed, percent-encoded bytes

    Returns:
        Decoded bytes
    """
    # '+' first, so an escaped '%2B' still decodes to a literal '+'
    return _ESCAPE_PATTERN.sub(
        lambda match: bytes([int(match.group(1), 16)]),
        data.replace(b"+", b" "),
    )
