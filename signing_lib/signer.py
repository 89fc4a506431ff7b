import hashlib
import hmac
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol, Tuple, Union

from signing_lib.canonical import build_canonical_request, canonical_headers
from signing_lib.frame import FRAME_CHARSET, parse_frame

logger = logging.getLogger(__name__)

DATE_STAMP_FORMAT = "%Y%m%d"
AUTHORIZATION_SCHEME = "HMAC-SHA256"

_DATE_STAMP_PATTERN = re.compile(r"[0-9]{8}")


class Clock(Protocol):
    """Source of the YYYYMMDD date stamp used for key derivation."""

    def date_stamp(self) -> str: ...


class SystemClock:
    """Current date from the system clock, in UTC."""

    def date_stamp(self) -> str:
        return datetime.now(timezone.utc).strftime(DATE_STAMP_FORMAT)


class FixedClock:
    """
    Always returns the same date stamp.

    Args:
        date_stamp: An 8-digit YYYYMMDD value

    Raises:
        ValueError: If date_stamp is not 8 digits
    """

    def __init__(self, date_stamp: str):
        if not _DATE_STAMP_PATTERN.fullmatch(date_stamp):
            raise ValueError(f"Invalid date stamp (expected YYYYMMDD): {date_stamp!r}")
        self._date_stamp = date_stamp

    def date_stamp(self) -> str:
        return self._date_stamp


@dataclass(frozen=True)
class SigningContext:
    """Keys plus the date stamp captured once for a single signing call."""

    access_key: str
    secret_key: str
    date_stamp: str

    @classmethod
    def capture(
        cls, access_key: str, secret_key: str, clock: Optional[Clock] = None
    ) -> "SigningContext":
        clock = clock if clock is not None else SystemClock()
        return cls(access_key, secret_key, clock.date_stamp())


def _hmac_hex(key: str, message: str) -> str:
    return hmac.new(
        key.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def derive_signing_key(secret_key: str, date_stamp: str, access_key: str) -> str:
    """
    Derive the signing key from the secret, date stamp and access key.

    Each HMAC is keyed with the lowercase hex string of the previous result,
    not its raw digest bytes.

    Args:
        secret_key: The secret key
        date_stamp: YYYYMMDD date stamp
        access_key: The access key identifier

    Returns:
        Hex-encoded signing key
    """
    date_key = _hmac_hex(secret_key, date_stamp)
    return _hmac_hex(date_key, access_key)


def string_to_sign(canonical_request: str) -> str:
    """Lowercase hex SHA-256 of the canonical request."""
    return hashlib.sha256(canonical_request.encode(FRAME_CHARSET)).hexdigest()


def compute_signature(
    access_key: str,
    secret_key: str,
    frame: Union[bytes, str],
    clock: Optional[Clock] = None,
) -> Tuple[str, str]:
    """
    Compute the signature of a raw request frame.

    Args:
        access_key: The access key identifier
        secret_key: The secret key
        frame: Raw HTTP/1.1 request frame
        clock: Date stamp source (default: UTC system clock)

    Returns:
        Tuple of (signature, canonical_request) where:
        - signature: 64-character lowercase hex signature
        - canonical_request: The canonical request that was hashed (for debugging)

    Raises:
        FrameParseError: If the frame is malformed
        UnsupportedEncodingError: If the frame uses chunked transfer encoding
    """
    context = SigningContext.capture(access_key, secret_key, clock)
    canonical_request = build_canonical_request(parse_frame(frame))
    to_sign = string_to_sign(canonical_request)
    logger.debug("Canonical request:\n%s", canonical_request)
    logger.debug("String to sign %s (date %s)", to_sign, context.date_stamp)

    signing_key = derive_signing_key(
        context.secret_key, context.date_stamp, context.access_key
    )
    return _hmac_hex(signing_key, to_sign), canonical_request


def sign(
    access_key: str,
    secret_key: str,
    frame: Union[bytes, str],
    clock: Optional[Clock] = None,
) -> str:
    """
    Sign a raw request frame.

    Args:
        access_key: The access key identifier
        secret_key: The secret key
        frame: Raw HTTP/1.1 request frame
        clock: Date stamp source (default: UTC system clock)

    Returns:
        64-character lowercase hex signature

    Raises:
        FrameParseError: If the frame is malformed
        UnsupportedEncodingError: If the frame uses chunked transfer encoding
    """
    signature, _ = compute_signature(access_key, secret_key, frame, clock)
    return signature


def create_signed_headers(
    access_key: str,
    secret_key: str,
    frame: Union[bytes, str],
    clock: Optional[Clock] = None,
) -> Dict[str, str]:
    """
    Create the Authorization header for a raw request frame.

    Format:
    Authorization: HMAC-SHA256 Credential=<access>/<date>&SignedHeaders=<h1;h2>&Signature=<sig>

    Args:
        access_key: The access key identifier
        secret_key: The secret key
        frame: Raw HTTP/1.1 request frame
        clock: Date stamp source (default: UTC system clock)

    Returns:
        Dictionary of headers to add to the request
    """
    # Credential date and signing date must be the same value
    date_stamp = (clock if clock is not None else SystemClock()).date_stamp()
    pinned = FixedClock(date_stamp)

    signature = sign(access_key, secret_key, frame, pinned)
    _, signed_headers = canonical_headers(parse_frame(frame).headers)

    auth_header = (
        f"{AUTHORIZATION_SCHEME} Credential={access_key}/{date_stamp}"
        f"&SignedHeaders={';'.join(signed_headers)}&Signature={signature}"
    )
    return {"Authorization": auth_header}
