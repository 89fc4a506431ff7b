"""
Raw HTTP/1.1 request frame parsing.

Textual fields are carried as ISO-8859-1 strings so every byte of the frame
survives the round trip back to bytes.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple, Union

logger = logging.getLogger(__name__)

FRAME_CHARSET = "iso-8859-1"


class SigningError(ValueError):
    """Base class for errors raised while signing a request frame."""


class FrameParseError(SigningError):
    """The request line or a header line is malformed."""


class UnsupportedEncodingError(SigningError):
    """The frame declares a chunked transfer encoding."""


@dataclass(frozen=True)
class RequestFrame:
    """A parsed request frame."""

    method: str
    raw_target: str
    version: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def path(self) -> str:
        return self.raw_target.partition("?")[0]

    @property
    def raw_query(self) -> str:
        return self.raw_target.partition("?")[2]


def _split_lines(frame: bytes):
    """
    Yield (line, rest) pairs, accepting both CRLF and bare LF terminators.

    `rest` is everything after the yielded line's terminator.
    """
    position = 0
    while position <= len(frame):
        end = frame.find(b"\n", position)
        if end == -1:
            yield frame[position:], b""
            return
        line = frame[position:end]
        if line.endswith(b"\r"):
            line = line[:-1]
        yield line, frame[end + 1 :]
        position = end + 1


def _is_chunked(value: str) -> bool:
    codings = [coding.strip().lower() for coding in value.split(",")]
    return "chunked" in codings


def parse_frame(frame: Union[bytes, str]) -> RequestFrame:
    """
    Split a raw request frame into its parts.

    Args:
        frame: Raw request bytes (str input is UTF-8 encoded first)

    Returns:
        RequestFrame with method, target, version, ordered headers and body

    Raises:
        FrameParseError: If the request line does not have exactly three
            space-separated tokens, or a header line has no colon
        UnsupportedEncodingError: If a Transfer-Encoding header lists chunked
    """
    if isinstance(frame, str):
        frame = frame.encode("utf-8")

    lines = _split_lines(frame)
    request_line, body = next(lines)

    tokens = request_line.decode(FRAME_CHARSET).split(" ")
    if len(tokens) != 3 or not all(tokens):
        raise FrameParseError(f"Malformed request line: {request_line!r}")
    method, raw_target, version = tokens

    headers = []
    for line, rest in lines:
        body = rest
        if not line:
            break
        name, colon, value = line.decode(FRAME_CHARSET).partition(":")
        if not colon:
            raise FrameParseError(f"Malformed header line: {line!r}")
        if name.strip().lower() == "transfer-encoding" and _is_chunked(value):
            logger.warning("Rejecting frame with Transfer-Encoding: %s", value.strip())
            raise UnsupportedEncodingError(
                f"Unsupported transfer encoding: {value.strip()}"
            )
        headers.append((name, value))

    logger.debug(
        "Parsed %s %s with %d header(s) and %d body byte(s)",
        method,
        raw_target,
        len(headers),
        len(body),
    )
    return RequestFrame(
        method=method,
        raw_target=raw_target,
        version=version,
        headers=headers,
        body=body,
    )
