"""
Unit tests for raw request frame parsing.
"""

import unittest

import pytest

from signing_lib.frame import (
    FrameParseError,
    SigningError,
    UnsupportedEncodingError,
    parse_frame,
)


class TestRequestLine(unittest.TestCase):
    """Test parsing of the request line."""

    def test_parse_basic_frame(self):
        """Test parsing a simple GET frame."""
        frame = parse_frame(b"GET /resource?test=true HTTP/1.1\r\nHost: test.com\r\n\r\n")

        self.assertEqual(frame.method, "GET")
        self.assertEqual(frame.raw_target, "/resource?test=true")
        self.assertEqual(frame.version, "HTTP/1.1")
        self.assertEqual(frame.path, "/resource")
        self.assertEqual(frame.raw_query, "test=true")
        self.assertEqual(frame.headers, [("Host", " test.com")])
        self.assertEqual(frame.body, b"")

    def test_query_split_on_first_question_mark(self):
        """Test that only the first '?' separates path and query."""
        frame = parse_frame(b"GET /a?b=1?c HTTP/1.1\n\n")
        self.assertEqual(frame.path, "/a")
        self.assertEqual(frame.raw_query, "b=1?c")

    def test_no_query(self):
        """Test that a target without '?' has an empty query."""
        frame = parse_frame(b"GET /resource//posts HTTP/1.1\n\n")
        self.assertEqual(frame.path, "/resource//posts")
        self.assertEqual(frame.raw_query, "")

    def test_str_frame_accepted(self):
        """Test that a str frame is encoded as UTF-8."""
        frame = parse_frame("POST / HTTP/1.1\n\né")
        self.assertEqual(frame.body, b"\xc3\xa9")

    def test_request_line_only(self):
        """Test a frame with no headers and no terminator."""
        frame = parse_frame(b"GET / HTTP/1.1")
        self.assertEqual(frame.headers, [])
        self.assertEqual(frame.body, b"")

    def test_malformed_request_lines(self):
        """Test that request lines without exactly three tokens are rejected."""
        for raw in (
            b"",
            b"GET /\r\n\r\n",
            b"GET / HTTP/1.1 extra\r\n\r\n",
            b"GET  / HTTP/1.1\r\n\r\n",
        ):
            with self.assertRaises(FrameParseError):
                parse_frame(raw)


class TestHeadersAndBody(unittest.TestCase):
    """Test header and body extraction."""

    def test_header_order_and_duplicates_preserved(self):
        """Test that headers keep their order, case and duplicates."""
        frame = parse_frame(
            b"GET / HTTP/1.1\r\nChoice: A\r\nHost: x\r\nchoice: B\r\n\r\n"
        )
        self.assertEqual(
            frame.headers,
            [("Choice", " A"), ("Host", " x"), ("choice", " B")],
        )

    def test_colons_in_value_preserved(self):
        """Test that a header value is everything after the first colon."""
        frame = parse_frame(b"GET / HTTP/1.1\nTimestamp: 2023-08-03T10:24:03.012Z\n\n")
        self.assertEqual(frame.headers, [("Timestamp", " 2023-08-03T10:24:03.012Z")])

    def test_header_without_colon_rejected(self):
        """Test that a header line without a colon is a parse error."""
        with self.assertRaises(FrameParseError):
            parse_frame(b"GET / HTTP/1.1\r\nHost test.com\r\n\r\n")

    def test_body_taken_verbatim(self):
        """Test that everything after the blank line is the body."""
        frame = parse_frame(b"POST / HTTP/1.1\r\nHost: x\r\n\r\nline1\r\n\r\nline2")
        self.assertEqual(frame.body, b"line1\r\n\r\nline2")

    def test_bare_lf_and_crlf_equivalent(self):
        """Test that bare LF and CRLF terminators parse identically."""
        crlf = parse_frame(b"POST /x HTTP/1.1\r\nHost: a\r\nX-Y: b\r\n\r\nbody")
        lf = parse_frame(b"POST /x HTTP/1.1\nHost: a\nX-Y: b\n\nbody")
        self.assertEqual(crlf, lf)

    def test_content_length_not_enforced(self):
        """Test that a mismatched Content-Length does not truncate the body."""
        frame = parse_frame(b"POST / HTTP/1.1\nContent-Length: 2\n\nabcdef")
        self.assertEqual(frame.body, b"abcdef")


class TestChunkedRejection(unittest.TestCase):
    """Test rejection of chunked transfer encoding."""

    def test_chunked_rejected(self):
        """Test that Transfer-Encoding: chunked is rejected."""
        with self.assertRaises(UnsupportedEncodingError):
            parse_frame(b"POST / HTTP/1.1\r\nTransfer-Encoding: chunked\r\n\r\n5\r\nhello\r\n0\r\n\r\n")

    def test_chunked_case_insensitive(self):
        """Test that header name and value are compared case-insensitively."""
        with pytest.raises(UnsupportedEncodingError):
            parse_frame(b"POST / HTTP/1.1\ntransfer-encoding: CHUNKED\n\n")

    def test_chunked_in_coding_list(self):
        """Test that chunked listed among other codings is rejected."""
        with pytest.raises(UnsupportedEncodingError):
            parse_frame(b"POST / HTTP/1.1\nTransfer-Encoding: gzip, chunked\n\n")

    def test_other_transfer_encoding_accepted(self):
        """Test that non-chunked encodings are parsed normally."""
        frame = parse_frame(b"POST / HTTP/1.1\nTransfer-Encoding: gzip\n\n")
        self.assertEqual(frame.headers, [("Transfer-Encoding", " gzip")])

    def test_errors_are_value_errors(self):
        """Test the error hierarchy."""
        self.assertTrue(issubclass(FrameParseError, SigningError))
        self.assertTrue(issubclass(UnsupportedEncodingError, SigningError))
        self.assertTrue(issubclass(SigningError, ValueError))


if __name__ == "__main__":
    unittest.main()
