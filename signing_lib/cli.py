"""
Command-line entry point for signing a raw request frame.

Usage:
  sign-request request.txt --access-key AKID --secret-key SECRET
  cat request.txt | sign-request --date 20230801 --canonical

Keys and the date may also come from SIGNING_ACCESS_KEY, SIGNING_SECRET_KEY
and SIGNING_DATE (a .env file in the working directory is loaded first).
"""

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv
from pythonjsonlogger import jsonlogger

from signing_lib.frame import SigningError
from signing_lib.signer import FixedClock, SystemClock, compute_signature, create_signed_headers

logger = logging.getLogger(__name__)


def setup_json_logging(verbose: bool = False) -> None:
    """
    Configure JSON structured logging on stderr.

    Args:
        verbose: Force DEBUG level instead of LOG_LEVEL
    """
    log_handler = logging.StreamHandler(sys.stderr)
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        timestamp=True
    )
    log_handler.setFormatter(formatter)

    if verbose:
        log_level = logging.DEBUG
    else:
        log_level_name = os.environ.get('LOG_LEVEL', 'WARNING').upper()
        log_level = getattr(logging, log_level_name, logging.WARNING)

    logging.root.handlers = []
    logging.root.addHandler(log_handler)
    logging.root.setLevel(log_level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Sign a raw HTTP/1.1 request frame')
    parser.add_argument('frame', nargs='?', default='-',
                        help='File containing the raw request frame (default: stdin)')
    parser.add_argument('--access-key', default=os.environ.get('SIGNING_ACCESS_KEY'),
                        help='Access key (default: $SIGNING_ACCESS_KEY)')
    parser.add_argument('--secret-key', default=os.environ.get('SIGNING_SECRET_KEY'),
                        help='Secret key (default: $SIGNING_SECRET_KEY)')
    parser.add_argument('--date', default=os.environ.get('SIGNING_DATE'),
                        help='Fixed YYYYMMDD date (default: $SIGNING_DATE or today in UTC)')
    parser.add_argument('--canonical', action='store_true',
                        help='Also print the canonical request')
    parser.add_argument('--header', action='store_true',
                        help='Print the Authorization header instead of the bare signature')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    return parser


def read_frame(source: str) -> bytes:
    if source == '-':
        return sys.stdin.buffer.read()
    with open(source, 'rb') as f:
        return f.read()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Sign a frame and print the result. Returns the process exit status."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_json_logging(args.verbose)

    if args.access_key is None:
        parser.error('an access key is required (--access-key or SIGNING_ACCESS_KEY)')
    if args.secret_key is None:
        parser.error('a secret key is required (--secret-key or SIGNING_SECRET_KEY)')

    try:
        # Pinned so --header and the signature agree on the date
        clock = FixedClock(args.date or SystemClock().date_stamp())
    except ValueError as e:
        parser.error(str(e))

    frame = read_frame(args.frame)

    try:
        signature, canonical_request = compute_signature(
            args.access_key, args.secret_key, frame, clock
        )
        if args.header:
            headers = create_signed_headers(args.access_key, args.secret_key, frame, clock)
    except SigningError as e:
        logger.error("Signing failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.canonical:
        print(canonical_request)
        print()

    if args.header:
        print(f"Authorization: {headers['Authorization']}")
    else:
        print(signature)
    return 0


if __name__ == '__main__':
    sys.exit(main())
