"""Print the content of an Arweave transaction whose id is hex-encoded.

The input is the hex encoding of the *text* of a second hex string, so it is
decoded twice before being turned into a base64url Arweave txid:

    arweave-txid 0x30613233613135613236663864663332366165306137663863633636343437336238373463353966333964623436366665316337313531393634623734393231

Pipe to ``pbcopy`` (or redirect to a file) to keep the output.
"""
import argparse
import json
import logging
import os
import re
import sys
from base64 import urlsafe_b64encode

import requests


DEFAULT_BASE_URL = "https://arweave.net"
HEX_PREFIX = "0x"

_HEX_PATTERN = re.compile(r"[0-9a-fA-F]*")

logger = logging.getLogger(__name__)


class ResolverError(Exception):
    pass


class MissingInputError(ResolverError):
    def __init__(self, message="No input provided."):
        super().__init__(message)


class DecodeError(ResolverError):
    pass


class NetworkError(ResolverError):
    pass


class OutputError(ResolverError):
    pass


def normalize_input(value):
    if not value:
        raise MissingInputError()
    if value.startswith(HEX_PREFIX):
        value = value[len(HEX_PREFIX):]
    return value


def decode_hex(text):
    """Decode a hex string strictly: even length, hex digits only."""
    if len(text) % 2:
        raise DecodeError(f"Odd-length hex string ({len(text)} characters): {text!r}")
    if not _HEX_PATTERN.fullmatch(text):
        raise DecodeError(f"Non-hexadecimal character in {text!r}")
    return bytes.fromhex(text)


def inner_hex(text):
    """First decode stage: the input bytes spell out the hex of the txid."""
    if not text:
        raise DecodeError("Empty hex string, nothing to look up.")
    first = decode_hex(text)
    try:
        inner = first.decode("ascii")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Decoded input is not a hex string: {first!r}") from e
    logger.debug(f"Inner hex: {inner}")
    return inner


def double_decode(text):
    return decode_hex(inner_hex(text))


def encode_txid(data):
    # RFC 4648 section 5, without padding
    return urlsafe_b64encode(data).decode().rstrip("=")


def to_txid(value):
    return encode_txid(double_decode(normalize_input(value)))


def transaction_url(txid, base_url=DEFAULT_BASE_URL):
    return f"{base_url.rstrip('/')}/{txid}"


def fetch_transaction(txid, base_url=DEFAULT_BASE_URL, timeout=None):
    """GET the transaction once, no retries.

    Any HTTP status comes back as a response; only transport failures raise.
    """
    url = transaction_url(txid, base_url)
    logger.debug(f"Fetching {url}")
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkError(f"Failed to fetch {url}: {e}") from e

    # gateway bodies are UTF-8 even when the Content-Type omits the charset
    response.encoding = "utf-8"
    logger.debug(f"HTTP {response.status_code} from {url}")
    if not response.ok:
        logger.warning(f"Arweave returned HTTP {response.status_code} for {txid}")
    return response


def write_output(body, stream=None):
    if stream is None:
        stream = sys.stdout
    stream.write(body)
    stream.write("\n")
    stream.flush()


def save_output(content, path):
    try:
        with open(path, "wb") as f:
            f.write(content)
    except OSError as e:
        raise OutputError(f"Failed to write {path}: {e}") from e
    logger.info(f"Wrote {len(content)} bytes to {path}")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="arweave-txid",
        description="Fetch and print an Arweave transaction given its hex-encoded id.",
    )
    parser.add_argument("hex", nargs="?", help="hex-encoded transaction id, 0x prefix optional")
    parser.add_argument(
        "--gateway",
        default=os.environ.get("ARWEAVE_BASE_URL", DEFAULT_BASE_URL),
        help="gateway base URL (default: $ARWEAVE_BASE_URL or %(default)s)",
    )
    parser.add_argument("--timeout", type=float, default=None, help="request timeout in seconds")
    parser.add_argument(
        "--txid-only",
        action="store_true",
        help="print the derived txid as JSON and exit without fetching",
    )
    parser.add_argument("--output", metavar="FILE", help="write the raw response bytes to FILE")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr,
    )

    try:
        inner = inner_hex(normalize_input(args.hex))
        txid = encode_txid(decode_hex(inner))
        if args.txid_only:
            print(json.dumps({"txid": inner, "txid_base64url": txid}))
            return 0

        response = fetch_transaction(txid, base_url=args.gateway, timeout=args.timeout)
        if args.output:
            save_output(response.content, args.output)
        else:
            write_output(response.text)
    except ResolverError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
