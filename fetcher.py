"""
Number fetching.

One GET per call against the test server, bounded by a deadline. Every
failure is logged and turned into an empty list at ``NumberFetcher.fetch``.
"""
import json
import logging
import time
from enum import Enum

import requests
from urllib3.exceptions import HTTPError as TransportError, ReadTimeoutError
from urllib3.util import Timeout

from config import FETCH_TIMEOUT_MS, TEST_SERVER_BASE_URL


log = logging.getLogger("avgcalc.fetcher")

CHUNK_SIZE = 1024


class Category(str, Enum):
    PRIME = "p"
    FIBONACCI = "f"
    EVEN = "e"
    RANDOM = "r"

    @property
    def segment(self):
        return _SEGMENTS[self]

    @property
    def label(self):
        return _LABELS[self]

    @classmethod
    def from_key(cls, key):
        if isinstance(key, cls):
            return key
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown category {key!r}, expected one of p, f, e, r") from None


_SEGMENTS = {
    Category.PRIME: "primes",
    Category.FIBONACCI: "fibo",
    Category.EVEN: "even",
    Category.RANDOM: "rand",
}

_LABELS = {
    Category.PRIME: "Prime",
    Category.FIBONACCI: "Fibonacci",
    Category.EVEN: "Even",
    Category.RANDOM: "Random",
}


class FetchError(Exception):
    pass


class NetworkFailure(FetchError):
    pass


class FetchTimeout(FetchError):
    pass


class HTTPStatusFailure(FetchError):
    def __init__(self, status):
        super().__init__(f"HTTP error! Status: {status}")
        self.status = status


class MalformedResponse(FetchError):
    pass


def parse_numbers(body):
    try:
        data = json.loads(body)
    except ValueError as e:
        raise MalformedResponse(f"body is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponse(f"expected an object, got {type(data).__name__}")
    if "numbers" not in data:
        raise MalformedResponse("'numbers' field missing")

    numbers = data["numbers"]
    if not isinstance(numbers, list):
        raise MalformedResponse(f"'numbers' is {type(numbers).__name__}, not a list")
    for n in numbers:
        if isinstance(n, bool) or not isinstance(n, int):
            raise MalformedResponse(f"non-integer value in 'numbers': {n!r}")
    return numbers


def read_body(response, deadline, timeout):
    """Read a streamed body, never waiting on the socket past ``deadline``."""
    conn = getattr(response.raw, "connection", None)
    sock = getattr(conn, "sock", None)
    body = bytearray()
    while True:
        left = deadline - time.monotonic()
        if left <= 0:
            raise FetchTimeout(f"body not received within {timeout * 1000:.0f} ms")
        if sock is not None:
            sock.settimeout(left)
        try:
            chunk = response.raw.read(CHUNK_SIZE, decode_content=True)
        except ReadTimeoutError as e:
            raise FetchTimeout(f"body not received within {timeout * 1000:.0f} ms") from e
        except (TransportError, OSError) as e:
            raise NetworkFailure(str(e)) from e
        if not chunk:
            return bytes(body)
        body.extend(chunk)


class NumberFetcher:
    def __init__(self, base_url=TEST_SERVER_BASE_URL, timeout=FETCH_TIMEOUT_MS / 1000, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.session.close()

    def url_for(self, category):
        return f"{self.base_url}/{Category.from_key(category).segment}"

    def request_numbers(self, category, timeout=None):
        """Single attempt; raises a FetchError subclass on any failure."""
        url = self.url_for(category)
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout

        try:
            # total= makes connect and the wait for headers share one budget
            response = self.session.get(url, timeout=Timeout(total=timeout), stream=True)
        except requests.exceptions.Timeout as e:
            raise FetchTimeout(f"no response within {timeout * 1000:.0f} ms") from e
        except requests.exceptions.RequestException as e:
            raise NetworkFailure(str(e)) from e

        # closing the response hands the connection back (or drops it) on every path
        with response:
            if not response.ok:
                raise HTTPStatusFailure(response.status_code)
            body = read_body(response, deadline, timeout)

        return parse_numbers(body)

    def fetch(self, category, timeout=None):
        category = Category.from_key(category)
        try:
            numbers = self.request_numbers(category, timeout)
        except FetchError as e:
            log.warning("Fetch %s failed (%s): %s", self.url_for(category), type(e).__name__, e)
            return []
        log.info("Fetched %d numbers from %s", len(numbers), self.url_for(category))
        return numbers
