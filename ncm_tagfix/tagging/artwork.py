"""
Cover art fetching for ncm-tagfix.

Downloads the album picture referenced by recovered metadata. A failed
download is never raised to the caller: instead the fetcher returns the
URL itself as the picture payload together with the "-->" MIME sentinel,
so the reference can still be stored as a URL-type picture.

Usage:
    from ncm_tagfix.tagging.artwork import CoverArtFetcher, FetchOutcome

    fetcher = CoverArtFetcher(timeout=30)
    art = fetcher.fetch("https://p1.music.126.net/xxx.jpg")
    if art.outcome is FetchOutcome.FETCHED:
        ...
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum, auto

import requests
import urllib3

from ncm_tagfix.core.config import DEFAULT_FETCH_TIMEOUT, DEFAULT_USER_AGENT
from ncm_tagfix.core.exceptions import FetchError
from ncm_tagfix.core.logger import get_logger

logger = get_logger(__name__)


PNG_SIGNATURE = bytes([137, 80, 78, 71, 13, 10, 26, 10])

DEFAULT_IMAGE_MIME = "image/jpeg"
PNG_MIME = "image/png"

# MIME value marking a picture whose payload is a URL, not image bytes
URL_MIME_SENTINEL = "-->"

READ_CHUNK_SIZE = 64 * 1024


class FetchOutcome(Enum):
    """Result kind of a cover art fetch."""
    FETCHED = auto()
    FAILED_WITH_URL_FALLBACK = auto()


@dataclass(frozen=True)
class CoverArt:
    """
    Result of a cover art fetch.

    Attributes:
        data: Image bytes, or the URL bytes on failure.
        mime: Detected image MIME type, or URL_MIME_SENTINEL on failure.
        outcome: Whether real image data was fetched.
        error: The failure, when outcome is FAILED_WITH_URL_FALLBACK.
    """

    data: bytes
    mime: str
    outcome: FetchOutcome
    error: FetchError | None = None

    @property
    def is_url_reference(self) -> bool:
        """True if data holds a URL rather than image bytes."""
        return self.mime == URL_MIME_SENTINEL


def has_png_signature(data: bytes) -> bool:
    """Return True if data starts with the 8-byte PNG signature."""
    return data[:8] == PNG_SIGNATURE


def detect_image_mime(data: bytes) -> str:
    """Guess the MIME type of image bytes: PNG by signature, else JPEG."""
    return PNG_MIME if has_png_signature(data) else DEFAULT_IMAGE_MIME


class CoverArtFetcher:
    """
    Fetches cover images over HTTP with a bounded timeout.

    Thread Safety:
        fetch() may be called from many worker threads at once. Each thread
        lazily gets its own requests.Session. An injected session is used
        as-is and shared, which is what tests want.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            timeout: Seconds to wait for connect and read.
            user_agent: User-Agent header for requests.
            session: Optional session to use instead of per-thread sessions.
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session
        self._local = threading.local()

    def _get_session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": self.user_agent})
            self._local.session = session
        return session

    def fetch(self, url: str) -> CoverArt:
        """
        Download a cover image.

        The timeout bounds the whole exchange, not just each socket
        operation: the body is read in pieces and the download is
        abandoned once the deadline has passed.

        Args:
            url: Image URL.

        Returns:
            CoverArt with outcome FETCHED and the detected MIME type, or
            FAILED_WITH_URL_FALLBACK with the URL as data and the "-->" MIME.
            Never raises for network, timeout or HTTP status failures.
        """
        deadline = time.monotonic() + self.timeout
        try:
            with self._get_session().get(url, timeout=self.timeout, stream=True) as response:
                if not 200 <= response.status_code < 300:
                    return self._fallback(url, FetchError(
                        f"Remote returned {response.status_code}",
                        details={"url": url},
                        status_code=response.status_code
                    ))
                data = self._read_body(response, url, deadline)
        except FetchError as e:
            return self._fallback(url, e)
        except (requests.RequestException, urllib3.exceptions.HTTPError, OSError) as e:
            return self._fallback(url, FetchError(
                f"Cover download failed: {e}",
                details={"url": url, "original_error": str(e)}
            ))

        return CoverArt(data=data, mime=detect_image_mime(data), outcome=FetchOutcome.FETCHED)

    def _read_body(self, response: requests.Response, url: str, deadline: float) -> bytes:
        """
        Read a streamed body until EOF or the deadline.

        read1() returns whatever the socket has delivered instead of
        waiting for a full chunk, so a server that trickles bytes is
        noticed after at most one socket timeout.

        Raises:
            FetchError: If the deadline passes before the body is complete.
        """
        chunks = []
        while True:
            if time.monotonic() > deadline:
                raise FetchError(
                    f"Cover download exceeded {self.timeout:g}s",
                    details={"url": url, "received": sum(len(c) for c in chunks)}
                )
            chunk = response.raw.read1(READ_CHUNK_SIZE, decode_content=True)
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)

    @staticmethod
    def _fallback(url: str, error: FetchError) -> CoverArt:
        logger.warning(f"{error.message} ({url})")
        return CoverArt(
            data=url.encode("utf-8"),
            mime=URL_MIME_SENTINEL,
            outcome=FetchOutcome.FAILED_WITH_URL_FALLBACK,
            error=error
        )
