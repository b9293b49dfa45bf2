"""Metadata lookup for task URLs.

YouTube videos and playlists are looked up with the YouTube Data API, Stronger
by Science articles by reading the article page. Lookups are best effort: a
failed lookup is logged and the note is rendered from the task alone.
"""

import html
import re
from typing import Any
from urllib.parse import parse_qs, urlsplit

import requests
import structlog

from todoi.exceptions import EnrichmentError
from todoi.models import NoteMetadata, UrlClass

logger = structlog.get_logger()

YOUTUBE_API = "https://www.googleapis.com/youtube/v3"

# Every Stronger by Science article gets these tags
STRONGER_BY_SCIENCE_TAGS = frozenset({"fitness"})
STRONGER_BY_SCIENCE_TITLE_SUFFIX = " • Stronger by Science"

TITLE_RE = re.compile(r"<title[^>]*>(?P<title>.*?)</title>", re.IGNORECASE | re.DOTALL)
META_AUTHOR_RE = re.compile(r'<meta\s+name="author"\s+content="(?P<author>[^"]+)"', re.IGNORECASE)
NEWSLETTER_AUTHOR_RE = re.compile(r" newsletter is by (?P<author>[A-Za-z.\s-]+?)\.?(?:<|&lt;)/h3")


def _split(url: str):
    url = url.strip()
    if "://" not in url:
        url = "//" + url
    return urlsplit(url)


def video_id(url: str) -> str | None:
    """Extract the video id from a watch, youtu.be or /shorts/ URL."""
    parts = _split(url)
    if "/shorts/" in parts.path:
        return parts.path.split("/shorts/", 1)[1].strip("/").split("/")[0] or None
    if (parts.hostname or "").endswith("youtu.be"):
        return parts.path.strip("/").split("/")[0] or None
    ids = parse_qs(parts.query).get("v")
    return ids[0] if ids else None


def playlist_id(url: str) -> str | None:
    ids = parse_qs(_split(url).query).get("list")
    return ids[0] if ids else None


def video_embed(url: str) -> str:
    """LogSeq renders {{video ...}} as a player; shorts are kept as plain links."""
    if "/shorts/" in url:
        return url
    return f"{{{{video {url}}}}}"


def base_metadata(url_class: UrlClass, url: str) -> NoteMetadata:
    """Metadata that needs no lookup."""
    if url_class == UrlClass.YOUTUBE:
        return NoteMetadata(embed=video_embed(url))
    if url_class == UrlClass.STRONGER_BY_SCIENCE:
        return NoteMetadata(tags=STRONGER_BY_SCIENCE_TAGS)
    return NoteMetadata()


def parse_article(page: str) -> tuple[str, str]:
    """Return (title, author) of a Stronger by Science article page."""
    title = ""
    match = TITLE_RE.search(page)
    if match:
        title = html.unescape(match.group("title")).strip()
        title = title.removesuffix(STRONGER_BY_SCIENCE_TITLE_SUFFIX).strip()

    author = ""
    match = META_AUTHOR_RE.search(page) or NEWSLETTER_AUTHOR_RE.search(page)
    if match:
        author = html.unescape(match.group("author")).strip().rstrip(".")
    return title, author


class Enricher:
    """Looks up titles, channels and authors for task URLs."""

    def __init__(
        self,
        youtube_api_key: str | None = None,
        session: requests.Session | None = None,
        timeout: float = 30,
        youtube_api: str = YOUTUBE_API,
    ) -> None:
        """Initialize the enricher.

        Args:
            youtube_api_key: YouTube Data API key; without one YouTube lookups are skipped
            session: Optional requests session (used for connection reuse and tests)
            timeout: Request timeout in seconds
            youtube_api: YouTube Data API base URL
        """
        self.youtube_api_key = youtube_api_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.youtube_api = youtube_api.rstrip("/")

    def _get(self, url: str, params: dict[str, str] | None = None) -> requests.Response:
        logger.debug("Metadata request", url=url)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise EnrichmentError(f"GET {url} failed: {e}") from e
        return response

    def _snippet(self, resource: str, resource_id: str) -> dict[str, Any]:
        params = {"key": self.youtube_api_key, "part": "snippet", "id": resource_id}
        response = self._get(f"{self.youtube_api}/{resource}", params=params)
        try:
            items = response.json()["items"]
            return items[-1]["snippet"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise EnrichmentError(f"No {resource} found for id {resource_id}") from e

    def youtube_details(self, url: str) -> tuple[str, str]:
        """Return (title, channel) of a video."""
        vid = video_id(url)
        if vid is None:
            raise EnrichmentError(f"Could not extract a video id from {url}")
        snippet = self._snippet("videos", vid)
        return snippet.get("title", ""), snippet.get("channelTitle", "")

    def playlist_details(self, url: str) -> tuple[str, str]:
        """Return ("title: description", channel) of a playlist."""
        pid = playlist_id(url)
        if pid is None:
            raise EnrichmentError(f"Could not extract a playlist id from {url}")
        snippet = self._snippet("playlists", pid)
        title = snippet.get("title", "")
        description = " ".join(snippet.get("description", "").split())
        summary = f"{title}: {description}" if description else title
        return summary, snippet.get("channelTitle", "")

    def article_details(self, url: str) -> tuple[str, str]:
        """Return (title, author) of an article page."""
        return parse_article(self._get(url).text)

    def enrich(self, url_class: UrlClass, url: str) -> NoteMetadata:
        """Look up the details of url. Failures fall back to the metadata that needs no lookup."""
        metadata = base_metadata(url_class, url)
        try:
            if url_class in (UrlClass.YOUTUBE, UrlClass.YOUTUBE_PLAYLIST):
                if not self.youtube_api_key:
                    logger.debug("No YouTube API key, skipping lookup", url=url)
                    return metadata
                if url_class == UrlClass.YOUTUBE:
                    title, channel = self.youtube_details(url)
                else:
                    title, channel = self.playlist_details(url)
                logger.info("Looked up YouTube details", url=url, title=title, channel=channel)
                return NoteMetadata(video_title=title, channel=channel, embed=metadata.embed, tags=metadata.tags)

            if url_class == UrlClass.STRONGER_BY_SCIENCE:
                title, author = self.article_details(url)
                logger.info("Looked up article details", url=url, title=title, author=author)
                return NoteMetadata(article_title=title, author=author, embed=metadata.embed, tags=metadata.tags)
        except EnrichmentError as e:
            logger.warning("Metadata lookup failed", url=url, error=str(e))
        return metadata
