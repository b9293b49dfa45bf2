"""URL classification."""

from urllib.parse import parse_qs, urlsplit

from todoi.models import UrlClass

YOUTUBE_DOMAINS = ("youtube.com", "youtu.be", "youtube-nocookie.com")
STRONGER_BY_SCIENCE_DOMAINS = ("strongerbyscience.com",)


def _split(url: str):
    url = url.strip()
    if "://" not in url:
        url = "//" + url
    try:
        parts = urlsplit(url)
        return parts, parts.hostname or ""
    except ValueError:
        return None, ""


def _on_domain(host: str, domains: tuple[str, ...]) -> bool:
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def is_playlist(url: str) -> bool:
    """Return True for a YouTube playlist page (/playlist?list=...)."""
    parts, host = _split(url)
    if parts is None or not _on_domain(host, YOUTUBE_DOMAINS):
        return False
    return parts.path.rstrip("/") == "/playlist" and bool(parse_qs(parts.query).get("list"))


def classify(url: str | None) -> UrlClass:
    """Classify a URL by its host. Unrecognised or malformed input is GENERIC."""
    if not url:
        return UrlClass.GENERIC

    _, host = _split(url)
    if _on_domain(host, YOUTUBE_DOMAINS):
        return UrlClass.YOUTUBE_PLAYLIST if is_playlist(url) else UrlClass.YOUTUBE
    if _on_domain(host, STRONGER_BY_SCIENCE_DOMAINS):
        return UrlClass.STRONGER_BY_SCIENCE
    return UrlClass.GENERIC
