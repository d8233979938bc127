"""
Logging helpers.

Keeps credentials out of log output.
"""
import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx


_MASK = "***"


def sanitize_url_for_logging(url: str | httpx.URL) -> str:
    """
    Remove credentials from a URL for safe logging.

    Masks userinfo, the `password` query parameter and the password path
    segment of /live/{username}/{password}/ stream URLs.

    Args:
        url: URL to sanitize

    Returns:
        URL string safe to log
    """
    url = str(url)
    if "://" not in url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    netloc = parts.netloc
    if "@" in netloc:
        netloc = f"{_MASK}:{_MASK}@{netloc.split('@', 1)[1]}"

    query = parts.query
    if query:
        pairs = [
            (key, _MASK if key == "password" else value)
            for key, value in parse_qsl(query, keep_blank_values=True)
        ]
        query = urlencode(pairs, safe="*")

    path = parts.path
    segments = path.split("/")
    if len(segments) >= 5 and segments[-4] == "live":
        segments[-2] = _MASK
        path = "/".join(segments)

    return urlunsplit((parts.scheme, netloc, path, query, parts.fragment))


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """Log the start of a processing section."""
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """Log the end of a processing section."""
    logger.info(f"Completed: {section_name}")
