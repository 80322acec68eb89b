"""Issue key detection and issue URL helpers."""

import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

ISSUE_KEY_PATTERN = re.compile(r"\b([A-Z][A-Z0-9]+-\d+)\b", re.IGNORECASE)
NUMERIC_REFERENCE_PATTERN = re.compile(r"^#?(\d+)\b")
BROWSE_PATH_PATTERN = re.compile(r"/browse(?:/.*)?$")


def extract_issue_key(text: Optional[str]) -> Optional[str]:
    """Return the first issue key found in text, upper-cased."""
    if not text:
        return None
    match = ISSUE_KEY_PATTERN.search(text)
    return match.group(1).upper() if match else None


def tracker_root(base_url: str) -> str:
    """Site root of a tracker URL.

    The room's tracker URL may be a link prefix such as
    ``https://jira.example.com/browse/PROJ-``; everything from ``/browse`` on
    is dropped, a context path (``https://host/jira``) is kept.
    """
    parts = urlsplit(base_url.strip())
    path = BROWSE_PATH_PATTERN.sub("", parts.path).rstrip("/")
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def build_issue_url(base_url: str, issue_key: str) -> str:
    return f"{tracker_root(base_url)}/browse/{issue_key.upper()}"


def build_numeric_reference_url(base_url: str, number: str) -> str:
    """Link a bare ticket number.

    A base ending in "-" or "/" is treated as a prefix (``.../browse/PROJ-``),
    otherwise the number is appended as a path segment.
    """
    if base_url.endswith(("-", "/")):
        return f"{base_url}{number}"
    return f"{base_url}/{number}"
