"""Percy build ID detection in streaming test output."""

from __future__ import annotations

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

# Percy project URLs have three path segments before /builds/ (org/project/repo)
_FINALIZED_TAGGED = re.compile(
    r"\[percy\]\s+Finalized build #\d+:\s+"
    r"https://percy\.io/[^/\s]+/[^/\s]+/[^/\s]+/builds/(\d+)"
)
_FINALIZED = re.compile(
    r"Finalized build #\d+:\s+"
    r"https://percy\.io/[^/\s]+/[^/\s]+/[^/\s]+/builds/(\d+)"
)
_ANY_BUILD_URL = re.compile(r"https://percy\.io/[^/\s]+(?:/[^/\s]+)*/builds/(\d+)")
_FINALIZED_LOOSE = re.compile(
    r"build.*finalized.*https://percy\.io/[^/\s]+(?:/[^/\s]+)*/builds/(\d+)",
    re.IGNORECASE,
)

# Most specific first
BUILD_ID_PATTERNS = (_FINALIZED_TAGGED, _FINALIZED, _ANY_BUILD_URL, _FINALIZED_LOOSE)
STRICT_BUILD_ID_PATTERNS = (_FINALIZED_TAGGED, _FINALIZED)

_PERCY_URL = re.compile(r"https://percy\.io/[^\s'\"<>]+")


def _search(text: str, patterns) -> Optional[re.Match]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def extract_build_id(text: str, strict: bool = False) -> Optional[str]:
    """Return the first Percy build ID found in text, or None."""
    match = _search(text, STRICT_BUILD_ID_PATTERNS if strict else BUILD_ID_PATTERNS)
    return match.group(1) if match else None


def find_percy_url(text: str) -> Optional[str]:
    """Best-effort lookup of any percy.io URL, for manual follow-up."""
    match = _PERCY_URL.search(text)
    if not match:
        return None
    return match.group(0).rstrip(".,;:)]")


class BuildIdMatcher:
    """Accumulates subprocess output and reports the build ID once seen.

    The whole buffer is rescanned on every chunk because the ID can be split
    across two writes. A match whose digits reach the end of the buffer may
    still be incomplete, so it is held back until more output arrives or
    finish() is called. Feed it a single stream: output interleaved from
    another stream can land between the halves of a split ID.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._buffer = ""
        self.build_id: Optional[str] = None

    @property
    def output(self) -> str:
        return self._buffer

    def feed(self, chunk: str) -> Optional[str]:
        """Append a chunk. Returns the build ID the first time it is found."""
        self._buffer += chunk
        if self.build_id is not None:
            return None
        return self._scan(final=False)

    def finish(self) -> Optional[str]:
        """Final scan once the stream is closed. Returns a newly found ID."""
        if self.build_id is not None:
            return None
        return self._scan(final=True)

    def _scan(self, final: bool) -> Optional[str]:
        patterns = STRICT_BUILD_ID_PATTERNS if self.strict else BUILD_ID_PATTERNS
        match = _search(self._buffer, patterns)
        if match is None:
            return None
        if not final and match.end(1) == len(self._buffer):
            logger.debug("Build ID candidate at end of buffer, waiting for more output")
            return None
        self.build_id = match.group(1)
        logger.debug("Matched Percy build ID %s with pattern %s",
                     self.build_id, match.re.pattern)
        return self.build_id
