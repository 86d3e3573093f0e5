"""
Show Identifier Parser

Finds a TV show identifier in free text (typically a classified NFO) by
looking for links to the episodic, movie and fan databases NFO authors
usually reference.

Patterns are tried in priority order and the first match wins:
    1. tvmaze.com/shows/<id>
    2. imdb.com/title/tt<id>
    3. thetvdb.com/?tab=series&id=<id>
"""

import re
from dataclasses import dataclass
from typing import Optional

SHOW_ID_PATTERNS = (
    ('tvmaze', re.compile(r'tvmaze\.com/shows/(\d{1,6})', re.IGNORECASE)),
    ('imdb', re.compile(r'imdb\.com/title/(tt\d{1,8})', re.IGNORECASE)),
    ('thetvdb', re.compile(r'thetvdb\.com/\?tab=series&id=(\d{1,8})', re.IGNORECASE)),
)


@dataclass(frozen=True)
class ShowId:
    """External show identifier and the site it belongs to."""
    site: str
    show_id: str


def parse_show_id(text: Optional[str]) -> Optional[ShowId]:
    """
    Look for a show identifier in a string.

    Args:
        text: Free text, e.g. a decoded NFO

    Returns:
        ShowId for the highest-priority match, or None
    """
    if not text:
        return None

    for site, pattern in SHOW_ID_PATTERNS:
        match = pattern.search(text)
        if match:
            return ShowId(site=site, show_id=match.group(1).strip())

    return None
