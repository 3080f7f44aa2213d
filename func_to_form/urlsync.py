"""Keep the address bar's query string in step with submitted forms."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

from . import config


def split_search(search: Optional[str]) -> List[Tuple[str, str]]:
    """``"?a=1&b&a=2"`` -> ``[("a", "a=1"), ("b", "b"), ("a", "a=2")]``.

    Each pair is the decoded key and the segment's original text.
    """
    if not search:
        return []
    pairs = []
    for segment in search.lstrip("?").split("&"):
        if not segment:
            continue
        decoded = parse_qsl(segment, keep_blank_values=True)
        key = decoded[0][0] if decoded else segment
        pairs.append((key, segment))
    return pairs


def parse_search(search: Optional[str]) -> Dict[str, str]:
    """``"?a=1&b=2"`` -> ``{"a": "1", "b": "2"}``; the last duplicate wins."""
    if not search:
        return {}
    return dict(parse_qsl(search.lstrip("?"), keep_blank_values=True))


def normalize_search(search: Optional[str]) -> str:
    segments = [segment for _, segment in split_search(search)]
    return "?" + "&".join(segments) if segments else ""


class QuerySynchronizer:
    def __init__(self, initial_search: str = ""):
        self.last_applied = normalize_search(initial_search)

    def current_query(self) -> Dict[str, str]:
        return parse_search(self.last_applied)

    def reconcile(
        self,
        search: Optional[str],
        submitted: Mapping[str, Optional[str]],
        prefix: str,
    ) -> Optional[str]:
        """Merge one form's submitted data into ``search``.

        Segments under ``prefix`` are replaced; every other segment keeps its
        original text and position. Empty values are dropped. Returns the new
        search string, or None when it equals the last applied one.
        """
        namespace = prefix + config.KEY_SEPARATOR
        segments = [
            segment
            for key, segment in split_search(search)
            if not key.startswith(namespace)
        ]
        filled = [(key, value) for key, value in submitted.items() if value]
        if filled:
            segments.append(urlencode(filled))
        new_search = "?" + "&".join(segments) if segments else ""
        if new_search == self.last_applied:
            return None
        self.last_applied = new_search
        return new_search

    def mark_applied(self, search: Optional[str]) -> str:
        self.last_applied = normalize_search(search)
        return self.last_applied

    def is_echo(self, search: Optional[str]) -> bool:
        return normalize_search(search) == self.last_applied
