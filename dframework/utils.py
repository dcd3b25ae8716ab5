from __future__ import annotations

# dframework/utils.py
import re
from typing import Any, Dict, Iterable, List, Sequence

_TAG_RE = re.compile(r"\$\{((\w+)\.)?(\w+)\}")


def join(left: List[Dict[str, Any]], right: Iterable[Dict[str, Any]], on: Sequence[str],
         columns: Iterable[str]) -> List[Dict[str, Any]]:
    """
    Copy ``columns`` from ``right`` onto each row of ``left`` (in place) where
    ``left[on[0]] == right[on[1]]``. Unmatched rows get None. Last duplicate in right wins.
    """
    left_key, right_key = on[0], on[1]
    columns = list(columns)
    lookup: Dict[Any, Dict[str, Any]] = {}
    for entry in right:
        v = entry.get(right_key)
        if v is not None:
            lookup[v] = entry
    for row in left:
        match = lookup.get(row.get(left_key), {}) if row.get(left_key) is not None else {}
        for c in columns:
            row[c] = match.get(c)
    return left


def replace_tags(source: str | None, tags: Dict[str, Any] | None, keep_missing_tags: bool = False) -> str | None:
    """
    "${firstName} ${lastName}" / "${user.firstName}" style templating.
    Missing tags become "" unless keep_missing_tags.
    """
    if not source or not tags:
        return source

    def _sub(m: re.Match) -> str:
        group, name = m.group(2), m.group(3)
        container = (tags.get(group) or {}) if group else tags
        if not isinstance(container, dict) or name not in container or container[name] is None:
            return m.group(0) if keep_missing_tags else ""
        return str(container[name])

    return _TAG_RE.sub(_sub, source)
