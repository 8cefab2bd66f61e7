"""Deterministic node id allocation.

New ids are derived from a seed by incrementing its trailing run of lowercase
letters as a base-26 counter: "" -> "a", "z" -> "aa", "az" -> "ba".
"""

import hashlib
import string
import time
from collections.abc import Callable

from loguru import logger

from discourse_trees.config import ID_CACHE_TTL, ROOT_PARENT_ID
from discourse_trees.core.parsing.markers import find_tree_markers, parse_tree_marker
from discourse_trees.core.text.scope import (
    ParagraphScopeResolver,
    find_excluded_ranges,
    range_within_excluded,
)
from discourse_trees.protocols import IdentifierSourceProtocol, ScopeResolverProtocol

_LETTERS = string.ascii_lowercase


def split_seed(seed: str) -> tuple[str, str]:
    """Split seed into (base, suffix), suffix being its trailing lowercase letters."""
    cut = len(seed)
    while cut > 0 and seed[cut - 1] in _LETTERS:
        cut -= 1
    return seed[:cut], seed[cut:]


def increment_suffix(suffix: str) -> str:
    """Return the suffix following `suffix` in the a..z, aa..zz, ... sequence."""
    chars = list(suffix)
    i = len(chars) - 1
    while i >= 0:
        if chars[i] != "z":
            chars[i] = _LETTERS[_LETTERS.index(chars[i]) + 1]
            return "".join(chars)
        chars[i] = "a"
        i -= 1
    return "a" + "".join(chars)


def next_id(seed: str, in_use: set[str] | frozenset[str]) -> str:
    """Return the first id after seed that is not in in_use."""
    base, suffix = split_seed(seed)
    suffix = increment_suffix(suffix)
    while base + suffix in in_use:
        suffix = increment_suffix(suffix)
    return base + suffix


def collect_node_ids(text: str) -> set[str]:
    """Return the ids of all tree markers in text."""
    ids: set[str] = set()
    for marker_text, start, end in find_tree_markers(text):
        record = parse_tree_marker(marker_text, start, end)
        if record is not None:
            ids.add(record.id)
    return ids


class MarkerIdentifierSource:
    """Identifier source reading ids from the tree markers of a text."""

    def get_all_identifiers_in_use(self, text: str) -> set[str]:
        """Return every tree marker id present in the text."""
        return collect_node_ids(text)


class IdCache:
    """Cache of the ids in use in a document.

    The cache is rescanned when the text differs from the last scanned text
    (length first, then a content digest), when `ttl` seconds have passed
    since the last scan, or after `invalidate()`. `insert()` records a freshly
    allocated id so it is taken into account until the text changes. Owned by
    a single caller; not thread safe.
    """

    def __init__(
        self,
        source: IdentifierSourceProtocol | None = None,
        *,
        ttl: float = ID_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source or MarkerIdentifierSource()
        self._ttl = ttl
        self._clock = clock
        self._ids: set[str] = set()
        self._doc_length: int | None = None
        self._doc_digest: str | None = None
        self._scanned_at: float | None = None
        self.scan_count = 0

    @staticmethod
    def _digest(text: str) -> str:
        return hashlib.sha1(text.encode("utf-8")).hexdigest()

    def is_stale(self, text: str) -> bool:
        """Check whether the cached ids must be rescanned for text."""
        if self._doc_length is None or self._scanned_at is None:
            return True
        if len(text) != self._doc_length or self._digest(text) != self._doc_digest:
            return True
        return (self._clock() - self._scanned_at) >= self._ttl

    def get(self, text: str) -> set[str]:
        """Return the ids in use in text, rescanning only when stale."""
        if self.is_stale(text):
            self._ids = set(self._source.get_all_identifiers_in_use(text))
            self._doc_length = len(text)
            self._doc_digest = self._digest(text)
            self._scanned_at = self._clock()
            self.scan_count += 1
            logger.debug("Scanned {} ids in use", len(self._ids))
        return self._ids

    def insert(self, node_id: str) -> None:
        """Record an id allocated since the last scan."""
        self._ids.add(node_id)

    def invalidate(self) -> None:
        """Force a rescan on the next `get()`."""
        self._doc_length = None
        self._doc_digest = None
        self._scanned_at = None

    def allocate(self, seed: str, text: str) -> str:
        """Allocate the next free id after seed and record it."""
        new_id = next_id(seed, self.get(text))
        self.insert(new_id)
        return new_id


def suggest_node_marker(
    text: str,
    position: int,
    *,
    cache: IdCache | None = None,
    scope_resolver: ScopeResolverProtocol | None = None,
) -> str | None:
    """Suggest a new sibling node marker to insert at position.

    Applies when position lies in a scope that already holds tree markers but
    not inside one of them. The new node gets the next free id after the last
    marker before position (or the scope's last marker) and shares its parent.

    Returns:
        Marker text followed by a space, e.g. "{1b|1|} ", or None.
    """
    resolver = scope_resolver or ParagraphScopeResolver()
    bounds = resolver.get_scope_boundaries(position, text)
    if bounds is None:
        return None
    scope_start, scope_end = bounds

    excluded = find_excluded_ranges(text)
    records = []
    for marker_text, start, end in find_tree_markers(text[scope_start:scope_end]):
        start, end = scope_start + start, scope_start + end
        if range_within_excluded(start, end, excluded):
            continue
        record = parse_tree_marker(marker_text, start, end)
        if record is not None:
            records.append(record)
    if not records:
        return None

    if any(r.start_offset < position < r.end_offset for r in records):
        logger.debug("Position {} is inside a marker, no suggestion", position)
        return None

    before = [r for r in records if r.start_offset < position]
    last = before[-1] if before else records[-1]
    parent_id = last.parent_id or ROOT_PARENT_ID

    if cache is None:
        cache = IdCache()
    new_id = cache.allocate(last.id, text)
    return f"{{{new_id}|{parent_id}|}} "
