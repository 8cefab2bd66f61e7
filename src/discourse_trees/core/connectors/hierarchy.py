"""Infer a hierarchy among connectors that declare no explicit parent.

Connectors are related only through their start track and the document
offset of their start marker:

1. Connectors whose tracks share a bucket form a group; the topmost one
   becomes a junction and the others its direct children.
2. Every connector still without a parent attaches to the first other
   connector it is aligned with (close enough on the page, on a nearby
   track), skipping its own descendants.
3. Each child gets a TOP/MIDDLE/BOTTOM attachment point on its parent.
4. A final pass breaks any cycle left in the parent links and levels are
   recomputed from the roots down.

Nothing here raises: ties resolve by first match in input order.
"""

from loguru import logger

from discourse_trees.config import HierarchyThresholds
from discourse_trees.core.connectors.collect import is_resolved
from discourse_trees.models.markers import ConnectionPoint, ConnectorPair, HierarchyInfo


def track_bucket(track: int, width: int) -> int:
    """Return the first track of the bucket containing track."""
    return (track // width) * width


# Pairs taking part in inference are resolved, so their start is always set.
def _start_offset(pair: ConnectorPair) -> int:
    return pair.start.start_offset if pair.start is not None else 0


def _start_track(pair: ConnectorPair) -> int:
    return pair.start.track if pair.start is not None else 0


def _info(pair: ConnectorPair) -> HierarchyInfo:
    if pair.hierarchy is None:
        pair.hierarchy = HierarchyInfo()
    return pair.hierarchy


def connection_point_for(parent: ConnectorPair, child: ConnectorPair) -> ConnectionPoint:
    """Decide where child joins parent, from the child's start position.

    With two parent ends the span between them is split into thirds. With more
    ends the nearest end decides: the first means TOP, the last BOTTOM.
    Anything else joins in the MIDDLE.
    """
    ends = sorted(parent.ends, key=lambda end: end.start_offset)
    if len(ends) < 2 or child.start is None:
        return ConnectionPoint.MIDDLE

    position = child.start.start_offset
    if len(ends) == 2:
        first = ends[0].start_offset
        third = (ends[1].start_offset - first) / 3
        offset = position - first
        if offset < third:
            return ConnectionPoint.TOP
        if offset > 2 * third:
            return ConnectionPoint.BOTTOM
        return ConnectionPoint.MIDDLE

    nearest = min(range(len(ends)), key=lambda i: abs(ends[i].start_offset - position))
    if nearest == 0:
        return ConnectionPoint.TOP
    if nearest == len(ends) - 1:
        return ConnectionPoint.BOTTOM
    return ConnectionPoint.MIDDLE


def is_aligned(
    pair: ConnectorPair,
    candidate: ConnectorPair,
    thresholds: HierarchyThresholds,
) -> bool:
    """Check whether candidate is close enough to pair to be its parent."""
    width = thresholds.bucket_width
    bucket_diff = (
        abs(track_bucket(_start_track(pair), width) - track_bucket(_start_track(candidate), width))
        // width
    )
    distance = abs(_start_offset(pair) - _start_offset(candidate))

    if bucket_diff == 0:
        return distance < thresholds.same_track_distance
    if bucket_diff <= thresholds.max_bucket_difference:
        return distance < thresholds.cross_track_distance
    return False


def _is_descendant(
    pair: ConnectorPair,
    ancestor: ConnectorPair,
    by_id: dict[str, ConnectorPair],
) -> bool:
    """Check whether ancestor appears on pair's chain of parents."""
    seen: set[str] = set()
    parent_id = _info(pair).parent_id
    while parent_id is not None and parent_id not in seen:
        if parent_id == ancestor.identifier:
            return True
        seen.add(parent_id)
        parent = by_id.get(parent_id)
        parent_id = _info(parent).parent_id if parent is not None else None
    return False


def _attach(child: ConnectorPair, parent: ConnectorPair) -> None:
    child_info = _info(child)
    parent_info = _info(parent)
    child_info.parent_id = parent.identifier
    child_info.level = parent_info.level + 1
    child_info.connection_point = connection_point_for(parent, child)
    parent_info.child_ids.append(child.identifier)


def _group_by_track(active: list[ConnectorPair], thresholds: HierarchyThresholds) -> None:
    buckets: dict[int, list[ConnectorPair]] = {}
    for pair in active:
        bucket = track_bucket(_start_track(pair), thresholds.bucket_width)
        buckets.setdefault(bucket, []).append(pair)

    for bucket, members in buckets.items():
        if len(members) < 2:
            continue
        ordered = sorted(members, key=_start_offset)
        root = ordered[0]
        _info(root).is_junction = True
        for child in ordered[1:]:
            _attach(child, root)
        logger.debug(
            "Track bucket {}: {!r} is the junction for {} connectors",
            bucket,
            root.identifier,
            len(ordered) - 1,
        )


def _attach_across_tracks(
    active: list[ConnectorPair],
    by_id: dict[str, ConnectorPair],
    thresholds: HierarchyThresholds,
) -> None:
    for pair in active:
        if _info(pair).parent_id is not None:
            continue
        for candidate in active:
            if candidate is pair or _is_descendant(candidate, pair, by_id):
                continue
            if not is_aligned(pair, candidate, thresholds):
                continue
            _attach(pair, candidate)
            candidate_info = _info(candidate)
            if len(candidate_info.child_ids) > 1:
                candidate_info.is_junction = True
            logger.debug("Attached {!r} to {!r}", pair.identifier, candidate.identifier)
            break


def _still_junction(pair: ConnectorPair, by_id: dict[str, ConnectorPair], width: int) -> bool:
    """A parent stays a junction with several children or a child on its own track bucket."""
    children = [by_id[c] for c in _info(pair).child_ids if c in by_id]
    if len(children) > 1:
        return True
    bucket = track_bucket(_start_track(pair), width)
    return any(track_bucket(_start_track(child), width) == bucket for child in children)


def _sever(pair: ConnectorPair, by_id: dict[str, ConnectorPair], width: int) -> None:
    info = _info(pair)
    former = by_id.get(info.parent_id) if info.parent_id is not None else None
    info.parent_id = None
    info.level = 0
    info.connection_point = None
    if former is not None:
        former_info = _info(former)
        former_info.child_ids = [c for c in former_info.child_ids if c != pair.identifier]
        former_info.is_junction = _still_junction(former, by_id, width)


def repair_cycles(
    active: list[ConnectorPair],
    by_id: dict[str, ConnectorPair],
    thresholds: HierarchyThresholds | None = None,
) -> int:
    """Break cycles in the parent links.

    Walks each parent chain with an explicit path; a link back into the path
    is cut at the connector that closes the loop.

    Returns:
        Number of links severed.
    """
    width = (thresholds or HierarchyThresholds()).bucket_width
    done: set[str] = set()
    severed = 0
    for pair in active:
        path: list[str] = []
        on_path: set[str] = set()
        current: str | None = pair.identifier
        while current is not None and current not in done:
            if current in on_path:
                offender = by_id[path[-1]]
                logger.warning(
                    "Cycle in connector hierarchy, detaching {!r} from {!r}",
                    offender.identifier,
                    current,
                )
                _sever(offender, by_id, width)
                severed += 1
                break
            on_path.add(current)
            path.append(current)
            node = by_id.get(current)
            current = _info(node).parent_id if node is not None else None
        done.update(path)
    return severed


def _relevel(active: list[ConnectorPair], by_id: dict[str, ConnectorPair]) -> None:
    stack = [(pair, 0) for pair in active if _info(pair).parent_id is None]
    seen: set[str] = set()
    while stack:
        pair, level = stack.pop()
        if pair.identifier in seen:
            continue
        seen.add(pair.identifier)
        _info(pair).level = level
        for child_id in _info(pair).child_ids:
            child = by_id.get(child_id)
            if child is not None:
                stack.append((child, level + 1))


def infer_connector_hierarchy(
    pairs: list[ConnectorPair],
    *,
    thresholds: HierarchyThresholds | None = None,
) -> list[ConnectorPair]:
    """Populate `hierarchy` on every pair and return the same list.

    Pairs without a start or without ends get a root hierarchy and take no
    part in the inference.
    """
    thresholds = thresholds or HierarchyThresholds()
    for pair in pairs:
        pair.hierarchy = HierarchyInfo()

    active = [pair for pair in pairs if is_resolved(pair)]
    by_id = {pair.identifier: pair for pair in active}

    _group_by_track(active, thresholds)
    _attach_across_tracks(active, by_id, thresholds)
    repair_cycles(active, by_id, thresholds)
    _relevel(active, by_id)

    junctions = sum(1 for pair in active if _info(pair).is_junction)
    logger.debug(
        "Inferred hierarchy for {} connectors ({} unresolved, {} junctions)",
        len(active),
        len(pairs) - len(active),
        junctions,
    )
    return pairs
