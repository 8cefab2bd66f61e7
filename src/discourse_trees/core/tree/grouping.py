"""Group tree marker records into forest-building units."""

from loguru import logger

from discourse_trees.models.markers import MarkerRecord, ScopeCollection


def group_by_scope(records: list[MarkerRecord]) -> list[ScopeCollection]:
    """Partition records by their (scope_start, scope_end) pair.

    Records missing either bound land in a single fallback collection whose
    bounds are the min start offset and max end offset of its members.
    Collection order is not part of the contract; callers sort the built trees.
    """
    groups: dict[tuple[int, int], list[MarkerRecord]] = {}
    fallback: list[MarkerRecord] = []

    for record in records:
        if record.scope_start is None or record.scope_end is None:
            fallback.append(record)
            continue
        groups.setdefault((record.scope_start, record.scope_end), []).append(record)

    collections = [
        ScopeCollection(records=tuple(members), scope_start=start, scope_end=end)
        for (start, end), members in groups.items()
    ]

    if fallback:
        logger.debug("{} records without scope, using fallback collection", len(fallback))
        collections.append(
            ScopeCollection(
                records=tuple(fallback),
                scope_start=min(r.start_offset for r in fallback),
                scope_end=max(r.end_offset for r in fallback),
            )
        )

    logger.debug("Grouped {} records into {} scopes", len(records), len(collections))
    return collections


def group_by_tree(records: list[MarkerRecord]) -> list[ScopeCollection]:
    """Group records into connected components of their parent references.

    Two records are connected when one names the other as its parent. Each
    component keeps the scope bounds of the record it was discovered from.
    """
    by_id: dict[str, list[MarkerRecord]] = {}
    by_parent: dict[str, list[MarkerRecord]] = {}
    for record in records:
        by_id.setdefault(record.id, []).append(record)
        by_parent.setdefault(record.parent_id, []).append(record)

    seen: set[int] = set()
    collections: list[ScopeCollection] = []

    for seed in records:
        if id(seed) in seen:
            continue

        component: list[MarkerRecord] = []
        todo = [seed]
        while todo:
            current = todo.pop()
            if id(current) in seen:
                continue
            seen.add(id(current))
            component.append(current)
            todo.extend(by_parent.get(current.id, ()))
            todo.extend(by_id.get(current.parent_id, ()))

        collections.append(
            ScopeCollection(
                records=tuple(component),
                scope_start=seed.scope_start,
                scope_end=seed.scope_end,
            )
        )

    logger.debug("Grouped {} records into {} trees", len(records), len(collections))
    return collections
