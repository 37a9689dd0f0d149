"""
Nearest-neighbour clustering of positioned items.

The engine knows nothing about glyphs or words: items are opaque apart from
the anchor points and the attributes read by the injected functions.

Algorithm Overview:
1. Every pivot (an item passing the pivot filter) looks for the closest
   candidate, measured from the pivot's trailing anchor to the candidate's
   leading anchor, among candidates passing the connection filter and lying
   within the per-pair maximum distance
2. Each pivot therefore has at most one successor; exact ties go to the
   candidate appearing first in the input
3. Chains are read off the successor relation, starting from items that are
   nobody's successor, in input order; a chain running into an earlier one
   joins it ahead of the item both point to
4. Items with neither a predecessor nor a successor become singletons

Pivot searches are independent and run on a thread pool. Every pivot owns
one slot of the successor array, so workers never write to the same slot,
and chain materialization only starts once every search has finished.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


# Parallelism value meaning "no explicit bound on worker threads"
UNBOUNDED = -1

# Successor slot value for pivots without an outgoing link
NO_SUCCESSOR = -1


class ConfigurationError(TypeError):
    """Raised when clustering or word extraction is invoked with an unusable configuration."""


def _require_callable(name: str, value, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not callable(value):
        raise ConfigurationError(f"{name} must be callable, got {type(value).__name__}")


def resolve_workers(max_degree_of_parallelism: int) -> int:
    """Translate the parallelism bound into a worker count."""
    if isinstance(max_degree_of_parallelism, bool) or not isinstance(max_degree_of_parallelism, (int, np.integer)):
        raise ConfigurationError(
            f"max_degree_of_parallelism must be an int, got {type(max_degree_of_parallelism).__name__}"
        )
    if max_degree_of_parallelism == UNBOUNDED:
        # Same default as ThreadPoolExecutor(max_workers=None)
        return min(32, (os.cpu_count() or 1) + 4)
    if max_degree_of_parallelism < 1:
        raise ConfigurationError(
            f"max_degree_of_parallelism must be positive or {UNBOUNDED}, got {max_degree_of_parallelism}"
        )
    return int(max_degree_of_parallelism)


def find_successor(
    pivot_index: int,
    items: Sequence,
    trailing: Sequence,
    leading: Sequence,
    distance: Callable,
    max_distance: Callable,
    connection_filter: Optional[Callable],
    candidate_mask: np.ndarray,
) -> int:
    """
    Find the nearest qualifying candidate for one pivot.

    Candidates are visited by increasing distance (stable on input index),
    so the first one passing the connection filter and its own per-pair
    threshold is the nearest qualifying one.

    Returns:
        Index of the successor, or NO_SUCCESSOR
    """
    n = len(items)
    pivot = items[pivot_index]
    origin = trailing[pivot_index]

    distances = np.fromiter(
        (distance(origin, leading[j]) for j in range(n)),
        dtype=float,
        count=n,
    )

    # NaN sorts last
    for j in np.argsort(distances, kind="stable"):
        j = int(j)
        if j == pivot_index or not candidate_mask[j]:
            continue

        dist = distances[j]
        if np.isnan(dist):
            break

        candidate = items[j]
        if connection_filter is not None and not connection_filter(pivot, candidate):
            continue
        if dist <= max_distance(pivot, candidate):
            return j

    return NO_SUCCESSOR


def build_chains(successors: np.ndarray) -> List[List[int]]:
    """
    Turn the successor relation into ordered chains of indexes.

    Chain heads (indexes nobody points to) are walked in input order. When a
    walk reaches an index already placed in an earlier chain, the walked
    prefix joins that chain just ahead of the index it reached, so items
    linked to the same successor end up in one group. A walk that comes back
    to its own items stops there, which guarantees termination on cycles.
    Anything left unplaced afterwards sits on a cycle and is walked in input
    order.
    """
    n = len(successors)
    linked = successors[successors != NO_SUCCESSOR]
    has_predecessor = np.zeros(n, dtype=bool)
    has_predecessor[linked] = True
    chain_of = np.full(n, -1, dtype=np.intp)
    chains: List[List[int]] = []

    def walk(start: int) -> None:
        own = len(chains)
        prefix = []
        current = start
        while current != NO_SUCCESSOR and chain_of[current] == -1:
            chain_of[current] = own
            prefix.append(current)
            current = int(successors[current])

        if current == NO_SUCCESSOR or chain_of[current] == own:
            chains.append(prefix)
            return

        target = int(chain_of[current])
        chain = chains[target]
        at = chain.index(current)
        chain[at:at] = prefix
        chain_of[prefix] = target

    for head in np.flatnonzero(~has_predecessor):
        walk(int(head))

    for i in range(n):
        if chain_of[i] == -1:
            walk(i)

    return chains


def nearest_neighbours(
    items: Sequence,
    distance: Callable,
    max_distance: Callable,
    trailing_anchor: Callable,
    leading_anchor: Callable,
    pivot_filter: Optional[Callable] = None,
    connection_filter: Optional[Callable] = None,
    max_degree_of_parallelism: int = UNBOUNDED,
    exclude_filtered_from_candidates: bool = False,
) -> List[List]:
    """
    Group items by chaining each one to its nearest qualifying neighbour.

    Args:
        items: Items to group, in input order
        distance: Distance between two anchor points, e.g. Manhattan
        max_distance: Maximum linking distance as a function of (pivot, candidate)
        trailing_anchor: Extracts the point a pivot is measured from
        leading_anchor: Extracts the point a candidate is measured to
        pivot_filter: If it returns False for an item, no search starts from it.
            None lets every item search.
        connection_filter: If it returns False for (pivot, candidate), the
            candidate is never linked from that pivot. None allows all links.
        max_degree_of_parallelism: Upper bound on concurrent searches, or
            UNBOUNDED (-1) for the thread pool default
        exclude_filtered_from_candidates: If True, items rejected by
            pivot_filter are also removed from every candidate pool

    Returns:
        List of groups, each a list of items in chain order. Every input
        item appears in exactly one group.

    Raises:
        ConfigurationError: If a required function is missing or the
            parallelism bound is invalid
    """
    _require_callable("distance", distance)
    _require_callable("max_distance", max_distance)
    _require_callable("trailing_anchor", trailing_anchor)
    _require_callable("leading_anchor", leading_anchor)
    _require_callable("pivot_filter", pivot_filter, optional=True)
    _require_callable("connection_filter", connection_filter, optional=True)
    workers = resolve_workers(max_degree_of_parallelism)

    if items is None:
        return []
    items = list(items)
    n = len(items)
    if n == 0:
        return []

    trailing = [trailing_anchor(item) for item in items]
    leading = [leading_anchor(item) for item in items]

    if pivot_filter is None:
        is_pivot = np.ones(n, dtype=bool)
    else:
        is_pivot = np.fromiter((bool(pivot_filter(item)) for item in items), dtype=bool, count=n)

    candidate_mask = is_pivot if exclude_filtered_from_candidates else np.ones(n, dtype=bool)

    successors = np.full(n, NO_SUCCESSOR, dtype=np.intp)
    pivot_indexes = np.flatnonzero(is_pivot)

    def search(chunk: np.ndarray) -> None:
        for i in chunk:
            i = int(i)
            successors[i] = find_successor(
                i, items, trailing, leading,
                distance, max_distance, connection_filter, candidate_mask,
            )

    n_chunks = min(workers, len(pivot_indexes))
    if n_chunks <= 1:
        search(pivot_indexes)
    else:
        chunks = np.array_split(pivot_indexes, n_chunks)
        with ThreadPoolExecutor(max_workers=n_chunks) as executor:
            futures = [executor.submit(search, chunk) for chunk in chunks]
            # Waiting on every future is the barrier before chain building;
            # result() re-raises worker exceptions here
            for future in futures:
                future.result()

    chains = build_chains(successors)

    logger.debug(
        f"Clustered {n} items ({len(pivot_indexes)} pivots, "
        f"{int(np.count_nonzero(successors != NO_SUCCESSOR))} links) into {len(chains)} groups "
        f"using {n_chunks or 1} worker(s)"
    )

    return [[items[i] for i in chain] for chain in chains]
