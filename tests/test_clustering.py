"""Tests for the nearest-neighbour clustering engine."""

from dataclasses import dataclass

import numpy as np
import pytest

from glyphwords.clustering import (
    NO_SUCCESSOR,
    UNBOUNDED,
    ConfigurationError,
    build_chains,
    nearest_neighbours,
)
from glyphwords.distances import euclidean, manhattan
from glyphwords.models import Point


@dataclass(frozen=True)
class Item:
    """Minimal clusterable item with explicit anchors."""
    name: str
    lead: tuple
    trail: tuple
    text: str = "x"


def item(name: str, lead_x: float, trail_x: float, text: str = "x", y: float = 0.0) -> Item:
    return Item(name, (lead_x, y), (trail_x, y), text)


def not_blank(i: Item) -> bool:
    return bool(i.text.strip())


def candidate_not_blank(pivot: Item, candidate: Item) -> bool:
    return bool(candidate.text.strip())


def run(items, max_dist=5.0, distance=manhattan, **kwargs):
    return nearest_neighbours(
        items,
        distance=distance,
        max_distance=lambda a, b: max_dist,
        trailing_anchor=lambda i: Point(*i.trail),
        leading_anchor=lambda i: Point(*i.lead),
        **kwargs,
    )


def names(groups):
    return [[i.name for i in group] for group in groups]


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def whitespace_row():
    """A B, then a space, then C; the gap after B is too wide to bridge."""
    return [
        item("A", 0, 4),
        item("B", 5, 9),
        item("W", 10, 14, text=" "),
        item("C", 15, 19),
    ]


@pytest.fixture
def scattered_items():
    """A few hundred items on short horizontal runs, in shuffled order."""
    rng = np.random.default_rng(42)
    items = []
    for row in range(20):
        x = 0.0
        for col in range(12):
            width = float(rng.uniform(3.0, 6.0))
            gap = float(rng.choice([0.0, 0.5, 1.0, 8.0]))
            items.append(item(f"r{row}c{col}", x, x + width, y=row * 20.0))
            x += width + gap
    order = rng.permutation(len(items))
    return [items[i] for i in order]


# ============================================================================
# Degenerate Inputs
# ============================================================================

class TestDegenerateInputs:

    def test_empty_input(self):
        assert run([]) == []

    def test_none_input(self):
        assert run(None) == []

    def test_single_item_is_singleton(self):
        a = item("A", 0, 4)
        assert run([a]) == [[a]]

    def test_zero_threshold_gives_singletons(self):
        items = [item("A", 0, 4), item("B", 5, 9), item("C", 10, 14)]
        assert names(run(items, max_dist=0.0)) == [["A"], ["B"], ["C"]]

    def test_always_false_filter_gives_singletons(self):
        items = [item("A", 0, 4), item("B", 4, 8)]
        groups = run(items, connection_filter=lambda p, c: False)
        assert names(groups) == [["A"], ["B"]]

    def test_always_false_pivot_filter_gives_singletons(self):
        items = [item("A", 0, 4), item("B", 4, 8)]
        groups = run(items, pivot_filter=lambda i: False)
        assert names(groups) == [["A"], ["B"]]


# ============================================================================
# Chaining
# ============================================================================

class TestChaining:

    def test_simple_chain(self):
        items = [item("A", 0, 4), item("B", 5, 9), item("C", 10, 14)]
        assert names(run(items)) == [["A", "B", "C"]]

    def test_chain_order_follows_anchors_not_input(self):
        """Items supplied right-to-left still come out in chain order."""
        items = [item("C", 10, 14), item("B", 5, 9), item("A", 0, 4)]
        assert names(run(items)) == [["A", "B", "C"]]

    def test_whitespace_scenario(self, whitespace_row):
        groups = run(
            whitespace_row,
            pivot_filter=not_blank,
            connection_filter=candidate_not_blank,
        )
        assert names(groups) == [["A", "B"], ["W"], ["C"]]

    def test_items_linked_to_same_successor_share_a_group(self):
        """X overlaps B and also links to C, so it belongs to the same word."""
        items = [item("A", 0, 4), item("B", 5, 9), item("X", 6, 8.5), item("C", 10, 14)]
        assert names(run(items)) == [["A", "B", "X", "C"]]

    def test_converging_group_independent_of_input_order(self):
        items = [item("X", 6, 8.5), item("C", 10, 14), item("A", 0, 4), item("B", 5, 9)]
        groups = run(items)
        assert len(groups) == 1
        assert sorted(names(groups)[0]) == ["A", "B", "C", "X"]

    def test_two_rows_stay_apart(self):
        items = [
            item("A", 0, 4, y=0), item("B", 5, 9, y=0),
            item("C", 0, 4, y=20), item("D", 5, 9, y=20),
        ]
        assert names(run(items, distance=euclidean)) == [["A", "B"], ["C", "D"]]


# ============================================================================
# Threshold And Filters
# ============================================================================

class TestThresholdBoundary:

    def test_distance_equal_to_threshold_links(self):
        items = [item("A", 0, 4), item("B", 9, 13)]
        assert names(run(items, max_dist=5.0)) == [["A", "B"]]

    def test_distance_above_threshold_does_not_link(self):
        items = [item("A", 0, 4), item("B", 9.5, 13)]
        assert names(run(items, max_dist=5.0)) == [["A"], ["B"]]

    def test_threshold_is_evaluated_per_pair(self):
        """A nearer candidate failing its own threshold doesn't hide a farther one that passes."""
        items = [item("A", 0, 4), item("near", 6, 7), item("far", 8, 12, y=0)]

        def max_distance(pivot, candidate):
            return 0.5 if "near" in (pivot.name, candidate.name) else 5.0

        groups = nearest_neighbours(
            items,
            distance=manhattan,
            max_distance=max_distance,
            trailing_anchor=lambda i: Point(*i.trail),
            leading_anchor=lambda i: Point(*i.lead),
        )
        assert groups == [[items[0], items[2]], [items[1]]]


class TestFilterVeto:

    def test_vetoed_nearest_candidate_is_skipped(self):
        """The nearest candidate is rejected, so the next one within range is used."""
        items = [item("A", 0, 4), item("B", 5, 5.5), item("C", 6, 10)]
        groups = run(items, connection_filter=lambda p, c: "B" not in (p.name, c.name))
        assert names(groups) == [["A", "C"], ["B"]]

    def test_veto_with_nothing_else_in_range(self):
        items = [item("A", 0, 4), item("B", 5, 9)]
        groups = run(items, connection_filter=lambda p, c: c.name != "B")
        assert names(groups) == [["A"], ["B"]]

    def test_filter_receives_pivot_and_candidate(self):
        seen = []

        def record(pivot, candidate):
            seen.append((pivot.name, candidate.name))
            return True

        run([item("A", 0, 4), item("B", 5, 9)], connection_filter=record)
        assert ("A", "B") in seen
        assert all(p != c for p, c in seen)


class TestPivotExclusion:

    @pytest.mark.parametrize("exclude", [False, True])
    def test_default_whitespace_scenario_either_way(self, whitespace_row, exclude):
        """With a whitespace-rejecting connection filter both settings agree."""
        groups = run(
            whitespace_row,
            pivot_filter=not_blank,
            connection_filter=candidate_not_blank,
            exclude_filtered_from_candidates=exclude,
        )
        assert names(groups) == [["A", "B"], ["W"], ["C"]]

    def test_filtered_item_can_be_linked_to(self):
        items = [item("A", 0, 4), item("B", 5, 9), item("W", 10, 14, text=" "), item("C", 20, 24)]
        groups = run(items, pivot_filter=not_blank)
        assert names(groups) == [["A", "B", "W"], ["C"]]

    def test_filtered_item_excluded_from_candidates(self):
        items = [item("A", 0, 4), item("B", 5, 9), item("W", 10, 14, text=" "), item("C", 20, 24)]
        groups = run(items, pivot_filter=not_blank, exclude_filtered_from_candidates=True)
        assert names(groups) == [["A", "B"], ["W"], ["C"]]

    def test_filtered_item_never_searches(self):
        items = [item("W", 0, 4, text=" "), item("A", 5, 9)]
        groups = run(items, pivot_filter=not_blank)
        assert names(groups) == [["W"], ["A"]]


# ============================================================================
# Determinism
# ============================================================================

class TestDeterminism:

    def test_ties_go_to_earliest_input(self):
        a = Item("A", (0, 0), (4, 0))
        b = Item("B", (6, 0), (10, 0))
        c = Item("C", (4, 2), (8, 2))

        assert names(run([a, b, c], max_dist=2.5)) == [["A", "B"], ["C"]]
        assert names(run([a, c, b], max_dist=2.5)) == [["A", "C"], ["B"]]

    def test_partition_property(self, scattered_items):
        groups = run(scattered_items, max_dist=1.0)
        flat = [i.name for group in groups for i in group]
        assert sorted(flat) == sorted(i.name for i in scattered_items)
        assert len(flat) == len(set(flat))

    def test_same_output_for_any_parallelism(self, scattered_items):
        expected = names(run(scattered_items, max_dist=1.0, max_degree_of_parallelism=1))
        for parallelism in (2, 3, 4, 16, UNBOUNDED):
            groups = run(scattered_items, max_dist=1.0, max_degree_of_parallelism=parallelism)
            assert names(groups) == expected

    def test_repeated_runs_identical(self, scattered_items):
        first = names(run(scattered_items, max_dist=1.0))
        second = names(run(scattered_items, max_dist=1.0))
        assert first == second

    def test_rows_recovered_from_shuffled_input(self, scattered_items):
        groups = run(scattered_items, max_dist=1.0)
        for group in groups:
            rows = {i.name.split("c")[0] for i in group}
            assert len(rows) == 1
            cols = [int(i.name.split("c")[1]) for i in group]
            assert cols == sorted(cols)


# ============================================================================
# Cycle Safety
# ============================================================================

class TestCycleSafety:

    def test_zero_distance_terminates(self):
        items = [item(f"I{k}", 0, 0) for k in range(4)]
        groups = nearest_neighbours(
            items,
            distance=lambda p1, p2: 0.0,
            max_distance=lambda a, b: 1.0,
            trailing_anchor=lambda i: Point(*i.trail),
            leading_anchor=lambda i: Point(*i.lead),
        )
        # Successors are I1, I0, I0, I0: I2 heads the chain, I3 joins it ahead of I0
        assert names(groups) == [["I2", "I3", "I0", "I1"]]

    def test_pure_cycle_is_broken(self):
        items = [item("A", 0, 0), item("B", 0, 0)]
        groups = nearest_neighbours(
            items,
            distance=lambda p1, p2: 0.0,
            max_distance=lambda a, b: 1.0,
            trailing_anchor=lambda i: Point(*i.trail),
            leading_anchor=lambda i: Point(*i.lead),
        )
        assert names(groups) == [["A", "B"]]

    def test_nan_distance_never_links(self):
        items = [item("A", 0, 4), item("B", 4, 8)]
        groups = run(items, distance=lambda p1, p2: float("nan"))
        assert names(groups) == [["A"], ["B"]]


class TestBuildChains:

    def test_single_chain(self):
        assert build_chains(np.array([1, 2, NO_SUCCESSOR])) == [[0, 1, 2]]

    def test_no_links(self):
        assert build_chains(np.array([NO_SUCCESSOR, NO_SUCCESSOR])) == [[0], [1]]

    def test_converging_chains_merge(self):
        # 0 -> 2 and 1 -> 2: the later head joins just ahead of 2
        assert build_chains(np.array([2, 2, NO_SUCCESSOR])) == [[0, 1, 2]]

    def test_converging_prefix_keeps_its_order(self):
        # 0 -> 1 -> 4 and 2 -> 3 -> 4
        assert build_chains(np.array([1, 4, 3, 4, NO_SUCCESSOR])) == [[0, 1, 2, 3, 4]]

    def test_join_in_middle_of_chain(self):
        # 0 -> 1 -> 2 and 3 -> 1
        assert build_chains(np.array([1, 2, NO_SUCCESSOR, 1])) == [[0, 3, 1, 2]]

    def test_cycle_walk_stops_on_own_items(self):
        assert build_chains(np.array([1, 2, 0])) == [[0, 1, 2]]


# ============================================================================
# Configuration Errors
# ============================================================================

class TestConfigurationErrors:

    def test_missing_distance(self):
        with pytest.raises(ConfigurationError):
            run([item("A", 0, 4)], distance=None)

    def test_missing_anchor_extractor(self):
        with pytest.raises(ConfigurationError):
            nearest_neighbours(
                [item("A", 0, 4)],
                distance=manhattan,
                max_distance=lambda a, b: 1.0,
                trailing_anchor=None,
                leading_anchor=lambda i: Point(*i.lead),
            )

    def test_non_callable_filter(self):
        with pytest.raises(ConfigurationError):
            run([item("A", 0, 4)], connection_filter="not a function")

    def test_raised_before_looking_at_items(self):
        with pytest.raises(ConfigurationError):
            run([], distance=None)

    @pytest.mark.parametrize("parallelism", [0, -2, 1.5, True])
    def test_invalid_parallelism(self, parallelism):
        with pytest.raises(ConfigurationError):
            run([item("A", 0, 4)], max_degree_of_parallelism=parallelism)

    def test_is_a_type_error(self):
        with pytest.raises(TypeError):
            run([item("A", 0, 4)], max_distance=None)

    def test_worker_exception_propagates(self):
        items = [item(f"I{k}", k * 5, k * 5 + 4) for k in range(10)]

        def broken(p1, p2):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            run(items, distance=broken, max_degree_of_parallelism=4)
