import random

from hypothesis import given, settings, strategies as st

from topology import (
    build_neighborhood,
    fully_connected_neighbors,
    random_topology,
    ring_neighbors,
    ring_topology,
)


def test_ring_neighbors_middle_particle():
    assert ring_neighbors(5, 3, 2) == [1, 2, 3]


def test_ring_neighbors_wrap_around():
    assert ring_neighbors(5, 3, 0) == [4, 0, 1]
    assert ring_neighbors(5, 3, 4) == [3, 4, 0]


def test_ring_neighbors_size_one_is_self():
    assert ring_topology(4, 1) == [[0], [1], [2], [3]]


def test_ring_neighbors_even_size():
    # k // 2 == 2: two particles before, one after
    assert ring_neighbors(10, 4, 5) == [3, 4, 5, 6]


def test_ring_topology_full_size_covers_swarm():
    for neighbors in ring_topology(6, 6):
        assert sorted(neighbors) == list(range(6))


@settings(max_examples=50, deadline=None)
@given(data=st.data(), n=st.integers(min_value=1, max_value=40))
def test_ring_neighbors_are_consecutive_indices(data, n):
    k = data.draw(st.integers(min_value=1, max_value=n))
    i = data.draw(st.integers(min_value=0, max_value=n - 1))
    neighbors = ring_neighbors(n, k, i)
    assert len(neighbors) == k
    assert all(0 <= idx < n for idx in neighbors)
    for a, b in zip(neighbors, neighbors[1:]):
        assert b == (a + 1) % n


def test_fully_connected_ignores_size():
    assert fully_connected_neighbors(4, 1, 2) == [0, 1, 2, 3]


def test_random_topology_uses_source(midpoint_source):
    topology = random_topology(midpoint_source)
    assert topology(5, 3, 0) == [2, 2, 2]


def test_random_topology_indices_in_range():
    topology = random_topology(random.Random(3))
    for neighbors in build_neighborhood(topology, 7, 4):
        assert len(neighbors) == 4
        assert all(0 <= idx < 7 for idx in neighbors)
