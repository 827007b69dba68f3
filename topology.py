"""
Neighborhood topologies for local-best PSO.

Every topology is a function ``(n, k, i) -> list of indices`` giving the
neighbors of particle ``i`` in a swarm of ``n`` particles, so the optimizer
can swap one for another without caring how the sets are built.
"""


def ring_neighbors(n, k, i):
    """
    Ring topology: the k particles closest to i by index, with wraparound.

    neighbor(i, j) = (i - k // 2 + j) mod n, for j in [0, k).
    Python's modulo already maps negative indices into [0, n).
    """
    return [(i - k // 2 + j) % n for j in range(k)]


def fully_connected_neighbors(n, k, i):
    """Every particle is a neighbor of every other one (gbest PSO). k is ignored."""
    return list(range(n))


def random_topology(source):
    """
    Build a topology drawing k neighbor indices uniformly from the swarm.

    source: random source with a uniform(a, b) method.
    Indices may repeat; the particle itself may be drawn.
    """

    def random_neighbors(n, k, i):
        return [min(int(source.uniform(0.0, float(n))), n - 1) for _ in range(k)]

    return random_neighbors


def build_neighborhood(topology, n, k):
    """Apply a topology function to every particle of the swarm."""
    return [list(topology(n, k, i)) for i in range(n)]


def ring_topology(n, k):
    return build_neighborhood(ring_neighbors, n, k)
