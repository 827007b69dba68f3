import pytest

from fitness import sphere


class MidpointSource:
    """Random source that always returns the middle of the requested interval."""

    def uniform(self, a, b):
        return (a + b) / 2.0


class CountingFitness:
    def __init__(self, func=sphere):
        self.func = func
        self.calls = 0

    def __call__(self, position):
        self.calls += 1
        return self.func(position)


@pytest.fixture
def midpoint_source():
    return MidpointSource()


@pytest.fixture
def counting_sphere():
    return CountingFitness()
