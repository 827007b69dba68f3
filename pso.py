import contextlib
import enum
import logging
import numbers
import random

from errors import ConfigurationError, PSOError, ResourceError, RunCancelled
from topology import build_neighborhood, ring_neighbors, ring_topology

logger = logging.getLogger(__name__)

# Compares worse than any finite fitness, so the first evaluation always wins.
UNEVALUATED = float("-inf")


class RunState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class PSO:
    """Local-best Particle Swarm Optimization maximizing a fitness function."""

    def __init__(
        self,
        dim=6,
        swarm_size=100,
        max_iter=100,
        min_init=-10.0,
        max_init=10.0,
        max_velocity=4.0,
        neigh_size=3,
        inertia=0.6,
        p_weight=2.0,
        n_weight=2.0,
        noisy=False,
        log_file=None,
        random_source=None,
        fitness_func=None,
        topology=ring_neighbors,
        dynamic_topology=False,
        executor=None,
    ):
        """
        dim: dimensionality of the search space (number of coefficients).
        swarm_size: number of particles.
        max_iter: number of iterations; always run to the end.
        min_init, max_init: bounds of the initial position draw.
        max_velocity: velocity components are clamped to [-max_velocity, max_velocity].
        neigh_size: number of neighbors per particle (must not exceed swarm_size).
        inertia: weight of the previous velocity.
        p_weight: attraction towards the particle's personal best.
        n_weight: attraction towards the particle's neighborhood best.
        noisy: re-evaluate personal bests every iteration and keep a running average.
        log_file: path of the iteration log, or None for no log file.
        random_source: object with a uniform(a, b) method (default random.Random()).
        fitness_func: function of a position list returning a float, higher is better.
        topology: function (n, k, i) -> neighbor indices of particle i.
        dynamic_topology: rebuild the neighborhoods every iteration.
        executor: optional concurrent.futures executor used to evaluate particles.
        """
        self.dim = dim
        self.swarm_size = swarm_size
        self.max_iter = max_iter
        self.min_init = min_init
        self.max_init = max_init
        self.max_velocity = max_velocity
        self.neigh_size = neigh_size
        self.inertia = inertia
        self.p_weight = p_weight
        self.n_weight = n_weight
        self.noisy = noisy
        self.log_file = log_file
        self.random_source = random_source if random_source is not None else random.Random()
        self.fitness_func = fitness_func
        self.topology = topology
        self.dynamic_topology = dynamic_topology
        self.executor = executor
        self._check_config()

        n, d = self.swarm_size, self.dim
        self.positions = [[0.0] * d for _ in range(n)]
        self.velocities = [[0.0] * d for _ in range(n)]
        self.fitness = [UNEVALUATED] * n
        self.pbest_positions = [[0.0] * d for _ in range(n)]
        self.pbest_values = [UNEVALUATED] * n
        self.pbest_counts = [0] * n
        self.neighbors = []
        self.nbest_positions = [[0.0] * d for _ in range(n)]
        self.nbest_values = [UNEVALUATED] * n
        self.gbest_position = [0.0] * d
        self.gbest_value = UNEVALUATED
        self.history = []
        self.iteration = 0
        self.state = RunState.UNINITIALIZED

    def _check_config(self):
        for name in ("dim", "swarm_size", "max_iter", "neigh_size"):
            value = getattr(self, name)
            # bool is an Integral too, but True is not a size
            if not isinstance(value, numbers.Integral) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
            setattr(self, name, int(value))
        if self.neigh_size > self.swarm_size:
            raise ConfigurationError(
                f"neigh_size ({self.neigh_size}) cannot exceed swarm_size ({self.swarm_size})"
            )
        if self.max_velocity < 0:
            raise ConfigurationError(f"max_velocity must be >= 0, got {self.max_velocity}")
        if self.min_init > self.max_init:
            raise ConfigurationError(
                f"min_init ({self.min_init}) is greater than max_init ({self.max_init})"
            )
        if self.fitness_func is None:
            raise ConfigurationError("fitness_func is required")

    def initialize(self):
        """Draw positions and velocities, evaluate them and seed every best tier."""
        rng = self.random_source
        for i in range(self.swarm_size):
            for d in range(self.dim):
                self.positions[i][d] = rng.uniform(self.min_init, self.max_init)
                self.velocities[i][d] = rng.uniform(-self.max_velocity, self.max_velocity)
            self.fitness[i] = UNEVALUATED
            self.pbest_values[i] = UNEVALUATED
            self.pbest_counts[i] = 0
            self.nbest_values[i] = UNEVALUATED
        self.gbest_value = UNEVALUATED
        self.evaluate_particles()
        self.update_p_best()
        self.find_neighborhood()
        self.update_n_best()
        self.state = RunState.INITIALIZED

    def find_neighborhood(self):
        if self.topology is ring_neighbors:
            self.neighbors = ring_topology(self.swarm_size, self.neigh_size)
            return
        self.neighbors = build_neighborhood(self.topology, self.swarm_size, self.neigh_size)

    def update_particle_positions(self):
        """
        Move every particle. Velocities are pulled towards the personal and
        neighborhood bests of the previous iteration, then clamped to
        [-max_velocity, max_velocity]. Positions are not clamped.
        """
        rng = self.random_source
        vmax = self.max_velocity
        for i in range(self.swarm_size):
            x = self.positions[i]
            v = self.velocities[i]
            pbest = self.pbest_positions[i]
            nbest = self.nbest_positions[i]
            for d in range(self.dim):
                r1 = rng.uniform(0.0, 1.0)
                r2 = rng.uniform(0.0, 1.0)
                v[d] = (
                    self.inertia * v[d]
                    + self.p_weight * r1 * (pbest[d] - x[d])
                    + self.n_weight * r2 * (nbest[d] - x[d])
                )
                if v[d] > vmax:
                    v[d] = vmax
                elif v[d] < -vmax:
                    v[d] = -vmax
                x[d] += v[d]

    def _evaluate(self, positions):
        candidates = [list(p) for p in positions]
        if self.executor is not None:
            # map() yields results in submission order
            return list(self.executor.map(self.fitness_func, candidates))
        return [self.fitness_func(p) for p in candidates]

    def evaluate_particles(self):
        self.fitness = self._evaluate(self.positions)

    def evaluate_best(self):
        """Re-score every personal best and fold the sample into its running average."""
        samples = self._evaluate(self.pbest_positions)
        for i, new_fit in enumerate(samples):
            count = self.pbest_counts[i]
            self.pbest_values[i] = (self.pbest_values[i] * count + new_fit) / (count + 1)
            self.pbest_counts[i] = count + 1

    def update_p_best(self):
        for i in range(self.swarm_size):
            if self.fitness[i] > self.pbest_values[i]:
                self.pbest_values[i] = self.fitness[i]
                self.pbest_positions[i] = list(self.positions[i])
                self.pbest_counts[i] = 1

    def update_n_best(self):
        """
        Update neighborhood bests in particle index order. The global best is
        compared right after each particle, so later particles of the same
        iteration already see an improved global best.
        """
        for i in range(self.swarm_size):
            for n in self.neighbors[i]:
                if self.pbest_values[n] > self.nbest_values[i]:
                    self.nbest_values[i] = self.pbest_values[n]
                    self.nbest_positions[i] = list(self.pbest_positions[n])
            if self.nbest_values[i] > self.gbest_value:
                self.gbest_value = self.nbest_values[i]
                self.gbest_position = list(self.nbest_positions[i])

    def step(self):
        """Perform one iteration (move, evaluate, update personal/neighborhood/global bests)."""
        if self.state not in (RunState.UNINITIALIZED, RunState.INITIALIZED, RunState.RUNNING):
            raise PSOError(f"Cannot step an optimizer in state {self.state.value!r}")
        if self.state is RunState.UNINITIALIZED:
            self.initialize()
        self.state = RunState.RUNNING
        self.update_particle_positions()
        self.evaluate_particles()
        if self.noisy:
            self.evaluate_best()
        self.update_p_best()
        if self.dynamic_topology:
            self.find_neighborhood()
        self.update_n_best()
        self.iteration += 1

    @contextlib.contextmanager
    def _open_log(self):
        if self.log_file is None:
            yield None
            return
        try:
            log_fd = open(self.log_file, "w")
        except OSError as exc:
            raise ResourceError(f"Cannot open log file {self.log_file!r}: {exc}") from exc
        try:
            yield log_fd
        finally:
            log_fd.close()

    def _record(self, log_fd, it):
        self.history.append((it, self.gbest_value))
        if log_fd is not None:
            log_fd.write(f"{it} {self.gbest_value:.4f}\n")
            log_fd.flush()
        logger.debug("Iteration %d fitness: %.4f", it, self.gbest_value)

    def run(self, cancel_event=None, on_iteration=None):
        """
        Run all max_iter iterations and return a copy of the global best position.

        cancel_event: object with is_set(), polled before every iteration.
        on_iteration: called as on_iteration(iteration, gbest_value) after each one.
        """
        if self.state not in (RunState.UNINITIALIZED, RunState.INITIALIZED):
            raise PSOError(f"Cannot run an optimizer in state {self.state.value!r}")
        logger.info(
            "Starting PSO optimization: %d particles, %d dimensions, %d iterations%s",
            self.swarm_size,
            self.dim,
            self.max_iter,
            " (noisy)" if self.noisy else "",
        )
        try:
            with self._open_log() as log_fd:
                if self.state is RunState.UNINITIALIZED:
                    self.initialize()
                self.state = RunState.RUNNING
                for it in range(self.max_iter):
                    if cancel_event is not None and cancel_event.is_set():
                        raise RunCancelled(it)
                    self.step()
                    self._record(log_fd, it)
                    if on_iteration is not None:
                        on_iteration(it, self.gbest_value)
        except Exception:
            self.state = RunState.FAILED
            raise
        self.state = RunState.COMPLETED
        logger.info("PSO completed. Best fitness = %.4f", self.gbest_value)
        return list(self.gbest_position)
