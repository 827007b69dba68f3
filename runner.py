import contextlib
import json
import logging
import os
import random
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from errors import ConfigurationError
from fitness import NoisySphere, sphere
from pso import PSO
from visualization import plot_convergence

logger = logging.getLogger(__name__)

DEFAULT_VALUES = {
    "dim": 6,
    "swarm_size": 100,
    "total_iterations": 100,
    "min_init": -10.0,
    "max_init": 10.0,
    "max_velocity": 4.0,
    "neigh_size": 3,
    "inertia": 0.6,
    "p_weight": 2.0,
    "n_weight": 2.0,
    "noisy": False,
    "sigma": 1.0,
    "seed": None,
    "workers": 1,
    "log_root": "logs",
}


def load_values(path):
    """Read run parameters from a JSON file, filling the missing ones with defaults."""
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    unknown = sorted(set(data) - set(DEFAULT_VALUES))
    if unknown:
        raise ConfigurationError(f"{path}: unknown parameters {', '.join(unknown)}")
    values = dict(DEFAULT_VALUES)
    values.update(data)
    return values


INT_FIELDS = ("dim", "swarm_size", "total_iterations", "neigh_size")
FLOAT_FIELDS = ("sigma", "min_init", "max_init", "max_velocity", "inertia", "p_weight", "n_weight")


def values_from_text(texts):
    """
    Convert raw form strings to run parameters.
    texts: mapping of parameter name to text; an empty "seed" means wall-clock seeding.
    """
    values = {}
    for name, text in texts.items():
        text = text.strip()
        try:
            if name in INT_FIELDS:
                values[name] = int(text)
            elif name in FLOAT_FIELDS:
                values[name] = float(text)
            elif name == "seed":
                values[name] = int(text) if text else None
            else:
                raise ConfigurationError(f"unknown parameter {name}")
        except ValueError as exc:
            raise ConfigurationError(f"{name}: invalid value {text!r}") from exc
    return values


def pso_iterations(total_iterations, noisy):
    """Noisy runs spend two evaluations per particle and iteration, so they get half the iterations."""
    return total_iterations // 2 if noisy else total_iterations


def wall_clock_seed():
    return int(time.time())


def get_log_folder(root="logs"):
    """Create a new run folder under root; never reuses an existing one."""
    os.makedirs(root, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    folder = os.path.join(root, timestamp)
    suffix = 1
    while True:
        try:
            os.makedirs(folder, exist_ok=False)
            return folder
        except FileExistsError:
            folder = os.path.join(root, f"{timestamp}-{suffix}")
            suffix += 1


def make_fitness(values):
    if values["noisy"]:
        return NoisySphere(sigma=values["sigma"], seed=values["seed"])
    return sphere


def build_optimizer(values, fitness_func, random_source, log_file=None, executor=None):
    return PSO(
        dim=values["dim"],
        swarm_size=values["swarm_size"],
        max_iter=pso_iterations(values["total_iterations"], values["noisy"]),
        min_init=values["min_init"],
        max_init=values["max_init"],
        max_velocity=values["max_velocity"],
        neigh_size=values["neigh_size"],
        inertia=values["inertia"],
        p_weight=values["p_weight"],
        n_weight=values["n_weight"],
        noisy=values["noisy"],
        log_file=log_file,
        random_source=random_source,
        fitness_func=fitness_func,
        executor=executor,
    )


def write_best_csv(path, best_position):
    with open(path, "w") as f:
        f.write(",".join(f"d{i+1}" for i in range(len(best_position))) + "\n")
        f.write(",".join(f"{x}" for x in best_position) + "\n")


def run_with_args(values, cancel_event=None, on_iteration=None):
    """
    Run one optimization and store its artifacts in a new timestamped folder.

    values: run parameters (see DEFAULT_VALUES); missing keys take the defaults.
    Returns a dict with best_position, best_fitness, history and log_folder.
    """
    values = {**DEFAULT_VALUES, **values}
    if values["seed"] is None:
        values["seed"] = wall_clock_seed()
    fitness_func = make_fitness(values)
    log_folder = get_log_folder(values["log_root"])
    logger.info("Writing run artifacts to %s (seed %d)", log_folder, values["seed"])

    with contextlib.ExitStack() as stack:
        executor = None
        if values["workers"] > 1:
            executor = stack.enter_context(ThreadPoolExecutor(max_workers=values["workers"]))
        optimizer = build_optimizer(
            values,
            fitness_func,
            random.Random(values["seed"]),
            log_file=os.path.join(log_folder, "log.txt"),
            executor=executor,
        )
        best_position = optimizer.run(cancel_event=cancel_event, on_iteration=on_iteration)

    best_fitness = fitness_func(best_position)
    write_best_csv(os.path.join(log_folder, "best.csv"), best_position)
    plot_convergence(optimizer.history, os.path.join(log_folder, "plot.html"))
    with open(os.path.join(log_folder, "run_parameters.json"), "w") as f:
        json.dump(values, f, indent=2)

    return {
        "best_position": best_position,
        "best_fitness": best_fitness,
        "history": list(optimizer.history),
        "log_folder": log_folder,
    }
