"""
Command line harness: optimize the sphere function and print the best position.
"""

import contextlib
import logging
import random
from concurrent.futures import ThreadPoolExecutor

import click

from errors import PSOError
from runner import (
    DEFAULT_VALUES,
    build_optimizer,
    load_values,
    make_fitness,
    run_with_args,
    wall_clock_seed,
)


def _setup_logging(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _echo_progress(iteration, fitness):
    click.echo(f"Iteration {iteration} fitness: {fitness:.4f}")


def _echo_result(best_position, fitness):
    for x in best_position:
        click.echo(f"{x:.4f}")
    click.echo(f"Fitness: {fitness:.4f}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log every iteration")
def cli(verbose):
    """Particle Swarm Optimization of the sphere function."""
    _setup_logging(verbose)


@cli.command()
@click.option("--dim", type=int, default=DEFAULT_VALUES["dim"], show_default=True)
@click.option("--swarm-size", type=int, default=DEFAULT_VALUES["swarm_size"], show_default=True)
@click.option(
    "--iterations",
    type=int,
    default=DEFAULT_VALUES["total_iterations"],
    show_default=True,
    help="Iteration budget (halved in noisy mode)",
)
@click.option("--min-init", type=float, default=DEFAULT_VALUES["min_init"], show_default=True)
@click.option("--max-init", type=float, default=DEFAULT_VALUES["max_init"], show_default=True)
@click.option("--max-velocity", type=float, default=DEFAULT_VALUES["max_velocity"], show_default=True)
@click.option("--neigh-size", type=int, default=DEFAULT_VALUES["neigh_size"], show_default=True)
@click.option("--inertia", type=float, default=DEFAULT_VALUES["inertia"], show_default=True)
@click.option("--p-weight", type=float, default=DEFAULT_VALUES["p_weight"], show_default=True)
@click.option("--n-weight", type=float, default=DEFAULT_VALUES["n_weight"], show_default=True)
@click.option("--noisy", is_flag=True, help="Add gaussian noise to the fitness")
@click.option("--sigma", type=float, default=DEFAULT_VALUES["sigma"], show_default=True)
@click.option("--seed", type=int, default=None, help="Random seed [default: wall-clock time]")
@click.option("--workers", type=int, default=1, show_default=True, help="Fitness evaluation threads")
@click.option("--log-file", type=click.Path(dir_okay=False), default="log.txt", show_default=True)
@click.option("--progress", is_flag=True, help="Print the global best after every iteration")
def run(
    dim,
    swarm_size,
    iterations,
    min_init,
    max_init,
    max_velocity,
    neigh_size,
    inertia,
    p_weight,
    n_weight,
    noisy,
    sigma,
    seed,
    workers,
    log_file,
    progress,
):
    """Run PSO once and print the best position and its fitness."""
    values = {
        "dim": dim,
        "swarm_size": swarm_size,
        "total_iterations": iterations,
        "min_init": min_init,
        "max_init": max_init,
        "max_velocity": max_velocity,
        "neigh_size": neigh_size,
        "inertia": inertia,
        "p_weight": p_weight,
        "n_weight": n_weight,
        "noisy": noisy,
        "sigma": sigma,
        "seed": seed if seed is not None else wall_clock_seed(),
    }
    fitness_func = make_fitness(values)
    try:
        with contextlib.ExitStack() as stack:
            executor = None
            if workers > 1:
                executor = stack.enter_context(ThreadPoolExecutor(max_workers=workers))
            optimizer = build_optimizer(
                values,
                fitness_func,
                random.Random(values["seed"]),
                log_file=log_file,
                executor=executor,
            )
            result = optimizer.run(on_iteration=_echo_progress if progress else None)
    except PSOError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_result(result, fitness_func(result))


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with run parameters",
)
@click.option("--log-root", type=click.Path(file_okay=False), default=None, help="Folder for run artifacts")
@click.option("--seed", type=int, default=None)
@click.option("--progress", is_flag=True, help="Print the global best after every iteration")
def experiment(config_path, log_root, seed, progress):
    """Run PSO and save the log, parameters, best position and convergence plot."""
    try:
        values = load_values(config_path) if config_path else dict(DEFAULT_VALUES)
        if log_root is not None:
            values["log_root"] = log_root
        if seed is not None:
            values["seed"] = seed
        result = run_with_args(values, on_iteration=_echo_progress if progress else None)
    except PSOError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_result(result["best_position"], result["best_fitness"])
    click.echo(f"Artifacts: {result['log_folder']}")


if __name__ == "__main__":
    cli()
