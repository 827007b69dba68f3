import json

from click.testing import CliRunner

from cli import cli

SMALL_ARGS = ["--dim", "2", "--swarm-size", "10", "--iterations", "5", "--seed", "3"]


def test_run_prints_position_and_fitness(tmp_path):
    log_file = tmp_path / "log.txt"
    result = CliRunner().invoke(cli, ["run", *SMALL_ARGS, "--log-file", str(log_file)])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert len(lines) == 3
    float(lines[0])
    float(lines[1])
    assert lines[2].startswith("Fitness: ")
    assert len(log_file.read_text().splitlines()) == 5


def test_run_is_reproducible_with_seed(tmp_path):
    runner = CliRunner()
    first = runner.invoke(cli, ["run", *SMALL_ARGS, "--log-file", str(tmp_path / "a.txt")])
    second = runner.invoke(cli, ["run", *SMALL_ARGS, "--log-file", str(tmp_path / "b.txt")])
    assert first.output == second.output
    assert (tmp_path / "a.txt").read_bytes() == (tmp_path / "b.txt").read_bytes()


def test_run_progress_lines(tmp_path):
    result = CliRunner().invoke(
        cli, ["run", *SMALL_ARGS, "--progress", "--log-file", str(tmp_path / "log.txt")]
    )
    assert result.exit_code == 0, result.output
    progress = [line for line in result.output.splitlines() if line.startswith("Iteration")]
    assert [line.split()[1] for line in progress] == ["0", "1", "2", "3", "4"]


def test_run_noisy_halves_iterations(tmp_path):
    log_file = tmp_path / "log.txt"
    result = CliRunner().invoke(cli, ["run", *SMALL_ARGS, "--noisy", "--log-file", str(log_file)])
    assert result.exit_code == 0, result.output
    assert len(log_file.read_text().splitlines()) == 2


def test_run_rejects_bad_configuration(tmp_path):
    result = CliRunner().invoke(
        cli, ["run", *SMALL_ARGS, "--neigh-size", "20", "--log-file", str(tmp_path / "log.txt")]
    )
    assert result.exit_code == 1
    assert "neigh_size" in result.output


def test_run_reports_unwritable_log(tmp_path):
    result = CliRunner().invoke(
        cli, ["run", *SMALL_ARGS, "--log-file", str(tmp_path / "missing" / "log.txt")]
    )
    assert result.exit_code == 1
    assert "Cannot open log file" in result.output


def test_experiment_from_config(tmp_path):
    config = tmp_path / "params.json"
    config.write_text(json.dumps({"dim": 3, "swarm_size": 6, "total_iterations": 4}))
    result = CliRunner().invoke(
        cli,
        ["experiment", "--config", str(config), "--log-root", str(tmp_path / "logs"), "--seed", "8"],
    )
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[3].startswith("Fitness: ")
    assert lines[4].startswith("Artifacts: ")


def test_experiment_rejects_unknown_parameter(tmp_path):
    config = tmp_path / "params.json"
    config.write_text(json.dumps({"swarm": 6}))
    result = CliRunner().invoke(cli, ["experiment", "--config", str(config)])
    assert result.exit_code == 1
    assert "swarm" in result.output
