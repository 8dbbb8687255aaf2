from __future__ import annotations

from pathlib import Path

import click

from localci.runner.errors import LocalCIError, RunError

_CI_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.group()
def main() -> None:
    """localci - run a single CI pipeline job in a local container."""


@main.command()
@click.argument("ci_file", type=_CI_FILE)
@click.argument("job_name")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Tool configuration YAML (docker.mirrors, docker.pull_policy, ...).",
)
@click.option(
    "--repo",
    "repo_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Repository to mount into the job (default: the CI file's directory).",
)
@click.option("--log-level", default=None, help="Log level (default: from LOCALCI_LOG_LEVEL or INFO).")
def run(ci_file: Path, job_name: str, config_path: Path | None, repo_path: Path | None, log_level: str | None) -> None:
    """Run JOB_NAME from CI_FILE inside a Docker container."""
    from functools import partial

    import anyio

    from localci.runner.execution.coordinator import execute_job
    from localci.runner.log import setup_logging
    from localci.runner.pipeline import Pipeline
    from localci.runner.runtime.docker_engine import DockerRuntime
    from localci.runner.settings import load_settings

    try:
        settings = load_settings(config_path)
        setup_logging(log_level or settings.log_level)

        pipeline = Pipeline.load(ci_file)
        runtime = DockerRuntime.from_env()
        repo = (repo_path or ci_file.parent).resolve()

        anyio.run(
            partial(
                execute_job,
                pipeline,
                job_name,
                settings=settings,
                runtime=runtime,
                repo_path=repo,
            )
        )
    except LocalCIError as e:
        raise _to_click_exception(e) from e


@main.command()
@click.argument("ci_file", type=_CI_FILE)
@click.argument("job_name")
def show(ci_file: Path, job_name: str) -> None:
    """Print the resolved JOB_NAME and its assembled script without running it."""
    import yaml

    from localci.runner.execution.environment import duplicate_keys
    from localci.runner.execution.resolver import extends_chain, resolve_job
    from localci.runner.execution.script import assemble_script
    from localci.runner.log import setup_logging
    from localci.runner.pipeline import Pipeline

    setup_logging("WARNING")

    try:
        pipeline = Pipeline.load(ci_file)
        chain = extends_chain(pipeline, job_name)
        job = resolve_job(pipeline, job_name)
    except LocalCIError as e:
        raise _to_click_exception(e) from e

    click.echo(f"# extends: {' -> '.join(chain)}")
    click.echo(yaml.safe_dump(job.model_dump(exclude_none=True), sort_keys=False), nl=False)
    for key in duplicate_keys(job.variables):
        click.echo(f"# warning: variable {key} is declared more than once", err=True)

    click.echo("# script:")
    click.echo(assemble_script(job))


@main.command()
@click.argument("ci_file", type=_CI_FILE)
def jobs(ci_file: Path) -> None:
    """List the runnable jobs in CI_FILE (hidden '.jobs' are omitted)."""
    from localci.runner.pipeline import Pipeline

    try:
        pipeline = Pipeline.load(ci_file)
    except LocalCIError as e:
        raise _to_click_exception(e) from e

    for name in pipeline.runnable_jobs():
        click.echo(name)


def _to_click_exception(error: LocalCIError) -> click.ClickException:
    """Report the failing stage; a failed script exits with its own status."""
    exc = click.ClickException(f"[{error.stage}] {error}")
    if isinstance(error, RunError) and error.exit_code:
        exc.exit_code = error.exit_code
    return exc


if __name__ == "__main__":
    main()
