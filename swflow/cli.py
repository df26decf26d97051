"""Command line interface for running swflow workers."""

from __future__ import annotations

import asyncio
import importlib
import json
import logging
import os
import sys
from typing import List, Optional

import typer

from swflow import create
from swflow.config import load_config
from swflow.errors import AlreadyStarted, NotFound, SwflowError
from swflow.instance import Swflow
from swflow.transports import get_transport

app = typer.Typer(help="CLI for swflow workflows")

# Command groups
worker_app = typer.Typer(help="Commands for running workers")
execution_app = typer.Typer(help="Commands for starting and inspecting executions")

app.add_typer(worker_app, name="worker")
app.add_typer(execution_app, name="execution")

_state: dict = {"config_path": None}


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, help="Path to a YAML config file"),
    log_level: str = typer.Option("INFO", help="Root log level"),
) -> None:
    """swflow CLI entry point."""
    _state["config_path"] = config
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(process)d %(levelname)s %(name)s: %(message)s",
    )


def _instance() -> Swflow:
    config_path = _state["config_path"]
    config = load_config(config_path)
    transport = get_transport(config=config) if config_path else get_transport()
    return create(config=config, transport=transport)


def _load_handler(handler: str):
    module_name, _, attribute = handler.partition(":")
    if not module_name or not attribute:
        raise typer.BadParameter("Handler must look like 'module:function'")
    # Handler modules live in the caller's project
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


@worker_app.command("decisions")
def worker_decisions(lifespan: Optional[float] = None) -> None:
    """
    Run a decision worker.

    Polls the configured decision task list and answers each decision task
    with the next decisions for its workflow execution.

    Example:
        swflow --config swflow.yaml worker decisions
    """
    swflow = _instance()
    typer.echo(f"Starting decision worker on: {swflow.decision_worker.task_list}")
    asyncio.run(swflow.decision_worker.run(lifespan=lifespan))


@worker_app.command("activities")
def worker_activities(handler: str, lifespan: Optional[float] = None) -> None:
    """
    Run an activity worker executing HANDLER for every activity task.

    Example:
        swflow worker activities my_app.tasks:handle --lifespan 300
    """
    swflow = _instance()
    swflow.activity_worker.on_activity(_load_handler(handler))
    typer.echo(f"Starting activity worker on: {swflow.activity_worker.task_list}")
    asyncio.run(swflow.activity_worker.run(lifespan=lifespan))


@execution_app.command("start")
def execution_start(
    name: str,
    execution_id: str = typer.Option(..., help="Workflow id suffix"),
    params: Optional[str] = typer.Option(None, help="JSON encoded task parameters"),
    unit: Optional[str] = None,
    interval: Optional[int] = None,
    activity_group: Optional[str] = None,
    tag: List[str] = typer.Option([], help="Additional tag, may be repeated"),
) -> None:
    """
    Start a workflow execution for a task of kind NAME.

    Example:
        swflow execution start report --execution-id daily --interval 86400
    """
    try:
        task_params = json.loads(params) if params else None
    except ValueError as e:
        raise typer.BadParameter(f"--params must be JSON: {e}")
    swflow = _instance()
    try:
        summary = asyncio.run(
            swflow.client.start(
                name,
                execution_id=execution_id,
                params=task_params,
                unit=unit,
                interval=interval,
                activity_group=activity_group,
                tag_list=tag or None,
            )
        )
    except AlreadyStarted as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"{summary.workflow_id}\t{summary.run_id}")


@execution_app.command("show")
def execution_show(workflow_id: str, run_id: str) -> None:
    """
    Show status and outcome of a workflow execution.

    Example:
        swflow execution show "reports;daily" 22Ab1Cx9...
    """
    swflow = _instance()
    try:
        summary = asyncio.run(swflow.client.find(workflow_id, run_id))
    except NotFound:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(summary.to_dict(), indent=2))


@execution_app.command("active")
def execution_active(workflow_id: str) -> None:
    """Exit with 0 if an execution with WORKFLOW_ID is open, 1 otherwise."""
    swflow = _instance()
    active = asyncio.run(swflow.client.is_active(workflow_id))
    typer.echo("active" if active else "inactive")
    if not active:
        raise typer.Exit(code=1)


@app.command("register")
def register(
    description: str = typer.Option("swflow domain", help="Domain description"),
    retention_days: int = 3,
    domain: bool = typer.Option(True, help="Also register the domain"),
) -> None:
    """Register the domain, workflow type and activity type."""
    swflow = _instance()

    async def _register() -> None:
        if domain:
            await swflow.registrar.register_domain(description, retention_days)
        await swflow.registrar.register_workflow_type()
        await swflow.registrar.register_activity_type()

    try:
        asyncio.run(_register())
    except SwflowError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo("Registered")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
