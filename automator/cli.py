"""
CLI interface for automator.

Provides commands to initialize the configuration, list task types,
validate descriptors and evaluate them. Descriptors are JSON or YAML files:

    collab:
      title: My Collab
      after:
        - nav: {name: Introduction, app: Rich Text Editor}

`run` evaluates the descriptor against the in-memory collaboratory client,
so it never touches a real Collaboratory.
"""

import asyncio
import json
import time
from pathlib import Path

import click
import yaml
from rich.markup import escape
from rich.tree import Tree

from automator import __version__
from automator.compiler import Compiler
from automator.config import LOG_LEVELS, AutomatorConfig, get_automator_home, load_config
from automator.errors import AutomatorError
from automator.handlers import HandlerRegistry
from automator.loader import load_descriptor
from automator.runner import run as run_descriptor
from automator.task import TaskNode
from automator.tasks import InMemoryCollabClient, register_default_handlers
from automator.utils import (
    console,
    format_duration,
    print_error,
    print_success,
    setup_logging,
    to_jsonable,
)


def _build_registry(ctx) -> HandlerRegistry:
    """Fresh registry with the built-in tasks bound to an in-memory client."""
    config = ctx.obj["config"]
    client = InMemoryCollabClient(autocreate=True)
    ctx.obj["client"] = client
    return register_default_handlers(
        client,
        registry=HandlerRegistry(),
        timeout_s=config.handler_timeout_s,
    )


def _render_tree(node: TaskNode, tree: Tree | None = None) -> Tree:
    params = ", ".join(f"{k}={v!r}" for k, v in node.descriptor.items() if k != "after")
    label = f"[bold]{node.name}[/bold] [dim]{node.state.value}[/dim]"
    if params:
        label += f" {escape(params)}"
    branch = tree.add(label) if tree is not None else Tree(label)
    for subtask in node.subtasks:
        _render_tree(subtask, branch)
    return branch


def _fail(error: AutomatorError) -> None:
    print_error(f"{error.type}: {error.message}")
    click.echo(json.dumps(error.to_dict(), indent=2), err=True)
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__, prog_name="automator")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.pass_context
def main(ctx, log_level):
    """
    automator - Declarative Collaboratory task automation.

    Compile and evaluate workflow descriptors.
    """
    ctx.ensure_object(dict)
    try:
        config = load_config()
    except FileNotFoundError:
        # No config file: run with defaults
        config = AutomatorConfig()
    except AutomatorError as e:
        # init must be able to repair a broken config
        if ctx.invoked_subcommand != "init":
            _fail(e)
        config = AutomatorConfig()
    if log_level:
        config.log_level = log_level.upper()

    ctx.obj["config"] = config
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_path,
    )


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize automator configuration."""
    home = get_automator_home()
    home.mkdir(parents=True, exist_ok=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        print_error(f"Config already exists at {cfg_path}. Use --force to overwrite.")
        raise SystemExit(1)

    default_cfg = {
        "log_level": "INFO",
        "log_format": "structured",
        "log_file": None,
        "handler_timeout_s": None,
        "api_base_url": None,
        "env_file": str(home / ".env"),
    }
    cfg_path.write_text(yaml.safe_dump(default_cfg, sort_keys=False))

    env_path = home / ".env"
    if not env_path.exists():
        env_path.write_text("# COLLAB_TOKEN=...\n")

    click.echo(f"Initialized automator config at {cfg_path}")


@main.command("handlers")
@click.pass_context
def list_handlers(ctx):
    """List the available task types."""
    registry = _build_registry(ctx)
    for name in registry.names():
        click.echo(name)


@main.command()
@click.argument("descriptor_file", type=click.Path(path_type=Path))
@click.pass_context
def validate(ctx, descriptor_file: Path):
    """Compile a descriptor and print its task tree."""
    registry = _build_registry(ctx)
    try:
        descriptor = load_descriptor(descriptor_file)
        root = Compiler(registry).compile_root(descriptor)
    except AutomatorError as e:
        _fail(e)

    console.print(_render_tree(root))
    print_success(f"{sum(1 for _ in root.walk())} tasks")


@main.command()
@click.argument("descriptor_file", type=click.Path(path_type=Path))
@click.option("--context", "context_json", default=None, help="Initial context as a JSON object")
@click.pass_context
def run(ctx, descriptor_file: Path, context_json: str | None):
    """Evaluate a descriptor against the in-memory Collaboratory."""
    registry = _build_registry(ctx)

    context = {}
    if context_json:
        try:
            context = json.loads(context_json)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--context")
        if not isinstance(context, dict):
            raise click.BadParameter("Context must be a JSON object", param_hint="--context")

    async def evaluate():
        return await run_descriptor(descriptor, context, registry=registry)

    started = time.monotonic()
    try:
        descriptor = load_descriptor(descriptor_file)
        result = asyncio.run(evaluate())
    except AutomatorError as e:
        _fail(e)

    click.echo(json.dumps(to_jsonable(result), indent=2))
    print_success(f"Workflow completed in {format_duration(time.monotonic() - started)}")


if __name__ == "__main__":
    main()
