"""CLI entry point for the VACU visual regression suite."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from vacu_vrt.executor.test_process import ProcessFailedError
from vacu_vrt.models.config import Credentials, MissingCredentialsError, SuiteConfig
from vacu_vrt.models.run import RunState, RunSummary
from vacu_vrt.orchestrator import Orchestrator, report_approval
from vacu_vrt.percy.client import PercyClient
from vacu_vrt.prompts import InputClosedError, Prompter

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def load_config(path: Optional[str]) -> SuiteConfig:
    if not path:
        return SuiteConfig()
    try:
        return SuiteConfig.load(path)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {path}[/red]")
        sys.exit(1)
    except (ValidationError, json.JSONDecodeError) as e:
        console.print(f"❌ Invalid config file {path}:", markup=False, highlight=False)
        console.print(str(e), markup=False, highlight=False)
        sys.exit(1)


def print_summary(summary: RunSummary) -> None:
    if not summary.executions:
        return
    table = Table(title="Run Summary")
    table.add_column("Environment", style="bold")
    table.add_column("Host")
    table.add_column("Duration")
    table.add_column("Percy Build")
    for execution in summary.executions:
        table.add_row(
            execution.environment.name,
            execution.environment.host,
            f"{execution.duration_seconds}s",
            execution.build_id or "[yellow]not found[/yellow]",
        )
    console.print(table)


def _run_interactive(config_path: Optional[str], flow) -> None:
    """Shared error boundary for the interactive commands."""
    cfg = load_config(config_path)
    credentials = Credentials.from_env()

    with Prompter(console=console) as prompter:
        orchestrator = Orchestrator(cfg, credentials, prompter, console=console,
                                    config_path=config_path)
        try:
            summary = flow(orchestrator)
        except MissingCredentialsError as e:
            console.print(f"❌ {e}", markup=False, highlight=False)
            sys.exit(1)
        except InputClosedError:
            console.print("\n❌ Input closed before a selection was made.", markup=False)
            sys.exit(1)
        except ProcessFailedError as e:
            console.print(f"\n❌ Error during visual regression run: {e}",
                          markup=False, highlight=False)
            sys.exit(1)
        except OSError as e:
            console.print(f"\n❌ Could not start the test process: {e}",
                          markup=False, highlight=False)
            sys.exit(1)

    if summary.state == RunState.DONE:
        print_summary(summary)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """VACU visual regression suite (Percy + BrowserStack)"""
    setup_logging(verbose)
    load_dotenv()


@cli.command()
@click.option("--smoke", is_flag=True, help="Skip the mode menu and run the smoke matrix")
@click.option("--config", "-c", default=None, help="Suite config JSON (defaults built in)")
def compare(smoke: bool, config: Optional[str]) -> None:
    """Compare two environments: baseline run, auto-approve, comparison run."""
    _run_interactive(config, lambda o: o.run_comparison(smoke=smoke))


@cli.command()
@click.option("--config", "-c", default=None, help="Suite config JSON (defaults built in)")
def visual(config: Optional[str]) -> None:
    """Run the visual regression suite against one environment."""
    _run_interactive(config, lambda o: o.run_single())


@cli.command()
@click.option("--config", "-c", default=None, help="Suite config JSON (defaults built in)")
def smoke(config: Optional[str]) -> None:
    """Run a single-browser smoke test against one environment."""
    _run_interactive(config, lambda o: o.run_single(mode=o.config.smoke_mode))


@cli.command()
@click.argument("build_id")
@click.option("--config", "-c", default=None, help="Suite config JSON (defaults built in)")
def accept(build_id: str, config: Optional[str]) -> None:
    """Approve a Percy build so it becomes the baseline."""
    cfg = load_config(config)
    credentials = Credentials.from_env()
    if not credentials.percy_api_token:
        console.print("❌ PERCY_API_TOKEN not found in environment variables", markup=False)
        console.print("   Please add PERCY_API_TOKEN to your .env file", markup=False)
        sys.exit(1)
    if not build_id.isdigit():
        console.print(f"[yellow]Build ID '{build_id}' is not numeric; sending as-is[/yellow]")

    console.print(f"🔍 Accepting baseline snapshots for build: {build_id}",
                  markup=False, highlight=False)
    client = PercyClient(
        credentials.percy_api_token,
        api_url=cfg.percy_api_url,
        timeout=cfg.percy_timeout_seconds,
    )
    result = asyncio.run(client.approve_build(build_id))
    report_approval(console, result)
    if not result.success:
        sys.exit(1)


@cli.command("init")
@click.option("--output", "-o", default="vrt-config.json", help="Where to write the config")
def init_config(output: str) -> None:
    """Write the built-in suite configuration to a JSON file for editing."""
    path = Path(output)
    if path.exists():
        if not click.confirm(f"{output} already exists. Overwrite?"):
            return
    SuiteConfig().save(path)
    console.print(f"[green]Created {path}[/green]")
    console.print("\nEdit environments, pages or breakpoints, then run:")
    console.print(f"  [blue]vacu-vrt compare --config {output}[/blue]")


if __name__ == "__main__":
    cli()
