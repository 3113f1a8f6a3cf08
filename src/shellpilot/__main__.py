"""CLI entry point for shellpilot."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml

from shellpilot.ai.exceptions import IntentParseError, ProviderInitializationError
from shellpilot.ai.providers import ChatModelIntentSource, get_chat_model
from shellpilot.cli.batch import print_task_table, run_approved_tasks
from shellpilot.cli.confirm import ConsoleConfirmer
from shellpilot.cli.input import HISTORY_FILE_NAME, ChatInput
from shellpilot.config.loader import load_config
from shellpilot.context import AppContext
from shellpilot.exceptions import ShellpilotError

if TYPE_CHECKING:
    from shellpilot.core.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(debug: bool, log_file: str | None) -> None:
    """Configure the root logger for ``--debug`` and ``--log-file``.

    Without either option nothing is configured and log records are dropped.
    """
    if not debug and not log_file:
        return

    handlers: list[logging.Handler] = []
    if debug:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    logging.getLogger("shellpilot").setLevel(logging.DEBUG if debug else logging.INFO)
    logger.debug(f"Logging configured (debug={debug}, log_file={log_file})")


class ChatDefaultGroup(click.Group):
    """Group that treats an unknown first argument as a chat request.

    ``shellpilot list files in /tmp`` is the same as
    ``shellpilot chat list files in /tmp``.
    """

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        if args and args[0] not in self.commands and not args[0].startswith("-"):
            args = ["chat", *args]
        return super().resolve_command(ctx, args)


@click.group(cls=ChatDefaultGroup, invoke_without_command=True)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.shellpilot/config.yaml)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write logs to this file")
@click.version_option(package_name="shellpilot")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    debug: bool,
    log_file: str | None,
) -> None:
    """shellpilot - turn requests into shell commands, with authorization.

    \b
    Examples:
        $ shellpilot "show disk usage of this directory"
        $ shellpilot "delete the build folder &"    # queue for later approval
        $ shellpilot tasks
        $ shellpilot run
    """
    setup_logging(debug, log_file)

    try:
        config = load_config(config_path=config_path)
    except (yaml.YAMLError, ValueError, OSError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    ctx.ensure_object(dict)
    ctx.obj["app"] = AppContext(config=config)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _app_context(ctx: click.Context) -> AppContext:
    app_ctx: AppContext = ctx.obj["app"]
    return app_ctx


@cli.command()
@click.argument("prompt", nargs=-1)
@click.option("--incognito", "-i", is_flag=True, help="Do not record a session or queue tasks")
@click.pass_context
def chat(ctx: click.Context, prompt: tuple[str, ...], incognito: bool) -> None:
    """Turn a request into commands and run them.

    End the request with '&' to queue commands that need authorization
    instead of asking now. Without PROMPT, starts an interactive loop.
    """
    app_ctx = _app_context(ctx)
    try:
        if not incognito:
            app_ctx.start_session()
        intent_source = ChatModelIntentSource(get_chat_model(app_ctx.config.ai))
        orchestrator = app_ctx.orchestrator(intent_source, ConsoleConfirmer(app_ctx.console))

        if prompt:
            orchestrator.process(" ".join(prompt))
        else:
            history = None if incognito else app_ctx.config_dir / HISTORY_FILE_NAME
            _interactive_loop(app_ctx, orchestrator, ChatInput(history_file=history))
    except (ShellpilotError, ProviderInitializationError, IntentParseError) as e:
        raise click.ClickException(str(e)) from e


def _interactive_loop(
    app_ctx: AppContext, orchestrator: Orchestrator, chat_input: ChatInput
) -> None:
    app_ctx.console.print("[dim]Type a request, 'exit' to leave. End with '&' to queue.[/dim]")
    while (text := chat_input.read()) is not None:
        try:
            orchestrator.process(text)
        except IntentParseError as e:
            logger.debug(f"Unparseable reply: {e.raw_response[:200]}")
            app_ctx.console.print(f"[red]Error: {e}[/red]")
        app_ctx.console.print()


@cli.command()
@click.option("--list", "list_only", is_flag=True, help="Print tasks instead of opening the TUI")
@click.option("--all", "show_all", is_flag=True, help="With --list, include finished tasks")
@click.pass_context
def tasks(ctx: click.Context, list_only: bool, show_all: bool) -> None:
    """Review, authorize or reject queued commands."""
    app_ctx = _app_context(ctx)
    try:
        if list_only:
            print_task_table(app_ctx, show_all=show_all)
            return

        from shellpilot.tui.app import TaskQueueApp
        from shellpilot.tui.controller import TaskQueueController

        directory = app_ctx.queue_directory()
        for session_id, error in directory.errors.items():
            click.echo(f"Warning: skipping queue of {session_id}: {error}", err=True)

        controller = TaskQueueController(directory, app_ctx.executor, app_ctx.events)
        TaskQueueApp(controller).run()
    except ShellpilotError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Execute every approved task of every session.

    Individual task failures are reported but do not change the exit code.
    """
    app_ctx = _app_context(ctx)
    try:
        run_approved_tasks(app_ctx)
    except ShellpilotError as e:
        raise click.ClickException(str(e)) from e


def main() -> None:
    """Main entry point for the shellpilot CLI."""
    obj: dict[str, Any] = {}
    cli(obj=obj)


if __name__ == "__main__":
    main()
