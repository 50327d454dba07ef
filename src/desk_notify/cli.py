from __future__ import annotations

import asyncio
import sys

import click

from desk_notify import errors
from desk_notify.bus.await_result import AwaitCoordinator
from desk_notify.bus.transport import connect_service
from desk_notify.request.compose import check_sources, compose
from desk_notify.request.document import load_document, read_body
from desk_notify.request.models import MergedRequest, RawInput, Urgency
from desk_notify.utils.log import logger, set_log_level, set_notification_id

EXIT_FAILURE = 1
EXIT_AWAIT_TIMEOUT = 124


def _stdin_is_tty() -> bool:
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


async def _dispatch(request: MergedRequest) -> None:
    service = await connect_service()
    try:
        nid = await service.notify(request)
        set_notification_id(nid)
        if request.print_id:
            click.echo(str(nid))
        if request.await_result:
            await AwaitCoordinator(service).await_outcome(
                nid,
                print_id=request.print_id,
                timeout_ms=request.await_timeout_ms,
            )
    finally:
        await service.close()


def _fail(ex: errors.NotifyError, code: int) -> None:
    click.echo(f"error: {ex}", err=True)
    raise SystemExit(code)


@click.command(
    name="notify",
    help="dispatch dbus notifications",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("summary", required=False)
@click.argument("body", nargs=-1, type=click.UNPROCESSED)
@click.option("--file", "file_path", default=None, metavar="path", help="Read YAML payload from file path, or '-' for stdin.")
@click.option(
    "-u",
    "--urgency",
    type=click.Choice([u.value for u in Urgency], case_sensitive=False),
    default=None,
    help="Urgency level.",
)
@click.option("-i", "--icon", default=None, help="Icon name or icon file path.")
@click.option("-a", "--app-name", default=None, help="Application name shown by notification daemon.")
@click.option("-c", "--category", default=None, help="Notification category hint.")
@click.option("--hint", "hints", multiple=True, metavar="key:value", help="Custom hint (repeatable).")
@click.option("--action", "actions", multiple=True, metavar="id:label", help="Add action button (repeatable).")
@click.option("--progress", type=int, default=None, metavar="0-100", help="Progress value hint.")
@click.option(
    "-t",
    "--timeout",
    "expire_timeout",
    type=int,
    default=None,
    metavar="ms",
    help="Auto-close timeout in milliseconds; with --await also caps the wait.",
)
@click.option("--id", "--replace", "replace_id", type=int, default=None, help="Replace existing notification id.")
@click.option("--print-id", is_flag=True, default=False, help="Print returned notification id to stdout.")
@click.option(
    "--await",
    "await_result",
    is_flag=True,
    default=False,
    help="Wait until notification closes or an action is selected.",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override NOTIFY_LOG_LEVEL for this run.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    summary: str | None,
    body: tuple[str, ...],
    file_path: str | None,
    urgency: str | None,
    icon: str | None,
    app_name: str | None,
    category: str | None,
    hints: tuple[str, ...],
    actions: tuple[str, ...],
    progress: int | None,
    expire_timeout: int | None,
    replace_id: int | None,
    print_id: bool,
    await_result: bool,
    log_level: str | None,
) -> None:
    """
    notify [options] [summary] [body...]

    SUMMARY is the notification title (overrides YAML summary). BODY words are
    joined with spaces; use '-' to read the body from stdin. Put body words
    that start with a dash after '--'.
    """
    if log_level:
        set_log_level(log_level)

    raw = RawInput(
        summary=summary,
        body=list(body),
        file=file_path,
        urgency=Urgency(urgency.lower()) if urgency else None,
        icon=icon,
        app_name=app_name,
        category=category,
        hints=list(hints),
        actions=list(actions),
        progress=progress,
        expire_timeout=expire_timeout,
        replace_id=replace_id,
        print_id=print_id,
        await_result=await_result,
    )

    try:
        check_sources(raw)
        is_tty = _stdin_is_tty()
        if raw.is_empty() and is_tty:
            click.echo(ctx.get_help())
            return

        stdin = click.get_text_stream("stdin")
        piped_body = read_body(stdin) if raw.wants_stdin_body() else None
        document = load_document(raw.file, stdin=stdin, piped=not is_tty and not raw.body and raw.file is None)
        request = compose(raw, document, piped_body)
        asyncio.run(_dispatch(request))
    except errors.AwaitTimeoutError as ex:
        _fail(ex, EXIT_AWAIT_TIMEOUT)
    except errors.NotifyError as ex:
        logger.debug("notify_failed", error_type=type(ex).__name__)
        _fail(ex, EXIT_FAILURE)


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
