"""
Watch commands for kvstore.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import click

from ..constants import (
    DEFAULT_DIAL_TIMEOUT,
    DEFAULT_DISPATCH_LOCK_KEY,
    DEFAULT_ENDPOINTS,
    DEFAULT_LOCK_TTL,
)
from ..core.client import EtcdClient
from ..core.lock_operations import DistributedMutex
from ..core.watch_operations import WatchDispatcher
from ..exceptions import KVStoreError, WatchStreamClosedError
from ..logging_config import get_logger, setup_logging
from ..models import WatchEvent
from ..utils import error_json, error_text, output_json, output_text

logger = get_logger(__name__)


@click.command("watch")
@click.argument("prefix")
@click.option(
    "--lock-key",
    default=DEFAULT_DISPATCH_LOCK_KEY,
    help=f"Coordination lock shared by all watchers (default: {DEFAULT_DISPATCH_LOCK_KEY})",
)
@click.option(
    "--ttl",
    type=int,
    default=DEFAULT_LOCK_TTL,
    help=f"Coordination lock lease TTL in seconds (default: {DEFAULT_LOCK_TTL})",
)
@click.option("--max-events", type=int, help="Stop after handling N events")
@click.option(
    "--endpoints",
    envvar="ETCD_ENDPOINTS",
    default=DEFAULT_ENDPOINTS,
    help="Comma-separated etcd endpoints",
)
@click.option(
    "--timeout",
    envvar="ETCD_TIMEOUT",
    type=int,
    default=DEFAULT_DIAL_TIMEOUT,
    help="Request timeout in seconds",
)
@click.option("--text", is_flag=True, help="Output as human-readable text")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v INFO, -vv DEBUG, -vvv TRACE)",
)
@click.pass_context
def watch_command(
    ctx: click.Context,
    prefix: str,
    lock_key: str,
    ttl: int,
    max_events: int | None,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Watch a prefix and print the events this process handled.

    Run the same command on several machines: every watcher sees every
    event, but only the one that wins the coordination lock prints it.
    Stop with Ctrl+C or --max-events. Exit code 5 if the watch stream
    closes unexpectedly.

    Examples:

    \b
        # Handle job events across a fleet
        etcd-primitives-tool kvstore watch /jobs/

    \b
        # Use a dedicated lock and stop after 10 events
        etcd-primitives-tool kvstore watch /jobs/ --lock-key /locks/jobs --max-events 10

    \b
    Output Format:
        One JSON object per handled event:
        {"type": "put", "key": "/jobs/1", "value": "pending", "revision": 42}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Watching prefix '{prefix}' with lock '{lock_key}'")
        logger.debug(f"TTL: {ttl}, max_events: {max_events}")

        client = EtcdClient(endpoints, timeout)
        dispatcher = WatchDispatcher(client, DistributedMutex(client, lock_key, ttl))

        def emit(event: WatchEvent) -> None:
            if text:
                output_text(f"{event.kind.value.upper()} {event.key} = {event.value}")
            else:
                output_json(event.to_dict())
            # handled is bumped after this returns
            if max_events is not None and dispatcher.handled + 1 >= max_events:
                dispatcher.stop()

        try:
            handled = dispatcher.dispatch(prefix, on_put=emit, on_delete=emit)
        except KeyboardInterrupt:
            dispatcher.stop()
            handled = dispatcher.handled

        logger.info(f"Handled {handled} event(s), skipped {dispatcher.skipped}")

    except WatchStreamClosedError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd availability and restart the watch"), err=True)
        else:
            click.echo(error_json(str(e), "Watch stream closed", 5), err=True)
        ctx.exit(5)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)
