"""
Queue commands for kvstore.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import click

from ..constants import (
    DEFAULT_DIAL_TIMEOUT,
    DEFAULT_ENDPOINTS,
    DEFAULT_QUEUE_PRIORITY,
    MAX_QUEUE_PRIORITY,
    QUEUE_MAX_MESSAGES,
    QUEUE_TOP_PRIORITY,
    QUEUE_WAITING_PRIORITY,
)
from ..core.client import EtcdClient
from ..core.queue_operations import (
    get_queue_size,
    peek_last,
    peek_queue,
    pop_from_queue,
    push_to_queue,
)
from ..exceptions import KVStoreError
from ..logging_config import get_logger, setup_logging
from ..utils import error_json, error_text, output_json, output_text

logger = get_logger(__name__)


@click.command("queue-push")
@click.argument("queue_name")
@click.argument("data")
@click.option(
    "--priority",
    type=int,
    default=None,
    help=f"Priority level (0-{MAX_QUEUE_PRIORITY}, default: {DEFAULT_QUEUE_PRIORITY}, lower = higher priority)",
)
@click.option(
    "--top",
    is_flag=True,
    help=f"Pin the message to the front (priority {QUEUE_TOP_PRIORITY})",
)
@click.option(
    "--waiting",
    is_flag=True,
    help=f"Queue as an ordinary waiting message (priority {QUEUE_WAITING_PRIORITY})",
)
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
def queue_push_command(
    ctx: click.Context,
    queue_name: str,
    data: str,
    priority: int | None,
    top: bool,
    waiting: bool,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Push a message to a queue.

    Messages are ordered by priority (lower = higher priority), then by
    timestamp (FIFO within priority).

    Examples:

    \b
        # Push a message with default priority (5)
        etcd-primitives-tool kvstore queue-push /queues/mail "Hello, world!"

    \b
        # Push a high-priority message
        etcd-primitives-tool kvstore queue-push /queues/jobs "Critical task" --priority 1

    \b
        # Pin a message ahead of everything waiting
        etcd-primitives-tool kvstore queue-push /queues/jobs "Hotfix" --top

    \b
    Output Format:
        Returns JSON:
        {"queue": "/queues/jobs", "receipt": "/queues/jobs/00001/000...-1a2b3c4d",
         "priority": 1, "timestamp": 1731696000000000}
    """
    setup_logging(verbose)

    try:
        if sum([priority is not None, top, waiting]) > 1:
            raise ValueError("Use only one of --priority, --top and --waiting")
        if top:
            priority = QUEUE_TOP_PRIORITY
        elif waiting:
            priority = QUEUE_WAITING_PRIORITY

        logger.info(f"Pushing message to queue '{queue_name}'")
        logger.debug(f"Priority: {priority}")

        client = EtcdClient(endpoints, timeout)
        result = push_to_queue(client, queue_name, data, priority)

        if text:
            output_text(f"✅ Message pushed to queue '{queue_name}'")
            output_text(f"   Priority: {result['priority']}")
            output_text(f"   Receipt: {result['receipt']}")
        else:
            output_json(result)

    except ValueError as e:
        if text:
            click.echo(error_text(str(e), f"Use a priority from 0 to {MAX_QUEUE_PRIORITY}"), err=True)
        else:
            click.echo(error_json(str(e), "Invalid priority", 2), err=True)
        ctx.exit(2)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("queue-pop")
@click.argument("queue_name")
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
def queue_pop_command(
    ctx: click.Context,
    queue_name: str,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Pop the next message from a queue.

    Exactly one consumer receives each message. Exit code 1 if the queue
    is empty.

    Examples:

    \b
        # Pop next message
        etcd-primitives-tool kvstore queue-pop /queues/jobs

    \b
        # Drain a queue in a shell loop
        while MSG=$(etcd-primitives-tool kvstore queue-pop /queues/jobs); do
            echo "$MSG" | jq -r .message
        done

    \b
    Output Format:
        Returns JSON:
        {"queue": "/queues/jobs", "message": "Critical task", "receipt": "...",
         "priority": 1, "timestamp": 1731696000000000}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Popping message from queue '{queue_name}'")

        client = EtcdClient(endpoints, timeout)
        result = pop_from_queue(client, queue_name)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)

    if result is None:
        message = f"Queue '{queue_name}' is empty"
        if text:
            click.echo(error_text(message, "Push messages with 'queue-push'"), err=True)
        else:
            click.echo(error_json(message, "Queue is empty", 1), err=True)
        ctx.exit(1)

    if text:
        output_text(str(result["message"]))
    else:
        output_json(result)


@click.command("queue-peek")
@click.argument("queue_name")
@click.option(
    "--count",
    type=int,
    default=QUEUE_MAX_MESSAGES,
    help=f"Number of messages to show (default: {QUEUE_MAX_MESSAGES})",
)
@click.option("--last", is_flag=True, help="Show only the message that would be dequeued last")
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
def queue_peek_command(
    ctx: click.Context,
    queue_name: str,
    count: int,
    last: bool,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Show the next messages without removing them.

    Examples:

    \b
        etcd-primitives-tool kvstore queue-peek /queues/jobs --count 3

    \b
        # Show the tail of the queue
        etcd-primitives-tool kvstore queue-peek /queues/jobs --last

    \b
    Output Format:
        Returns JSON:
        {"queue": "/queues/jobs", "items": [...], "count": 3}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Peeking at queue '{queue_name}'")

        client = EtcdClient(endpoints, timeout)
        if last:
            tail = peek_last(client, queue_name)
            items = [tail] if tail is not None else []
            result = {"queue": queue_name, "items": items, "count": len(items)}
        else:
            result = peek_queue(client, queue_name, count)

        if text:
            if not result["items"]:
                output_text(f"Queue '{queue_name}' is empty")
            for item in result["items"]:
                output_text(f"[{item['priority']}] {item['message']}")
        else:
            output_json(result)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("queue-size")
@click.argument("queue_name")
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
def queue_size_command(
    ctx: click.Context,
    queue_name: str,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Get the number of messages in a queue.

    Examples:

    \b
        etcd-primitives-tool kvstore queue-size /queues/jobs

    \b
    Output Format:
        Returns JSON:
        {"queue": "/queues/jobs", "size": 3}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Getting size of queue '{queue_name}'")

        client = EtcdClient(endpoints, timeout)
        result = get_queue_size(client, queue_name)

        if text:
            output_text(f"Queue '{queue_name}': {result['size']} message(s)")
        else:
            output_json(result)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)
