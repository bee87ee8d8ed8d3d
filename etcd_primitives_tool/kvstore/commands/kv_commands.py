"""
Key-value commands for kvstore.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import click

from ..constants import DEFAULT_DIAL_TIMEOUT, DEFAULT_ENDPOINTS
from ..core.client import EtcdClient
from ..core.kv_operations import count_values, delete_value, get_value, list_values, set_value
from ..exceptions import KeyExistsError, KeyNotFoundError, KVStoreError, LeaseError
from ..logging_config import get_logger, setup_logging
from ..utils import error_json, error_text, output_json, output_text

logger = get_logger(__name__)


@click.command("set")
@click.argument("key")
@click.argument("value")
@click.option("--ttl", type=int, help="Bind the key to a lease that expires after N seconds")
@click.option("--if-not-exists", is_flag=True, help="Only set if key doesn't exist")
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
def set_command(
    ctx: click.Context,
    key: str,
    value: str,
    ttl: int | None,
    if_not_exists: bool,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Store a key-value pair.

    Examples:

    \b
        # Set a value
        etcd-primitives-tool kvstore set /config/mode maintenance

    \b
        # Set a value that disappears after 60 seconds
        etcd-primitives-tool kvstore set /jobs/1 pending --ttl 60

    \b
        # Create only
        etcd-primitives-tool kvstore set /jobs/1 pending --if-not-exists

    \b
    Output Format:
        Returns JSON:
        {"key": "/jobs/1", "value": "pending", "lease_id": null, "ttl": null}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Setting key '{key}'")
        logger.debug(f"TTL: {ttl}, if_not_exists: {if_not_exists}")

        client = EtcdClient(endpoints, timeout)
        result = set_value(client, key, value, ttl, if_not_exists)

        if text:
            output_text(f"✅ Set '{key}' = '{value}'")
        else:
            output_json(result)

    except ValueError as e:
        if text:
            click.echo(error_text(str(e), "Check key and TTL"), err=True)
        else:
            click.echo(error_json(str(e), "Check key and TTL", 2), err=True)
        ctx.exit(2)

    except KeyExistsError as e:
        if text:
            click.echo(error_text(str(e), "Drop --if-not-exists to overwrite"), err=True)
        else:
            click.echo(error_json(str(e), "Key exists", 1), err=True)
        ctx.exit(1)

    except LeaseError as e:
        if text:
            click.echo(error_text(str(e), "Use a TTL of at least 1 second"), err=True)
        else:
            click.echo(error_json(str(e), "Check TTL and lease quota", 2), err=True)
        ctx.exit(2)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("get")
@click.argument("key")
@click.option("--default", help="Value to return if key doesn't exist")
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
def get_command(
    ctx: click.Context,
    key: str,
    default: str | None,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Get a value by key.

    Exit code 1 if the key doesn't exist and no --default is given.

    Examples:

    \b
        # Get a value
        etcd-primitives-tool kvstore get /config/mode

    \b
        # Get with fallback
        etcd-primitives-tool kvstore get /config/mode --default normal

    \b
    Output Format:
        Returns JSON:
        {"key": "/config/mode", "value": "maintenance", "create_revision": 12,
         "mod_revision": 15, "version": 2, "lease_id": null}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Getting key '{key}'")

        client = EtcdClient(endpoints, timeout)
        result = get_value(client, key, default)

        if text:
            output_text(str(result["value"]))
        else:
            output_json(result)

    except KeyNotFoundError as e:
        if text:
            click.echo(error_text(str(e), "Check key name with 'list' command"), err=True)
        else:
            click.echo(error_json(str(e), "Key not found", 1), err=True)
        ctx.exit(1)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("delete")
@click.argument("key")
@click.option("--prefix", is_flag=True, help="Delete every key starting with KEY")
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
def delete_command(
    ctx: click.Context,
    key: str,
    prefix: bool,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Delete a key (idempotent).

    Examples:

    \b
        # Delete one key
        etcd-primitives-tool kvstore delete /jobs/1

    \b
        # Delete a whole namespace
        etcd-primitives-tool kvstore delete /jobs/ --prefix

    \b
    Output Format:
        Returns JSON:
        {"key": "/jobs/", "prefix": true, "deleted": 3}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Deleting {'prefix' if prefix else 'key'} '{key}'")

        client = EtcdClient(endpoints, timeout)
        result = delete_value(client, key, prefix)

        if text:
            output_text(f"✅ Deleted {result['deleted']} key(s) at '{key}'")
        else:
            output_json(result)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("list")
@click.argument("prefix")
@click.option("--limit", type=int, help="Maximum number of keys to return")
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
def list_command(
    ctx: click.Context,
    prefix: str,
    limit: int | None,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """List keys under a prefix in key order.

    Examples:

    \b
        # List all jobs
        etcd-primitives-tool kvstore list /jobs/

    \b
    Output Format:
        Returns JSON:
        {"prefix": "/jobs/", "items": [{"key": "/jobs/1", "value": "x", ...}], "count": 1}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Listing prefix '{prefix}'")

        client = EtcdClient(endpoints, timeout)
        items = list_values(client, prefix, limit)

        if text:
            for item in items:
                output_text(f"{item['key']} = {item['value']}")
        else:
            output_json({"prefix": prefix, "items": items, "count": len(items)})

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("count")
@click.argument("prefix")
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
def count_command(
    ctx: click.Context,
    prefix: str,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Count keys under a prefix without reading values.

    Examples:

    \b
        etcd-primitives-tool kvstore count /jobs/

    \b
    Output Format:
        Returns JSON:
        {"prefix": "/jobs/", "count": 3}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Counting prefix '{prefix}'")

        client = EtcdClient(endpoints, timeout)
        count = count_values(client, prefix)

        if text:
            output_text(str(count))
        else:
            output_json({"prefix": prefix, "count": count})

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)
