"""
Info commands for kvstore - cluster status.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import click

from ..constants import DEFAULT_DIAL_TIMEOUT, DEFAULT_ENDPOINTS
from ..core.client import EtcdClient
from ..exceptions import KVStoreError, StoreConnectionError
from ..logging_config import get_logger, setup_logging
from ..utils import error_json, error_text, output_json, output_text

logger = get_logger(__name__)


@click.command("status")
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
def status_command(
    ctx: click.Context,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Get etcd cluster status from the connected member.

    Examples:

    \b
        # Get status of the local member
        etcd-primitives-tool kvstore status

    \b
        # Get status of a remote cluster
        etcd-primitives-tool kvstore status --endpoints 10.0.0.1:2379,10.0.0.2:2379 --text

    \b
    Output Format:
        Returns JSON with member status:
        {"backend": "etcd", "version": "3.5.9", "db_size": 20480,
         "leader": "etcd-0", "raft_index": 1042, "raft_term": 3}
    """
    setup_logging(verbose)

    try:
        logger.info("Getting cluster status")
        logger.debug(f"Endpoints: {endpoints}")

        client = EtcdClient(endpoints, timeout)
        result = client.status()

        if text:
            output_text(f"=== Cluster Status ({result['backend']}) ===\n")
            for name, value in result.items():
                if name == "backend":
                    continue
                output_text(f"{name.replace('_', ' ').capitalize()}: {value}")
        else:
            output_json(result)

    except StoreConnectionError as e:
        if text:
            click.echo(error_text(str(e), "Check that etcd is running and reachable"), err=True)
        else:
            click.echo(error_json(str(e), "etcd unreachable", 3), err=True)
        ctx.exit(3)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)
