"""
Lease commands for kvstore.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import click

from ..constants import DEFAULT_DIAL_TIMEOUT, DEFAULT_ENDPOINTS, DEFAULT_LEASE_TTL
from ..core.client import EtcdClient
from ..core.lease_operations import LeaseKeeper
from ..exceptions import KVStoreError, LeaseError
from ..logging_config import get_logger, setup_logging
from ..utils import error_json, error_text, output_json, output_text

logger = get_logger(__name__)


@click.command("lease-grant")
@click.option(
    "--ttl",
    type=int,
    default=DEFAULT_LEASE_TTL,
    help=f"Lease TTL in seconds (default: {DEFAULT_LEASE_TTL})",
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
def lease_grant_command(
    ctx: click.Context,
    ttl: int,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Grant a lease that expires unless it is renewed.

    Examples:

    \b
        # Grant a 60 second lease
        etcd-primitives-tool kvstore lease-grant --ttl 60

    \b
    Output Format:
        Returns JSON:
        {"lease_id": 7587862193712345, "ttl": 60}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Granting lease (ttl={ttl}s)")

        client = EtcdClient(endpoints, timeout)
        lease_id = LeaseKeeper(client).grant(ttl)

        if text:
            output_text(f"✅ Lease {lease_id} granted (TTL: {ttl} seconds)")
        else:
            output_json({"lease_id": lease_id, "ttl": ttl})

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


@click.command("lease-revoke")
@click.argument("lease_id", type=int)
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
def lease_revoke_command(
    ctx: click.Context,
    lease_id: int,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Revoke a lease and delete every key bound to it.

    Examples:

    \b
        etcd-primitives-tool kvstore lease-revoke 7587862193712345

    \b
    Output Format:
        Returns JSON:
        {"lease_id": 7587862193712345, "revoked": true}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Revoking lease {lease_id}")

        client = EtcdClient(endpoints, timeout)
        LeaseKeeper(client).revoke(lease_id)

        if text:
            output_text(f"✅ Lease {lease_id} revoked")
        else:
            output_json({"lease_id": lease_id, "revoked": True})

    except LeaseError as e:
        if text:
            click.echo(error_text(str(e), "The lease may have expired already"), err=True)
        else:
            click.echo(error_json(str(e), "Lease not found or already expired", 2), err=True)
        ctx.exit(2)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("lease-ttl")
@click.argument("lease_id", type=int)
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
def lease_ttl_command(
    ctx: click.Context,
    lease_id: int,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Show the remaining TTL of a lease.

    Exit code 1 if the lease no longer exists.

    Examples:

    \b
        etcd-primitives-tool kvstore lease-ttl 7587862193712345

    \b
    Output Format:
        Returns JSON:
        {"lease_id": 7587862193712345, "ttl": 42}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Reading TTL of lease {lease_id}")

        client = EtcdClient(endpoints, timeout)
        remaining = LeaseKeeper(client).time_to_live(lease_id)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)

    if remaining < 0:
        message = f"Lease {lease_id} not found or expired"
        if text:
            click.echo(error_text(message, "Grant a new lease with 'lease-grant'"), err=True)
        else:
            click.echo(error_json(message, "Lease not found", 1), err=True)
        ctx.exit(1)

    if text:
        output_text(f"Lease {lease_id}: {remaining} seconds left")
    else:
        output_json({"lease_id": lease_id, "ttl": remaining})
