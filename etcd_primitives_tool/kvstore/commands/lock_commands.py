"""
Lock commands for kvstore.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import time

import click

from ..constants import DEFAULT_DIAL_TIMEOUT, DEFAULT_ENDPOINTS, DEFAULT_LOCK_TTL, PREFIX_LOCK
from ..core.client import EtcdClient
from ..core.lease_operations import LeaseKeeper
from ..core.lock_operations import DistributedMutex, check_lock, generate_default_owner
from ..exceptions import KVStoreError, LeaseError, LeaseNotFoundError, LockUnavailableError
from ..logging_config import get_logger, setup_logging
from ..utils import error_json, error_text, format_key, output_json, output_text

logger = get_logger(__name__)


@click.command("lock-acquire")
@click.argument("lock_name")
@click.option(
    "--ttl",
    type=int,
    default=DEFAULT_LOCK_TTL,
    help=f"Lease TTL in seconds (default: {DEFAULT_LOCK_TTL})",
)
@click.option("--owner", help="Owner ID stored as the lock value (default: hostname-pid)")
@click.option(
    "--hold",
    type=float,
    default=0,
    help="Keep the lock renewed for N seconds, then release it (default: 0)",
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
def lock_acquire_command(
    ctx: click.Context,
    lock_name: str,
    ttl: int,
    owner: str | None,
    hold: float,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Try once to acquire a distributed lock.

    The lock key is written by a single etcd transaction that only succeeds
    when the key does not exist yet, and is bound to a lease. There is no
    waiting: if another owner holds the lock the command exits with code 4.

    Without --hold the lease is left to expire after --ttl seconds once this
    process exits (or release it earlier with lock-release --lease-id).

    Examples:

    \b
        # Acquire lock with a 30 second lease
        etcd-primitives-tool kvstore lock-acquire deploy-prod --ttl 30

    \b
        # Hold the lock for two minutes while a job runs elsewhere
        etcd-primitives-tool kvstore lock-acquire nightly-report --hold 120

    \b
        # Use in shell script
        if LEASE=$(etcd-primitives-tool kvstore lock-acquire deploy | jq -r .lease_id); then
            deploy.sh
            etcd-primitives-tool kvstore lock-release deploy --lease-id "$LEASE"
        fi

    \b
    Output Format:
        Returns JSON:
        {"lock": "/locks/deploy-prod", "owner": "host-123", "lease_id": 7587...,
         "ttl": 30, "acquired_at": 1731696000}
    """
    setup_logging(verbose)
    key = format_key(PREFIX_LOCK, lock_name)

    try:
        if not owner:
            owner = generate_default_owner()

        logger.info(f"Acquiring lock '{key}' as {owner}")
        logger.debug(f"TTL: {ttl}, hold: {hold}, endpoints: {endpoints}")

        client = EtcdClient(endpoints, timeout)
        mutex = DistributedMutex(client, key, ttl)
        lock = mutex.lock(owner)
        result = lock.to_dict()

        if hold > 0:
            try:
                time.sleep(hold)
            finally:
                mutex.unlock()
            result["released"] = True

        if text:
            output_text(f"✅ Lock '{key}' acquired by {owner}")
            output_text(f"Lease: {lock.lease_id} (TTL: {ttl} seconds)")
            if hold > 0:
                output_text(f"Released after holding for {hold} seconds")
        else:
            output_json(result)

    except LockUnavailableError as e:
        if text:
            click.echo(
                error_text(str(e), "Retry later or wait for the holder's lease to expire"),
                err=True,
            )
        else:
            click.echo(error_json(str(e), "Retry later or wait for lease expiry", 4), err=True)
        ctx.exit(4)

    except LeaseError as e:
        if text:
            click.echo(error_text(str(e), "Check the TTL and etcd lease quota"), err=True)
        else:
            click.echo(error_json(str(e), "Check TTL and lease quota", 2), err=True)
        ctx.exit(2)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("lock-release")
@click.argument("lock_name")
@click.option("--lease-id", type=int, required=True, help="Lease ID returned by lock-acquire")
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
def lock_release_command(
    ctx: click.Context,
    lock_name: str,
    lease_id: int,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Release a distributed lock by revoking its lease.

    Revoking the lease deletes the lock key. The operation is idempotent: a
    lease that already expired is reported as released.

    Examples:

    \b
        # Release lock acquired earlier
        etcd-primitives-tool kvstore lock-release deploy-prod --lease-id 7587862193712345

    \b
    Output Format:
        Returns JSON:
        {"lock": "/locks/deploy-prod", "lease_id": 7587862193712345, "released": true}
    """
    setup_logging(verbose)
    key = format_key(PREFIX_LOCK, lock_name)

    try:
        logger.info(f"Releasing lock '{key}' (lease {lease_id})")

        client = EtcdClient(endpoints, timeout)
        current = client.get(key)
        if current is not None and current.lease != lease_id:
            message = f"Lock '{key}' is held under lease {current.lease}, not {lease_id}"
            if text:
                click.echo(error_text(message, "Pass the lease ID printed by lock-acquire"), err=True)
            else:
                click.echo(error_json(message, "Lease does not own this lock", 2), err=True)
            ctx.exit(2)

        status = "released"
        try:
            LeaseKeeper(client).revoke(lease_id)
        except LeaseNotFoundError as e:
            # Expired or already revoked: nothing left to release
            logger.info(f"Lease {lease_id} not revoked: {e}")
            status = "not_held_or_already_released"

        result = {"lock": key, "lease_id": lease_id, "released": True, "status": status}

        if text:
            output_text(f"✅ Lock '{key}' released ({status})")
        else:
            output_json(result)

    except LeaseError as e:
        if text:
            click.echo(error_text(str(e), "Check the lease ID and retry the release"), err=True)
        else:
            click.echo(error_json(str(e), "Lease revoke failed, lock may still be held", 2), err=True)
        ctx.exit(2)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)


@click.command("lock-check")
@click.argument("lock_name")
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
def lock_check_command(
    ctx: click.Context,
    lock_name: str,
    endpoints: str,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Check if a lock is held.

    Exit code 0 if locked, 1 if free.

    Examples:

    \b
        # Check lock status
        etcd-primitives-tool kvstore lock-check deploy-prod

    \b
        # Use in shell script
        if etcd-primitives-tool kvstore lock-check deploy-prod; then
            echo "Lock is held"
        fi

    \b
    Output Format:
        Returns JSON if locked:
        {"lock": "/locks/deploy-prod", "owner": "host-123", "lease_id": 7587..., "ttl": 8,
         "revision": 42}

        Returns JSON if free:
        {"lock": "/locks/deploy-prod", "status": "free"}
    """
    setup_logging(verbose)
    key = format_key(PREFIX_LOCK, lock_name)

    try:
        logger.info(f"Checking lock '{key}'")

        client = EtcdClient(endpoints, timeout)
        result = check_lock(client, key)

    except KVStoreError as e:
        if text:
            click.echo(error_text(str(e), "Check etcd endpoints and credentials"), err=True)
        else:
            click.echo(error_json(str(e), "Check endpoints and credentials", 3), err=True)
        ctx.exit(3)

    if result:
        if text:
            output_text(f"Lock '{key}' is held by {result['owner']}")
            if result.get("ttl") is not None:
                output_text(f"TTL: {result['ttl']} seconds")
        else:
            output_json(result)
        ctx.exit(0)
    else:
        if text:
            output_text(f"Lock '{key}' is free")
        else:
            output_json({"lock": key, "status": "free"})
        ctx.exit(1)
