"""CLI entry point for etcd-primitives-tool.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import click

from etcd_primitives_tool.kvstore.commands.info_commands import status_command
from etcd_primitives_tool.kvstore.commands.kv_commands import (
    count_command,
    delete_command,
    get_command,
    list_command,
    set_command,
)
from etcd_primitives_tool.kvstore.commands.lease_commands import (
    lease_grant_command,
    lease_revoke_command,
    lease_ttl_command,
)
from etcd_primitives_tool.kvstore.commands.lock_commands import (
    lock_acquire_command,
    lock_check_command,
    lock_release_command,
)
from etcd_primitives_tool.kvstore.commands.queue_commands import (
    queue_peek_command,
    queue_pop_command,
    queue_push_command,
    queue_size_command,
)
from etcd_primitives_tool.kvstore.commands.watch_commands import watch_command


@click.group()
@click.version_option(version="0.1.0")
def main() -> None:
    """A CLI that provides etcd coordination primitives as composable CLI commands"""
    pass


@main.group("kvstore")
def kvstore() -> None:
    """etcd-backed key-value store with leases, locks, queues and watches"""
    pass


# Register kv commands
kvstore.add_command(set_command)
kvstore.add_command(get_command)
kvstore.add_command(delete_command)
kvstore.add_command(list_command)
kvstore.add_command(count_command)

# Register lease commands
kvstore.add_command(lease_grant_command)
kvstore.add_command(lease_revoke_command)
kvstore.add_command(lease_ttl_command)

# Register lock commands
kvstore.add_command(lock_acquire_command)
kvstore.add_command(lock_release_command)
kvstore.add_command(lock_check_command)

# Register queue commands
kvstore.add_command(queue_push_command)
kvstore.add_command(queue_pop_command)
kvstore.add_command(queue_peek_command)
kvstore.add_command(queue_size_command)

# Register watch commands
kvstore.add_command(watch_command)

# Register status commands
kvstore.add_command(status_command)

if __name__ == "__main__":
    main()
