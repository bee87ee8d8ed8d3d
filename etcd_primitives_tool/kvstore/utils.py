"""
Utility functions for kvstore operations.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import json
from typing import Any

from .constants import DEFAULT_PORT, MAX_KEY_LENGTH


def format_key(prefix: str, key: str) -> str:
    """
    Join a namespace prefix and a key into an etcd path.

    Args:
        prefix: Namespace prefix (e.g., '/locks/', '/jobs')
        key: User-provided key

    Returns:
        Formatted key (e.g., '/locks/deploy')
    """
    if key.startswith(prefix):
        return key
    return f"{prefix.rstrip('/')}/{key.lstrip('/')}"


def parse_endpoints(endpoints: str | list[str]) -> list[tuple[str, int]]:
    """
    Parse etcd endpoints into (host, port) pairs.

    Accepts a comma-separated string or a list such as
    ['10.0.0.1:2379', 'http://10.0.0.2:2379'].

    Raises:
        ValueError: If no endpoint is given or a port is not numeric
    """
    if isinstance(endpoints, str):
        endpoints = endpoints.split(",")

    parsed = []
    for raw in endpoints:
        endpoint = raw.strip()
        if not endpoint:
            continue
        if "://" in endpoint:
            endpoint = endpoint.split("://", 1)[1]
        host, _, port = endpoint.rstrip("/").partition(":")
        if not port:
            parsed.append((host, DEFAULT_PORT))
            continue
        if not port.isdigit():
            raise ValueError(f"Invalid port in endpoint '{raw}'")
        parsed.append((host, int(port)))

    if not parsed:
        raise ValueError("Endpoints cannot be empty")
    return parsed


def output_json(data: dict[str, Any], quiet: bool = False) -> None:
    """
    Output JSON to stdout.

    Args:
        data: Data to output as JSON
        quiet: If True, suppress output
    """
    if not quiet:
        print(json.dumps(data), flush=True)


def output_text(message: str, quiet: bool = False) -> None:
    """
    Output text to stdout.

    Args:
        message: Message to output
        quiet: If True, suppress output
    """
    if not quiet:
        print(message, flush=True)


def error_json(error: str, solution: str, exit_code: int) -> str:
    """
    Format error as a JSON line.

    Args:
        error: Error message
        solution: Solution suggestion
        exit_code: Exit code

    Returns:
        JSON-encoded error object
    """
    return json.dumps({"error": error, "solution": solution, "exit_code": exit_code})


def error_text(error: str, solution: str) -> str:
    """
    Format error as human-readable text.

    Args:
        error: Error message
        solution: Solution suggestion

    Returns:
        Formatted error message
    """
    return f"❌ Error: {error}\n\n💡 Solution: {solution}"


def validate_key(key: str) -> bool:
    """
    Validate key name.

    Args:
        key: Key to validate

    Returns:
        True if valid

    Raises:
        ValueError: If key is invalid
    """
    if not key:
        raise ValueError("Key cannot be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise ValueError(f"Key cannot exceed {MAX_KEY_LENGTH} characters")
    return True


def validate_ttl(ttl: int) -> bool:
    """
    Validate a lease TTL.

    Raises:
        ValueError: If ttl is not a positive number of seconds
    """
    if ttl < 1:
        raise ValueError("TTL must be at least 1 second")
    return True
