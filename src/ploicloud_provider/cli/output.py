"""JSON output helpers for CLI commands.

Every command prints one envelope to stdout::

    {"success": true, "data": {...}, "error": null}

``emit_error`` prints the failure envelope and exits with status 1.
"""

import json
import sys
from typing import Any, Mapping, NoReturn, Optional

import click


def _emit(envelope: Mapping[str, Any]) -> None:
    click.echo(json.dumps(envelope, indent=2, default=str))


def emit_success(data: Optional[Mapping[str, Any]] = None) -> None:
    _emit({"success": True, "data": dict(data or {}), "error": None})


def emit_error(
    message: str,
    *,
    code: str = "INTERNAL_ERROR",
    error_type: str = "internal",
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Print an error envelope and exit with status 1."""
    data: dict = {"error_code": code, "error_type": error_type}
    if remediation:
        data["remediation"] = remediation
    if details:
        data["details"] = dict(details)
    _emit({"success": False, "data": data, "error": message})
    sys.exit(1)
