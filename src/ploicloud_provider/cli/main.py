"""ploicloud-provider command line entry point.

Commands:
    parse-id KIND IMPORT_ID   decode an import identifier
    read KIND IMPORT_ID       read one resource and print its reconciled state
    config show               print the resolved configuration (token masked)
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from ploicloud_provider.cli.output import emit_error, emit_success
from ploicloud_provider.config import load_config
from ploicloud_provider.core.errors import (
    APIError,
    ConfigurationError,
    ImportIdError,
    ProviderError,
    RequestCanceledError,
    ResourceValidationError,
    TransportError,
)
from ploicloud_provider.resources import RESOURCE_TYPES, get_resource_class

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

config_option = click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="TOML config file (default: $PLOI_CONFIG_FILE).",
)

kind_argument = click.argument("kind", type=click.Choice(sorted(RESOURCE_TYPES)))


def _error_details(error: ProviderError) -> Dict[str, Any]:
    if isinstance(error, ConfigurationError):
        return {
            "code": "CONFIGURATION_ERROR",
            "error_type": "configuration",
            "remediation": "Set PLOI_API_TOKEN or provide api_token in the [provider] table",
        }
    if isinstance(error, ImportIdError):
        return {
            "code": "INVALID_IMPORT_ID",
            "error_type": "validation",
            "details": {"import_id": error.import_id, "segment": error.segment},
        }
    if isinstance(error, ResourceValidationError):
        return {"code": "VALIDATION_ERROR", "error_type": "validation", "details": {"field": error.field}}
    if isinstance(error, APIError):
        return {
            "code": "API_ERROR",
            "error_type": "api",
            "remediation": error.suggestion or None,
            "details": {
                "status_code": error.status_code,
                "field_errors": error.field_errors,
                "docs_link": error.docs_link,
            },
        }
    if isinstance(error, TransportError):
        return {"code": "TRANSPORT_ERROR", "error_type": "transport", "details": {"attempts": error.attempts}}
    if isinstance(error, RequestCanceledError):
        return {"code": "CANCELED", "error_type": "canceled"}
    return {}


def _fail(error: ProviderError) -> None:
    logger.debug("Command failed: %s", error, exc_info=error)
    emit_error(str(error), **_error_details(error))


@click.group("ploicloud-provider")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="PLOI_LOG_LEVEL",
    help="Log level for messages written to stderr.",
)
def cli(log_level: str) -> None:
    """Ploi Cloud provider tooling."""
    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT)


@cli.command("parse-id")
@kind_argument
@click.argument("import_id")
def parse_id_cmd(kind: str, import_id: str) -> None:
    """Decode IMPORT_ID for a resource of type KIND."""
    try:
        identity = get_resource_class(kind).import_state(import_id)
    except ImportIdError as e:
        _fail(e)
        return
    emit_success({"kind": kind, "import_id": import_id, "identity": identity})


@cli.command("read")
@kind_argument
@click.argument("import_id")
@config_option
@click.option(
    "--deadline",
    type=float,
    default=None,
    help="Overall time budget in seconds for the read.",
)
@click.option("--show-secrets", is_flag=True, help="Print sensitive values unmasked.")
def read_cmd(
    kind: str,
    import_id: str,
    config_file: Optional[Path],
    deadline: Optional[float],
    show_secrets: bool,
) -> None:
    """Read the resource identified by IMPORT_ID and print its reconciled state."""
    resource_cls = get_resource_class(kind)
    try:
        prior = resource_cls.import_state(import_id)
        config = load_config(config_file)
        config.validate()
        resource = resource_cls(config.build_client())
        read = resource.read(prior)
        if deadline is not None:
            read = asyncio.wait_for(read, timeout=deadline)
        state = asyncio.run(read)
    except asyncio.TimeoutError:
        _fail(RequestCanceledError(f"exceeded deadline of {deadline}s", operation=f"read {kind}"))
        return
    except ProviderError as e:
        _fail(e)
        return

    if state is None:
        emit_success({"kind": kind, "import_id": import_id, "found": False})
        return
    emit_success(
        {
            "kind": kind,
            "import_id": import_id,
            "found": True,
            "state": state.to_dict(redact_sensitive=not show_secrets),
        }
    )


@cli.group("config")
def config_group() -> None:
    """Inspect provider configuration."""


@config_group.command("show")
@config_option
def config_show_cmd(config_file: Optional[Path]) -> None:
    """Print the resolved configuration with the token masked."""
    try:
        config = load_config(config_file)
    except ConfigurationError as e:
        _fail(e)
        return
    emit_success(config.describe())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
