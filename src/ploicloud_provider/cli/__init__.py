"""Command line interface for ploicloud-provider."""

from ploicloud_provider.cli.main import cli, main

__all__ = ["cli", "main"]
