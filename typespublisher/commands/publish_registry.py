"""
publish-registry command for types-publisher.

Publishes types-registry when the set of @types packages changed, promotes
an upload that never got tagged, or re-validates the current release.
"""

import click

from ..cli_utils import standard_command
from ..config import Options, load_config
from ..domain.registry import NEXT_TAG
from ..infra.npm_client import NpmClient
from ..infra.registry_fetcher import RegistryFetcher
from ..services.publish_service import RegistryPublisher


@click.command('publish-registry')
@click.option('--dry', is_flag=True, help='Go through npm publish with --dry-run and never tag')
@standard_command
def publish_registry_handler(dry: bool):
    """
    Publish the types-registry package.

    \b
    Examples:
        # See what would happen
        types-publisher publish-registry --dry
        # Publish for real (needs npm credentials)
        types-publisher publish-registry
    """
    options = Options.from_config(load_config())
    publisher = RegistryPublisher(
        options,
        fetcher=RegistryFetcher.from_options(options),
        client=NpmClient(default_tag=NEXT_TAG, registry_url=options.registry_url),
    )
    outcome = publisher.run(dry_run=dry)
    return outcome.to_dict()
