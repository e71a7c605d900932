#!/usr/bin/env python3

import click

from typespublisher.commands.generate import generate_handler
from typespublisher.commands.publish_registry import publish_registry_handler


@click.group()
@click.version_option(package_name='types-publisher')
def cli():
    """types-publisher - Generate and publish @types packages.

    Generates per-package bundles from parsed typings data and keeps the
    types-registry listing of the @types scope up to date.
    """
    pass


cli.add_command(generate_handler, name='generate-packages')
cli.add_command(publish_registry_handler, name='publish-registry')


def main():
    cli()

if __name__ == "__main__":
    main()
