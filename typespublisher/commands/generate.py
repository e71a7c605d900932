"""
generate-packages command for types-publisher.

Writes the publishable bundle of each typings package to the output
directory.
"""

import logging
from typing import Tuple

import click

from ..cli_utils import standard_command
from ..config import Options, load_config
from ..exit_codes import DATA_ERROR, CommandError
from ..logs import RunLog
from ..render import render_generation_summary
from ..services.package_generator import PackageGeneratorService
from ..typings import Versions, read_not_needed_packages, read_typings

logger = logging.getLogger(__name__)

LOG_FILE = "generate-packages.md"


@click.command('generate-packages')
@click.argument('names', nargs=-1)
@click.option('--all', 'generate_all', is_flag=True, help='Generate every package (the default without NAMES)')
@standard_command
def generate_handler(names: Tuple[str, ...], generate_all: bool):
    """
    Generate package bundles from the typings data.

    \b
    Examples:
        # Generate every package
        types-publisher generate-packages --all
        # Generate only jquery and node
        types-publisher generate-packages jquery node
    """
    options = Options.from_config(load_config())
    typings = read_typings(options.data_dir)
    not_needed = read_not_needed_packages(options.data_dir)
    versions = Versions.load(options.data_dir)
    available_types = {typing.typings_package_name: typing for typing in typings}

    if names and not generate_all:
        wanted = set(names)
        unknown = wanted - set(available_types) - {pkg.name for pkg in not_needed}
        if unknown:
            raise click.BadParameter(f"Unknown package(s): {', '.join(sorted(unknown))}", param_hint='NAMES')
        typings = [typing for typing in typings if typing.typings_package_name in wanted]
        not_needed = [pkg for pkg in not_needed if pkg.name in wanted]

    log = RunLog(logger)
    service = PackageGeneratorService(options)
    generator = service.generate(typings, not_needed, versions, available_types)
    for message in generator:
        log(message)

    summary = service.last_result
    for detail in summary.details:
        log.extend(detail.log)
    log.write(options.logs_dir, LOG_FILE)

    render_generation_summary(summary)
    if not summary.success:
        raise CommandError(f"{summary.failed} package(s) failed to generate", DATA_ERROR)
    return summary.to_dict()
