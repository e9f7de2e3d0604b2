#!/usr/bin/env python3

import click

from condbuild.config import load_config, configure_logging
from condbuild.commands.run import run_handler
from condbuild.commands.decide import decide_handler
from condbuild.commands.tags import tags_handler
from condbuild.commands.prune import prune_handler
from condbuild.commands.config import config_cmd


@click.group()
@click.version_option(package_name='condbuild')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
def cli(verbose):
    """condbuild - Conditional container builder with fallback.

    Builds a package image when its watched paths changed, otherwise
    relabels a previously published image, and prunes old versions.
    """
    configure_logging(load_config(), verbose=verbose)


cli.add_command(run_handler, name='run')
cli.add_command(decide_handler, name='decide')
cli.add_command(tags_handler, name='tags')
cli.add_command(prune_handler, name='prune')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
