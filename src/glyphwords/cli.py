"""Command line interface for glyphwords."""

import logging
import sys
from pathlib import Path

import click
import yaml

from . import __version__
from .clustering import ConfigurationError
from .config import load_config
from .glyphs import load_letters
from .output import format_output, write_csv
from .word_extractor import extract_words


@click.group()
@click.version_option(version=__version__)
def main():
    """glyphwords - nearest-neighbour word extraction from positioned glyphs."""
    pass


@main.command()
@click.argument("glyphs_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o", "--output",
    type=click.Path(path_type=Path),
    help="Output file path (default: stdout for CSV, required for JSON)"
)
@click.option(
    "--format", "-f",
    type=click.Choice(["csv", "json"]),
    default="csv",
    help="Output format (default: csv)"
)
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML config file with a word_extraction section"
)
@click.option(
    "--no-group-by-orientation",
    is_flag=True,
    help="Cluster all letters together with the general distance measure"
)
@click.option(
    "--parallelism",
    type=int,
    default=None,
    help="Maximum concurrent searches, -1 for no bound (default: from config)"
)
@click.option(
    "--exclude-filtered",
    is_flag=True,
    help="Never link to letters rejected by the pivot filter"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def words(
    glyphs_path: Path,
    output: Path | None,
    format: str,
    config_path: Path | None,
    no_group_by_orientation: bool,
    parallelism: int | None,
    exclude_filtered: bool,
    verbose: bool,
):
    """
    Group glyphs into words.

    GLYPHS_PATH is a JSON file holding a list of positioned glyphs.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if format == "json" and not output:
        click.echo("Error: --output is required for JSON format", err=True)
        sys.exit(1)

    try:
        config = load_config(config_path)
        if no_group_by_orientation:
            config.group_by_orientation = False
        if parallelism is not None:
            config.max_degree_of_parallelism = parallelism
        if exclude_filtered:
            config.exclude_filtered_from_candidates = True

        letters = load_letters(glyphs_path)
        result = extract_words(letters, config.to_options())

        if output:
            format_output(result, output, format=format)
            click.echo(f"Extracted {len(result)} words from {len(letters)} glyphs to {output}", err=True)
        else:
            write_csv(result, sys.stdout)

    except (ConfigurationError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
