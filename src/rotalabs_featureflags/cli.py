"""Command line interface for rotalabs-featureflags."""

import logging
import sys

import click

from rotalabs_featureflags.core.config import read_config_document
from rotalabs_featureflags.core.engine import FeatureFlagEngine
from rotalabs_featureflags.output.writer import render_features_ini, write_evaluated_features_files
from rotalabs_featureflags.validation.validator import ConfigValidator, load_config_from_file, load_schema


def _load_or_exit(config_path):
    config = load_config_from_file(config_path)
    if config is None:
        click.echo(f"Invalid configuration: {config_path}", err=True)
        sys.exit(1)
    return config


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(package_name="rotalabs-featureflags")
def main(verbose):
    """Evaluate feature flags against a predicate."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--schema", "schema_path", type=click.Path(exists=True, dir_okay=False), help="Path to JSON schema file")
def validate(config_path, schema_path):
    """Validate a configuration file."""
    try:
        document = read_config_document(config_path)
    except ValueError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    errors = list(ConfigValidator(load_schema(schema_path)).iter_errors(document))
    if errors:
        for message in errors:
            click.echo(message, err=True)
        sys.exit(1)
    click.echo("valid")


@main.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("predicate")
@click.option("--feature", "feature_name", help="Evaluate a single feature")
def evaluate(config_path, predicate, feature_name):
    """Print the enabled state of features for PREDICATE."""
    engine = FeatureFlagEngine(_load_or_exit(config_path))

    if feature_name:
        evaluated = {feature_name: engine.is_feature_enabled(feature_name, predicate)}
    else:
        evaluated = engine.evaluate_all(predicate)

    click.echo(render_features_ini(evaluated), nl=False)


@main.command()
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("predicate")
@click.option(
    "--output-folder",
    "-o",
    required=True,
    type=click.Path(file_okay=False),
    help="Folder to write features.json, features.ini and features.env.config to",
)
def export(config_path, predicate, output_folder):
    """Evaluate every feature for PREDICATE and write the output files."""
    config = _load_or_exit(config_path)
    evaluated = FeatureFlagEngine(config).evaluate_all(predicate)

    for path in write_evaluated_features_files(config, evaluated, output_folder).values():
        click.echo(str(path))


if __name__ == "__main__":
    main()
