"""
Command-line interface for the claims adjudication engine.

Provides commands for adjudicating claims from a JSON dataset and for
validating configuration.
"""

import sys

import click
import structlog

from claims_adjudication.config import load_config, validate_config
from claims_adjudication.utils.logging import configure_logging


logger = structlog.get_logger()


@click.group()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option(
    "--data", "-d",
    type=click.Path(file_okay=False),
    default=None,
    help="Dataset directory (default: data_path from config)",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--json-logs",
    is_flag=True,
    help="Output logs as JSON",
)
@click.pass_context
def main(ctx, config, data, verbose, json_logs):
    """Insurance claims adjudication engine."""
    ctx.ensure_object(dict)

    # Configure logging
    log_level = "DEBUG" if verbose else "WARNING"
    configure_logging(level=log_level, json_output=json_logs)

    # Store config path and data override in context
    ctx.obj["config_path"] = config
    ctx.obj["data_path"] = data


def _config(ctx, **batch_options):
    """Load configuration with command-line values layered over the file."""
    overrides: dict = {}
    if ctx.obj.get("data_path"):
        overrides["data_path"] = ctx.obj["data_path"]
    batch = {k: v for k, v in batch_options.items() if v is not None}
    if batch:
        overrides["batch"] = batch
    return load_config(ctx.obj.get("config_path"), override_values=overrides)


def _load(ctx, **batch_options):
    """Load configuration and the dataset repository."""
    from claims_adjudication.repository import DatasetLoader, Repositories

    config = _config(ctx, **batch_options)
    store = DatasetLoader(config.data_path).load()
    return config, Repositories.from_store(store)


@main.command()
@click.argument("claim_id", type=int)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Do not record the result or update utilization",
)
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print the full result as JSON",
)
@click.pass_context
def adjudicate(ctx, claim_id, dry_run, as_json):
    """Adjudicate a single claim.

    Examples:

    \b
    claims-adjudication --data data adjudicate 1001
    claims-adjudication adjudicate 1001 --json
    """
    from claims_adjudication.engine import Adjudicator
    from claims_adjudication.errors import AdjudicationError
    from claims_adjudication.repository import DatasetError

    try:
        config, repos = _load(ctx)
        result = Adjudicator(repos, config, dry_run=dry_run).adjudicate(claim_id)

        if as_json:
            click.echo(result.model_dump_json(indent=2))
            return

        click.echo(f"Claim {result.claim_id} (member {result.member_id})")
        click.echo(f"  Decision: {result.overall_decision.value}")
        click.echo(f"  Original amount: {result.original_amount}")
        click.echo(f"  Approved amount: {result.approved_amount}")
        click.echo(f"  Member responsibility: {result.member_responsibility}")
        click.echo(f"  Insurer responsibility: {result.insurer_responsibility}")
        click.echo(f"  Explanation: {result.explanation}")

        if result.denial_reasons:
            click.echo("\nDenial reasons:")
            for reason in result.denial_reasons:
                click.echo(f"  - {reason}")

        if result.requires_manual_review:
            click.echo("\nManual review required:")
            for reason in result.review_reasons:
                click.echo(f"  - {reason}")

        if result.applied_rules:
            click.echo("\nRules:")
            for rule in result.applied_rules:
                click.echo(f"  [{rule.result.value}] {rule.rule_name}: {rule.impact}")

    except (AdjudicationError, DatasetError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("adjudication_failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("claim_ids", type=int, nargs=-1, required=True)
@click.option(
    "--parallel/--sequential",
    default=None,
    help="Process claims in parallel (default: from config)",
)
@click.option(
    "--workers", "-w",
    type=int,
    default=None,
    help="Number of worker threads (default: from config)",
)
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print the full batch result as JSON",
)
@click.pass_context
def batch(ctx, claim_ids, parallel, workers, as_json):
    """Process a batch of claims.

    Examples:

    \b
    claims-adjudication batch 1001 1002 1003
    claims-adjudication batch 1001 1002 --parallel --workers 8
    """
    from claims_adjudication.core import BatchCoordinator, ClaimsIntegrationService
    from claims_adjudication.repository import DatasetError

    if workers is not None and workers < 1:
        click.echo("Error: --workers must be at least 1", err=True)
        sys.exit(1)

    try:
        config, repos = _load(ctx, max_workers=workers, parallel=parallel)

        service = ClaimsIntegrationService(repos, config)
        result = BatchCoordinator(service, config).process(list(claim_ids))

        if as_json:
            click.echo(result.model_dump_json(indent=2))
            return

        click.echo("=== Batch Complete ===")
        click.echo(f"Claims: {result.total_claims}")
        click.echo(f"  Processed: {result.processed_claims}")
        click.echo(f"  Approved: {result.approved_claims}")
        click.echo(f"  Partially approved: {result.partially_approved_claims}")
        click.echo(f"  Denied: {result.denied_claims}")
        click.echo(f"  Requires review: {result.requires_review_claims}")
        click.echo(f"Total approved amount: {result.total_approved_amount}")
        click.echo(f"Total denied amount: {result.total_denied_amount}")
        click.echo(f"Total member responsibility: {result.total_member_responsibility}")
        click.echo(f"Elapsed time: {result.processing_time_ms:.1f} ms")

        if result.errors:
            click.echo("\nErrors:")
            for error in result.errors:
                click.echo(f"  - {error}")

    except DatasetError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("batch_failed", error=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command("validate-config")
@click.pass_context
def validate_config_cmd(ctx):
    """Validate the configuration file."""
    from claims_adjudication.config.validation import ConfigurationError

    try:
        config = _config(ctx)
        warnings = validate_config(config)

        click.echo("Configuration is valid.")

        if warnings:
            click.echo("\nWarnings:")
            for warning in warnings:
                click.echo(f"  - {warning}")

    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
