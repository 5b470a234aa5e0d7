"""Metrics commands for the obsctl CLI."""

from typing import List, Optional, Tuple

import click
import yaml

from ... import fetcher
from ..utils import handle_error, parse_params

RULES_ENDPOINT = "/api/v1/rules/raw"
QUERY_ENDPOINT = "/api/v1/query"
QUERY_RANGE_ENDPOINT = "/api/v1/query_range"


@click.group()
def metrics() -> None:
    """Metrics based operations for Observatorium."""
    pass


@metrics.command()
@click.argument("endpoint")
@click.option(
    "--param",
    "params",
    multiple=True,
    metavar="KEY=VALUE",
    help="Query parameter to send; can be repeated.",
)
@click.pass_context
def get(ctx: click.Context, endpoint: str, params: tuple) -> None:
    """Read series, labels & rules of a tenant.

    ENDPOINT is a path below the tenant's metrics prefix. The response body
    is written as-is.

    Examples:
      obsctl metrics get /api/v1/labels
      obsctl metrics get /api/v1/series --param 'match[]=up'
    """
    try:
        query = parse_params(params)
        body = fetcher.get(endpoint, params=query or None, store=ctx.obj["store"])
        click.echo(body, nl=False)
    except Exception as e:
        handle_error(e)


@metrics.command("set")
@click.option(
    "--rule.file",
    "rule_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to Rules configuration file, which will be set for a tenant.",
)
@click.pass_context
def set_rules(ctx: click.Context, rule_file: str) -> None:
    """Write Prometheus Rules configuration for a tenant.

    The file must be valid YAML; it is uploaded unchanged.
    """
    try:
        with open(rule_file, "rb") as f:
            body = f.read()

        try:
            yaml.safe_load(body)
        except yaml.YAMLError as e:
            raise click.BadParameter(f"{rule_file} is not valid YAML: {e}", param_hint="--rule.file") from e

        response = fetcher.put(RULES_ENDPOINT, body, store=ctx.obj["store"])
        click.echo(response, nl=False)
    except Exception as e:
        handle_error(e)


@metrics.command()
@click.argument("promql")
@click.option("--range", "is_range", is_flag=True, help="Evaluate as a range query.")
@click.option("--time", "eval_time", help="Evaluation timestamp. Only used without --range.")
@click.option("--start", "-s", help="Start timestamp. Required with --range.")
@click.option("--end", "-e", help="End timestamp. Required with --range.")
@click.option("--step", help="Query resolution step width. Required with --range.")
@click.pass_context
def query(
    ctx: click.Context,
    promql: str,
    is_range: bool,
    eval_time: Optional[str],
    start: Optional[str],
    end: Optional[str],
    step: Optional[str],
) -> None:
    """Query metrics for a tenant.

    Pass a single valid PromQL query. The response body is written as-is.

    Examples:
      obsctl metrics query 'prometheus_http_requests_total'
      obsctl metrics query 'up' --range --start 2024-01-01T00:00:00Z --end 2024-01-01T01:00:00Z --step 60s
    """
    try:
        if not promql:
            raise click.BadParameter("no query provided", param_hint="PROMQL")

        params: List[Tuple[str, str]] = [("query", promql)]
        if is_range:
            if not start or not end or not step:
                raise click.BadParameter(
                    "start/end timestamp and step must be provided for range query",
                    param_hint="--start/--end/--step",
                )
            params += [("start", start), ("end", end), ("step", step)]
            endpoint = QUERY_RANGE_ENDPOINT
        else:
            if eval_time:
                params.append(("time", eval_time))
            endpoint = QUERY_ENDPOINT

        body = fetcher.get(endpoint, params=params, store=ctx.obj["store"])
        click.echo(body, nl=False)
    except Exception as e:
        handle_error(e)
