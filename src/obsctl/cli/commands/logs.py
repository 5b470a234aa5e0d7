"""Logs commands for the obsctl CLI.

All requests go to the tenant's ``logs`` namespace. Response bodies are
written as-is.
"""

from typing import List, Optional, Tuple
from urllib.parse import quote

import click
import yaml

from ... import fetcher
from ..utils import handle_error

RESOURCE = "logs"

SERIES_ENDPOINT = "/loki/api/v1/series"
LABELS_ENDPOINT = "/loki/api/v1/labels"
LABEL_VALUES_ENDPOINT = "/loki/api/v1/label/{name}/values"
ALERTS_ENDPOINT = "/prometheus/api/v1/alerts"
RULES_ENDPOINT = "/prometheus/api/v1/rules"
RULES_RAW_ENDPOINT = "/loki/api/v1/rules"
QUERY_ENDPOINT = "/loki/api/v1/query"
QUERY_RANGE_ENDPOINT = "/loki/api/v1/query_range"


def _segment(value: str) -> str:
    return quote(value, safe="")


def _time_range(start: Optional[str], end: Optional[str]) -> List[Tuple[str, str]]:
    params = []
    if start:
        params.append(("start", start))
    if end:
        params.append(("end", end))
    return params


def _get(ctx: click.Context, endpoint: str, params: Optional[List[Tuple[str, str]]] = None) -> None:
    body = fetcher.get(endpoint, resource=RESOURCE, params=params or None, store=ctx.obj["store"])
    click.echo(body, nl=False)


def rules_raw_endpoint(namespace: Optional[str] = None, group: Optional[str] = None) -> str:
    """Path of the configured rules, optionally narrowed to a namespace and group.

    A group is ignored unless a namespace is given.
    """
    if not namespace:
        return RULES_RAW_ENDPOINT
    endpoint = f"{RULES_RAW_ENDPOINT}/{_segment(namespace)}"
    if group:
        endpoint += f"/{_segment(group)}"
    return endpoint


@click.group()
def logs() -> None:
    """Logs based operations for Observatorium."""
    pass


@logs.group("get")
def get() -> None:
    """Read series, labels & label values of a tenant."""
    pass


@get.command()
@click.option(
    "--match",
    "-m",
    "matchers",
    multiple=True,
    required=True,
    help="Repeated series selector argument that selects the series to return.",
)
@click.option("--start", "-s", help="Start timestamp.")
@click.option("--end", "-e", help="End timestamp.")
@click.pass_context
def series(ctx: click.Context, matchers: tuple, start: Optional[str], end: Optional[str]) -> None:
    """Get series of a tenant."""
    try:
        params = [("match[]", m) for m in matchers] + _time_range(start, end)
        _get(ctx, SERIES_ENDPOINT, params)
    except Exception as e:
        handle_error(e)


@get.command()
@click.option("--start", "-s", help="Start timestamp.")
@click.option("--end", "-e", help="End timestamp.")
@click.pass_context
def labels(ctx: click.Context, start: Optional[str], end: Optional[str]) -> None:
    """Get labels of a tenant."""
    try:
        _get(ctx, LABELS_ENDPOINT, _time_range(start, end))
    except Exception as e:
        handle_error(e)


@get.command()
@click.option("--name", required=True, help="Name of the label to fetch values for.")
@click.option("--start", "-s", help="Start timestamp.")
@click.option("--end", "-e", help="End timestamp.")
@click.pass_context
def labelvalues(ctx: click.Context, name: str, start: Optional[str], end: Optional[str]) -> None:
    """Get label values of a tenant."""
    try:
        _get(ctx, LABEL_VALUES_ENDPOINT.format(name=_segment(name)), _time_range(start, end))
    except Exception as e:
        handle_error(e)


@get.command()
@click.pass_context
def alerts(ctx: click.Context) -> None:
    """Get alerts of a tenant."""
    try:
        _get(ctx, ALERTS_ENDPOINT)
    except Exception as e:
        handle_error(e)


@get.command()
@click.pass_context
def rules(ctx: click.Context) -> None:
    """Get rules of a tenant."""
    try:
        _get(ctx, RULES_ENDPOINT)
    except Exception as e:
        handle_error(e)


@get.command("rules.raw")
@click.option("--namespace", "-n", help="Rules namespace.")
@click.option("--group", "-g", help="Rules group in a namespace.")
@click.pass_context
def rules_raw(ctx: click.Context, namespace: Optional[str], group: Optional[str]) -> None:
    """Get configured rules of a tenant."""
    try:
        _get(ctx, rules_raw_endpoint(namespace, group))
    except Exception as e:
        handle_error(e)


@logs.command("set")
@click.option("--namespace", "-n", required=True, help="Rules namespace.")
@click.option(
    "--rule.file",
    "rule_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to Rules configuration file, which will be set for a tenant.",
)
@click.pass_context
def set_rules(ctx: click.Context, namespace: str, rule_file: str) -> None:
    """Write Loki Rules configuration for a tenant."""
    try:
        with open(rule_file, "rb") as f:
            body = f.read()

        try:
            yaml.safe_load(body)
        except yaml.YAMLError as e:
            raise click.BadParameter(f"{rule_file} is not valid YAML: {e}", param_hint="--rule.file") from e

        response = fetcher.put(rules_raw_endpoint(namespace), body, resource=RESOURCE, store=ctx.obj["store"])
        click.echo(response, nl=False)
    except Exception as e:
        handle_error(e)


@logs.command()
@click.argument("logql")
@click.option("--range", "is_range", is_flag=True, help="Evaluate as a range query.")
@click.option("--time", "eval_time", help="Evaluation timestamp. Only used without --range.")
@click.option("--start", "-s", help="Start timestamp. Required with --range.")
@click.option("--end", "-e", help="End timestamp. Required with --range.")
@click.option("--step", help="Query resolution step width. Only used with --range.")
@click.option("--interval", help="Return entries at or above this interval. Only used with --range.")
@click.option("--limit", type=int, default=100, show_default=True, help="Maximum number of entries to return.")
@click.option("--direction", type=click.Choice(["forward", "backward"]), help="Sort order of logs.")
@click.pass_context
def query(
    ctx: click.Context,
    logql: str,
    is_range: bool,
    eval_time: Optional[str],
    start: Optional[str],
    end: Optional[str],
    step: Optional[str],
    interval: Optional[str],
    limit: int,
    direction: Optional[str],
) -> None:
    """Query logs for a tenant.

    Pass a single valid LogQL query. Both instant and range queries are
    supported.

    Examples:
      obsctl logs query '{job="app"}'
      obsctl logs query '{job="app"}' --range --start 1700000000 --end 1700003600
    """
    try:
        if not logql:
            raise click.BadParameter("no query provided", param_hint="LOGQL")

        params: List[Tuple[str, str]] = [("query", logql)]
        if limit:
            params.append(("limit", str(limit)))

        if is_range:
            if not start or not end:
                raise click.BadParameter(
                    "start/end timestamp not provided for range query", param_hint="--start/--end"
                )
            params += [("start", start), ("end", end)]
            if step:
                params.append(("step", step))
            if interval:
                params.append(("interval", interval))
            endpoint = QUERY_RANGE_ENDPOINT
        else:
            if eval_time:
                params.append(("time", eval_time))
            endpoint = QUERY_ENDPOINT

        if direction:
            params.append(("direction", direction))

        _get(ctx, endpoint, params)
    except Exception as e:
        handle_error(e)
