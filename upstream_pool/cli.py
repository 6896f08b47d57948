"""CLI for managing and exercising upstream pools."""
import asyncio
import json
from collections import Counter
from contextlib import contextmanager
from typing import Iterator, Optional

import click

from upstream_pool import dependencies
from upstream_pool.core.config import settings
from upstream_pool.domain.errors import NoUpstreamError
from upstream_pool.domain.interfaces import UpstreamStore
from upstream_pool.domain.models import Hint, Upstream
from upstream_pool.logging_hardening import setup_logging


@contextmanager
def open_store() -> Iterator[UpstreamStore]:
    if settings.STORE_BACKEND.lower() != "postgres":
        yield dependencies.make_store()
        return
    from upstream_pool.adapters.postgres import session as pg_session
    pg_session.init_engine()
    with pg_session.SessionLocal() as db:
        yield dependencies.make_store(db)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level: Optional[str]):
    """Upstream pool CLI."""
    setup_logging(log_level or settings.LOG_LEVEL)


@cli.group()
def upstream():
    """Manage upstream records."""
    pass


@upstream.command("add")
@click.option("--id", "upstream_id", default=None, help="Upstream ID (defaults to a new UUID)")
@click.option("--type", "type_", required=True, help="Group the upstream belongs to")
@click.option("--host", required=True, help="Base URL, e.g. https://api.example.com")
@click.option("--path", default=None, help="Path appended to the host")
@click.option("--headers", default="{}", help="JSON headers (e.g. '{\"x-key\":\"v\"}')")
@click.option("--searchs", default="{}", help="JSON query params")
@click.option("--interval", default=0.001, type=float, show_default=True, help="Minimum seconds between selections")
@click.option("--weight", default=1.0, type=float, show_default=True, help="Relative selection weight")
def add_upstream(upstream_id, type_, host, path, headers, searchs, interval, weight):
    """Register an upstream."""
    try:
        values = {
            "type": type_,
            "host": host,
            "path": path,
            "headers": json.loads(headers),
            "searchs": json.loads(searchs),
            "interval": interval,
            "weight": weight,
        }
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Invalid JSON: {e}")
    if upstream_id:
        values["id"] = upstream_id

    with open_store() as store:
        created = store.create_upstream(Upstream(**values))
    click.echo(f"✓ Upstream '{created.id}' added")
    click.echo(json.dumps(created.public_dict(), indent=2))


@upstream.command("list")
@click.option("--type", "type_", default=None, help="Only upstreams of this type")
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table")
def list_upstreams(type_: Optional[str], fmt: str):
    """List upstreams."""
    with open_store() as store:
        upstreams = store.list_upstreams(type=type_)

    if fmt == "json":
        click.echo(json.dumps([u.public_dict() for u in upstreams], indent=2))
        return

    click.echo(f"\n{'ID':<38} {'Type':<14} {'Weight':>8} {'Interval':>9}  Link")
    click.echo("-" * 100)
    for u in upstreams:
        click.echo(f"{u.id:<38} {u.type:<14} {u.weight:>8g} {u.interval:>9g}  {u.link()}")


@upstream.command("remove")
@click.argument("upstream_id")
def remove_upstream(upstream_id: str):
    """Remove an upstream by ID."""
    with open_store() as store:
        try:
            store.delete_upstream(upstream_id)
        except KeyError:
            click.echo(f"Error: Upstream '{upstream_id}' not found", err=True)
            raise SystemExit(1)
    click.echo(f"✓ Upstream '{upstream_id}' removed")


@cli.command("sample")
@click.argument("type_", metavar="TYPE")
@click.option("--count", default=1, type=int, show_default=True, help="Number of draws")
@click.option("--hint", "hint_type", type=click.Choice(["same", "diff"]), default=None)
@click.option("--upstream", "hint_upstream", default=None, help="Upstream ID the hint refers to")
def sample(type_: str, count: int, hint_type: Optional[str], hint_upstream: Optional[str]):
    """Draw upstreams of TYPE and print how often each was chosen."""
    if (hint_type is None) != (hint_upstream is None):
        raise click.UsageError("--hint and --upstream must be given together")
    hint = Hint(type=hint_type, upstream=hint_upstream) if hint_type else None

    async def run() -> Counter:
        pool = dependencies.get_upstream_pool()
        counts: Counter = Counter()
        for _ in range(count):
            chosen = await pool.sample(type_, hint)
            counts[chosen.id] += 1
        return counts

    try:
        counts = asyncio.run(run())
    except NoUpstreamError as e:
        click.echo(f"Error: {e} for type '{type_}'", err=True)
        raise SystemExit(1)

    for upstream_id, n in counts.most_common():
        click.echo(f"{upstream_id:<38} {n:>6}  {n / count:6.1%}")


def main():
    cli()


if __name__ == "__main__":
    main()
