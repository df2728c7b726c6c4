"""Command-line interface for services described by an api_description.json."""

import asyncio
import json
import logging

import click

from . import LoadedApi, load_api
from .errors import AutoJsonClientError
from .namespace import walk
from .records import from_wire


def _load(base_url: str, path: str | None) -> LoadedApi:
    try:
        return asyncio.run(load_api(base_url, path))
    except AutoJsonClientError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log requests and responses")
def cli(verbose: bool) -> None:
    """Generated JSON-RPC client."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@click.argument("base_url")
@click.option("--path", default=None, help="JSON-RPC endpoint, defaults to BASE_URL")
def describe(base_url: str, path: str | None) -> None:
    """List the types and methods of a service."""
    api, types, servicename = _load(base_url, path)
    click.echo(servicename)
    for record in types.values():
        click.echo(f"  type {record.__doc__}")
    for _, stub in walk(api):
        click.echo(f"  {stub.signature()}")


@cli.command()
@click.argument("base_url")
@click.argument("method")
@click.argument("args", nargs=-1)
@click.option("--path", default=None, help="JSON-RPC endpoint, defaults to BASE_URL")
def call(base_url: str, method: str, args: tuple[str, ...], path: str | None) -> None:
    """Call METHOD with ARGS, each given as JSON."""
    api, types, _ = _load(base_url, path)
    stub = dict(walk(api)).get(method)
    if stub is None:
        raise click.ClickException(f"Unknown method: {method}")
    try:
        values = [json.loads(arg) for arg in args]
    except ValueError as e:
        raise click.ClickException(f"Arguments must be JSON: {e}") from e

    try:
        # JSON objects given for record parameters become records
        for i, param in enumerate(stub.params[: len(values)]):
            values[i] = from_wire(param.type, values[i], types)
        result = asyncio.run(stub(*values))
    except (AutoJsonClientError, TypeError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(result, indent=2))


@cli.command()
@click.argument("base_url")
@click.option("--path", default=None, help="JSON-RPC endpoint, defaults to BASE_URL")
@click.option("--port", default=5000, help="Port of the explorer")
def serve(base_url: str, path: str | None, port: int) -> None:
    """Serve forms for trying out the methods from a browser."""
    import flask

    from .flask import explorer_blueprint

    app = flask.Flask(__name__)
    app.register_blueprint(explorer_blueprint(_load(base_url, path)))
    app.run(port=port)


if __name__ == "__main__":
    cli()
