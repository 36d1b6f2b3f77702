"""Command line interface of the quest package."""

from __future__ import annotations

import click
import sys

from json import dumps, loads
from typing import Any, Optional

from quest.client import Client, sock
from quest.errors import RequestError, UsageError
from quest.settings import Settings

__all__ = ("main",)


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, content = value.partition(":")
    if not sep or not name.strip():
        raise click.BadParameter(
            f"expected 'Name: value', got {value!r}", param_hint="'-H'"
        )
    return name.strip(), content.strip()


@click.command()
@click.argument("url")
@click.option(
    "-X",
    "--method",
    metavar="METHOD",
    default=None,
    help="the HTTP method to use; defaults to GET, or POST when a body is given",
)
@click.option(
    "-H",
    "--header",
    "headers",
    metavar="HEADER",
    multiple=True,
    help="an extra header to send, in 'Name: value' format; may be repeated",
)
@click.option(
    "-d",
    "--data",
    metavar="DATA",
    default=None,
    help="the body of the request, sent as UTF-8 text",
)
@click.option(
    "--json-data",
    metavar="JSON",
    default=None,
    help="a JSON object to send as the body of the request",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="parse the response body as JSON and pretty-print it",
)
@click.option(
    "-i",
    "--include",
    is_flag=True,
    default=False,
    help="print the status line and the response headers to the standard error",
)
@click.option(
    "--socket",
    "socket_path",
    metavar="PATH",
    default=None,
    help="send the request to a Unix domain socket; URL is a path in this case",
)
@click.option(
    "--max-redirects",
    type=int,
    default=None,
    help="the maximum number of redirects to follow; negative means no limit",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="timeout of the connection attempt, in seconds",
)
def main(
    url: str,
    method: Optional[str] = None,
    headers: tuple[str, ...] = (),
    data: Optional[str] = None,
    json_data: Optional[str] = None,
    as_json: bool = False,
    include: bool = False,
    socket_path: Optional[str] = None,
    max_redirects: Optional[int] = None,
    timeout: Optional[float] = None,
):
    """Sends an HTTP request to the given URL and writes the body of the
    response to the standard output.

    Responses with 4xx or 5xx status codes and connection failures are
    reported on the standard error and the command exits with status 1.
    """
    from trio import run

    if data is not None and json_data is not None:
        raise click.UsageError("--data and --json-data are mutually exclusive")

    body: Any = data
    if json_data is not None:
        try:
            body = loads(json_data)
        except ValueError as ex:
            raise click.BadParameter(str(ex), param_hint="'--json-data'") from None

    settings = Settings.from_env()
    if max_redirects is not None:
        settings.max_redirects = max_redirects if max_redirects >= 0 else None
    if timeout is not None:
        settings.connect_timeout = timeout

    client = sock(socket_path, settings) if socket_path else Client(settings=settings)
    method = method or ("GET" if body is None else "POST")

    try:
        request = client.request(
            method, url, dict(_parse_header(header) for header in headers)
        )
        response_stream = client.stream(request, body)
    except (UsageError, TypeError) as ex:
        raise click.UsageError(str(ex)) from None

    async def handle_response() -> None:
        async with response_stream:
            await response_stream.wait_connected()
            if include:
                click.echo(f"HTTP {response_stream.status}", err=True)
                assert response_stream.headers is not None
                for name, value in response_stream.headers.raw_items():
                    click.echo(f"{name}: {value}", err=True)
                click.echo("", err=True)

            if as_json:
                value = await client.json(response_stream)
                click.echo(dumps(value, indent=2))
            else:
                stdout = click.get_binary_stream("stdout")
                async for chunk in response_stream:
                    stdout.write(chunk)
                stdout.flush()

    try:
        run(handle_response)
    except RequestError as ex:
        code = f" ({ex.code})" if ex.code is not None else ""
        click.echo(f"Error{code}: {ex.message}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
