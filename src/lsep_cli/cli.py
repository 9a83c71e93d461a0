"""LSEP CLI — click interface for the LSEP library."""

import asyncio
import json as _json
import logging
import sys

import click

from lsep import LsepError, configure_logging


class Session:
    """Socket settings shared by every command of one invocation."""

    def __init__(self, read_buffer_kib=None, timeout=None):
        self.read_buffer_size = read_buffer_kib * 1024 if read_buffer_kib else None
        self.read_timeout = timeout

    def socket_options(self):
        return {
            "read_buffer_size": self.read_buffer_size,
            "read_timeout": self.read_timeout,
        }

    def run(self, coro):
        """Run an async coroutine synchronously."""
        return asyncio.run(coro)


def output(data, label=None):
    """Print result in human-readable or JSON format."""
    use_json = click.get_current_context().find_root().params.get("use_json", False)
    if use_json:
        click.echo(_json.dumps(data, default=str))
    elif isinstance(data, dict):
        for k, v in data.items():
            click.echo(f"{k}: {v}")
    elif label:
        click.echo(f"{label}: {data}")
    else:
        click.echo(data)


pass_session = click.make_pass_decorator(Session)


@click.group()
@click.option(
    "--buffer-kib",
    envvar="LSEP_READ_BUFFER_KIB",
    type=click.IntRange(min=1),
    default=None,
    help="Internal read buffer size in KiB (default: 1024)",
)
@click.option(
    "--timeout", type=float, default=None, help="Fail reads that stall longer than this (seconds)"
)
@click.option("--json", "use_json", is_flag=True, help="Output as JSON")
@click.option("--debug", is_flag=True, envvar="LSEP_DEBUG", help="Log frame-level traffic")
@click.version_option(package_name="lsep")
@click.pass_context
def cli(ctx, buffer_kib, timeout, use_json, debug):
    """Send and receive LSEP-framed messages over TCP."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s"
        )
        logging.getLogger("lsep").setLevel(logging.DEBUG)
    else:
        configure_logging()
    ctx.obj = Session(read_buffer_kib=buffer_kib, timeout=timeout)


def main():
    """Entry point."""
    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        pass
    except LsepError as e:
        click.echo(f"Protocol error: {e}", err=True)
        sys.exit(1)
    except ConnectionError as e:
        click.echo(f"Connection error: {e}", err=True)
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)


# Import commands to register them on the cli group
from . import commands  # noqa: E402, F401
