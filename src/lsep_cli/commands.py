"""LSEP CLI commands."""

import asyncio
import logging

import click

from lsep import (
    AsyncTcpListener,
    AsyncTcpSocket,
    ConnectionClosedError,
    FramingError,
    HeaderOptions,
    HeaderVersion,
    LsepError,
    NeedMoreBytes,
    create_frame,
    parse_frame_header,
)
from lsep.framing import MAX_LENGTH

from .cli import cli, output, pass_session

logger = logging.getLogger("lsep.cli")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def describe_payload(data: bytes, limit: int = 64) -> str:
    """Short printable rendering of a payload."""
    text = data[:limit].decode("utf-8", errors="replace")
    return text + "..." if len(data) > limit else text


def _run(session, coro):
    try:
        return session.run(coro)
    except (LsepError, ConnectionError, TimeoutError) as e:
        raise click.ClickException(str(e))


# ---------------------------------------------------------------------------
# Codec inspection
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("length", type=click.IntRange(0, MAX_LENGTH))
def frame(length):
    """Show the header bytes for a payload of LENGTH bytes."""
    f = create_frame(HeaderVersion.V1, HeaderOptions.RAW, length)
    output(
        {
            "length": f.length,
            "width": f.header.width,
            "header": f.to_bytes().hex(),
        }
    )


@cli.command()
@click.argument("data")
def parse(data):
    """Parse hex-encoded DATA as a frame header.

    Examples:
        parse 014268       # 17000 byte payload
        parse 01           # incomplete: reports the missing bytes
    """
    try:
        raw = bytes.fromhex(data)
    except ValueError:
        raise click.BadParameter(f"not a hex string: {data!r}", param_hint="DATA")

    try:
        f, rest = parse_frame_header(raw)
    except NeedMoreBytes as e:
        output({"need_more_bytes": e.needed})
        return
    except FramingError as e:
        raise click.ClickException(str(e))

    output(
        {
            "version": f.header.version,
            "options": f.header.options,
            "width": f.header.width,
            "length": f.length,
            "header_size": f.header_size,
            "payload_prefix": len(rest),
        }
    )


# ---------------------------------------------------------------------------
# Networking
# ---------------------------------------------------------------------------


async def _handle_peer(sock, greetings, echo):
    async with sock:
        for greeting in greetings:
            await sock.write(greeting.encode())
        while True:
            try:
                message = await sock.read()
            except ConnectionClosedError:
                logger.info(f"Peer {sock.address} disconnected")
                return
            output({"peer": sock.address, "bytes": len(message), "data": describe_payload(message)})
            if echo:
                await sock.write(message)


async def _serve(session, address, greetings, echo, once):
    listener = AsyncTcpListener(address, **session.socket_options())
    await listener.listen()
    host, port = listener.address
    click.echo(f"Listening on {host}:{port}", err=True)

    tasks = set()
    try:
        while True:
            sock = await listener.accept()
            if once:
                await _handle_peer(sock, greetings, echo)
                return
            task = asyncio.create_task(_handle_peer(sock, greetings, echo))
            tasks.add(task)
            task.add_done_callback(tasks.discard)
            task.add_done_callback(_log_session_error)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await listener.close()


def _log_session_error(task):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Session ended with error: {exc}")


@cli.command()
@click.argument("address", envvar="LSEP_ADDRESS")
@click.option("--greeting", "-g", multiple=True, help="Message sent to every new peer")
@click.option("--echo", is_flag=True, help="Send every received message back")
@click.option("--once", is_flag=True, help="Exit after the first peer disconnects")
@pass_session
def serve(session, address, greeting, echo, once):
    """Accept peers on ADDRESS (host:port or :port) and print their messages."""
    _run(session, _serve(session, address, greeting, echo, once))


async def _send(session, address, messages, replies):
    async with AsyncTcpSocket(address, **session.socket_options()) as sock:
        for message in messages:
            await sock.write(message.encode())
        for _ in range(replies):
            reply = await sock.read()
            output({"bytes": len(reply), "data": describe_payload(reply)})


@cli.command()
@click.argument("address", envvar="LSEP_ADDRESS")
@click.argument("messages", nargs=-1)
@click.option("--replies", "-r", type=click.IntRange(min=0), default=0, help="Replies to wait for")
@pass_session
def send(session, address, messages, replies):
    """Dial ADDRESS, send each of MESSAGES as one frame, then read replies."""
    _run(session, _send(session, address, messages, replies))
