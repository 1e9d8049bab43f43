#!/usr/bin/env python3
"""
Resumable Send CLI

Command-line interface for sending a file to the receiving service.

Usage:
    resumesend send FILE --uuid ID          # Send, server places by identifier
    resumesend send FILE --destination PATH # Send to an explicit server path
    resumesend send FILE --directory PATH   # Send into a server directory
    resumesend checksum FILE                # Show the checksum that would be sent
    resumesend config                       # Show effective configuration
    resumesend config --example             # Show an example config file
"""

import asyncio
import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, DownloadColumn
from rich.panel import Panel
from rich.logging import RichHandler

from .config import EXAMPLE_CONFIG, load_config
from .errors import ChecksumError, TransferFailure
from .file import FileHasher
from .transfer import Destination, Directory, FileSender, Uuid

console = Console()


def setup_logging(verbose: bool = False, level: str = 'INFO'):
    """Configure logging with rich output."""
    if verbose:
        level = 'DEBUG'
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)]
    )


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              help='JSON config file')
@click.pass_context
def cli(ctx, verbose, config_path):
    """Resumable file sender - uploads a file, resuming partial transfers."""
    config = load_config(Path(config_path) if config_path else None)
    setup_logging(verbose, config.log_level)
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--destination', help='Server path to store the file at')
@click.option('--uuid', 'uuid_', help='Server-side identifier for the file')
@click.option('--directory', help='Server directory to store the file in')
@click.option('--host', help='Receiving service host')
@click.option('--port', type=int, help='Receiving service port')
@click.option('--cert', type=click.Path(exists=True), help='Client certificate')
@click.option('--key', type=click.Path(exists=True), help='Client private key')
@click.option('--ca', type=click.Path(exists=True), help='CA bundle for the server')
@click.option('--insecure', is_flag=True, help='Do not verify the server certificate')
@click.option('--timeout', type=float, help='Give up after this many seconds')
@click.pass_context
def send(ctx, file_path, destination, uuid_, directory, host, port,
         cert, key, ca, insecure, timeout):
    """Send a file, resuming any partial copy on the server."""
    config = ctx.obj['config']

    selectors = [
        s for s in (
            Destination(destination) if destination is not None else None,
            Uuid(uuid_) if uuid_ is not None else None,
            Directory(directory) if directory is not None else None,
        ) if s is not None
    ]
    if len(selectors) != 1:
        raise click.UsageError(
            "Exactly one of --destination, --uuid or --directory is required"
        )
    selector = selectors[0]

    if host:
        config.host = host
    if port:
        config.port = port
    if cert:
        config.certfile = Path(cert)
    if key:
        config.keyfile = Path(key)
    if ca:
        config.cafile = Path(ca)
    if insecure:
        config.verify_server = False
    if timeout:
        config.timeout = timeout

    try:
        sender = FileSender.from_config(config)
    except (OSError, ValueError) as e:
        console.print(f"[red]✗ Invalid configuration: {e}[/red]")
        ctx.exit(1)

    async def run():
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"Sending {Path(file_path).name}...", total=None)

            def update_progress(sent, total):
                progress.update(task, completed=sent, total=total)

            transfer = sender.send_file(config.host, config.port, Path(file_path),
                                        selector, update_progress)
            if config.timeout:
                return await asyncio.wait_for(transfer, timeout=config.timeout)
            return await transfer

    try:
        outcome = asyncio.run(run())
    except asyncio.TimeoutError:
        console.print(f"[red]✗ Timed out after {config.timeout}s[/red]")
        ctx.exit(1)

    if isinstance(outcome, TransferFailure):
        reason = f"\nServer reason: [yellow]{outcome.reason}[/yellow]" if outcome.reason else ""
        console.print(Panel.fit(
            f"[bold red]Transfer Failed[/bold red]\n\n"
            f"Kind: [red]{outcome.kind.value}[/red]\n"
            f"Detail: {outcome.message}"
            f"{reason}",
            title="Send File"
        ))
        ctx.exit(1)

    status = "Nothing to send, server copy complete" if outcome.bytes_sent == 0 else "Sent"
    console.print(Panel.fit(
        f"[bold green]{status}[/bold green]\n\n"
        f"File: [cyan]{Path(file_path).name}[/cyan]\n"
        f"Sent: [yellow]{outcome.bytes_sent:,} bytes[/yellow]\n"
        f"Size: [yellow]{outcome.file_size:,} bytes[/yellow]",
        title="Send File"
    ))


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def checksum(ctx, file_path):
    """Show the checksum the receiving service will be sent."""
    config = ctx.obj['config']
    hasher = FileHasher(config.checksum_algorithm, config.chunk_size)
    try:
        digest = asyncio.run(hasher.compute(Path(file_path)))
    except ChecksumError as e:
        console.print(f"[red]✗ {e}[/red]")
        ctx.exit(1)
    console.print(f"{hasher.algorithm}  [green]{digest}[/green]  {file_path}")


@cli.command('config')
@click.option('--example', is_flag=True, help='Print an example config file instead')
@click.pass_context
def show_config(ctx, example):
    """Show effective configuration."""
    if example:
        click.echo(EXAMPLE_CONFIG.strip())
        return
    console.print_json(json.dumps(ctx.obj['config'].to_dict()))


if __name__ == '__main__':
    cli()
