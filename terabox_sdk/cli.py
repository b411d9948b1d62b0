"""
Command-line interface for TeraBox SDK.

This module provides the ``terabox`` command for quick interaction with a
TeraBox account from the shell.
"""

import sys
import json
from pathlib import Path
from typing import Optional, Dict, Any

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from .auth import Credentials
from .client import TeraBoxClient
from .exceptions import TeraBoxError
from .models import StreamQuality, DEFAULT_STREAM_QUALITY
from .utils import format_file_size


# Initialize Rich console
console = Console()


class CLIContext:
    """CLI context object to share state between commands."""

    def __init__(self):
        self.client: Optional[TeraBoxClient] = None
        self.config: Dict[str, Any] = {}
        self.config_file = Path.home() / ".terabox" / "config.json"

    def load_config(self):
        """Load configuration from file."""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    self.config = json.load(f)
                if not isinstance(self.config, dict):
                    self.config = {}
            except (json.JSONDecodeError, IOError):
                self.config = {}

    def save_config(self):
        """Save configuration to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            json.dump(self.config, f, indent=2)
        self.config_file.chmod(0o600)

    def get_client(self) -> TeraBoxClient:
        """Get authenticated client; config file values win over TERABOX_* env vars."""
        if self.client is None:
            credentials = Credentials.from_env(**self.config)
            self.client = TeraBoxClient(credentials)
        return self.client


# Create CLI context
cli_context = CLIContext()


def _fail(action: str, error: Exception):
    console.print(f"❌ {action} failed: {error}")
    sys.exit(1)


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """TeraBox CLI - manage a TeraBox account from the shell."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    # Load configuration
    cli_context.load_config()

    if debug:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG")
        logger.enable("terabox_sdk")
        console.print("[dim]Debug mode enabled[/dim]")


@cli.command()
@click.option('--ndus', prompt=True, hide_input=True, help='ndus session cookie')
@click.option('--js-token', help='jsToken from the web frontend')
@click.option('--browser-id', help='browserid cookie')
@click.option('--lang', help='Language code')
@click.option('--host', help='API host')
def config(ndus, js_token, browser_id, lang, host):
    """Store TeraBox credentials."""
    values = {
        'ndus': ndus,
        'js_token': js_token,
        'browser_id': browser_id,
        'lang': lang,
        'host': host,
    }
    cli_context.config.update({k: v for k, v in values.items() if v})
    cli_context.save_config()

    console.print("✅ Configuration saved successfully!")

    # Test connection
    try:
        quota = cli_context.get_client().quota()
        console.print(f"✅ Connection test successful! {format_file_size(quota.free)} free")
    except TeraBoxError as e:
        console.print(f"⚠️ Configuration saved but connection test failed: {e}")


@cli.command()
def quota():
    """Show storage usage."""
    try:
        result = cli_context.get_client().quota()
    except TeraBoxError as e:
        _fail("Quota", e)

    table = Table(title="TeraBox Quota")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Used", format_file_size(result.used))
    table.add_row("Total", format_file_size(result.total))
    table.add_row("Free", format_file_size(result.free))
    table.add_row("Usage", f"{result.usage_percentage:.1f}%")

    console.print(table)


@cli.command(name='list')
@click.argument('directory', default='/')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
def list_entries(directory, output_json):
    """List a remote directory."""
    try:
        entries = cli_context.get_client().list(directory)
    except TeraBoxError as e:
        _fail("List", e)

    if output_json:
        click.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    if not entries:
        console.print("No files found.")
        return

    table = Table(title=directory)
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Size", style="yellow")
    table.add_column("Type", style="blue")
    table.add_column("Modified", style="magenta")

    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.name,
            "-" if entry.is_dir() else format_file_size(entry.size),
            "dir" if entry.is_dir() else "file",
            entry.mtime.strftime('%Y-%m-%d %H:%M') if entry.mtime else 'Unknown',
        )

    console.print(table)


@cli.command()
@click.argument('local_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--remote-dir', default='/', help='Remote directory')
def upload(local_file, remote_dir):
    """Upload a local file."""
    local_file = Path(local_file)
    remote_path = f"{remote_dir.rstrip('/')}/{local_file.name}"

    try:
        with console.status(f"Uploading {local_file.name}"):
            entry = cli_context.get_client().upload(remote_path, local_file.read_bytes())
    except TeraBoxError as e:
        _fail("Upload", e)

    console.print(f"✅ Uploaded: {entry.path} (ID: {entry.id})")


@cli.command()
@click.argument('file_ids', nargs=-1, required=True)
def download(file_ids):
    """Print direct download links for FILE_IDS."""
    try:
        links = cli_context.get_client().download(list(file_ids))
    except TeraBoxError as e:
        _fail("Download", e)

    for link in links:
        click.echo(f"{link.id}\t{link.link}")


@cli.command()
@click.argument('source')
@click.argument('target')
def move(source, target):
    """Move or rename SOURCE to TARGET."""
    try:
        cli_context.get_client().move({source: target})
    except TeraBoxError as e:
        _fail("Move", e)

    console.print(f"✅ Moved: {source} -> {target}")


@cli.command()
@click.argument('paths', nargs=-1, required=True)
@click.confirmation_option(prompt='Are you sure you want to delete these files?')
def delete(paths):
    """Delete remote files or directories."""
    try:
        cli_context.get_client().delete(list(paths))
    except TeraBoxError as e:
        _fail("Delete", e)

    for path in paths:
        console.print(f"✅ Deleted: {path}")


@cli.command()
@click.argument('path')
@click.option('--quality', '-q', default=DEFAULT_STREAM_QUALITY.value,
              help=f"Stream quality ({', '.join(q.value for q in StreamQuality)})")
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write the playlist to a file')
def stream(path, quality, output):
    """Fetch the HLS playlist of a video."""
    try:
        playlist = cli_context.get_client().stream(path, quality)
    except TeraBoxError as e:
        _fail("Stream", e)

    if output:
        Path(output).write_text(playlist, encoding='utf-8')
        console.print(f"✅ Playlist written to {output}")
    else:
        click.echo(playlist)


if __name__ == '__main__':
    cli()
