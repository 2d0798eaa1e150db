"""Command-line interface for Mezame (mezame)."""

import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
import yaml

from mezame import __version__
from mezame.core.batch import BatchWaker, WakeMultipleResponse
from mezame.core.device import Device
from mezame.core.registry import DeviceRegistry, RegistryError
from mezame.core.wol import WakeResult

DEFAULT_CONFIG = Path.home() / ".config" / "mezame" / "config.yaml"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_registry(config: str) -> tuple[dict, DeviceRegistry]:
    from mezame.config.loader import ConfigError, load_config, settings_from_config
    from mezame.config.store import YamlDeviceStore

    path = Path(config)
    try:
        raw = (load_config(path) if path.exists() else None) or {}
        registry = DeviceRegistry(YamlDeviceStore(path))
    except (ConfigError, yaml.YAMLError) as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)
    return settings_from_config(raw), registry


def _waker(ctx: click.Context) -> BatchWaker:
    settings, registry = _load_registry(ctx.obj["config"])
    return BatchWaker(
        registry,
        broadcast=settings["broadcast"],
        port=settings["port"],
        max_workers=settings["max_workers"],
    )


def _fail(exc: Exception) -> NoReturn:
    click.echo(f"✗  {exc}", err=True)
    sys.exit(1)


def _echo_result(result: WakeResult) -> None:
    mark = "✓" if result.success else "✗"
    click.echo(f"{mark}  {result.message}", err=not result.success)


def _echo_batch(response: WakeMultipleResponse) -> None:
    for r in response.results:
        _echo_result(r)
    for name in response.not_found:
        click.echo(f"?  Device '{name}' not found", err=True)
    click.echo(
        f"{response.total} device(s): {response.successful} sent, {response.failed} failed"
    )
    if response.failed or response.not_found:
        sys.exit(2)


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="mezame")
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG),
    envvar="MEZAME_CONFIG",
    show_default=True,
    help="Path to mezame config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str, verbose: bool) -> None:
    """Mezame — Wake-on-LAN device registry."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── init command ──────────────────────────────────────────────────────────────


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write a config file with default settings and no devices."""
    from mezame.config.loader import DEFAULT_SETTINGS
    from mezame.config.writer import build_config_dict, write_config

    path = Path(ctx.obj["config"])
    if path.exists() and not force:
        click.echo(f"Config already exists: {path} (use --force to overwrite)", err=True)
        sys.exit(1)
    write_config(path, build_config_dict([], settings=dict(DEFAULT_SETTINGS)))
    click.echo(f"Wrote {path}")


# ── devices group ─────────────────────────────────────────────────────────────


@main.group()
def devices() -> None:
    """Manage registered devices."""


@devices.command("list")
@click.pass_context
def devices_list(ctx: click.Context) -> None:
    """List all registered devices."""
    _, registry = _load_registry(ctx.obj["config"])
    items = registry.list()
    if not items:
        click.echo("No devices registered.")
        return
    click.echo(f"{'NAME':<24} {'MAC':<19} {'IP':<17} {'BROADCAST'}")
    click.echo("─" * 78)
    for d in items:
        click.echo(f"{d.name:<24} {d.mac:<19} {d.ip or '-':<17} {d.broadcast or '-'}")


@devices.command("add")
@click.argument("name")
@click.argument("mac")
@click.option("--ip", help="Informational IP address")
@click.option("--broadcast", help="Broadcast address to send the magic packet to")
@click.pass_context
def devices_add(
    ctx: click.Context, name: str, mac: str, ip: Optional[str], broadcast: Optional[str]
) -> None:
    """Register a new device."""
    _, registry = _load_registry(ctx.obj["config"])
    try:
        device = registry.add(Device(name=name, mac=mac, ip=ip, broadcast=broadcast))
    except (RegistryError, ValueError) as exc:
        _fail(exc)
    click.echo(f"Added '{device.name}' ({device.mac})")


@devices.command("update")
@click.argument("name")
@click.option("--name", "new_name", help="Rename the device")
@click.option("--mac", help="New MAC address")
@click.option("--ip", help="New IP address ('' to clear)")
@click.option("--broadcast", help="New broadcast address ('' to clear)")
@click.pass_context
def devices_update(
    ctx: click.Context,
    name: str,
    new_name: Optional[str],
    mac: Optional[str],
    ip: Optional[str],
    broadcast: Optional[str],
) -> None:
    """Change fields of a registered device."""
    changes = {
        key: value
        for key, value in (("name", new_name), ("mac", mac), ("ip", ip), ("broadcast", broadcast))
        if value is not None
    }
    _, registry = _load_registry(ctx.obj["config"])
    try:
        device = registry.update(name, **changes)
    except (RegistryError, ValueError) as exc:
        _fail(exc)
    click.echo(f"Updated '{device.name}'")


@devices.command("remove")
@click.argument("name")
@click.pass_context
def devices_remove(ctx: click.Context, name: str) -> None:
    """Delete a registered device."""
    _, registry = _load_registry(ctx.obj["config"])
    try:
        registry.remove(name)
    except RegistryError as exc:
        _fail(exc)
    click.echo(f"Removed '{name}'")


# ── wake commands ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("name", required=False)
@click.option("--mac", help="Wake a raw MAC address instead of a registered device")
@click.option("--broadcast", help="Broadcast address (with --mac)")
@click.option("--port", type=int, help="UDP port (with --mac)")
@click.pass_context
def wake(
    ctx: click.Context,
    name: Optional[str],
    mac: Optional[str],
    broadcast: Optional[str],
    port: Optional[int],
) -> None:
    """Send a Wake-on-LAN packet to a registered device or a raw MAC."""
    if bool(name) == bool(mac):
        click.echo("Give either a device NAME or --mac.", err=True)
        sys.exit(1)

    waker = _waker(ctx)
    if name:
        try:
            result = waker.wake_one(name)
        except RegistryError as exc:
            _fail(exc)
    else:
        from mezame.core.wol import wake as do_wake

        result = do_wake(
            str(mac),
            broadcast=broadcast or waker.broadcast,
            port=port if port is not None else waker.port,
        )
    _echo_result(result)
    if not result.success:
        sys.exit(2)


@main.command("wake-all")
@click.pass_context
def wake_all(ctx: click.Context) -> None:
    """Wake every registered device."""
    _echo_batch(_waker(ctx).wake_all())


@main.command("wake-multiple")
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def wake_multiple(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Wake the named devices."""
    _echo_batch(_waker(ctx).wake_multiple(names))


# ── serve command ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Bind host")
@click.option("--port", default=3001, show_default=True, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Start the Mezame API server."""
    import uvicorn

    from mezame.api.routes import create_app

    app = create_app(config_path=ctx.obj["config"])
    click.echo(f"Starting Mezame API at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
