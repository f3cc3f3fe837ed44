"""Wirebind CLI - Main Entry Point.

Commands:
    routes       - List the routes registered at bootstrap
    controllers  - List the container's bindings and controller capability
    serve        - Serve an application with uvicorn
    version      - Show version information
"""

import importlib
import json
import sys
from typing import Any, Optional

import click

from .. import __version__
from ..application import Application
from ..config import ConfigLoader
from ..controller.base import CONTROLLER
from ..logging import configure_logging
from .output import _CHECK, _CROSS, error, info, kv, success, table


DEFAULT_APP = "wirebind.samples.users:create_app"


def load_application(target: str, config_paths=(), env_file: Optional[str] = None) -> Application:
    """
    Import ``module:attr`` and return the application it names.

    ``attr`` is either an Application or a callable returning one; a
    callable accepting a ``config`` argument receives the loaded AppConfig.
    """
    if ":" not in target:
        raise click.BadParameter(f"expected 'module:attribute', got {target!r}", param_hint="--app")

    module_path, attr = target.split(":", 1)
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_path!r}: {e}", param_hint="--app") from e

    obj: Any = getattr(module, attr, None)
    if obj is None:
        raise click.BadParameter(f"{module_path!r} has no attribute {attr!r}", param_hint="--app")

    if isinstance(obj, Application):
        return obj

    if callable(obj):
        if config_paths or env_file:
            config = ConfigLoader.load(paths=list(config_paths), env_file=env_file).get_config()
            app = obj(config=config)
        else:
            app = obj()
        if isinstance(app, Application):
            return app

    raise click.BadParameter(f"{target!r} is not an Application or application factory", param_hint="--app")


@click.group()
@click.version_option(version=__version__, prog_name="wb")
@click.option("--log-level", default="warning", show_default=True, help="Logging level")
@click.pass_context
def cli(ctx, log_level: str):
    """Inspect and serve wirebind applications."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    configure_logging(log_level)


_app_option = click.option("--app", "target", default=DEFAULT_APP, show_default=True,
                           help="Application as module:attribute")
_config_option = click.option("--config", "config_paths", multiple=True,
                              help="YAML/JSON config file (repeatable)")
_env_option = click.option("--env-file", default=None, help=".env file with WIREBIND_* keys")


@cli.command("routes")
@_app_option
@_config_option
@_env_option
@click.option("--json", "as_json", is_flag=True, help="Emit JSON")
def routes_cmd(target: str, config_paths, env_file: Optional[str], as_json: bool):
    """List the routes registered at bootstrap."""
    app = _load_or_exit(target, config_paths, env_file)
    routes = app.router.routes()

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in routes], indent=2))
        return

    info(f"  {app.name}")
    table(
        ["Method", "Path", "Name", "Owner"],
        [[r.method, r.path, r.name or "-", r.owner or "-"] for r in routes],
    )
    click.echo()
    kv("Routes", str(len(routes)))
    if app.report is not None:
        kv("Controllers", ", ".join(app.report.registered) or "-")
        for fault in app.report.failures:
            error(f"  {_CROSS} {fault}")


@cli.command("controllers")
@_app_option
@_config_option
@_env_option
def controllers_cmd(target: str, config_paths, env_file: Optional[str]):
    """List bindings in declaration order and mark controllers."""
    app = _load_or_exit(target, config_paths, env_file)
    rows = []
    for binding in app.container.bindings():
        rows.append([
            str(binding.order),
            binding.key,
            binding.scope.value,
            _CHECK if binding.has_capability(CONTROLLER) else "",
        ])
    table(["#", "Token", "Scope", "Controller"], rows)


@cli.command("serve")
@_app_option
@_config_option
@_env_option
@click.option("--host", default=None, help="Bind host (overrides config)")
@click.option("--port", default=None, type=int, help="Bind port (overrides config)")
@click.pass_context
def serve_cmd(ctx, target: str, config_paths, env_file: Optional[str], host: Optional[str], port: Optional[int]):
    """Serve an application with uvicorn."""
    import uvicorn

    from ..asgi import ASGIAdapter

    app = _load_or_exit(target, config_paths, env_file)
    host = host or app.config.host
    port = port or app.config.port

    success(f"  {_CHECK} {app.name}: {len(app.router)} route(s) on http://{host}:{port}")
    uvicorn.run(ASGIAdapter(app), host=host, port=port, log_level=ctx.obj["log_level"])


@cli.command("version")
def version_cmd():
    """Show version information."""
    kv("wirebind", __version__)
    kv("python", sys.version.split()[0])


def _load_or_exit(target: str, config_paths, env_file: Optional[str]) -> Application:
    try:
        return load_application(target, config_paths, env_file)
    except click.BadParameter:
        raise
    except Exception as e:
        error(f"  {_CROSS} Bootstrap failed: {e}")
        sys.exit(1)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
