"""
promptrouter CLI: promptrouter serve | route | check
"""
import asyncio
import json
import sys

import click

from promptrouter.config.settings import Settings, load_settings
from promptrouter.core.exceptions import PromptRouterError
from promptrouter.core.structured_logger import configure_logging


def _load(config_path: str | None) -> Settings:
    try:
        settings = load_settings(config_path)
    except (FileNotFoundError, ValueError) as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        raise SystemExit(2) from exc
    configure_logging(settings.logging.level, settings.logging.format)
    return settings


@click.group()
@click.version_option(package_name="promptrouter")
def cli() -> None:
    """promptrouter: route prompts to tenant-registered models."""
    pass


@cli.command()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="YAML config file")
@click.option("--host", default=None, help="Bind address (overrides web.host)")
@click.option("--port", type=int, default=None, help="Bind port (overrides web.port)")
def serve(config_path: str | None, host: str | None, port: int | None) -> None:
    """Serve the HTTP routing endpoint."""
    from promptrouter.interfaces.web.server import WebInterface
    from promptrouter.lifecycle import Runtime

    settings = _load(config_path)
    interface = WebInterface(
        Runtime(settings=settings),
        host=host or settings.web.host,
        port=port or settings.web.port,
    )
    click.echo(f"Serving promptrouter on {interface.host}:{interface.port}")
    asyncio.run(interface.start())


@cli.command()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="YAML config file")
@click.option("--org", "org_id", required=True, help="Organization id")
@click.option("--router", "router_id", required=True, help="Router id")
@click.option("--token", "access_token", envvar="PROMPTROUTER_ACCESS_TOKEN", required=True, help="Access token")
@click.argument("prompt")
def route(config_path: str | None, org_id: str, router_id: str, access_token: str, prompt: str) -> None:
    """Run one routing decision and print the result as JSON."""
    from promptrouter.lifecycle import Runtime

    settings = _load(config_path)

    async def _run() -> dict:
        runtime = Runtime(settings=settings)
        context = await runtime.bootstrap()
        try:
            result = await context.service.route_llm_prompt(org_id, router_id, access_token, prompt)
            return result.to_dict()
        finally:
            await runtime.shutdown()

    try:
        data = asyncio.run(_run())
    except PromptRouterError as exc:
        click.echo(json.dumps({"message": exc.reason, "error_code": int(exc.error_code), "detail": exc.message}), err=True)
        sys.exit(1)
    click.echo(json.dumps(data, indent=2))


@cli.command()
@click.argument("organizations_file", type=click.Path(exists=True, dir_okay=False))
def check(organizations_file: str) -> None:
    """Report routers that reference unregistered models."""
    from promptrouter.persistence import read_organizations_file

    organizations = read_organizations_file(organizations_file)
    problems = 0
    for organization in organizations:
        for router_id, model_ids in organization.dangling_model_references().items():
            problems += 1
            click.echo(f"{organization.id}/{router_id}: unknown model(s) {', '.join(model_ids)}")

    if problems:
        click.echo(f"{problems} router(s) with dangling model references", err=True)
        sys.exit(1)
    click.echo(f"OK: {len(organizations)} organization(s), no dangling model references")


if __name__ == "__main__":
    cli()
