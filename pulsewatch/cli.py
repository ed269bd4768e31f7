"""
Command-line interface for pulsewatch.

Usage:
    pulsewatch serve          # Run the API server with the monitoring engine
    pulsewatch run            # Run the engine without the API
    pulsewatch check URL      # Probe one URL once
    pulsewatch list           # Show stored monitors
"""

import asyncio
import json
import signal
import sys

import click

from pulsewatch.config.settings import get_settings
from pulsewatch.observability.logging import setup_logging
from pulsewatch.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """pulsewatch - HTTP uptime monitoring."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()

    # Initialize tracing if enabled
    settings = get_settings()
    if settings.tracing_enabled:
        from pulsewatch.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
            environment=settings.environment,
        )


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(
    host: str | None,
    port: int | None,
    reload: bool,
    metrics: bool,
    metrics_port: int | None,
) -> None:
    """Start the API server and the monitoring engine."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    if metrics and settings.metrics_enabled:
        get_metrics().start_server(port=metrics_port)
        click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "pulsewatch.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command()
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def run(metrics: bool, metrics_port: int | None) -> None:
    """Run the monitoring engine without the API until SIGINT/SIGTERM."""
    from pulsewatch.api.dependencies import build_monitor_service

    settings = get_settings()

    async def _run():
        service = build_monitor_service()

        if metrics and settings.metrics_enabled:
            get_metrics().start_server(port=metrics_port or settings.metrics_port)

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop.set)

        await service.start()
        click.echo(f"Monitoring {len(service.registry)} monitors (Ctrl+C to stop)")

        await stop.wait()
        await service.stop()

    try:
        asyncio.run(_run())
    finally:
        from pulsewatch.observability.tracing import shutdown_tracing

        shutdown_tracing()


@main.command()
@click.argument("url")
@click.option("--interval-ms", default=None, type=int, help="Interval used to derive the timeout")
def check(url: str, interval_ms: int | None) -> None:
    """Probe URL once with retries and print the result."""
    from pulsewatch.monitors.config import MonitorConfig
    from pulsewatch.monitors.errors import MonitorValidationError
    from pulsewatch.monitors.prober import Prober
    from pulsewatch.monitors.registry import normalize_url
    from pulsewatch.monitors.schemas import Monitor

    config = MonitorConfig()
    try:
        target = normalize_url(url)
    except MonitorValidationError as e:
        raise click.BadParameter(str(e), param_hint="URL")

    monitor = Monitor(id="cli", url=target, interval_ms=config.clamp_interval(interval_ms))
    point = asyncio.run(Prober(config).probe(monitor, forced=True))

    status = "UP" if point.up else "DOWN"
    color = "green" if point.up else "red"
    click.echo(click.style(f"{status} {target}", fg=color, bold=True))
    click.echo(f"  status:   {point.status}")
    click.echo(f"  latency:  {point.ms} ms")
    click.echo(f"  attempts: {point.attempt}")
    if point.error:
        click.echo(f"  error:    {point.error}")

    sys.exit(0 if point.up else 1)


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
def list_monitors(as_json: bool) -> None:
    """List monitors from the configured store with uptime and health."""
    from pulsewatch.monitors.config import MonitorConfig
    from pulsewatch.monitors.registry import MonitorRegistry
    from pulsewatch.monitors.views import summarize
    from pulsewatch.storage.base import StoreError
    from pulsewatch.storage.fallback import build_store

    settings = get_settings()
    config = MonitorConfig()

    async def _load():
        store = build_store(settings)
        try:
            return await store.load()
        finally:
            await store.close()

    try:
        records = asyncio.run(_load())
    except StoreError as e:
        click.echo(click.style(f"Failed to load monitors: {e}", fg="red"), err=True)
        sys.exit(1)

    registry = MonitorRegistry(config)
    registry.load(records)
    summaries = [summarize(m, config.critical_failure_threshold) for m in registry.list()]

    if as_json:
        click.echo(json.dumps(summaries, indent=2))
        return

    if not summaries:
        click.echo("No monitors configured.")
        return

    health_colors = {
        "healthy": "green",
        "unhealthy": "yellow",
        "critical": "red",
        "unknown": None,
    }

    click.echo(f"\n{'ID':<10} {'HEALTH':<10} {'UPTIME':>7} {'EVERY':>7}  URL")
    click.echo("-" * 70)
    for s in summaries:
        health = click.style(f"{s['health']:<10}", fg=health_colors[s["health"]])
        state = "" if s["enabled"] else "  (disabled)"
        click.echo(
            f"{s['id']:<10} {health} {s['uptime_pct']:>6}% {s['interval_ms'] / 1000:>6g}s  "
            f"{s['name'] or s['url']}{state}"
        )
    click.echo("-" * 70)
    click.echo(f"{len(summaries)} monitors")


if __name__ == "__main__":
    main()
