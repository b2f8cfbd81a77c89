from __future__ import annotations

from dataclasses import asdict
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from algolens.logging_utils import configure_logging

from .config_loader import list_env_overrides, load_proxy_config

app = typer.Typer(help="algolens - image analysis proxy")
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default from config)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default from config)"),
    log_level: Optional[str] = typer.Option(None, help="Logging level, e.g. DEBUG"),
):
    """Run the proxy under uvicorn."""
    cfg = load_proxy_config()
    level = (log_level or cfg.log_level).upper()
    log_path = configure_logging("algolens_proxy", level=level)
    console.print(f"[dim]Logging to {log_path}[/dim]")

    import uvicorn

    uvicorn.run(
        "algolens.proxy.app:app",
        host=host or cfg.host,
        port=port or cfg.port,
        log_level=level.lower(),
    )


@app.command("show-config")
def show_config():
    """Print the effective configuration with the credential masked."""
    cfg = load_proxy_config()
    values = asdict(cfg)
    values["openai_api_key"] = cfg.masked_api_key()

    table = Table(title="algolens proxy configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)

    overrides = list_env_overrides()
    if overrides:
        console.print("[bold]Environment overrides:[/bold]")
        for key in sorted(overrides):
            console.print(f"  {key}={overrides[key]}")
    else:
        console.print("[dim]No ALGOLENS_* overrides set.[/dim]")


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
