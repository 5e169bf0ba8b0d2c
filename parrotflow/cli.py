"""Command line interface for ParrotFlow."""

import asyncio
import json
import sys
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from parrotflow.config import settings

app = typer.Typer(
    name="parrotflow",
    help="ParrotFlow - automation workflow executor",
    add_completion=False,
)

console = Console()


@app.command("version")
def version():
    """Show version information."""
    version_info = f"""
ParrotFlow v{settings.app_version}
Automation workflow executor

Environment: {settings.environment}
Python: {sys.version}
"""
    console.print(
        Panel(
            version_info.strip(),
            title="Version Information",
            border_style="green",
        )
    )


@app.command("server")
def start_server(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Server host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Server port"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Number of workers"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug mode"),
):
    """Start the ParrotFlow server."""
    from parrotflow.server import main as server_main

    # Override settings if provided
    if host:
        settings.host = host
    if port:
        settings.port = port
    if reload:
        settings.reload = reload
    if workers:
        settings.workers = workers
    if debug:
        settings.debug = debug

    server_main()


@app.command("config")
def show_config():
    """Show current configuration."""
    config_table = Table(title="ParrotFlow Configuration")

    config_table.add_column("Setting", style="cyan")
    config_table.add_column("Value", style="green")

    config_items = [
        ("App Name", settings.app_name),
        ("Version", settings.app_version),
        ("Environment", settings.environment),
        ("Debug", str(settings.debug)),
        ("Host", settings.host),
        ("Port", str(settings.port)),
        ("Database URL", settings.database_url[:50] + "..." if len(settings.database_url) > 50 else settings.database_url),
        ("SMTP", settings.smtp_host or "not configured (log only)"),
        ("Max Delay (ms)", str(settings.automation_max_delay_ms)),
        ("Webhook Timeout (s)", str(settings.webhook_call_timeout)),
        ("Metrics Enabled", str(settings.metrics_enabled)),
    ]

    for setting, value in config_items:
        config_table.add_row(setting, value)

    console.print(config_table)


async def _run_automation(automation_id: str, trigger_data: Any) -> int:
    from parrotflow.automations.service import AutomationService
    from parrotflow.database import db_manager
    from parrotflow.executor import WorkflowExecutor
    from parrotflow.integrations import SmtpEmailSender, SqlTaskCreator
    from parrotflow.nodes import NodeDispatcher

    await db_manager.initialize()
    try:
        async with db_manager.get_session() as session:
            dispatcher = NodeDispatcher(
                email_sender=SmtpEmailSender(settings),
                task_creator=SqlTaskCreator(session),
                webhook_timeout=settings.webhook_call_timeout,
                max_delay_ms=settings.automation_max_delay_ms,
            )
            service = AutomationService(session, WorkflowExecutor(dispatcher))

            automation = await service.get_active_automation(automation_id)
            if automation is None:
                console.print(f"[red]Automation {automation_id} not found or not active[/red]")
                return 1

            execution_id, result = await service.execute(
                automation,
                trigger_data,
                user_id=automation.user_id,
                space_id=automation.space_id,
            )
    finally:
        await db_manager.close()

    table = Table(title=f"Execution {execution_id}")
    table.add_column("Node", style="cyan")
    table.add_column("Success", style="green")
    table.add_column("Output", style="dim")

    for node_result in result.results or []:
        output = node_result.output
        table.add_row(
            node_result.node_id,
            str(output.get("success")),
            json.dumps(output, default=str)[:120],
        )

    console.print(table)
    if not result.success:
        console.print(f"[red]Run failed: {result.error}[/red]")
        return 1
    return 0


@app.command("run")
def run_automation(
    automation_id: str = typer.Argument(..., help="Automation ID"),
    trigger_data: str = typer.Option("{}", "--trigger-data", "-t", help="Trigger data as JSON"),
):
    """Execute a stored automation once."""
    try:
        payload = json.loads(trigger_data)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid trigger data: {e}[/red]")
        raise typer.Exit(code=2)

    exit_code = asyncio.run(_run_automation(automation_id, payload))
    raise typer.Exit(code=exit_code)


def main():
    """Main CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
