"""Server entry point."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
import uvicorn
from rich.console import Console
from rich.table import Table
from sqlalchemy.engine import make_url

from parrotflow.config import Settings, settings

logger = structlog.get_logger()
console = Console()


def setup_logging(config: Optional[Settings] = None) -> None:
    """Configure structlog; JSON lines in production, console output elsewhere."""
    config = config or settings
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if config.is_production
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=config.app_name, environment=config.environment)


def runtime_summary(config: Optional[Settings] = None) -> Dict[str, Any]:
    """Settings that shape how automations run, safe to log."""
    config = config or settings
    return {
        "database": make_url(config.database_url).render_as_string(hide_password=True),
        "max_delay_ms": config.automation_max_delay_ms,
        "webhook_timeout_s": config.webhook_call_timeout,
        "email": "smtp" if config.smtp_configured else "log only",
        "metrics": config.metrics_enabled,
    }


def create_uvicorn_config() -> Dict[str, Any]:
    """Create Uvicorn configuration."""
    reload = settings.reload and settings.is_development
    return {
        "app": "parrotflow.main:app",
        "host": settings.host,
        "port": settings.port,
        "reload": reload,
        "workers": 1 if reload else settings.workers,
        "log_level": settings.log_level.lower(),
        "access_log": False,
        "server_header": False,
    }


def display_startup_info(summary: Dict[str, Any]) -> None:
    base = f"http://{settings.host}:{settings.port}"
    table = Table(title=f"{settings.app_name} {settings.app_version} ({settings.environment})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Execute", f"{base}/api/automations/execute")
    table.add_row("Webhooks", f"{base}/api/automations/webhook/<token>")
    for key, value in summary.items():
        table.add_row(key, str(value))

    console.print(table)


def main() -> None:
    """Main server entry point."""
    setup_logging()
    summary = runtime_summary()
    logger.info("Automation runtime configured", **summary)
    display_startup_info(summary)

    try:
        uvicorn.run(**create_uvicorn_config())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error("Server error", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
