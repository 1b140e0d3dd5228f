"""
TaskList — Main Reflex application entry point.

Boot sequence:
    1. _init_app()   — load config (fatal if the backend is not configured), logging
    2. Create rx.App(), register pages and the log-flush lifespan task
"""

import logging

import reflex as rx

from tasklist.engine.config import get_config, require_backend
from tasklist.engine.errors import TaskListConfigError
from tasklist.engine.logging import (
    init_logging,
    log,
    log_queue_lifespan,
    log_system_event,
    setup_logging,
)
from tasklist.ui.pages import login_page, tasks_page

logger = logging.getLogger("tasklist.startup")


def _init_app():
    """Load config and start logging. A missing backend URL/key stops startup."""
    config = get_config()
    setup_logging(config.logging.level)
    init_logging(
        log_dir=config.logging.directory,
        flush_interval_ms=config.logging.async_queue.flush_interval_ms,
        flush_batch_size=config.logging.async_queue.flush_batch_size,
        max_queue_size=config.logging.async_queue.max_queue_size,
    )
    try:
        require_backend(config)
    except TaskListConfigError as e:
        logger.critical("Cannot start: %s", e.message)
        log(log_system_event("startup_failed", level="CRITICAL", details=e.to_dict()))
        raise
    log(log_system_event("startup", details={"environment": config.environment}))
    logger.info("TaskList initialized (%s)", config.environment)
    return config


_config = _init_app()

app = rx.App()
app.register_lifespan_task(log_queue_lifespan)
app.add_page(tasks_page, route="/", title=_config.ui.title)
app.add_page(login_page, route="/login", title=f"Sign in | {_config.ui.title}")
