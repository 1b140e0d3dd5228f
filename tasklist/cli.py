"""
TaskList CLI — Run the app, check configuration, and manage tasks from a terminal.

Commands:
- tasklist run                       — Start the Reflex dev server
- tasklist check-config              — Validate tasklist.yaml + environment
- tasklist tasks list   --email E    — List the user's tasks
- tasklist tasks add    --email E NAME IMAGE
- tasklist tasks done   --email E ID [--undo]
- tasklist tasks delete --email E ID
- tasklist logs TYPE [CATEGORY]     — Print recent diagnostic log entries as JSON lines

The tasks commands read the password from $TASKLIST_PASSWORD, or prompt for it.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import os
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from tasklist.engine.logging import OBJECT_TYPE_CATEGORIES

logger = logging.getLogger("tasklist.cli")

ENV_PASSWORD = "TASKLIST_PASSWORD"


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="tasklist",
        description="TaskList — single-page task list",
    )
    parser.add_argument(
        "--config", default=None, help="Path to tasklist.yaml (default: auto-discover)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # tasklist run
    run_parser = subparsers.add_parser("run", help="Start the Reflex dev server")
    run_parser.add_argument("--host", default="0.0.0.0", help="Backend host to bind (default: 0.0.0.0)")
    run_parser.add_argument("--port", type=int, default=3000, help="Frontend port (default: 3000)")
    run_parser.add_argument("--backend-port", type=int, default=8000, help="Backend port (default: 8000)")
    run_parser.add_argument("--env", choices=["dev", "prod"], default="dev", help="Environment (default: dev)")

    # tasklist check-config
    subparsers.add_parser("check-config", help="Validate configuration")

    # tasklist tasks ...
    tasks_parser = subparsers.add_parser("tasks", help="Manage tasks for a user")
    tasks_parser.add_argument("--email", required=True, help="Account email")
    task_sub = tasks_parser.add_subparsers(dest="task_command")
    task_sub.add_parser("list", help="List tasks")
    add_parser = task_sub.add_parser("add", help="Create a task with an image")
    add_parser.add_argument("name", help="Task name")
    add_parser.add_argument("image", help="Path to an image file")
    done_parser = task_sub.add_parser("done", help="Mark a task done")
    done_parser.add_argument("task_id", type=int)
    done_parser.add_argument("--undo", action="store_true", help="Mark the task not done")
    delete_parser = task_sub.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("task_id", type=int)

    # tasklist logs ...
    logs_parser = subparsers.add_parser("logs", help="Show recent diagnostic log entries")
    logs_parser.add_argument(
        "object_type", choices=sorted(OBJECT_TYPE_CATEGORIES), help="Log object type"
    )
    logs_parser.add_argument("category", nargs="?", default="execution", help="Log category (default: execution)")
    logs_parser.add_argument("--event", help="Only entries with this event name")
    logs_parser.add_argument("--days", type=int, default=7, help="How many days back to read (default: 7)")
    logs_parser.add_argument("--limit", type=int, default=50, help="Max entries, newest first (default: 50)")

    args = parser.parse_args(argv)

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "check-config":
        return cmd_check_config(args)
    elif args.command == "tasks":
        if not args.task_command:
            tasks_parser.print_help()
            return 1
        return cmd_tasks(args)
    elif args.command == "logs":
        return cmd_logs(args)
    else:
        parser.print_help()
        return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Start the Reflex dev server."""
    import subprocess

    print("Starting TaskList (Reflex) server...")
    try:
        cmd = [
            "reflex", "run",
            "--backend-host", args.host,
            "--frontend-port", str(args.port),
            "--backend-port", str(args.backend_port),
            "--env", args.env,
        ]
        result = subprocess.run(cmd, check=True)
        return result.returncode
    except FileNotFoundError:
        print("[ERROR] 'reflex' command not found. Install: pip install reflex")
        return 1
    except subprocess.CalledProcessError as e:
        return e.returncode
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0


def cmd_check_config(args: argparse.Namespace) -> int:
    """Load config, require backend values, print the resolved config."""
    from tasklist.engine.config import load_config, masked, require_backend
    from tasklist.engine.errors import TaskListConfigError

    try:
        config = require_backend(load_config(args.config))
    except TaskListConfigError as e:
        print(f"[ERROR] {e.message}")
        return 1

    print("[OK] Configuration is valid")
    print(json.dumps(masked(config), indent=2))
    return 0


def cmd_tasks(args: argparse.Namespace) -> int:
    """Sign in and run one task command against the backend."""
    from tasklist.engine.config import load_config, require_backend
    from tasklist.engine.errors import TaskListError
    from tasklist.engine.logging import setup_logging

    try:
        config = require_backend(load_config(args.config))
    except TaskListError as e:
        print(f"[ERROR] {e.message}")
        return 1
    setup_logging(config.logging.level)

    password = os.environ.get(ENV_PASSWORD) or getpass.getpass(f"Password for {args.email}: ")
    try:
        return asyncio.run(_run_task_command(config, args, password))
    except TaskListError as e:
        print(f"[ERROR] {e.message}")
        return 1


async def _run_task_command(config, args: argparse.Namespace, password: str) -> int:
    from tasklist.engine.models import SelectedFile
    from tasklist.engine.service import build_service, detect_content_type
    from tasklist.engine.session import AuthProvider

    provider = AuthProvider(config)
    session = await provider.sign_in(args.email, password)
    try:
        service = build_service(config, provider, session)

        if args.task_command == "list":
            tasks = await service.load_tasks()
            if not tasks:
                print("No tasks found")
            for task in tasks:
                mark = "x" if task.is_done else " "
                print(f"[{mark}] {task.id:>5}  {task.name}  {task.image_url or ''}")
        elif args.task_command == "add":
            path = Path(args.image)
            if not path.is_file():
                print(f"[ERROR] Image not found: {path}")
                return 1
            file = SelectedFile(
                filename=path.name,
                content_type=detect_content_type(path.name),
                data=path.read_bytes(),
            )
            key = await service.create_task(args.name, file)
            print(f"[OK] Created '{args.name}' (image {key})")
        elif args.task_command == "done":
            await service.set_done(args.task_id, not args.undo)
            print(f"[OK] Task {args.task_id} marked {'not done' if args.undo else 'done'}")
        elif args.task_command == "delete":
            await service.delete_task(args.task_id)
            print(f"[OK] Deleted task {args.task_id}")
    finally:
        await provider.sign_out(session)
    return 0


def cmd_logs(args: argparse.Namespace) -> int:
    """Print recent entries from the JSONL diagnostic logs, newest first."""
    from tasklist.engine.config import load_config
    from tasklist.engine.errors import TaskListConfigError
    from tasklist.engine.logging import FileLogger

    if args.category not in OBJECT_TYPE_CATEGORIES[args.object_type]:
        allowed = ", ".join(OBJECT_TYPE_CATEGORIES[args.object_type])
        print(f"[ERROR] '{args.object_type}' logs have no '{args.category}' category (use: {allowed})")
        return 1
    try:
        config = load_config(args.config)
    except TaskListConfigError as e:
        print(f"[ERROR] {e.message}")
        return 1

    entries = FileLogger(log_dir=config.logging.directory).query(
        args.object_type,
        args.category,
        start_date=date.today() - timedelta(days=max(args.days, 1) - 1),
        filters={"event": args.event} if args.event else None,
        limit=args.limit,
    )
    if not entries:
        print("No log entries found")
    for entry in entries:
        print(json.dumps(entry, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
