"""Task Tracker CLI — run the server or manage your tasks from a terminal.

Usage:
    tasktracker serve                         # Run the web app with uvicorn
    tasktracker register                      # Create an account (prompts)
    tasktracker login                         # Sign in (prompts), stores the session
    tasktracker tasks                         # Dashboard: counts + task list
    tasktracker add "Buy milk"                # New task
    tasktracker toggle 42                     # Complete / un-complete
    tasktracker delete 42                     # Delete (asks first)
    tasktracker profile --name "Ada L."       # Edit profile
    tasktracker logout                        # Sign out (asks first)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import mimetypes
import os
import sys
from pathlib import Path
from typing import Optional

import click

from tasktracker import __version__
from tasktracker.client import ClientError, DashboardClient, Unauthenticated

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TOKEN_FILE = "~/.tasktracker/token"


def _api_url() -> str:
    return os.environ.get("TASKTRACKER_API_URL", DEFAULT_API_URL).rstrip("/")


def _token_path() -> Path:
    return Path(os.environ.get("TASKTRACKER_TOKEN_FILE", DEFAULT_TOKEN_FILE)).expanduser()


def _load_token() -> Optional[str]:
    path = _token_path()
    if not path.exists():
        return None
    return path.read_text().strip() or None


def _save_token(token: Optional[str]) -> None:
    path = _token_path()
    if not token:
        path.unlink(missing_ok=True)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    # Created owner-only; chmod also tightens a file left by an older run.
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    os.fchmod(fd, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(token)


def _client() -> DashboardClient:
    """Build a client pointed at the server, carrying the stored session."""
    return DashboardClient(_api_url(), token=_load_token())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    ClientErrors become a red message and exit code 1. Handles nested
    event loops (e.g. CliRunner inside an async test) by offloading to a
    thread.
    """
    try:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()
    except Unauthenticated:
        _save_token(None)
        click.secho("Not logged in. Run `tasktracker login` first.", fg="red", err=True)
        sys.exit(1)
    except ClientError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)


def _confirm(message: str) -> bool:
    return click.confirm(message, default=False)


def _print_tasks(c: DashboardClient) -> None:
    click.secho(
        f"Pending: {c.pending_count}   Completed: {c.completed_count}", bold=True
    )
    if not c.tasks:
        click.echo("No tasks yet. Add one with `tasktracker add`.")
        return
    for t in c.tasks:
        mark = click.style("[x]", fg="green") if t["completed"] else "[ ]"
        click.echo(f"  {mark} #{t['id']:<5} {t['title']}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="tasktracker")
def main():
    """Task Tracker — personal task lists from the terminal."""


# ---------------------------------------------------------------------------
# tasktracker serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: TASKTRACKER_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: TASKTRACKER_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the web application."""
    import uvicorn

    from tasktracker.config import settings

    uvicorn.run(
        "tasktracker.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@main.command()
@click.option("--name", prompt=True)
@click.option("--email", prompt=True)
@click.password_option()
def register(name: str, email: str, password: str):
    """Create an account and log in."""
    _run(_register_impl(name, email, password))


async def _register_impl(name: str, email: str, password: str):
    async with _client() as c:
        user = await c.register(name, email, password)
        _save_token(c.token)
    click.secho(f"Welcome, {user['name']}!", fg="green")


@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and remember the session."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        user = await c.login(email, password)
        _save_token(c.token)
    click.secho(f"Logged in as {user['name']} <{user['email']}>", fg="green")


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
def logout(yes: bool):
    """Log out and forget the stored session."""
    _run(_logout_impl(yes))


async def _logout_impl(yes: bool):
    async with _client() as c:
        done = await c.logout(confirm=(lambda _: True) if yes else _confirm)
    if done:
        _save_token(None)
        click.echo("Logged out.")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@main.command()
def tasks():
    """Show your dashboard: counts and tasks, newest first."""
    _run(_tasks_impl())


async def _tasks_impl():
    async with _client() as c:
        await c.load()
        click.secho(f"{c.user['name']} <{c.user['email']}>", bold=True)
        _print_tasks(c)


@main.command()
@click.argument("title")
def add(title: str):
    """Add a task."""
    _run(_add_impl(title))


async def _add_impl(title: str):
    async with _client() as c:
        task = await c.add_task(title)
    click.secho(f"Task #{task['id']} added", fg="green")


@main.command()
@click.argument("task_id", type=int)
def toggle(task_id: int):
    """Mark a task completed, or pending again."""
    _run(_toggle_impl(task_id))


async def _toggle_impl(task_id: int):
    async with _client() as c:
        await c.load()
        task = await c.toggle_task(task_id)
    state = "completed" if task["completed"] else "pending"
    click.echo(f"Task #{task_id} is now {state}")


@main.command()
@click.argument("task_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
def delete(task_id: int, yes: bool):
    """Delete a task."""
    _run(_delete_impl(task_id, yes))


async def _delete_impl(task_id: int, yes: bool):
    async with _client() as c:
        done = await c.delete_task(task_id, confirm=(lambda _: True) if yes else _confirm)
    if done:
        click.echo(f"Task #{task_id} deleted")


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@main.command()
@click.option("--name", help="New display name")
@click.option("--email", help="New email")
@click.option("--password", is_flag=True, help="Prompt for a new password")
@click.option("--avatar", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def profile(name: Optional[str], email: Optional[str], password: bool,
            avatar: Optional[Path]):
    """Edit your profile. Unspecified fields keep their current value."""
    new_password = None
    if password:
        new_password = click.prompt("New password", hide_input=True,
                                    confirmation_prompt=True)
    _run(_profile_impl(name, email, new_password, avatar))


async def _profile_impl(name: Optional[str], email: Optional[str],
                        password: Optional[str], avatar: Optional[Path]):
    async with _client() as c:
        await c.load()
        upload = None
        if avatar:
            content_type = mimetypes.guess_type(avatar.name)[0] or "application/octet-stream"
            upload = (avatar.name, avatar.read_bytes(), content_type)
        user = await c.update_profile(
            name=name or c.user["name"],
            email=email or c.user["email"],
            password=password,
            avatar=upload,
        )
    click.secho(f"Profile updated: {user['name']} <{user['email']}>", fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
