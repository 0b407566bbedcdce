from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from typing import Optional

from todolist.client import TaskGateway, TaskStore
from todolist.config import get_settings
from todolist.errors import TodoError
from todolist.logging_setup import setup_logging
from todolist.schema import NewTask, Task, TaskFilter


def _parse_date(d: Optional[str]) -> Optional[date]:
    if not d:
        return None
    try:
        return date.fromisoformat(d)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date '{d}'. Use YYYY-MM-DD.") from e


def _print_tasks(tasks: list[Task]) -> None:
    if not tasks:
        print("No tasks found.")
        return
    print(f"{'ID':>4}  {'ST':<4}  {'DUE':<10}  TITLE")
    print("-" * 60)
    for t in tasks:
        st = "DONE" if t.completed else "TODO"
        print(f"{t.id:>4}  {st:<4}  {t.due_date.isoformat():<10}  {t.title}")


def _print_task(t: Task) -> None:
    print(f"#{t.id} {t.title}")
    print(f"  status: {'done' if t.completed else 'todo'}")
    print(f"  due:    {t.due_date.isoformat()}")
    if t.description:
        print(f"  {t.description}")


async def cmd_list(store: TaskStore, ns: argparse.Namespace) -> int:
    completed = None
    if ns.todo:
        completed = False
    elif ns.done:
        completed = True
    await store.fetch_all(
        TaskFilter(title=ns.title, exact_title=ns.exact or None, completed=completed)
    )
    if store.error:
        print(store.error, file=sys.stderr)
        return 1
    _print_tasks(list(store.tasks))
    return 0


async def cmd_show(store: TaskStore, ns: argparse.Namespace) -> int:
    _print_task(await store.fetch_one(ns.task_id))
    return 0


async def cmd_add(store: TaskStore, ns: argparse.Namespace) -> int:
    values = {"title": ns.title, "description": ns.description}
    if ns.due:
        values["due_date"] = ns.due
    created = await store.create(NewTask(**values))
    print(f"Added task #{created.id}: {created.title}")
    return 0


async def _load(store: TaskStore, task_id: int) -> bool:
    await store.fetch_all(TaskFilter(id=task_id))
    if store.fetch_local_one(task_id) is None:
        print(store.error or f"Task #{task_id} not found.", file=sys.stderr)
        return False
    return True


async def cmd_done(store: TaskStore, ns: argparse.Namespace) -> int:
    if not await _load(store, ns.task_id):
        return 1
    task = await store.toggle(ns.task_id)
    print(f"Marked task #{task.id} as {'done' if task.completed else 'todo'}.")
    return 0


async def cmd_edit(store: TaskStore, ns: argparse.Namespace) -> int:
    fields = {}
    if ns.title is not None:
        fields["title"] = ns.title
    if ns.description is not None:
        fields["description"] = ns.description
    if ns.due is not None:
        fields["due_date"] = ns.due
    if not fields:
        print("Nothing to change.", file=sys.stderr)
        return 1
    if not await _load(store, ns.task_id):
        return 1
    task = await store.update(ns.task_id, fields)
    _print_task(task)
    return 0


async def cmd_rm(store: TaskStore, ns: argparse.Namespace) -> int:
    await store.remove(ns.task_id)
    print(f"Deleted task #{ns.task_id}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="todolist", description="Command-line client for the to-do list API.")
    p.add_argument("--url", help="API base URL (default: TODO_API_URL or http://127.0.0.1:3000)")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("list", help="List tasks.")
    g = s.add_mutually_exclusive_group()
    g.add_argument("--todo", action="store_true", help="Only pending tasks.")
    g.add_argument("--done", action="store_true", help="Only completed tasks.")
    s.add_argument("--title", help="Title contains (case-insensitive).")
    s.add_argument("--exact", action="store_true", help="Match --title exactly.")
    s.set_defaults(func=cmd_list)

    s = sub.add_parser("show", help="Show one task.")
    s.add_argument("task_id", type=int, help="Task ID.")
    s.set_defaults(func=cmd_show)

    s = sub.add_parser("add", help="Add a new task.")
    s.add_argument("title", help="Short task title.")
    s.add_argument("-d", "--description", help="Longer description.")
    s.add_argument("--due", type=_parse_date, help="Due date in YYYY-MM-DD (default: today).")
    s.set_defaults(func=cmd_add)

    s = sub.add_parser("done", help="Toggle a task between done and todo.")
    s.add_argument("task_id", type=int, help="Task ID.")
    s.set_defaults(func=cmd_done)

    s = sub.add_parser("edit", help="Change fields of a task.")
    s.add_argument("task_id", type=int, help="Task ID.")
    s.add_argument("--title", help="New title.")
    s.add_argument("-d", "--description", help="New description.")
    s.add_argument("--due", type=_parse_date, help="New due date in YYYY-MM-DD.")
    s.set_defaults(func=cmd_edit)

    s = sub.add_parser("rm", help="Delete a task.")
    s.add_argument("task_id", type=int, help="Task ID.")
    s.set_defaults(func=cmd_rm)

    return p


async def run(ns: argparse.Namespace, gateway: TaskGateway) -> int:
    async with gateway:
        store = TaskStore(gateway)
        try:
            return int(await ns.func(store, ns))
        except (TodoError, ValueError) as e:
            print(store.error or str(e), file=sys.stderr)
            return 1


def _setup_logging(log_dir) -> None:
    # Client failures are reported by the command itself, one line on stderr.
    setup_logging("WARNING", log_dir=log_dir, console_quiet=("todolist.client",))


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()
    _setup_logging(settings.log_dir)
    ns = build_parser().parse_args(argv)
    return asyncio.run(run(ns, TaskGateway(ns.url)))
