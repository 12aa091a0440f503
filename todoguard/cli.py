"""Command line interface for todoguard policies and todos."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer

from todoguard import (
    Action,
    Result,
    Role,
    Status,
    Subject,
    Todo,
    TodoService,
    decide,
    get_audit_log,
    get_repository,
)
from todoguard.config import load_config
from todoguard.security.context import EnvSessionProvider
from todoguard.security.lifecycle import allowed_transitions

app = typer.Typer(help="CLI for todoguard access policies")

# Command groups
policy_app = typer.Typer(help="Inspect and evaluate the access policy")
todo_app = typer.Typer(help="Manage todos under the access policy")

app.add_typer(policy_app, name="policy")
app.add_typer(todo_app, name="todo")

SubjectOption = typer.Option(
    None, "--subject", help="Subject id (default: $TODOGUARD_SUBJECT_ID)"
)
RoleOption = typer.Option(None, "--role", help="USER, MANAGER or ADMIN (default: $TODOGUARD_ROLE)")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default from config)"
    ),
) -> None:
    """todoguard CLI entry point."""
    level = (log_level or load_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _service() -> TodoService:
    return TodoService(repository=get_repository(), audit_log=get_audit_log())


def _subject(subject_id: Optional[str], role: Optional[str]) -> Optional[Subject]:
    return asyncio.run(EnvSessionProvider(subject_id=subject_id, role=role).current_subject())


def _format_todo(todo: Todo) -> str:
    return f"{todo.id}\t{todo.status.value}\t{todo.owner_id}\t{todo.title}"


def _exit_on_failure(result: Result) -> None:
    if result.failure is None:
        return
    typer.secho(
        f"Error ({result.failure.kind.value}): {result.failure.detail}",
        fg=typer.colors.RED,
    )
    raise typer.Exit(code=result.failure.exit_code)


# ----------------------------------------------------------------------
# policy commands
@policy_app.command("check")
def policy_check(
    role: str,
    action: str,
    subject: str = typer.Option("subject", "--subject", help="Subject id making the request"),
    owner: Optional[str] = typer.Option(
        None, "--owner", help="Owner of the todo; omit to evaluate without a todo"
    ),
    status: str = typer.Option("draft", "--status", help="Status of the todo"),
) -> None:
    """
    Evaluate a single request against the policy.

    Prints ALLOW, or DENY with the reason. Exits with code 1 on deny.

    Example:
        todoguard policy check USER delete --subject u1 --owner u1 --status in_progress
        # Output: DENY: Users can only delete todos in draft status
    """
    resource = None
    if owner is not None:
        parsed_status = Status.parse(status)
        if parsed_status is None:
            typer.secho(f"Unknown status: {status}", fg=typer.colors.RED)
            raise typer.Exit(code=2)
        resource = Todo(owner_id=owner, title="policy check", status=parsed_status)

    decision = decide(role, action, resource, subject)
    if decision.allowed:
        typer.echo("ALLOW")
        return
    typer.echo(f"DENY: {decision.reason}")
    raise typer.Exit(code=1)


def _matrix_cell(role: Role, action: Action) -> str:
    me, other = "subject", "someone-else"
    if decide(role, action, Todo(owner_id=other, title="-", status=Status.COMPLETED), me):
        return "allow"
    if decide(role, action, Todo(owner_id=me, title="-", status=Status.COMPLETED), me):
        return "own"
    if decide(role, action, Todo(owner_id=me, title="-", status=Status.DRAFT), me):
        return "own, draft"
    return "deny"


@policy_app.command("matrix")
def policy_matrix() -> None:
    """Print the role by action permission table."""
    typer.echo("\t".join(["role"] + [a.value for a in Action]))
    for role in Role:
        cells = [_matrix_cell(role, action) for action in Action]
        typer.echo("\t".join([role.value] + cells))


@policy_app.command("transitions")
def policy_transitions() -> None:
    """Print the legal status transitions."""
    for status in Status:
        targets = ", ".join(s.value for s in Status if s in allowed_transitions(status))
        typer.echo(f"{status.value} -> {targets}")


# ----------------------------------------------------------------------
# todo commands
@todo_app.command("create")
def todo_create(
    title: str,
    description: str = typer.Option("", "--description", "-d"),
    subject: Optional[str] = SubjectOption,
    role: Optional[str] = RoleOption,
) -> None:
    """Create a todo owned by the current subject. New todos start as draft."""
    result = asyncio.run(
        _service().create_todo(
            _subject(subject, role), {"title": title, "description": description}
        )
    )
    _exit_on_failure(result)
    typer.echo(_format_todo(result.data))


@todo_app.command("list")
def todo_list(
    subject: Optional[str] = SubjectOption,
    role: Optional[str] = RoleOption,
) -> None:
    """
    List the todos visible to the current subject.

    Users see their own todos; managers and admins see all of them.

    Returns:
        Tab-separated id, status, owner and title, or "No todos found"
    """
    result = asyncio.run(_service().list_todos(_subject(subject, role)))
    _exit_on_failure(result)
    if not result.data:
        typer.echo("No todos found")
        return
    for todo in result.data:
        typer.echo(_format_todo(todo))


@todo_app.command("show")
def todo_show(
    todo_id: str,
    subject: Optional[str] = SubjectOption,
    role: Optional[str] = RoleOption,
) -> None:
    """Show one todo, including the statuses it may move to next."""
    result = asyncio.run(_service().get_todo(_subject(subject, role), todo_id))
    _exit_on_failure(result)
    todo: Todo = result.data
    typer.echo(f"Todo {todo.id}: {todo.title}")
    typer.echo(f"Owner: {todo.owner_id}")
    typer.echo(f"Status: {todo.status.value}")
    if todo.description:
        typer.echo(f"Description: {todo.description}")
    typer.echo(f"Created: {todo.created_at.isoformat()}")
    typer.echo(f"Updated: {todo.updated_at.isoformat()}")
    nexts = ", ".join(s.value for s in Status if s in allowed_transitions(todo.status))
    typer.echo(f"Next statuses: {nexts}")


@todo_app.command("update")
def todo_update(
    todo_id: str,
    title: Optional[str] = typer.Option(None, "--title"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    status: Optional[str] = typer.Option(None, "--status"),
    subject: Optional[str] = SubjectOption,
    role: Optional[str] = RoleOption,
) -> None:
    """Update title, description or status of a todo."""
    patch = {
        k: v
        for k, v in {"title": title, "description": description, "status": status}.items()
        if v is not None
    }
    result = asyncio.run(_service().update_todo(_subject(subject, role), todo_id, patch))
    _exit_on_failure(result)
    typer.echo(_format_todo(result.data))


@todo_app.command("delete")
def todo_delete(
    todo_id: str,
    subject: Optional[str] = SubjectOption,
    role: Optional[str] = RoleOption,
) -> None:
    """Delete a todo."""
    result = asyncio.run(_service().delete_todo(_subject(subject, role), todo_id))
    _exit_on_failure(result)
    typer.echo(f"Deleted {todo_id}")


if __name__ == "__main__":  # pragma: no cover
    app()
