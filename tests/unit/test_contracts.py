"""Tests for core contracts."""

import pytest
from pydantic import ValidationError

from todoguard.contracts import Action, Role, Status, Subject, Todo, TodoDraft, TodoPatch


def test_enum_parse_by_name_and_value() -> None:
    assert Role.parse("manager") is Role.MANAGER
    assert Action.parse("VIEW") is Action.VIEW
    assert Status.parse("in_progress") is Status.IN_PROGRESS
    assert Status.parse("IN_PROGRESS") is Status.IN_PROGRESS
    assert Status.parse(Status.DRAFT) is Status.DRAFT


def test_enum_parse_unknown_returns_none() -> None:
    assert Role.parse("superuser") is None
    assert Action.parse(None) is None
    assert Status.parse("   ") is None


def test_new_todo_starts_as_draft() -> None:
    todo = Todo(owner_id="u1", title="Buy milk")
    assert todo.status is Status.DRAFT
    assert todo.id
    assert todo.created_at.tzinfo is not None


def test_subject_is_immutable() -> None:
    subject = Subject(subject_id="u1", role=Role.USER)
    with pytest.raises(ValidationError):
        subject.role = Role.ADMIN


def test_draft_strips_and_requires_title() -> None:
    draft = TodoDraft(title="  Buy milk ", description=" 2% ")
    assert draft.title == "Buy milk"
    assert draft.description == "2%"
    with pytest.raises(ValidationError):
        TodoDraft(title="   ")


def test_patch_parses_status_and_detects_empty() -> None:
    assert TodoPatch().is_empty()
    patch = TodoPatch.model_validate({"status": "COMPLETED"})
    assert patch.status is Status.COMPLETED
    assert not patch.is_empty()
    with pytest.raises(ValidationError):
        TodoPatch.model_validate({"status": "archived"})
    with pytest.raises(ValidationError):
        TodoPatch(title="")


def test_patch_strips_description_like_draft() -> None:
    assert TodoPatch(description=" 2% ").description == "2%"
    assert TodoPatch(description=" 2% ").description == TodoDraft(
        title="x", description=" 2% "
    ).description
    assert TodoPatch(title="x").description is None
