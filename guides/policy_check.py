"""Evaluate the access policy directly, without any storage."""

from todoguard import Action, Role, Status, Todo, decide, is_valid_transition


def main():
    """Walk through the documented policy scenarios."""
    todo = Todo(owner_id="u1", title="Buy milk")

    scenarios = [
        (Role.USER, Action.VIEW, todo, "u1"),
        (Role.USER, Action.DELETE, todo.model_copy(update={"status": Status.IN_PROGRESS}), "u1"),
        (Role.MANAGER, Action.DELETE, todo, "m1"),
        (Role.ADMIN, Action.DELETE, todo.model_copy(update={"status": Status.COMPLETED}), "a1"),
        ("SUPERUSER", Action.VIEW, todo, "x1"),
    ]
    for role, action, resource, subject_id in scenarios:
        decision = decide(role, action, resource, subject_id)
        verdict = "✅ allow" if decision.allowed else f"❌ deny ({decision.reason})"
        print(f"{role} {action} todo[{resource.status}] as {subject_id}: {verdict}")

    print()
    for src, dst in [(Status.COMPLETED, Status.DRAFT), (Status.COMPLETED, Status.IN_PROGRESS)]:
        print(f"{src} -> {dst}: {'valid' if is_valid_transition(src, dst) else 'invalid'}")


if __name__ == "__main__":
    main()
