from unittest.mock import MagicMock

from helpers import VALID_KEY, fake_transport, final, provider

from tool_chat.credentials import CredentialGate, InMemoryCredentialStore
from tool_chat.models import Project, Role
from tool_chat.session import Session


def _session(transport, **kwargs) -> Session:
    gate = CredentialGate(InMemoryCredentialStore(VALID_KEY), transport_factory=lambda _k: transport)
    project = Project(id="p1", name="Scene", default_context="Be brief.")
    return Session(project, provider({"echo": lambda args: ""}), gate, model="gpt-test", **kwargs)


def test_submit_uses_project_context():
    session = _session(fake_transport(final("hi")))

    result = session.submit("hello")

    assert result.text == "hi"
    assert session.conversation.messages[0].content == "Be brief."
    assert session.context_locked is True


def test_context_edits_before_first_submit_are_used():
    session = _session(fake_transport(final("ok")))
    session.project.default_context = "Changed."

    session.submit("hello")

    assert session.conversation.default_context == "Changed."


def test_open_project_replaces_conversation():
    transport = fake_transport(final("one"), final("two"))
    session = _session(transport)
    session.submit("first")
    old = session.conversation

    session.open_project(Project(id="p2", name="Other", default_context="Other context."))
    session.submit("second")

    assert session.conversation is not old
    assert [m.content for m in session.conversation.messages] == ["Other context.", "second", "two"]
    assert len(old.messages) == 3


def test_new_project_switches_provider():
    transport = fake_transport(final("ok"))
    session = _session(transport)

    project = session.new_project("Fresh", provider({"paint": lambda args: ""}))
    session.submit("go")

    assert session.project is project
    assert session.context_locked is True
    assert session.conversation.messages[0].role is Role.SYSTEM
    tools = transport.chat.completions.create.call_args.kwargs["tools"]
    assert [t["function"]["name"] for t in tools] == ["paint"]


def test_turn_hook_runs_after_every_submit():
    hook = MagicMock()
    session = _session(fake_transport(final("ok"), RuntimeError("down")), on_turn_complete=hook)

    session.submit("one")
    session.submit("two")

    assert hook.call_count == 2
    project, result = hook.call_args.args
    assert project.id == "p1"
    assert result.ok is False


def test_failing_turn_hook_does_not_escape():
    hook = MagicMock(side_effect=OSError("disk full"))
    session = _session(fake_transport(final("ok"), final("again")), on_turn_complete=hook)

    first = session.submit("one")
    second = session.submit("two")

    assert first.text == "ok"
    assert second.text == "again"
    assert hook.call_count == 2
