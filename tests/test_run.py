from unittest.mock import patch

from helpers import VALID_KEY, fake_transport, final

from tool_chat import run
from tool_chat.credentials import CredentialGate, InMemoryCredentialStore
from tool_chat.session import Session
from tool_chat.simulation import SceneSimulation


def _session(transport=None) -> Session:
    gate = CredentialGate(
        InMemoryCredentialStore(VALID_KEY), transport_factory=lambda _k: transport or fake_transport()
    )
    return Session(provider=SceneSimulation(), gate=gate, model="gpt-test")


@patch("tool_chat.run.display")
def test_context_command_before_first_prompt(mock_display):
    session = _session()

    run.handle_command(session, "/context You only speak French.")

    assert session.project.default_context == "You only speak French."


@patch("tool_chat.run.display")
def test_context_command_refused_once_locked(mock_display):
    session = _session(fake_transport(final("ok")))
    session.project.default_context = "original"
    session.submit("hi")

    run.handle_command(session, "/context replaced")

    assert session.project.default_context == "original"
    assert "locked" in mock_display.notice.call_args.args[0]


@patch("tool_chat.run.display")
def test_new_command_resets_conversation(mock_display):
    session = _session(fake_transport(final("ok")))
    session.submit("hi")

    run.handle_command(session, "/new Garden")

    assert session.project.name == "Garden"
    assert session.context_locked is False
    assert session.project.default_context == run.DEFAULT_CONTEXT


@patch("tool_chat.run.display")
def test_key_command_with_short_key_shows_notice(mock_display):
    session = _session()

    run.handle_command(session, "/key abc")

    mock_display.api_key_notice.assert_called_once()


@patch("tool_chat.run.display")
def test_history_command(mock_display):
    session = _session()

    run.handle_command(session, "/history")

    mock_display.transcript.assert_called_once_with(())


@patch("tool_chat.run.display")
def test_new_command_keeps_configured_context(mock_display):
    session = _session()

    run.handle_command(session, "/new Lab", "You are a lab assistant.")

    assert session.project.default_context == "You are a lab assistant."
