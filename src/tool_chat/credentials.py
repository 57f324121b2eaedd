# credentials.py
# Readiness/credential gate.
#
# A pure precondition check: is there a usable API key, and if so, hand out a
# lazily built transport handle. It never prompts and never retries.

import logging
import os
from typing import Any, Callable, Protocol

from openai import OpenAI

from tool_chat import config
from tool_chat.errors import MissingCredentialError, TransportError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Credential sources
# ---------------------------------------------------------------------------


class CredentialStore(Protocol):
    """A single named secret slot."""

    def get(self) -> str | None: ...

    def set(self, value: str) -> None: ...


class EnvCredentialStore:
    """Reads and writes the key through the process environment."""

    def __init__(self, key: str = config.API_KEY_ENV) -> None:
        self.key = key

    def get(self) -> str | None:
        return os.environ.get(self.key)

    def set(self, value: str) -> None:
        os.environ[self.key] = value


class InMemoryCredentialStore:
    """Holds the key in the object only. Handy for tests and one-off sessions."""

    def __init__(self, value: str | None = None) -> None:
        self._value = value

    def get(self) -> str | None:
        return self._value

    def set(self, value: str) -> None:
        self._value = value


def default_transport_factory(api_key: str) -> OpenAI:
    return OpenAI(
        api_key=api_key,
        base_url=config.BASE_URL,
        timeout=config.REQUEST_TIMEOUT,
        max_retries=0,
    )


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


class CredentialGate:
    """
    Tracks whether a usable credential and a transport handle exist.

    The length check only catches obviously truncated or placeholder values;
    a well-formed but revoked key passes here and fails later as a
    TransportError.
    """

    def __init__(
        self,
        store: CredentialStore | None = None,
        transport_factory: Callable[[str], Any] = default_transport_factory,
        min_length: int = config.MIN_CREDENTIAL_LENGTH,
    ) -> None:
        self._store = store if store is not None else EnvCredentialStore()
        self._transport_factory = transport_factory
        self._min_length = min_length
        self._transport: Any = None

    @property
    def credential(self) -> str | None:
        return self._store.get()

    def set_credential(self, value: str) -> None:
        """Write the slot. A cached transport built from the old key is dropped."""
        self._store.set(value.strip())
        self._transport = None
        logger.info("Credential updated (usable=%s)", self.has_credential())

    def has_credential(self) -> bool:
        key = self._store.get()
        return isinstance(key, str) and len(key) > self._min_length

    @property
    def needs_notice(self) -> bool:
        """Whether the UI should show its "enter your API key" notice."""
        return not self.has_credential()

    @property
    def has_transport(self) -> bool:
        return self._transport is not None

    def ensure_transport(self) -> Any:
        """Return the cached transport, building it on first successful check."""
        if self._transport is not None:
            return self._transport

        if not self.has_credential():
            raise MissingCredentialError(
                "Tried to chat but the transport wasn't ready. Perhaps a missing API key? "
                f"Set {config.API_KEY_ENV}."
            )

        logger.debug("Instantiating completion transport")
        try:
            self._transport = self._transport_factory(self._store.get())
        except Exception as exc:  # noqa: BLE001
            raise TransportError(
                f"Could not create the completion transport: {type(exc).__name__}: {exc}"
            ) from exc
        return self._transport
