"""
Reveal Sessions — time-boxed display of decrypted credentials.

Each credential id owns at most one session. A session is created when a
secret is revealed and destroyed on hide, on auto-hide timeout, or on
teardown of the whole manager. Sessions never affect each other.

Security Note:
    The decrypted value lives in the session only while it is revealed.
    It is dropped on hide and never cached for redisplay.
"""
import asyncio
import logging
import functools
from dataclasses import dataclass
from collections.abc import Awaitable, Hashable
from typing import Any, Callable, Optional

from .scheduler import Scheduler, AsyncioScheduler

logger = logging.getLogger("navigator.credentials")

DEFAULT_REVEAL_TIMEOUT = 30.0  # seconds

Resolver = Callable[[Hashable], Awaitable[str]]


@dataclass
class RevealSession:
    """Reveal state of a single credential."""

    id: Hashable
    revealed: bool = False
    value: Optional[str] = None
    expires_at: Optional[float] = None
    timer_handle: Any = None
    generation: int = 0

    def __repr__(self) -> str:
        # never expose the revealed value
        return (
            f"<RevealSession id={self.id!r} revealed={self.revealed} "
            f"expires_at={self.expires_at}>"
        )


class RevealSessionManager:
    """Per-credential Hidden/Revealed state machine with auto-hide.

    Args:
        resolver: Coroutine function returning the decrypted secret for an id.
        scheduler: Timer backend; defaults to the running asyncio loop.
        timeout: Seconds a revealed value stays visible.
    """

    def __init__(
        self,
        resolver: Resolver,
        scheduler: Optional[Scheduler] = None,
        timeout: float = DEFAULT_REVEAL_TIMEOUT,
    ):
        if timeout <= 0:
            raise ValueError("Reveal timeout must be positive")
        self._resolver = resolver
        self._scheduler = scheduler or AsyncioScheduler()
        self._timeout = timeout
        self._sessions: dict[Hashable, RevealSession] = {}
        self._pending: dict[Hashable, asyncio.Future] = {}

    @property
    def timeout(self) -> float:
        return self._timeout

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _arm(self, session: RevealSession) -> None:
        """(Re)start the auto-hide timer, replacing any pending one."""
        if session.timer_handle is not None:
            self._scheduler.cancel(session.timer_handle)
        session.generation += 1
        session.expires_at = self._scheduler.now() + self._timeout
        session.timer_handle = self._scheduler.schedule(
            self._timeout,
            functools.partial(self._expire, session.id, session.generation),
        )

    def _expire(self, credential_id: Hashable, generation: int) -> None:
        session = self._sessions.get(credential_id)
        if session is None or session.generation != generation:
            return
        session.timer_handle = None
        self._destroy(credential_id)
        logger.debug("Reveal expired: credential=%s", credential_id)

    def _destroy(self, credential_id: Hashable) -> None:
        session = self._sessions.pop(credential_id, None)
        if session is None:
            return
        if session.timer_handle is not None:
            self._scheduler.cancel(session.timer_handle)
            session.timer_handle = None
        session.revealed = False
        session.value = None
        session.expires_at = None

    async def _open(self, credential_id: Hashable) -> Optional[str]:
        """Decrypt a secret and open its session, unless hidden meanwhile."""
        task = asyncio.current_task()
        try:
            value = await self._resolver(credential_id)
        finally:
            discarded = self._pending.get(credential_id) is not task
            if not discarded:
                del self._pending[credential_id]
        if discarded:
            logger.debug(
                "Reveal discarded, credential hidden while decrypting: %s",
                credential_id,
            )
            return None

        session = RevealSession(id=credential_id, revealed=True, value=value)
        self._sessions[credential_id] = session
        self._arm(session)
        logger.debug("Reveal: credential=%s", credential_id)
        return value

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def reveal(self, credential_id: Hashable) -> Optional[str]:
        """Reveal a credential and schedule its auto-hide.

        Revealing an already revealed credential restarts its window
        without decrypting again. Concurrent reveals of the same
        credential share a single decryption.

        Returns:
            The decrypted value, or None if the credential was hidden
            while it was being decrypted.

        Raises:
            DecryptionError: Propagated from the resolver; the credential
                stays hidden.
        """
        session = self._sessions.get(credential_id)
        if session is not None and session.revealed:
            self._arm(session)
            logger.debug("Reveal extended: credential=%s", credential_id)
            return session.value

        task = self._pending.get(credential_id)
        if task is None:
            task = asyncio.ensure_future(self._open(credential_id))
            self._pending[credential_id] = task
        # a cancelled caller must not cancel the decryption shared with others
        return await asyncio.shield(task)

    def hide(self, credential_id: Hashable) -> None:
        """Hide a credential now and cancel its pending auto-hide."""
        self._pending.pop(credential_id, None)
        if credential_id in self._sessions:
            self._destroy(credential_id)
            logger.debug("Hide: credential=%s", credential_id)

    def is_revealed(self, credential_id: Hashable) -> bool:
        session = self._sessions.get(credential_id)
        return session is not None and session.revealed

    def value(self, credential_id: Hashable) -> Optional[str]:
        """Return the revealed value, or None while hidden."""
        session = self._sessions.get(credential_id)
        if session is None or not session.revealed:
            return None
        return session.value

    def session(self, credential_id: Hashable) -> Optional[RevealSession]:
        return self._sessions.get(credential_id)

    def revealed_ids(self) -> list[Hashable]:
        return [key for key, s in self._sessions.items() if s.revealed]

    def teardown(self) -> None:
        """Cancel every pending timer and destroy all sessions."""
        count = len(self._sessions)
        self._pending.clear()
        for credential_id in list(self._sessions):
            self._destroy(credential_id)
        if count:
            logger.debug("Reveal sessions torn down: %d", count)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, credential_id: object) -> bool:
        return credential_id in self._sessions
