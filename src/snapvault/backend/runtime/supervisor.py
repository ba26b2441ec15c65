"""Connection supervisor for the messaging session"""
import asyncio
import logging
from typing import Optional

from ..enum import ConnectionPhase, ConnectionState, DisconnectReason
from ..exception import (
    RuntimeAlreadyStartedError,
    SessionExpiredError,
    TransientConnectionError,
)
from .client import (
    ClientEvent,
    ConnectionUpdate,
    CredentialsUpdate,
    MessagesUpsert,
    PlatformClient,
    PlatformSession,
)
from .credentials import CredentialStore
from .dispatcher import MessageDispatcher
from .timer import ReconnectTimer

logger = logging.getLogger(__name__)


class ConnectionSupervisor:
    """
    Keeps exactly one live messaging session and decides how to reconnect.

    Reconnection policy (driven by the status code of a closing update):
    - RATE_LIMITED: reconnect_attempts += 1, delay min(attempts * 10s, 60s);
      more than MAX_RATE_LIMIT_RETRIES consecutive closures is fatal
    - LOGGED_OUT: clear credentials, never reconnect, fatal
    - anything else: reconnect after TRANSIENT_DELAY, attempts untouched
    - OPEN resets reconnect_attempts to 0

    Fatal outcomes resolve the termination future; wait_terminated() re-raises
    them so the owning process can exit.

    Event pump:
    - One task per session iterates session.events in order
    - Connection and credential updates are handled inline
    - Message batches are handed to the dispatcher, which never blocks
    """

    RATE_LIMIT_STEP = 10.0
    RATE_LIMIT_MAX_DELAY = 60.0
    MAX_RATE_LIMIT_RETRIES = 5
    TRANSIENT_DELAY = 5.0

    def __init__(
        self,
        client: PlatformClient,
        credentials: CredentialStore,
        dispatcher: MessageDispatcher,
        timer: ReconnectTimer,
    ):
        self.client = client
        self.credentials = credentials
        self.dispatcher = dispatcher
        self.timer = timer

        self._state = ConnectionState.DISCONNECTED
        self._reconnect_attempts = 0
        self._session: Optional[PlatformSession] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._terminated: Optional[asyncio.Future] = None

    # ========== Properties ==========

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def session(self) -> Optional[PlatformSession]:
        """The live session, or None between sessions"""
        return self._session

    @property
    def is_open(self) -> bool:
        return self._state == ConnectionState.OPEN and self._session is not None

    # ========== Lifecycle ==========

    async def start(self) -> None:
        """
        Establish a session and start pumping its events.

        Raises:
            RuntimeAlreadyStartedError: A session is still live, or the
                supervisor already reached a terminal state

        Note:
            A failure inside client.connect() is handled as a transient
            closure: a reconnect is scheduled and start() returns normally.
        """
        if self._state.is_terminal:
            raise RuntimeAlreadyStartedError(
                f"Supervisor is in terminal state {self._state.value}"
            )
        if self._session is not None:
            raise RuntimeAlreadyStartedError("A messaging session is still live")

        self._termination_future()
        self._set_state(ConnectionState.CONNECTING)
        logger.info("Connecting messaging session...")

        try:
            session = await self.client.connect(self.credentials)
        except Exception as e:
            logger.error(f"Failed to establish messaging session: {e}", exc_info=True)
            self._schedule_reconnect(self.TRANSIENT_DELAY, reason="connect failed")
            return

        self._session = session
        self._pump_task = asyncio.create_task(
            self._pump(session),
            name="supervisor-event-pump"
        )
        logger.info("Messaging session established, event pump started")

    async def stop(self) -> None:
        """Cancel pending reconnects and release the live session (idempotent)"""
        logger.info("Stopping connection supervisor...")
        self.timer.cancel()

        pump_task = self._pump_task
        await self._release_session()

        if pump_task is not None and pump_task is not asyncio.current_task():
            pump_task.cancel()
            try:
                await pump_task
            except asyncio.CancelledError:
                pass

        if not self._state.is_terminal:
            self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Connection supervisor stopped")

    async def wait_terminated(self) -> None:
        """
        Block until the supervisor reaches a terminal state.

        Raises:
            SessionExpiredError: Logged out by the platform
            TransientConnectionError: Rate-limit retries exhausted
        """
        # Shielded: a cancelled waiter must not cancel the shared outcome
        await asyncio.shield(self._termination_future())

    # ========== Event Handling ==========

    async def handle_event(self, event: ClientEvent, session: PlatformSession) -> None:
        """Handle one event from the session channel"""
        if isinstance(event, ConnectionUpdate):
            await self.handle_connection_update(event)
        elif isinstance(event, CredentialsUpdate):
            try:
                self.credentials.save(event.creds)
            except OSError as e:
                logger.error(f"Failed to persist credential update: {e}")
        elif isinstance(event, MessagesUpsert):
            self.dispatcher.dispatch_batch(event, session)
        else:
            logger.warning(f"Unknown client event ignored: {type(event).__name__}")

    async def handle_connection_update(self, update: ConnectionUpdate) -> None:
        """Apply one connection-state transition"""
        if update.qr:
            logger.warning(
                "Platform requested QR pairing; pair the bridge manually to continue"
            )

        if update.connection == ConnectionPhase.CONNECTING:
            self._set_state(ConnectionState.CONNECTING)
        elif update.connection == ConnectionPhase.OPEN:
            self._reconnect_attempts = 0
            self._set_state(ConnectionState.OPEN)
            logger.info("✅ Connected to messaging platform")
        elif update.connection == ConnectionPhase.CLOSE:
            await self._handle_close(update.status_code)

    async def _handle_close(self, status_code: Optional[int]) -> None:
        logger.warning(f"Messaging session closed: status_code={status_code}")
        await self._release_session()

        if status_code == DisconnectReason.LOGGED_OUT:
            self.timer.cancel()
            try:
                self.credentials.clear()
            except OSError as e:
                logger.error(f"Failed to clear credentials after logout: {e}")
            self._set_state(ConnectionState.CLOSED_LOGGED_OUT)
            logger.error("Logged out by the platform. Re-authenticate manually to continue.")
            self._terminate(SessionExpiredError(
                "Session logged out; credentials cleared, manual re-authentication required"
            ))
            return

        if status_code == DisconnectReason.RATE_LIMITED:
            self._reconnect_attempts += 1
            if self._reconnect_attempts > self.MAX_RATE_LIMIT_RETRIES:
                self.timer.cancel()
                self._set_state(ConnectionState.FAILED)
                logger.critical(
                    f"Rate-limit retries exhausted after {self.MAX_RATE_LIMIT_RETRIES} attempts"
                )
                self._terminate(TransientConnectionError(
                    f"Rate limited {self._reconnect_attempts} times in a row, giving up"
                ))
                return
            delay = min(self._reconnect_attempts * self.RATE_LIMIT_STEP, self.RATE_LIMIT_MAX_DELAY)
            self._schedule_reconnect(
                delay,
                reason=f"rate limited (attempt {self._reconnect_attempts}/{self.MAX_RATE_LIMIT_RETRIES})"
            )
            return

        self._schedule_reconnect(self.TRANSIENT_DELAY, reason=f"closed with status {status_code}")

    # ========== Internals ==========

    async def _pump(self, session: PlatformSession) -> None:
        logger.debug("Event pump running")
        try:
            async for event in session.events:
                # Events queued behind a close belong to a released session
                if session is not self._session:
                    logger.debug(f"Dropping event from released session: {type(event).__name__}")
                    continue
                try:
                    await self.handle_event(event, session)
                except Exception as e:
                    logger.error(f"Error handling client event: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.debug("Event pump cancelled")
            raise
        finally:
            logger.debug("Event pump exited")

    async def _release_session(self) -> None:
        """Close the live session; its channel closes and the pump drains out"""
        session = self._session
        self._session = None
        self._pump_task = None
        if session is None:
            return
        try:
            await session.close()
        except Exception as e:
            logger.error(f"Error closing messaging session: {e}", exc_info=True)

    def _schedule_reconnect(self, delay: float, reason: str) -> None:
        if self.timer.pending:
            logger.warning(f"Reconnect already pending, ignoring new request ({reason})")
            return
        self._set_state(ConnectionState.CLOSED_RECONNECTING)
        logger.info(f"Reconnecting in {delay:g}s: {reason}")
        self.timer.schedule(delay, self._reconnect)

    async def _reconnect(self) -> None:
        if self._state != ConnectionState.CLOSED_RECONNECTING:
            logger.debug(f"Skipping reconnect in state {self._state.value}")
            return
        try:
            await self.start()
        except RuntimeAlreadyStartedError as e:
            logger.warning(f"Reconnect skipped: {e.message}")

    def _termination_future(self) -> asyncio.Future:
        if self._terminated is None:
            self._terminated = asyncio.get_running_loop().create_future()
        return self._terminated

    def _terminate(self, error: Exception) -> None:
        future = self._termination_future()
        if not future.done():
            future.set_exception(error)

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            logger.debug(f"Connection state: {self._state.value} -> {state.value}")
            self._state = state
