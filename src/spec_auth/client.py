"""SpecAuthClient: session lifecycle manager for signature based auth."""

from __future__ import annotations

import asyncio
import contextlib

import structlog

from . import helpers
from .api import AuthApi
from .config import AuthClientConfig
from .exceptions import ApiError, SpecAuthErrorCodes
from .http_api import HttpAuthApi
from .models import (
    AuthChangeEvent,
    NonceResult,
    PersistedSessions,
    RecoveryState,
    Session,
    SessionResult,
    SignOutResult,
    StateChangeCallback,
    SubscriptionResult,
    User,
    VerifyResult,
)
from .scheduler import RefreshScheduler
from .storage import StorageAdapter, SupportedStorage
from .subscribers import SubscriberRegistry

logger = structlog.get_logger(__name__)


def _internal_error(e: Exception) -> ApiError:
    return ApiError(message=str(e), code=SpecAuthErrorCodes.INTERNAL, cause=e)


class SpecAuthClient:
    """Owns the current session, persists it per address and keeps it fresh.

    Construction recovers the active session from ``storage``: a
    synchronous pass runs before ``__init__`` returns, and an asynchronous
    pass is scheduled on the running event loop, or started by the first
    coroutine called when there was none. Await ``wait_for_recovery()`` to
    know when the second pass has finished.

    Args:
        config: client settings. Defaults to ``AuthClientConfig()``.
        api: transport used for the network calls. Defaults to
            ``HttpAuthApi(config)``.
        storage: durable key-value store. Without one nothing is persisted
            or recovered.
    """

    def __init__(
        self,
        config: AuthClientConfig | None = None,
        *,
        api: AuthApi | None = None,
        storage: SupportedStorage | None = None,
    ) -> None:
        self._config = config or AuthClientConfig()
        self.api: AuthApi = api or HttpAuthApi(self._config)
        self._current_session: Session | None = None
        self._current_user: User | None = None
        self._auto_refresh_token = self._config.auto_refresh_token
        self._storage = StorageAdapter(storage, self._config.storage_key)
        self._persist_session = (
            self._config.persist_session and self._storage.available
        )
        self._scheduler = RefreshScheduler(
            self._on_refresh_timer, enabled=self._auto_refresh_token
        )
        self._subscribers = SubscriberRegistry()
        # Bumped whenever the current session is replaced or removed, so
        # in-flight refreshes and recovery can detect that their read is stale.
        self._generation = 0
        self._recovery_state = RecoveryState.UNINITIALIZED
        self._recovery_task: asyncio.Task[None] | None = None

        self._recover_active_session()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("async_recovery_deferred", reason="no running event loop")
        else:
            self._recovery_task = loop.create_task(self._recover_and_refresh())

    # -- accessors ----------------------------------------------------------

    def user(self) -> User | None:
        """The signed-in user, if any."""
        return self._current_user

    def session(self) -> Session | None:
        """The active session, if any."""
        return self._current_session

    def is_loading(self) -> bool:
        """True until startup recovery has finished."""
        return self._recovery_state not in (
            RecoveryState.ACTIVE,
            RecoveryState.SIGNED_OUT,
        )

    @property
    def recovery_state(self) -> RecoveryState:
        """Current step of startup recovery."""
        return self._recovery_state

    @property
    def scheduler(self) -> RefreshScheduler:
        """The refresh scheduler owned by this client."""
        return self._scheduler

    # -- public operations ----------------------------------------------------

    async def init(self, address: str) -> NonceResult:
        """Request a message for ``address`` to sign."""
        self._ensure_recovery_started()
        try:
            data = await self.api.init_auth(address)
        except ApiError as e:
            return NonceResult(error=e)
        except Exception as e:
            return NonceResult(error=_internal_error(e))
        if data is None:
            return NonceResult(
                error=ApiError(
                    message="An error occurred requesting a message to sign.",
                    code=SpecAuthErrorCodes.MISSING_DATA,
                )
            )
        return NonceResult(data=data)

    async def verify(self, address: str, signature: str) -> VerifyResult:
        """Verify a signed message and sign in with the resulting session."""
        self._ensure_recovery_started()
        try:
            data = await self.api.verify_auth(address, signature)
            if data is None:
                return VerifyResult(
                    error=ApiError(
                        message="An error occurred on sign-in.",
                        code=SpecAuthErrorCodes.MISSING_DATA,
                    )
                )
            session = data.session
            if session.user is None:
                session = session.with_user(data.user)
            await self._save_session(session)
            self._notify_all_subscribers(AuthChangeEvent.SIGNED_IN)
            return VerifyResult(
                session=session, user=data.user, is_new_user=data.is_new_user
            )
        except ApiError as e:
            return VerifyResult(error=e)
        except Exception as e:
            logger.exception("verify_failed", address=address)
            return VerifyResult(error=_internal_error(e))

    async def refresh_session(self) -> SessionResult:
        """Force a refresh of the current session, user data included."""
        self._ensure_recovery_started()
        if self._current_session is None or not self._current_session.access_token:
            return SessionResult(
                error=ApiError(
                    message="Not logged in.",
                    code=SpecAuthErrorCodes.NOT_AUTHENTICATED,
                )
            )
        result = await self._call_refresh_token()
        if result.error is not None:
            return SessionResult(error=result.error)
        return SessionResult(session=self._current_session, user=self._current_user)

    async def set_session(self, refresh_token: str) -> SessionResult:
        """Sign in with a session obtained from ``refresh_token``."""
        self._ensure_recovery_started()
        if not refresh_token:
            return SessionResult(
                error=ApiError(
                    message="No current session.",
                    code=SpecAuthErrorCodes.NO_REFRESH_TOKEN,
                )
            )
        try:
            session = await self.api.refresh_access_token(refresh_token)
            if session is None:
                return SessionResult(
                    error=ApiError(
                        message="Invalid session data.",
                        code=SpecAuthErrorCodes.INVALID_SESSION,
                    )
                )
            await self._save_session(session)
            self._notify_all_subscribers(AuthChangeEvent.SIGNED_IN)
            return SessionResult(session=session, user=session.user)
        except ApiError as e:
            return SessionResult(error=e)
        except Exception as e:
            logger.exception("set_session_failed")
            return SessionResult(error=_internal_error(e))

    async def switch_to_inactive_session(self, address: str) -> bool:
        """Make the persisted session of ``address`` the active one.

        Returns False when there is no usable session for ``address``.
        """
        self._ensure_recovery_started()
        try:
            if self._current_user is not None and self._current_user.id == address:
                return True

            persisted = await self._storage.load()
            if persisted is None:
                return False

            inactive = persisted.sessions.get(address)
            if inactive is None or not inactive.is_complete():
                return False

            if not inactive.is_expired(helpers.now_seconds()):
                await self._save_session(inactive)
                self._notify_all_subscribers(AuthChangeEvent.SIGNED_IN)
                return True

            if self._auto_refresh_token and inactive.refresh_token:
                result = await self._call_refresh_token(
                    inactive.refresh_token, inactive.user
                )
                if result.error is not None:
                    logger.warning(
                        "switch_refresh_failed",
                        address=address,
                        error=str(result.error),
                    )
                    await self._remove_sessions()
                    return False
                return True

            return False
        except Exception:
            logger.exception("switch_session_failed", address=address)
            return False

    async def sign_out(self) -> SignOutResult:
        """Clear local state, then revoke the access token on the server.

        Local state is cleared even when the revoke call fails.
        """
        self._ensure_recovery_started()
        access_token = (
            self._current_session.access_token if self._current_session else None
        )
        await self._remove_sessions()
        self._notify_all_subscribers(AuthChangeEvent.SIGNED_OUT)

        if access_token:
            try:
                await self.api.sign_out(access_token)
            except ApiError as e:
                return SignOutResult(error=e)
            except Exception as e:
                return SignOutResult(error=_internal_error(e))
        return SignOutResult()

    def on_state_change(self, callback: StateChangeCallback) -> SubscriptionResult:
        """Call ``callback(event, session)`` on every auth event."""
        try:
            return SubscriptionResult(data=self._subscribers.add(callback))
        except Exception as e:
            return SubscriptionResult(error=_internal_error(e))

    async def wait_for_recovery(self) -> None:
        """Wait for the asynchronous recovery pass, starting it if needed."""
        self._ensure_recovery_started()
        if self._recovery_task is not None:
            await self._recovery_task

    async def aclose(self) -> None:
        """Stop the refresh timer and any pending recovery. Storage is kept."""
        task = self._recovery_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._scheduler.aclose()

    # -- recovery -----------------------------------------------------------

    def _ensure_recovery_started(self) -> None:
        """Start the asynchronous recovery pass if construction could not."""
        if self._recovery_task is None and self.is_loading():
            self._recovery_task = asyncio.get_running_loop().create_task(
                self._recover_and_refresh()
            )

    def _recover_active_session(self) -> None:
        # Must not await: callers read session() right after construction.
        self._recovery_state = RecoveryState.RECOVERING_SYNC
        try:
            persisted = self._storage.load_sync()
            if persisted is None:
                return
            session = persisted.active_session()
            if session is None:
                return
            if session.is_complete() and not session.is_expired(helpers.now_seconds()):
                self._adopt_session(session)
                self._notify_all_subscribers(AuthChangeEvent.SIGNED_IN)
        except Exception:
            logger.exception("sync_recovery_failed")

    async def _recover_and_refresh(self) -> None:
        self._recovery_state = RecoveryState.RECOVERING_ASYNC
        try:
            generation = self._generation
            persisted = await self._storage.load()
            if generation != self._generation:
                logger.info("recovery_result_discarded", reason="session changed")
                return
            if persisted is None:
                return
            session = persisted.active_session()

            if (
                session is not None
                and session.expires_at is not None
                and session.is_expired(helpers.now_seconds())
            ):
                if self._auto_refresh_token and session.refresh_token:
                    result = await self._call_refresh_token(
                        session.refresh_token, session.user
                    )
                    if result.error is not None:
                        logger.warning(
                            "recovery_refresh_failed", error=str(result.error)
                        )
                        await self._remove_sessions()
                else:
                    await self._remove_sessions()
            elif session is None or not session.is_complete():
                logger.warning(
                    "session_missing_data", active_address=persisted.active_address
                )
                await self._remove_sessions()
            else:
                await self._save_session(session)
                self._notify_all_subscribers(AuthChangeEvent.SIGNED_IN)
        except Exception:
            logger.exception("async_recovery_failed")
        finally:
            self._recovery_state = (
                RecoveryState.ACTIVE
                if self._current_session is not None
                else RecoveryState.SIGNED_OUT
            )
            self._notify_all_subscribers(AuthChangeEvent.INITIAL_STATE_LOADED)

    # -- save / refresh / remove --------------------------------------------

    async def _call_refresh_token(
        self,
        refresh_token: str | None = None,
        user: User | None = None,
    ) -> SessionResult:
        """Exchange a refresh token and commit the new session.

        Defaults to the current session's refresh token and user. The user
        override replaces the user returned by the server.
        """
        if refresh_token is None and self._current_session is not None:
            refresh_token = self._current_session.refresh_token
        if user is None:
            user = self._current_user
        if not refresh_token:
            return SessionResult(
                error=ApiError(
                    message="No current session.",
                    code=SpecAuthErrorCodes.NO_REFRESH_TOKEN,
                )
            )

        generation = self._generation
        try:
            session = await self.api.refresh_access_token(refresh_token)
        except ApiError as e:
            return SessionResult(error=e)
        except Exception as e:
            return SessionResult(error=_internal_error(e))
        if session is None or session.user is None:
            return SessionResult(
                error=ApiError(
                    message="Invalid session data.",
                    code=SpecAuthErrorCodes.INVALID_SESSION,
                )
            )
        if generation != self._generation:
            logger.info("refresh_result_discarded", reason="session removed")
            return SessionResult(
                error=ApiError(
                    message="Session changed during refresh.",
                    code=SpecAuthErrorCodes.SESSION_CHANGED,
                )
            )
        if user is not None:
            session = session.with_user(user)

        await self._save_session(session)
        self._notify_all_subscribers(AuthChangeEvent.TOKEN_REFRESHED)
        self._notify_all_subscribers(AuthChangeEvent.SIGNED_IN)
        return SessionResult(session=session, user=session.user)

    async def _on_refresh_timer(self) -> None:
        result = await self._call_refresh_token()
        if result.error is None:
            return
        logger.warning("auto_refresh_failed", error=str(result.error))
        if result.error.code != SpecAuthErrorCodes.SESSION_CHANGED:
            await self._remove_sessions()

    def _adopt_session(self, session: Session) -> None:
        """In-memory half of save: set current state and arm the refresh timer."""
        self._generation += 1
        self._current_session = session
        self._current_user = session.user

        if session.expires_at is not None:
            expires_in = session.expires_at - helpers.now_seconds()
            margin = helpers.refresh_margin(expires_in)
            self._scheduler.arm((expires_in - margin) * 1000)
        else:
            self._scheduler.cancel()

        if self._current_user is None:
            logger.warning("session_missing_user")

    async def _save_session(self, session: Session) -> None:
        self._adopt_session(session)
        if self._persist_session:
            await self._persist(session)

    async def _persist(self, session: Session) -> None:
        if session.user is None:
            return
        address = session.user.id
        persisted = await self._storage.load() or PersistedSessions()
        persisted.sessions[address] = session
        persisted.active_address = address
        await self._storage.save(persisted)

    async def _remove_sessions(self) -> None:
        self._generation += 1
        self._current_session = None
        self._current_user = None
        self._scheduler.cancel()
        await self._storage.remove()

    def _notify_all_subscribers(self, event: AuthChangeEvent) -> None:
        self._subscribers.broadcast(event, self._current_session)
