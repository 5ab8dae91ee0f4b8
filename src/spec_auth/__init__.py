"""SpecAuth client library: signature based auth sessions."""

from ._version import __version__
from .api import AuthApi
from .client import SpecAuthClient
from .config import AuthClientConfig, load_config
from .exceptions import ApiError, SpecAuthError, SpecAuthErrorCodes
from .hooks import HookResult, perform_auth_hook
from .http_api import HttpAuthApi
from .logger import configure_logging, configure_logging_from_config
from .models import (
    AuthChangeEvent,
    AuthSuccess,
    MessageNonce,
    NonceResult,
    PersistedSessions,
    RecoveryState,
    Session,
    SessionResult,
    SignOutResult,
    SubscriptionResult,
    User,
    VerifyResult,
)
from .scheduler import RefreshScheduler
from .storage import (
    AsyncInMemoryStorage,
    FileStorage,
    InMemoryStorage,
    StorageAdapter,
    SupportedStorage,
)
from .subscribers import SubscriberRegistry, Subscription

__all__ = [
    "__version__",
    "ApiError",
    "AsyncInMemoryStorage",
    "AuthApi",
    "AuthChangeEvent",
    "AuthClientConfig",
    "AuthSuccess",
    "FileStorage",
    "HookResult",
    "HttpAuthApi",
    "InMemoryStorage",
    "MessageNonce",
    "NonceResult",
    "PersistedSessions",
    "RecoveryState",
    "RefreshScheduler",
    "Session",
    "SessionResult",
    "SignOutResult",
    "SpecAuthClient",
    "SpecAuthError",
    "SpecAuthErrorCodes",
    "StorageAdapter",
    "SubscriberRegistry",
    "Subscription",
    "SubscriptionResult",
    "SupportedStorage",
    "User",
    "VerifyResult",
    "configure_logging",
    "configure_logging_from_config",
    "load_config",
    "perform_auth_hook",
]
