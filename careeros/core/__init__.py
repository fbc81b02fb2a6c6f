"""CareerOS core: the chat-driven tool orchestration loop."""

from .config import CareerConfig, load_config
from .context import CareerSession
from .continuation import ATS_ACCEPTANCE_THRESHOLD, MAX_OPTIMIZATION_ATTEMPTS, AutoContinuationPolicy, FollowUp
from .conversation import ConversationStore, ConversationTurn, TurnKind, TurnRole
from .dispatcher import DispatchOutcome, ToolDispatcher, ToolInvocation, ToolRegistryMismatch
from .observability import ChatObserver
from .orchestrator import ChainResult, ChatOrchestrator, SessionBusyError
from .retry import PermanentError, RetryConfig, TransientError, retry_with_backoff
from .session import ProfileStore, SessionLifecycle
from .state import AppView, ApplicationState, Slice, view_label
from .transport import Attachment, TurnResult, TurnTransport

__all__ = [
    "ATS_ACCEPTANCE_THRESHOLD",
    "AppView",
    "ApplicationState",
    "Attachment",
    "AutoContinuationPolicy",
    "CareerConfig",
    "CareerSession",
    "ChainResult",
    "ChatObserver",
    "ChatOrchestrator",
    "ConversationStore",
    "ConversationTurn",
    "DispatchOutcome",
    "FollowUp",
    "MAX_OPTIMIZATION_ATTEMPTS",
    "PermanentError",
    "ProfileStore",
    "RetryConfig",
    "SessionBusyError",
    "SessionLifecycle",
    "Slice",
    "ToolDispatcher",
    "ToolInvocation",
    "ToolRegistryMismatch",
    "TransientError",
    "TurnKind",
    "TurnResult",
    "TurnRole",
    "TurnTransport",
    "load_config",
    "retry_with_backoff",
    "view_label",
]
