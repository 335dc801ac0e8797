"""Chat sessions and turn orchestration."""

from helpcopilot.chat.service import ChatService, ChatTurnResult, parse_rate_limit_wait
from helpcopilot.chat.session_cache import SessionCache, SessionCacheEntry

__all__ = [
    "ChatService",
    "ChatTurnResult",
    "SessionCache",
    "SessionCacheEntry",
    "parse_rate_limit_wait",
]
