"""
Chat turn orchestration.

A turn optionally prefixes locally retrieved command suggestions to the
user's message, posts it to the session's thread, runs the assistant and
returns the answer. Some providers report rate limiting by finishing the run
without a reply, leaving the user's own message as the newest one in the
thread; that case is detected and retried after the wait the provider asks
for.
"""

import re
import time
from typing import Callable

from openai import OpenAI
from pydantic import BaseModel

from helpcopilot.ai.openai.client import embed_text, openai_errors
from helpcopilot.ai.openai.exceptions import OpenAIRateLimitError, OpenAIRunError
from helpcopilot.ai.usage import UsageStats, UsageTracker
from helpcopilot.assistants.service import AssistantService
from helpcopilot.chat.session_cache import SessionCacheEntry
from helpcopilot.config import AppSettings
from helpcopilot.rag.similarity import rank
from helpcopilot.utils.logger import logger

RATE_LIMIT_CODE = "rate_limit_exceeded"
HINT_PREFIX = "Retrieved Suggestions:"

_DURATION_PART = re.compile(
    r"(\d+(?:\.\d+)?)\s*"
    r"(milliseconds?|ms|hours?|hrs?|h|minutes?|mins?|m|seconds?|secs?|s)(?![a-z])",
    re.IGNORECASE,
)


class ChatTurnResult(BaseModel):
    """Answer and token usage for one chat turn."""

    answer: str
    usage: UsageStats
    thread_id: str
    run_id: str
    suggestions: list[str] = []


def _unit_seconds(unit: str) -> float:
    unit = unit.lower()
    if unit.startswith(("ms", "milli")):
        return 0.001
    if unit.startswith("h"):
        return 3600.0
    if unit.startswith("m"):
        return 60.0
    return 1.0


def parse_rate_limit_wait(message: str | None, default: float = 60.0) -> float:
    """Seconds to wait as suggested by a rate-limit error message.

    Reads the first duration in the message, summing adjacent unit groups
    so "1m30s" is 90 seconds and "300ms" is 0.3.
    """
    if not message:
        return default

    total: float | None = None
    end: int | None = None
    for match in _DURATION_PART.finditer(message):
        if end is not None and message[end : match.start()].strip():
            break
        total = (total or 0.0) + float(match.group(1)) * _unit_seconds(match.group(2))
        end = match.end()
    return total if total is not None else default


def _message_text(message) -> str:
    parts = []
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) == "text":
            parts.append(block.text.value)
    return "\n".join(parts)


class ChatService:
    """Runs chat turns against a session's thread and assistant."""

    def __init__(
        self,
        client: OpenAI,
        settings: AppSettings,
        assistants: AssistantService | None = None,
        usage: UsageTracker | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.settings = settings
        self.assistants = assistants or AssistantService(client)
        self.usage = usage
        self._sleep = sleep

    def compose_message(
        self,
        session: SessionCacheEntry,
        message: str,
        want_hints: bool,
        suppress_retrieval_reminder: bool,
    ) -> tuple[str, list[str]]:
        """Build the text actually sent, plus the suggested command names."""
        if want_hints:
            query = embed_text(
                self.client, message, self.settings.embedding_model, usage=self.usage
            )
            suggestions = [
                item_id
                for item_id, _ in rank(query, session.embedding_table, self.settings.hint_count)
            ]
            logger.debug("Ranked retrieval hints", suggestions=suggestions)
            if suggestions:
                return f"{HINT_PREFIX} {', '.join(suggestions)}\n\n{message}", suggestions
            logger.warning(
                "No retrieval hints available, sending message without them",
                assistant_name=session.assistant_name,
            )

        if suppress_retrieval_reminder or not self.settings.retrieval_reminder:
            return message, []
        return f"{message}{self.settings.retrieval_reminder}", []

    def _latest_message_text(self, thread_id: str) -> str | None:
        with openai_errors("Reading thread messages"):
            messages = self.client.beta.threads.messages.list(
                thread_id=thread_id, order="desc", limit=1
            )
        if not messages.data:
            return None
        return _message_text(messages.data[0])

    def _run(self, session: SessionCacheEntry):
        kwargs = {
            "thread_id": session.thread_id,
            "assistant_id": session.assistant.id,
            "max_completion_tokens": self.settings.max_output_tokens,
        }
        if session.vector_index_id:
            kwargs["tools"] = [{"type": "file_search"}]
        with openai_errors("Assistant run"):
            return self.client.beta.threads.runs.create_and_poll(**kwargs)

    def send_turn(
        self,
        session: SessionCacheEntry,
        message: str,
        want_hints: bool = False,
        suppress_retrieval_reminder: bool = False,
        structured: bool = False,
    ) -> str | ChatTurnResult:
        """Send one user message and wait for the assistant's answer.

        Args:
            session: Session from the session cache
            message: User message
            want_hints: Prefix locally retrieved command suggestions
            suppress_retrieval_reminder: Do not append the retrieval reminder
            structured: Return a ChatTurnResult instead of the answer text

        Returns:
            str | ChatTurnResult: Answer text, or answer with token usage

        Raises:
            AssistantNotFoundError: If the session's assistant does not exist
            OpenAIRunError: If the run ends without an answer for a reason other than rate limiting
            OpenAIRateLimitError: If rate limiting outlasts max_rate_limit_retries
        """
        content, suggestions = self.compose_message(
            session, message, want_hints, suppress_retrieval_reminder
        )

        if session.assistant is None:
            session.assistant = self.assistants.get_assistant_by_name(session.assistant_name)
            logger.info(
                "Resolved assistant for session",
                assistant_name=session.assistant_name,
                assistant_id=session.assistant.id,
            )

        with openai_errors("Posting message"):
            self.client.beta.threads.messages.create(
                thread_id=session.thread_id, role="user", content=content
            )

        attempts = 0
        while True:
            run = self._run(session)
            answer = self._latest_message_text(session.thread_id)
            if answer is not None and answer != content:
                break

            error = getattr(run, "last_error", None)
            code = getattr(error, "code", None)
            error_message = getattr(error, "message", None)
            if code != RATE_LIMIT_CODE:
                raise OpenAIRunError(
                    f"Run {run.id} ended '{run.status}' without an answer"
                    + (f": {error_message}" if error_message else ""),
                    code=code,
                )
            if attempts >= self.settings.max_rate_limit_retries:
                raise OpenAIRateLimitError(
                    f"Still rate limited after {attempts} retries: {error_message}",
                    attempts=attempts,
                )

            wait = parse_rate_limit_wait(error_message, self.settings.default_rate_limit_wait)
            attempts += 1
            logger.warning(
                "Run was rate limited, retrying",
                run_id=run.id,
                wait_seconds=wait,
                attempt=attempts,
            )
            self._sleep(wait)

        run_usage = getattr(run, "usage", None)
        stats = UsageStats(
            prompt_tokens=getattr(run_usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(run_usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(run_usage, "total_tokens", 0) or 0,
        )
        if self.usage is not None:
            self.usage.add_stats(session.assistant.model, stats)

        if not structured:
            return answer
        return ChatTurnResult(
            answer=answer,
            usage=stats,
            thread_id=session.thread_id,
            run_id=run.id,
            suggestions=suggestions,
        )
