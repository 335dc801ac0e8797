"""Running token and cost accumulator shared by chat and training-data calls."""

import threading

from pydantic import BaseModel

# USD per million tokens (input, output). Unknown models are counted but not priced.
MODEL_PRICES: dict[str, tuple[float, float]] = {
    "gpt-4o": (2.50, 10.00),
    "gpt-4o-mini": (0.15, 0.60),
    "gpt-4.1": (2.00, 8.00),
    "gpt-4.1-mini": (0.40, 1.60),
    "text-embedding-3-small": (0.02, 0.0),
    "text-embedding-3-large": (0.13, 0.0),
}


class UsageStats(BaseModel):
    """Token counts for one call, or accumulated over many."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class UsageSummary(BaseModel):
    """Accumulated usage across the process."""

    by_model: dict[str, UsageStats]
    estimated_cost_usd: float


class UsageTracker:
    """Thread-safe accumulator of token usage per model."""

    def __init__(self, prices: dict[str, tuple[float, float]] | None = None):
        self._prices = prices if prices is not None else MODEL_PRICES
        self._lock = threading.Lock()
        self._by_model: dict[str, UsageStats] = {}
        self._cost = 0.0

    def add(self, model: str, prompt_tokens: int = 0, completion_tokens: int = 0) -> None:
        with self._lock:
            stats = self._by_model.setdefault(model, UsageStats())
            stats.prompt_tokens += prompt_tokens
            stats.completion_tokens += completion_tokens
            stats.total_tokens += prompt_tokens + completion_tokens
            price_in, price_out = self._prices.get(model, (0.0, 0.0))
            self._cost += (prompt_tokens * price_in + completion_tokens * price_out) / 1_000_000

    def add_stats(self, model: str, stats: UsageStats) -> None:
        self.add(model, stats.prompt_tokens, stats.completion_tokens)

    @property
    def estimated_cost(self) -> float:
        with self._lock:
            return self._cost

    def summary(self) -> UsageSummary:
        with self._lock:
            return UsageSummary(
                by_model={k: v.model_copy() for k, v in self._by_model.items()},
                estimated_cost_usd=round(self._cost, 6),
            )
