"""Time-bounded wrapper around a TextGenerator."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

from ..ports.text_generator import TextGenerator

logger = logging.getLogger(__name__)


class GuardedGenerator:
    """Run generator calls under a wall-clock budget.

    ``generate`` returns ``None`` when no generator is configured, the call
    raises, or it does not finish within ``timeout_seconds``. A timed-out
    call keeps running on its worker thread; its result is discarded.
    """

    def __init__(
        self,
        generator: TextGenerator | None,
        timeout_seconds: float = 25.0,
        max_workers: int = 8,
    ) -> None:
        self._generator = generator
        self._timeout = timeout_seconds
        self._pool = (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="generator")
            if generator is not None
            else None
        )

    @property
    def available(self) -> bool:
        return self._generator is not None

    def generate(self, prompt: str, *, purpose: str = "generate") -> str | None:
        if self._generator is None or self._pool is None:
            return None
        future = self._pool.submit(self._generator.generate, prompt)
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning(
                "generator_timeout",
                extra={"purpose": purpose, "timeout_seconds": self._timeout},
            )
        except Exception as exc:
            logger.warning(
                "generator_error",
                extra={"purpose": purpose, "error": str(exc)},
                exc_info=True,
            )
        return None
