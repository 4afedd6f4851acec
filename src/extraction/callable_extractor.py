# src/extraction/callable_extractor.py — v1
"""Adapter turning any async callable into an extraction invoker.

Typical use is wrapping an LLM completion function. Failures of the
callable are reported as ExtractionError; cancellation propagates.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from acadimport.core.errors import ExtractionError
from acadimport.extraction.base_extractor import BaseExtractionInvoker
from acadimport.extraction.json_cleaner import clean_json_response

logger = logging.getLogger(__name__)


class CallableExtractionInvoker(BaseExtractionInvoker):
    """Wrap ``async fn(raw_text) -> str``.

    Args:
        fn: Extraction coroutine function.
        clean_output: Strip markdown fences and prose from the result.
        name: Name used in logs.
    """

    def __init__(
        self,
        fn: Callable[[str], Awaitable[str | None]],
        clean_output: bool = True,
        name: str | None = None,
    ) -> None:
        self._fn = fn
        self._clean_output = clean_output
        self._name = name or getattr(fn, "__name__", "callable")

    @property
    def name(self) -> str:
        return self._name

    async def extract(self, raw_text: str) -> str:
        try:
            result = await self._fn(raw_text)
        except ExtractionError:
            raise
        except Exception as e:
            logger.error("Extractor '%s' failed: %s", self._name, e)
            raise ExtractionError(f"Extractor '{self._name}' failed: {e}") from e

        if not result:
            return ""
        return clean_json_response(result) if self._clean_output else result
