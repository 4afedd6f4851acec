# src/extraction/base_extractor.py — v2
"""Abstract extraction invoker interface.

Turns raw text into a structured candidate document serialized as text.
May be AI-backed, rule-based or manual; the pipeline treats it as opaque.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseExtractionInvoker(ABC):
    """Unified interface for extraction capabilities."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def extract(self, raw_text: str) -> str:
        """Extract a structured document from raw text.

        Returns:
            Serialized document (JSON text). Empty string means no data.

        Raises:
            ExtractionError: If extraction fails.
        """
