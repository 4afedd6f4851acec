# src/extraction/passthrough_extractor.py — v1
"""Manual extraction: the raw text already is the structured document."""

from __future__ import annotations

import json
import logging

from acadimport.core.errors import ExtractionError
from acadimport.extraction.base_extractor import BaseExtractionInvoker
from acadimport.extraction.json_cleaner import clean_json_response

logger = logging.getLogger(__name__)


class JsonPassthroughExtractor(BaseExtractionInvoker):
    """Accept raw text that is (possibly fenced) JSON and return it cleaned."""

    async def extract(self, raw_text: str) -> str:
        cleaned = clean_json_response(raw_text)
        if not cleaned:
            return ""
        try:
            json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Input is not a JSON document: {e}") from e
        logger.debug("Pass-through extraction: %d chars", len(cleaned))
        return cleaned
