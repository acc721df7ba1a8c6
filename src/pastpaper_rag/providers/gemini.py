"""
Module: providers.gemini

Purpose:
    Google Gemini implementations of the generation and embedding
    capabilities. Provider exceptions are translated to the project's
    error taxonomy here so nothing above this module depends on the SDK.

Key Classes:
    - GeminiGenerator: PDF chunk + instruction -> JSON text
    - GeminiEmbedder: Text -> vector (gemini-embedding-001, 3072 dims)

Key Functions:
    - to_gemini_schema(): JSON schema -> Gemini response schema subset

Dependencies:
    - google-generativeai: Model calls
    - google-api-core: Provider exception types

Used By:
    - pipeline.cli: Client construction
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from pastpaper_rag.common.thresholds import EXTRACTION_THRESHOLDS, INDEX_THRESHOLDS
from pastpaper_rag.core.capabilities import (
    EmbeddingCapability,
    GenerationCapability,
    RateLimitedError,
    TransientGenerationError,
)

logger = logging.getLogger(__name__)

DEFAULT_GENERATION_MODEL = "gemini-2.0-flash"
DEFAULT_EMBEDDING_MODEL = "models/gemini-embedding-001"

# Keys the Gemini response schema understands
_SCHEMA_KEYS = ("type", "properties", "items", "required", "enum", "description", "nullable", "format")

_TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
    google_exceptions.DeadlineExceeded,
)


def to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reduce a JSON schema to the subset Gemini's structured output accepts.

    Drops validation-only keywords (pattern, minimum, $schema, title) and
    turns ``["integer", "null"]`` type lists into ``INTEGER`` plus
    ``nullable``.

    Example:
        >>> to_gemini_schema({"type": ["string", "null"], "pattern": "\\\\S"})
        {'type': 'STRING', 'nullable': True}
    """
    result: Dict[str, Any] = {}
    for key in _SCHEMA_KEYS:
        if key not in schema:
            continue
        value = schema[key]
        if key == "type":
            types = value if isinstance(value, list) else [value]
            concrete = [t for t in types if t != "null"]
            if len(concrete) != len(types):
                result["nullable"] = True
            result["type"] = concrete[0].upper() if concrete else "STRING"
        elif key == "properties":
            result["properties"] = {name: to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "items":
            result["items"] = to_gemini_schema(value)
        else:
            result[key] = value
    return result


def _translate(error: Exception) -> Exception:
    """Map SDK exceptions onto RateLimitedError / TransientGenerationError."""
    if isinstance(error, (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)):
        return RateLimitedError(f"Gemini rate limit: {error}")
    if isinstance(error, _TRANSIENT_ERRORS):
        return TransientGenerationError(f"Gemini unavailable: {error}")
    return error


class GeminiGenerator(GenerationCapability):
    """
    Gemini multimodal generation over PDF bytes.

    Responses are requested as ``application/json``; when a response
    schema is supplied it is reduced with to_gemini_schema() and sent as
    the structured output constraint.

    Example:
        >>> generator = GeminiGenerator(api_key, model_name="gemini-2.0-flash")
        >>> text = await generator.generate(pdf_bytes, instruction)
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_GENERATION_MODEL,
        *,
        max_output_tokens: int = EXTRACTION_THRESHOLDS.max_output_tokens,
        temperature: float = 0.0,
        use_response_schema: bool = True,
    ) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self._model = genai.GenerativeModel(model_name)
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature
        self._use_response_schema = use_response_schema

    async def generate(
        self,
        payload: bytes,
        instruction: str,
        *,
        response_schema: Optional[dict] = None,
    ) -> str:
        config_args: Dict[str, Any] = {
            "temperature": self._temperature,
            "max_output_tokens": self._max_output_tokens,
            "response_mime_type": "application/json",
        }
        if response_schema is not None and self._use_response_schema:
            config_args["response_schema"] = to_gemini_schema(response_schema)

        try:
            response = await self._model.generate_content_async(
                [{"mime_type": "application/pdf", "data": payload}, instruction],
                generation_config=genai.types.GenerationConfig(**config_args),
            )
        except Exception as e:
            translated = _translate(e)
            if translated is e:
                raise
            raise translated from e

        try:
            text = response.text
        except ValueError as e:
            # Blocked or empty candidates; the caller treats empty text as malformed output
            logger.warning(f"Gemini returned no text: {e}")
            return ""
        logger.debug(f"Gemini response: {len(text)} chars")
        return text


class GeminiEmbedder(EmbeddingCapability):
    """
    Gemini text embeddings.

    Use one instance for both indexing and querying; vectors from
    different models or dimensions are not comparable.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        dimensions: int = INDEX_THRESHOLDS.embedding_dimensions,
    ) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required")
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1: {dimensions}")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        try:
            result = await genai.embed_content_async(
                model=self.model_name,
                content=text,
                output_dimensionality=self._dimensions,
            )
        except Exception as e:
            translated = _translate(e)
            if translated is e:
                raise
            raise translated from e
        return list(result["embedding"])
