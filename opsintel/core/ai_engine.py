"""
AI Engine module - Structured JSON generation against the analysis service.

This module provides the ``GenerativeEngine`` class, the single interface
through which OpsIntel talks to a generative model.  It exposes one core
capability, :meth:`GenerativeEngine.generate_json`: send a prompt, a system
instruction and a response schema, and get back the raw JSON text the model
produced.  Parsing and validating that text is the job of the callers in
:mod:`opsintel.analysis`.

Backends
--------
Two backends are supported, selected by ``core.config.BACKEND``:

- **gemini** (default) -- Google Gemini through the ``google-genai`` SDK.
  The schema is passed as ``response_schema`` together with
  ``response_mime_type="application/json"`` so the service enforces it.
- **ollama** -- a local Ollama server through its REST API
  (``/api/generate``).  The schema is converted to plain JSON Schema and
  passed in the ``format`` field; reasoning models may still wrap their
  chain-of-thought in ``<think>`` tags, which are stripped.

Error handling strategy
-----------------------
Unlike a free-text summary, a structured analysis has no meaningful
fallback: a made-up metrics document would be rendered as if it were real.
Every transport or service failure is therefore raised as
:class:`~opsintel.core.errors.ServiceError` carrying the service's own
message where one is available.  The session controller turns it into a
user-facing error.
"""

import re
import json
import logging

import requests
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from opsintel.core.config import (
    BACKEND,
    BACKEND_GEMINI,
    BACKEND_OLLAMA,
    GEMINI_API_KEY,
    GEN_MODEL,
    GEN_TEMPERATURE,
    OLLAMA_BASE_URL,
    OLLAMA_MODEL,
    REQUEST_TIMEOUT,
    SUPPORTED_BACKENDS,
)
from opsintel.core.errors import ServiceError
from opsintel.models.schemas import to_json_schema

logger = logging.getLogger(__name__)


class GenerativeEngine:
    """Sends structured-output requests to the configured backend.

    State is limited to the backend name, the model id and a lazily created
    Gemini client.  The engine holds no conversation history: every call is
    independent.

    Thread safety: instances are **not** thread-safe.  One engine is used per
    dashboard session and calls are made one at a time.
    """

    def __init__(self, backend=None, model=None, api_key=None):
        """Initialise backend and model names from configuration.

        No network calls are made here -- availability is verified separately
        by :func:`check_service`.
        """
        self.backend = (backend or BACKEND).lower()
        if self.backend not in SUPPORTED_BACKENDS:
            raise ValueError(f"Unsupported backend '{self.backend}'. Choose one of {SUPPORTED_BACKENDS}")
        if model:
            self.model = model
        else:
            self.model = GEN_MODEL if self.backend == BACKEND_GEMINI else OLLAMA_MODEL
        self.api_key = api_key if api_key is not None else GEMINI_API_KEY
        self._client = None

    # ==================================================================
    # GENERATION
    # ==================================================================

    def generate_json(self, prompt: str, schema: dict, system_instruction: str) -> str:
        """Request a JSON document conforming to ``schema``.

        Args:
            prompt: The user-turn text, including the data to analyse.
            schema: Response schema in Gemini's OpenAPI form (see
                :mod:`opsintel.models.schemas`).
            system_instruction: Role and output-format instruction.

        Returns:
            The response text, expected to be a JSON document.  It is not
            parsed here.

        Raises:
            ServiceError: The service was unreachable, rejected the request
                or returned an empty body.
        """
        logger.info(f"Requesting structured output from {self.backend}:{self.model} "
                    f"({len(prompt)} chars of prompt)")
        if self.backend == BACKEND_OLLAMA:
            text = self._generate_ollama(prompt, schema, system_instruction)
        else:
            text = self._generate_gemini(prompt, schema, system_instruction)

        if not text or not text.strip():
            raise ServiceError("The analysis service returned an empty response.")
        logger.info(f"  ✓ Response received ({len(text)} chars)")
        return text

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ServiceError("GEMINI_API_KEY is not set. Export it before starting the dashboard.")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def _generate_gemini(self, prompt, schema, system_instruction):
        client = self._get_client()
        try:
            response = client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    response_mime_type="application/json",
                    response_schema=schema,
                    temperature=GEN_TEMPERATURE,
                ),
            )
        except genai_errors.APIError as e:
            logger.error(f"Gemini request failed ({e.code}): {e.message}")
            raise ServiceError(e.message or str(e)) from e
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise ServiceError(str(e)) from e
        return response.text

    def _generate_ollama(self, prompt, schema, system_instruction):
        try:
            res = requests.post(
                f"{OLLAMA_BASE_URL}/api/generate",
                json={
                    "model": self.model,
                    "system": system_instruction,
                    "prompt": prompt,
                    "format": to_json_schema(schema),
                    "stream": False,
                    "options": {
                        "num_ctx": 32768,             # Room for a full week of ticket logs
                        "temperature": GEN_TEMPERATURE,
                    },
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Ollama request timed out after {REQUEST_TIMEOUT}s - model may be loading.")
            raise ServiceError(f"The analysis service timed out after {REQUEST_TIMEOUT}s.") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Ollama request failed: {e}")
            raise ServiceError(f"Cannot reach the analysis service at {OLLAMA_BASE_URL}.") from e

        if res.status_code != 200:
            logger.error(f"Ollama returned status {res.status_code}: {res.text[:200]}")
            raise ServiceError(_ollama_error_message(res))

        return self._strip_thinking_tags(res.json().get("response", ""))

    def _strip_thinking_tags(self, text):
        """Remove ``<think>...</think>`` blocks emitted by reasoning models."""
        if not text:
            return text
        cleaned = re.sub(r'<think>.*?</think>', '', text, flags=re.DOTALL | re.IGNORECASE)
        return cleaned.strip()


def _ollama_error_message(res) -> str:
    try:
        return res.json().get("error") or f"Service returned status {res.status_code}"
    except json.JSONDecodeError:
        return f"Service returned status {res.status_code}"


# ============================================================================
# HEALTH CHECK
# ============================================================================

def check_service(engine=None) -> bool:
    """Check that the configured backend is usable.

    For Gemini only the presence of a credential is checked (no quota is
    spent).  For Ollama the server root is queried and the model list is
    searched for the configured tag.

    Returns:
        ``True`` if the backend looks usable, ``False`` otherwise.  Problems
        are logged, never raised.
    """
    engine = engine or GenerativeEngine()

    if engine.backend == BACKEND_GEMINI:
        if not engine.api_key:
            logger.error("GEMINI_API_KEY (or API_KEY) is not set")
            return False
        logger.info(f"✓ Gemini credential present, model '{engine.model}'")
        return True

    try:
        res = requests.get(f"{OLLAMA_BASE_URL}/api/tags", timeout=3)
    except requests.exceptions.RequestException as e:
        logger.error(f"Ollama server not reachable at {OLLAMA_BASE_URL}: {e}")
        return False

    if res.status_code != 200:
        logger.error(f"Ollama server returned status {res.status_code}")
        return False

    names = [m.get("name", "") for m in res.json().get("models", [])]
    if engine.model not in names:
        logger.warning(f"Model '{engine.model}' not pulled. Run: ollama pull {engine.model}")
        return False
    logger.info(f"✓ Ollama model '{engine.model}' is available")
    return True
