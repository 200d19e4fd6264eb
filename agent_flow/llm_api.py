"""
Client for the text/JSON generation service used by the agents.

The service accepts ``{"prompt": str, "type": "text" | "json", "schema"?: str}``
and answers:
    200  {"result": str}                      for type "text"
    200  {"result": <json>, "raw": str}       for type "json"
    400  missing or oversized prompt
    422  {"error": ..., "raw": str}           model answered with invalid JSON
    500  service unconfigured / upstream failure
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from logging import getLogger
from typing import Any, Optional

import httpx

from .config import get_settings
from .errors import GenerationError, InvalidJSONError

logger = getLogger(__name__)

MAX_PROMPT_LENGTH = 50_000


# -------------------------
# RESULT CONTAINERS
# -------------------------

@dataclass
class GenerationResult:
    """ Parsed service response; ``raw`` is the unparsed model text, if returned """
    result: Any
    raw: Optional[str] = None


# --------------------------
# LLM CLIENT
# --------------------------

class LLMClient:
    """
    Synchronous client for the generation endpoint.
    Pass ``transport`` to substitute the network (e.g. ``httpx.MockTransport``).
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        settings = get_settings()
        self.base_url = base_url if base_url is not None else settings.generate_url
        if api_key is None and settings.api_key is not None:
            api_key = settings.api_key.get_secret_value()
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def is_available(self) -> bool:
        return bool(self.base_url)

    def generate(self, prompt: str, type: str = "text", schema: Optional[str] = None) -> GenerationResult:
        """ Send one request to the service and return its parsed body. """
        _check_prompt(prompt)
        if not self.is_available():
            raise GenerationError("Generation service not configured")

        payload: dict = {"prompt": prompt, "type": type}
        if schema:
            payload["schema"] = schema

        try:
            response = self._http().post(self.base_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Generation request failed: {e}")
            raise GenerationError(f"Failed to generate content: {e}") from e

        body = _json_body(response)
        if response.status_code == 422:
            raise InvalidJSONError(raw=str(body.get("raw", "")),
                                   message=body.get("error") or "AI returned invalid JSON",
                                   status_code=422)
        if response.status_code >= 400:
            message = body.get("message") or body.get("error") or response.reason_phrase
            raise GenerationError(f"Generation failed ({response.status_code}): {message}",
                                  status_code=response.status_code)
        if "result" not in body:
            raise GenerationError("Generation response is missing 'result'",
                                  status_code=response.status_code)
        return GenerationResult(result=body["result"], raw=body.get("raw"))

    def generate_text(self, prompt: str) -> str:
        result = self.generate(prompt, type="text").result
        return result if isinstance(result, str) else json.dumps(result)

    def generate_json(self, prompt: str, schema: Optional[str] = None) -> Any:
        """
        Ask for JSON-only output and return the decoded value.
        Raises InvalidJSONError when the answer cannot be decoded.
        """
        result = self.generate(prompt, type="json", schema=schema).result
        if isinstance(result, str):
            return parse_json_response(result)
        return result

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "LLMClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _http(self) -> httpx.Client:
        if self._client is None:
            headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
            self._client = httpx.Client(timeout=self.timeout, headers=headers,
                                        transport=self._transport)
        return self._client


# -------------------------
# PUBLIC API
# -------------------------

def strip_code_fences(text: str) -> str:
    """
    Remove a surrounding markdown code fence (```json ... ``` or ``` ... ```).
    Text without a leading fence is returned stripped but otherwise unchanged.
    """
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    stripped = re.sub(r"^```[A-Za-z0-9_-]*[ \t]*\n?", "", stripped)
    stripped = re.sub(r"\n?```\s*$", "", stripped)
    return stripped.strip()


def parse_json_response(text: str) -> Any:
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Failed to parse JSON response: {cleaned[:200]!r}")
        raise InvalidJSONError(raw=text) from e


# -------------------------
# HELPERS
# -------------------------

def _check_prompt(prompt: str) -> None:
    if not prompt or not isinstance(prompt, str):
        raise GenerationError("Invalid prompt", status_code=400)
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise GenerationError(f"Prompt too long (max {MAX_PROMPT_LENGTH:,} characters)",
                              status_code=400)


def _json_body(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {"raw": response.text}
    return body if isinstance(body, dict) else {"result": body}
