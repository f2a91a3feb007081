"""
Client for the external text-classification service (an OpenAI-compatible
chat-completions endpoint) used by the model/trim and options normalizers.

Failures are raised as ClassificationError subclasses; callers catch them and
fall back to deterministic parsing. Only ServiceOverloaded is retried.
"""

import json
import logging
import os
import re
import time
from datetime import timedelta
from typing import Callable, Optional, Union

import requests
import requests_cache

logger = logging.getLogger(__name__)

OVERLOADED_STATUS_CODES = (503, 529)
RATE_LIMIT_STATUS_CODE = 429

_FENCE_REGEX = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class ClassificationError(Exception):
    """The classification service could not produce a usable answer."""


class ServiceOverloaded(ClassificationError):
    """Service is temporarily overloaded (503/529). Worth retrying."""


class RateLimited(ClassificationError):
    """Rate limit hit (429). Retrying only burns budget."""


class MalformedResponse(ClassificationError):
    """Service answered, but not with the JSON we asked for."""


def parse_json_response(text: str, expected: type = dict) -> Union[dict, list]:
    """
    Pull a JSON object or array out of a model reply.

    Handles replies wrapped in ```json fences and replies with prose around
    the JSON.

    Raises:
        MalformedResponse: If no JSON of the expected type can be parsed
    """
    if not text or not text.strip():
        raise MalformedResponse("empty response")

    fenced = _FENCE_REGEX.search(text)
    body = fenced.group(1) if fenced else text

    if expected is list:
        match = re.search(r"\[.*\]", body, re.DOTALL)
    else:
        match = re.search(r"\{.*\}", body, re.DOTALL)
    if not match:
        raise MalformedResponse(f"no JSON {expected.__name__} in response: {text[:100]!r}")

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"invalid JSON in response: {e}")

    if not isinstance(parsed, expected):
        raise MalformedResponse(f"expected JSON {expected.__name__}, got {type(parsed).__name__}")
    return parsed


class RetryPolicy:
    """
    Bounded retry for overload errors, shared by every caller of the service.

    Attempt n (1-based) that fails with ServiceOverloaded waits
    base_delay * n seconds before the next attempt: 2s, then 4s with the
    defaults. Any other ClassificationError propagates immediately.
    """

    def __init__(self, max_attempts: int = 3, base_delay: float = 2.0,
                 sleep: Callable[[float], None] = time.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * attempt

    def call(self, func: Callable, *args, **kwargs):
        for attempt in range(1, self.max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except ServiceOverloaded as e:
                if attempt >= self.max_attempts:
                    logger.warning(f"Classification service still overloaded after {attempt} attempts")
                    raise
                delay = self.delay_for(attempt)
                logger.info(f"Classification service overloaded ({e}); retrying in {delay:.0f}s "
                            f"({self.max_attempts - attempt} attempt(s) left)")
                self.sleep(delay)


class ClassificationClient:
    """Thin chat-completions client with JSON-only prompts."""

    def __init__(self, endpoint: str, model: str, api_key: Optional[str], timeout: float = 20.0,
                 session: Optional[requests.Session] = None, retry_policy: Optional[RetryPolicy] = None):
        """
        Args:
            endpoint: Full chat-completions URL
            model: Model name sent with every request
            api_key: Bearer token; without one the client is unavailable
            timeout: Per-request timeout in seconds
            session: requests session (a requests-cache CachedSession works)
            retry_policy: Overload retry policy (default: 3 attempts, 2s base delay)
        """
        self.endpoint = endpoint
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.retry_policy = retry_policy or RetryPolicy()

    @classmethod
    def from_config(cls, config, sleep: Callable[[float], None] = time.sleep) -> "ClassificationClient":
        """Build a client from an ExtractorConfig (API key read from the configured env var)."""
        api_key = os.environ.get(config.classifier_api_key_env) if config.classifier_enabled else None

        if config.classifier_cache:
            session = requests_cache.CachedSession(
                config.classifier_cache_name,
                backend="sqlite",
                expire_after=timedelta(days=30),
                allowable_methods=("GET", "POST"),
            )
        else:
            session = requests.Session()

        return cls(
            endpoint=config.classifier_endpoint,
            model=config.classifier_model,
            api_key=api_key,
            timeout=config.classifier_timeout,
            session=session,
            retry_policy=RetryPolicy(config.retry_max_attempts, config.retry_base_delay, sleep=sleep),
        )

    @property
    def available(self) -> bool:
        return bool(self.api_key and self.endpoint)

    def _post(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "model": self.model,
            "temperature": 0.1,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            response = self.session.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise ClassificationError(f"request timed out: {e}")
        except requests.RequestException as e:
            raise ClassificationError(f"request failed: {e}")

        if response.status_code == RATE_LIMIT_STATUS_CODE:
            raise RateLimited("rate limited (429)")
        if response.status_code in OVERLOADED_STATUS_CODES or (
                response.status_code >= 500 and "overloaded" in (response.text or "").lower()):
            raise ServiceOverloaded(f"overloaded ({response.status_code})")
        if response.status_code >= 400:
            raise ClassificationError(f"service error {response.status_code}: {(response.text or '')[:200]}")

        try:
            data = response.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponse(f"unexpected response body: {e}")

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Send one prompt pair and return the reply text, retrying overloads.

        Raises:
            ClassificationError: If the client is unavailable or the call fails
        """
        if not self.available:
            raise ClassificationError("classification service not configured")
        return self.retry_policy.call(self._post, system_prompt, user_prompt)
