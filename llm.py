"""
Chat-completion transport.

Talks to any OpenAI-compatible ``/chat/completions`` endpoint over requests and
turns every transport or upstream problem into a classified GenerationFailed,
so nothing from requests leaks past this module.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

import config
import errors
from errors import GenerationFailed

logger = logging.getLogger(__name__)


def classify_status(status_code: int) -> GenerationFailed:
    if status_code == 429:
        return GenerationFailed(
            "Too many requests. Please try again later.",
            reason=errors.RATE_LIMITED, transient=True, status_code=status_code,
        )
    if status_code == 402:
        return GenerationFailed(
            "AI credits exhausted. Please add credits to continue.",
            reason=errors.QUOTA_EXHAUSTED, status_code=status_code,
        )
    if status_code == 408 or status_code >= 500:
        return GenerationFailed(
            f"AI service error ({status_code}). Please try again.",
            reason=errors.UPSTREAM_ERROR, transient=True, status_code=status_code,
        )
    return GenerationFailed(
        f"AI service rejected the request ({status_code})",
        reason=errors.REQUEST_REJECTED, status_code=status_code,
    )


class CompletionClient:
    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None,
                 model: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.api_url = api_url or config.AI_API_URL
        self.api_key = api_key or config.AI_API_KEY
        self.model = model or config.AI_MODEL
        self.timeout = timeout or config.AI_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def complete(self, messages: List[Dict[str, Any]], *, model: Optional[str] = None,
                 tools: Optional[List[Dict[str, Any]]] = None,
                 tool_choice: Optional[Dict[str, Any]] = None,
                 **options) -> Dict[str, Any]:
        """Send ``messages`` and return the first choice's message object."""
        if not self.configured:
            raise GenerationFailed("AI service is not configured", reason=errors.NOT_CONFIGURED)

        payload: Dict[str, Any] = {"model": model or self.model, "messages": messages, **options}
        if tools:
            payload["tools"] = tools
        if tool_choice:
            payload["tool_choice"] = tool_choice

        try:
            resp = self.session.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise GenerationFailed(
                "Request timed out. Please try again.", reason=errors.TIMEOUT, transient=True
            ) from exc
        except requests.RequestException as exc:
            logger.error("AI gateway unreachable: %s", exc)
            raise GenerationFailed(
                "Network error. Please check your connection and try again.",
                reason=errors.NETWORK, transient=True,
            ) from exc

        if not resp.ok:
            logger.error("AI gateway error: %s %s", resp.status_code, resp.text[:500])
            raise classify_status(resp.status_code)

        try:
            data = resp.json()
            return data["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GenerationFailed(
                "AI service returned an unreadable response", reason=errors.MALFORMED_RESPONSE
            ) from exc

    def close(self):
        """Close the HTTP session and release its pooled connections."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
