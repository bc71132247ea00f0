"""OpenAI-compatible chat completions wrapper"""
import logging
from typing import Any, Dict, List, Optional
import httpx

from ..config import settings
from ..errors import (
    GenerationQuotaExceededError,
    GenerationRateLimitedError,
    GenerationUnavailableError,
)

logger = logging.getLogger(__name__)

# OpenAI reports exhausted credits as a 429 with this error code
QUOTA_ERROR_CODES = {"insufficient_quota", "billing_hard_limit_reached"}


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        error = response.json().get("error") or {}
    except (ValueError, AttributeError):
        return None
    if isinstance(error, dict):
        return error.get("code") or error.get("type")
    return None


class ChatCompletionAPI:
    """
    Wrapper for a /chat/completions endpoint (OpenAI or any compatible gateway)

    Upstream statuses are mapped to distinct error kinds:
    429 -> GenerationRateLimitedError, 402 -> GenerationQuotaExceededError,
    anything else -> GenerationUnavailableError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key if api_key is not None else settings.llm_api_key
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")
        self.model = model or settings.model_name
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds or settings.llm_timeout_seconds)

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        logger.error(f"LLM error: {status} {response.text[:500]}")
        code = _error_code(response)

        if status == 402 or (status == 429 and code in QUOTA_ERROR_CODES):
            raise GenerationQuotaExceededError(f"LLM credits exhausted ({status}, {code})")
        if status == 429:
            raise GenerationRateLimitedError(
                f"LLM rate limited ({code})",
                retry_after=_parse_retry_after(response.headers.get("retry-after"))
            )
        raise GenerationUnavailableError(f"LLM error: {status}")

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.4,
        max_tokens: int = 4000
    ) -> str:
        """
        Run one chat completion

        Args:
            messages: [{"role": "system"|"user"|"assistant", "content": "..."}]
            temperature: Sampling temperature
            max_tokens: Completion token cap

        Returns:
            Assistant message content

        Raises:
            GenerationRateLimitedError, GenerationQuotaExceededError, GenerationUnavailableError
        """
        if not self.api_key:
            raise GenerationUnavailableError("LLM_API_KEY is not configured")

        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            response = await self.client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"LLM call timed out: {e}")
            raise GenerationUnavailableError("LLM call timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"LLM transport error: {type(e).__name__}: {e}")
            raise GenerationUnavailableError(f"LLM transport error: {e}") from e

        self._raise_for_status(response)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GenerationUnavailableError("Malformed completion response") from e

        if not content or not content.strip():
            raise GenerationUnavailableError("Empty completion")
        return content


# Global singleton instance
_chat_api: Optional[ChatCompletionAPI] = None


def get_chat_api() -> ChatCompletionAPI:
    global _chat_api
    if _chat_api is None:
        _chat_api = ChatCompletionAPI()
    return _chat_api


async def close_chat_api() -> None:
    global _chat_api
    if _chat_api is not None:
        await _chat_api.close()
        _chat_api = None
