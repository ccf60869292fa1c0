"""Analysis service clients: one request per run, strict result validation."""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Callable

from task_analyzer.analysis.models import ActivitySummary, AnalysisResult
from task_analyzer.analysis.prompt import SYSTEM_PROMPT, build_analysis_prompt
from task_analyzer.config import DEFAULT_MODEL
from task_analyzer.exceptions import ConfigurationError, NoDataError, ServiceError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.environ.get("TASK_ANALYZER_BASE_URL", "https://api.openai.com/v1")
DEFAULT_ANTHROPIC_MODEL = os.environ.get("TASK_ANALYZER_ANTHROPIC_MODEL", "claude-haiku-4-5-20251001")
DEFAULT_TIMEOUT = 60.0


class BaseAnalysisClient(ABC):
    """Abstract interface for the external analysis service.

    Implementations make at most one attempt per call; retrying is the
    caller's decision.
    """

    def analyze(self, summary: ActivitySummary, api_key: str) -> AnalysisResult:
        """Check preconditions, then send the summary and validate the reply.

        Raises:
            ConfigurationError: ``api_key`` is empty. Checked before anything else.
            NoDataError: the summary holds no events.
            ServiceError: transport failure, non-success status or bad payload.
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError(
                "Analysis API key is not set. Save one in settings before running an analysis."
            )
        if summary.total_count == 0:
            raise NoDataError("No activity has been recorded today.")
        content = self._request(build_analysis_prompt(summary), api_key.strip())
        result = parse_analysis_payload(content)
        logger.info(
            "Analysis returned %d tasks and %d product ideas",
            len(result.automatable_tasks),
            len(result.product_ideas),
        )
        return result

    @abstractmethod
    def _request(self, prompt: str, api_key: str) -> str:
        """Send one request; return the raw message content string."""
        ...


class AnalysisClient(BaseAnalysisClient):
    """OpenAI-compatible chat completions endpoint over httpx.

    Args:
        model: Model identifier sent with each request.
        base_url: API root; ``/chat/completions`` is appended.
        timeout: Seconds before the request is abandoned as a ServiceError.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        temperature: float = 0.7,
        transport: Any = None,
    ):
        try:
            import httpx  # noqa: F401
        except ImportError:
            raise ImportError(
                "httpx is required for AnalysisClient. "
                "Install with: pip install task-analyzer"
            )
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self._transport = transport

    def build_request_body(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }

    def _request(self, prompt: str, api_key: str) -> str:
        import httpx

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}/chat/completions",
                    json=self.build_request_body(prompt),
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.TimeoutException as e:
            raise ServiceError(f"Analysis request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ServiceError(f"Analysis request failed: {e}") from e

        if not response.is_success:
            raise ServiceError(f"Analysis service error: {_error_message(response)}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ServiceError(f"Malformed service response: {e}") from e
        if not isinstance(content, str):
            raise ServiceError("Malformed service response: message content is not text")
        return content


class AnthropicAnalysisClient(BaseAnalysisClient):
    """Same contract as AnalysisClient, backed by the Anthropic SDK.

    Args:
        sdk_factory: Builds an SDK client from an API key. Defaults to
            ``anthropic.Anthropic`` with retries disabled.
    """

    def __init__(
        self,
        model: str = DEFAULT_ANTHROPIC_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        sdk_factory: Callable[[str], Any] | None = None,
    ):
        if sdk_factory is None:
            try:
                from anthropic import Anthropic
            except ImportError:
                raise ImportError(
                    "anthropic is required for AnthropicAnalysisClient. "
                    "Install with: pip install task-analyzer[anthropic]"
                )

            def sdk_factory(api_key: str) -> Any:
                return Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

        self._sdk_factory = sdk_factory
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature

    def _request(self, prompt: str, api_key: str) -> str:
        from anthropic import APIError, APIStatusError, APITimeoutError

        client = self._sdk_factory(api_key)
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=f"{SYSTEM_PROMPT} Reply with a single JSON object and nothing else.",
                messages=[{"role": "user", "content": prompt}],
            )
        except APITimeoutError as e:
            raise ServiceError(f"Analysis request timed out after {self.timeout}s") from e
        except APIStatusError as e:
            raise ServiceError(f"Analysis service error: {e.message}") from e
        except APIError as e:
            raise ServiceError(f"Analysis request failed: {e}") from e

        try:
            return _strip_code_fence(response.content[0].text)
        except (AttributeError, IndexError, TypeError) as e:
            raise ServiceError(f"Malformed service response: {e}") from e


def parse_analysis_payload(content: str) -> AnalysisResult:
    """Second decode step: message content -> validated AnalysisResult."""
    try:
        payload = json.loads(content)
    except (TypeError, ValueError) as e:
        raise ServiceError(f"Unparsable analysis payload: {e}") from e
    try:
        return AnalysisResult.from_dict(payload)
    except ValueError as e:
        raise ServiceError(f"Unparsable analysis payload: {e}") from e


def _error_message(response) -> str:
    try:
        message = response.json()["error"]["message"]
        if isinstance(message, str) and message:
            return message
    except (ValueError, KeyError, TypeError):
        pass
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped.strip()
