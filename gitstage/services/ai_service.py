"""Structured generation against the Cerebras chat completions API."""

import json
import logging
from dataclasses import dataclass

import requests

from ..config.settings import AIConfig
from ..core.errors import AIServiceError, NoObjectGeneratedError

logger = logging.getLogger(__name__)

CEREBRAS_CHAT_COMPLETIONS_URL = "https://api.cerebras.ai/v1/chat/completions"
REQUEST_TIMEOUT_SECONDS = 60


def _error_message(response: requests.Response) -> str:
    try:
        error_data = response.json()
    except ValueError:
        return response.text or "Unknown error"
    if not isinstance(error_data, dict):
        return "Unknown error"
    error = error_data.get("error")
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return error_data.get("message") or "Unknown error"


@dataclass
class TokenUsage:
    """Token usage information from API response."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    @classmethod
    def from_api_usage(cls, usage: dict[str, int] | None) -> "TokenUsage":
        usage = usage or {}
        prompt_tokens = int(usage.get("prompt_tokens", 0))
        completion_tokens = int(usage.get("completion_tokens", 0))
        return cls(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=int(usage.get("total_tokens", prompt_tokens + completion_tokens)),
        )


@dataclass(frozen=True)
class StructuredSchema:
    name: str
    description: str
    schema: dict


class CerebrasClient:
    """Client for structured JSON output from a Cerebras-hosted model."""

    def __init__(
        self,
        api_key: str,
        model: str,
        reasoning_effort: str = "low",
        session: requests.Session | None = None,
        url: str = CEREBRAS_CHAT_COMPLETIONS_URL,
    ):
        self.api_key = api_key
        self.model = model
        self.reasoning_effort = reasoning_effort
        self.session = session or requests.Session()
        self.url = url
        self.last_usage: TokenUsage | None = None

    @classmethod
    def from_config(cls, ai_config: AIConfig) -> "CerebrasClient":
        return cls(
            api_key=ai_config.api_key,
            model=ai_config.model,
            reasoning_effort=ai_config.reasoning_effort,
        )

    def _build_payload(
        self, system: str, prompt: str, output: StructuredSchema, max_output_tokens: int
    ) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": output.name,
                    "description": output.description,
                    "strict": True,
                    "schema": output.schema,
                },
            },
            "temperature": 0,
            "max_completion_tokens": max_output_tokens,
            "reasoning_effort": self.reasoning_effort,
        }

    def generate_object(
        self, system: str, prompt: str, output: StructuredSchema, max_output_tokens: int
    ) -> dict:
        """Request a JSON object matching ``output``.

        Raises:
            AIServiceError: The request failed or the API returned an error.
            NoObjectGeneratedError: The model answered without a JSON object.
        """
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        data = self._build_payload(system, prompt, output, max_output_tokens)

        try:
            response = self.session.post(
                self.url, headers=headers, json=data, timeout=REQUEST_TIMEOUT_SECONDS
            )
            if response.status_code == 400:
                raise AIServiceError(f"API Error: {_error_message(response)}")
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            if getattr(e, "response", None) is not None and e.response.text:
                error_message = e.response.text
            else:
                error_message = str(e)
            raise AIServiceError(f"API Request failed: {error_message}") from e

        try:
            response_data = response.json()
        except ValueError as e:
            raise AIServiceError(f"API returned a non-JSON response: {str(e)}") from e

        self.last_usage = TokenUsage.from_api_usage(response_data.get("usage"))
        logger.debug(
            "Cerebras usage: prompt=%d completion=%d",
            self.last_usage.prompt_tokens,
            self.last_usage.completion_tokens,
        )

        try:
            content = response_data["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError) as e:
            raise NoObjectGeneratedError("API response contained no message content.") from e

        try:
            value = json.loads(content)
        except json.JSONDecodeError as e:
            raise NoObjectGeneratedError(
                f"Failed to parse API response as JSON: {str(e)}", text=content
            ) from e

        if not isinstance(value, dict):
            raise NoObjectGeneratedError("API response was not a JSON object.", text=content)
        return value
