"""Thin client for calling the Anthropic Messages API."""

import requests

from .config import Settings, settings as default_settings
from .errors import InsightGenerationError, MissingCredentialError
from utils.logging_utils import get_tagged_logger, mask_secrets

logger = get_tagged_logger(__name__, tag="app/anthropic_client")


class AnthropicClient:
    """Minimal single-turn client for the Messages API."""

    def __init__(self, settings: Settings | None = None):
        """Initialize client configuration from settings."""
        settings = settings or default_settings
        self.url = f"{str(settings.claude_base_url).rstrip('/')}/v1/messages"
        self.api_key = settings.claude_api_key
        self.model = settings.claude_model
        self.max_tokens = settings.claude_max_tokens
        self.temperature = settings.claude_temperature
        self.timeout = settings.claude_timeout_seconds
        self.anthropic_version = settings.anthropic_version

    def complete(self, system: str, messages: list[dict]) -> str:
        """Send one completion request and return the text of the first content block."""
        if not self.api_key:
            raise MissingCredentialError("CLAUDE_API_KEY")

        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": messages,
            "temperature": self.temperature,
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.anthropic_version,
        }

        try:
            logger.debug("Anthropic POST payload: %s", payload)
            r = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise InsightGenerationError(f"Anthropic POST failed: {mask_secrets(str(exc))}") from exc

        elapsed = getattr(r, "elapsed", None)
        logger.info(
            "Anthropic POST took %.2fs, status %s",
            elapsed.total_seconds() if elapsed is not None else -1.0,
            r.status_code,
        )

        if r.status_code != 200:
            error_text = (r.text or "")[:200]
            if r.status_code == 401:
                reason = "invalid API key"
            elif r.status_code == 429:
                reason = "rate limit exceeded"
            else:
                reason = "upstream error"
            raise InsightGenerationError(
                f"Anthropic POST failed with status {r.status_code} ({reason}): {error_text} (model={self.model})"
            )

        try:
            data = r.json()
        except ValueError as exc:
            raise InsightGenerationError(f"Anthropic returned non-JSON response: {(r.text or '')[:200]}") from exc

        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, list) or not content or not isinstance(content[0], dict):
            return ""
        text = content[0].get("text", "")
        return text if isinstance(text, str) else str(text)
