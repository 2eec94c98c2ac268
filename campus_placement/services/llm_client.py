"""
LLM Client

The analysis endpoint talks to any OpenAI-compatible chat-completions API
(DeepSeek, OpenAI, a local gateway), so we use the openai library.

IMPORTANT:
- The LLM only writes prose answers for placement officers
- Calls are bounded by llm_timeout_seconds with no retries; on timeout the
  caller falls back to the rule-based responder
- An empty API key means "not configured": no network call is attempted
"""

from typing import Optional

from openai import OpenAI

from campus_placement.core.config import get_settings


class LLMClient:
    """
    Thin wrapper around the OpenAI client with timeout and model settings.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 model: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.api_key = settings.llm_api_key if api_key is None else api_key
        self.model = model or settings.llm_model
        self.timeout = timeout or settings.llm_timeout_seconds
        self._client = None
        if self.api_key:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=base_url or settings.llm_base_url,
                timeout=self.timeout,
                max_retries=0
            )

    def is_configured(self) -> bool:
        return self._client is not None

    def generate_text(self, prompt: str, system_prompt: Optional[str] = None,
                      max_tokens: int = 1500) -> str:
        """
        Send one prompt and return the text of the first choice.

        Raises:
            RuntimeError: client not configured
            openai.OpenAIError: provider error or timeout
        """
        if self._client is None:
            raise RuntimeError("LLM client is not configured (set LLM_API_KEY)")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=0.3
        )
        return response.choices[0].message.content or ""


# Singleton instance
_llm_client: LLMClient = None


def get_llm_client() -> LLMClient:
    """Get or create the LLM client (singleton pattern)"""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
