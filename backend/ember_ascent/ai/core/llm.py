"""
Ember Ascent - Unified LLM Client
Centralized LLM access with telemetry and token accounting.
"""
from dataclasses import dataclass
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage

from ember_ascent.ai.core.telemetry import get_tracer, trace_llm_call
from ember_ascent.core.config import settings


@dataclass
class LLMResponse:
    """Standardized response from LLM client."""
    content: str
    model: str
    tokens_prompt: int = 0
    tokens_completion: int = 0
    tokens_total: int = 0
    raw_response: Any = None


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` block if present."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def extract_token_usage(response: Any) -> tuple[int, int]:
    """
    Read (prompt, completion) token counts from a LangChain message.

    ``usage_metadata`` is the provider-neutral field; older OpenAI
    responses only report ``response_metadata["token_usage"]``.
    """
    usage = getattr(response, "usage_metadata", None) or {}
    if usage:
        return usage.get("input_tokens", 0), usage.get("output_tokens", 0)

    metadata = getattr(response, "response_metadata", None) or {}
    usage = metadata.get("token_usage") or metadata.get("usage") or {}
    prompt = usage.get("prompt_tokens", usage.get("input_tokens", 0))
    completion = usage.get("completion_tokens", usage.get("output_tokens", 0))
    return prompt, completion


class LLMClient:
    """
    Unified LLM client.

    Features:
    - Multi-provider support (Anthropic default, OpenAI)
    - Built-in telemetry (OpenTelemetry)
    - Token usage tracking
    """

    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: int | None = None,
    ):
        self.provider = provider or settings.LLM_PROVIDER
        self.model = model or (
            settings.OPENAI_MODEL if self.provider == "openai"
            else settings.ANTHROPIC_MODEL
        )
        self.temperature = settings.EXPLANATION_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or settings.EXPLANATION_MAX_TOKENS
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS

        self._llm = None

    @property
    def llm(self):
        """Lazy-load the LLM instance."""
        if self._llm is None:
            if self.provider == "openai":
                from langchain_openai import ChatOpenAI
                self._llm = ChatOpenAI(
                    model=self.model,
                    api_key=settings.OPENAI_API_KEY,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                )
            else:
                from langchain_anthropic import ChatAnthropic
                self._llm = ChatAnthropic(
                    model=self.model,
                    api_key=settings.ANTHROPIC_API_KEY,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                )
        return self._llm

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        agent_name: str = "LLMClient",
    ) -> LLMResponse:
        """Send one prompt and return the text plus token usage."""
        tracer = get_tracer()

        with tracer.start_as_current_span("llm.generate") as span:
            span.set_attribute("llm.model", self.model)
            span.set_attribute("llm.provider", self.provider)
            span.set_attribute("agent.name", agent_name)

            messages = []
            if system_prompt:
                messages.append(SystemMessage(content=system_prompt))
            messages.append(HumanMessage(content=prompt))

            span.set_attribute("llm.prompt_length", len(prompt))

            response = await self.llm.ainvoke(messages)
            content = response.content
            if isinstance(content, list):
                # Anthropic may return content blocks
                content = "".join(
                    block.get("text", "") if isinstance(block, dict) else str(block)
                    for block in content
                )

            tokens_prompt, tokens_completion = extract_token_usage(response)
            tokens_total = tokens_prompt + tokens_completion

            trace_llm_call(
                model=self.model,
                prompt_tokens=tokens_prompt,
                completion_tokens=tokens_completion,
                total_tokens=tokens_total,
            )
            span.set_attribute("llm.response_length", len(content))

            return LLMResponse(
                content=content,
                model=self.model,
                tokens_prompt=tokens_prompt,
                tokens_completion=tokens_completion,
                tokens_total=tokens_total,
                raw_response=response,
            )


_default_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    """Get the default LLM client instance."""
    global _default_client
    if _default_client is None:
        _default_client = LLMClient()
    return _default_client
