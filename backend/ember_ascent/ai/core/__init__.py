# AI Core Module - LLM access and tracing

from ember_ascent.ai.core.llm import LLMClient, LLMResponse, get_llm_client
from ember_ascent.ai.core.telemetry import agent_span, get_tracer, init_telemetry, traced

__all__ = [
    # LLM
    "LLMClient", "LLMResponse", "get_llm_client",
    # Telemetry
    "init_telemetry", "get_tracer", "agent_span", "traced",
]
