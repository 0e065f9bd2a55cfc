"""
Ember Ascent - AI Module Initialization
"""
from ember_ascent.ai.core.llm import LLMClient, LLMResponse, get_llm_client
from ember_ascent.ai.explanation_generator import (
    ExplanationError,
    ExplanationGenerator,
    ExplanationResult,
    QuestionContext,
)

__all__ = [
    "LLMClient",
    "LLMResponse",
    "get_llm_client",
    "ExplanationError",
    "ExplanationGenerator",
    "ExplanationResult",
    "QuestionContext",
]
