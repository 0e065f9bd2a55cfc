"""
Ember Ascent - Explanation Generator
Generates step-by-step, visual and worked-example explanations for a question
"""
import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from ember_ascent.ai.core.llm import LLMClient, strip_code_fences
from ember_ascent.ai.core.telemetry import traced
from ember_ascent.schemas.explanation import GeneratedExplanations

logger = logging.getLogger(__name__)


class ExplanationError(Exception):
    """The model call failed or returned something unusable."""
    pass


@dataclass
class QuestionContext:
    """Question data the prompt is built from."""
    id: str
    subject: str
    topic: str
    question_text: str
    correct_answer: str
    difficulty: str = "Foundation"
    year_group: int = 5
    existing_step_by_step: str | None = None


@dataclass
class ExplanationResult:
    explanations: GeneratedExplanations
    tokens_used: int


SYSTEM_PROMPT = """You are an expert UK primary school tutor specialising in 11+ exam preparation.

Your task is to generate three different types of explanations for educational questions following EXACT formatting requirements.

**Guidelines:**
- Write for children aged 7-11 (UK Year 3-6)
- Use age-appropriate, encouraging language
- Follow the formatting templates precisely
- Output ONLY valid JSON (no markdown, no extra text)

**Quality Standards:**
- Step-by-Step: Clear numbered steps showing all work
- Visual Illustration: MUST be an actual visual diagram with emojis/ASCII, NOT a text description
- Worked Example: Similar problem with colour-coded parts for pattern recognition"""


VISUAL_HINTS = {
    "fraction": "Draw the fractions as shaded blocks (🟪 filled, ⬜ empty) or pizza slices 🍕.",
    "money": "Show coins and notes with 💷 and 🪙 and line them up to total the amount.",
    "measure": "Use a ruler 📏, scale ⚖️ or clock ⏰ diagram with the values marked.",
    "shape": "Sketch the shape with ASCII lines and label every side or angle.",
}
DEFAULT_VISUAL_HINT = (
    "Use place-value blocks (🟨 hundreds, 🟦 tens, 🔴 ones) or a number line with → arrows."
)


def _visual_instructions(context: QuestionContext) -> str:
    topic = context.topic.lower()
    for keyword, hint in VISUAL_HINTS.items():
        if keyword in topic:
            return f"- {hint}\n- Keep the diagram under 12 lines"
    if context.subject.lower() != "mathematics":
        return (
            "- Use a simple diagram, table or word map with emojis to show the idea\n"
            "- Keep the diagram under 12 lines"
        )
    return f"- {DEFAULT_VISUAL_HINT}\n- Keep the diagram under 12 lines"


def build_explanation_prompt(context: QuestionContext) -> str:
    parts = [
        f"Generate three types of explanations for this {context.subject} question:",
        "",
        f"**Subject:** {context.subject}",
        f"**Topic:** {context.topic}",
        f"**Difficulty:** {context.difficulty}",
        f"**Year Group:** Year {context.year_group}",
        "",
        "**Question:**",
        context.question_text,
        "",
        f"**Correct Answer:** {context.correct_answer}",
    ]

    if context.existing_step_by_step:
        parts += ["", "**Existing Step-by-Step (use for reference):**", context.existing_step_by_step]

    parts += [
        "",
        "---",
        "",
        "## Output Requirements:",
        "",
        "### 1. Step-by-Step Explanation:",
        '- Format as numbered steps: "Step 1:", "Step 2:", etc.',
        "- Each step on a new line",
        "- Show all calculations clearly",
        f"- Use simple language for Year {context.year_group} students",
        "",
        "### 2. Visual Illustration:",
        _visual_instructions(context),
        "",
        "### 3. Worked Example:",
        "- A similar problem with different numbers but the identical method",
        "- Label the parts: Problem, Solution, Answer",
        "",
        "---",
        "",
        "Return ONLY a valid JSON object (no markdown code blocks):",
        "{",
        '  "stepByStep": "Step 1: ...\\nStep 2: ...\\nStep 3: ...",',
        '  "visualIllustration": "visual diagram here",',
        '  "workedExample": "Problem: ...\\nSolution: ...\\nAnswer: ..."',
        "}",
    ]
    return "\n".join(parts)


def parse_explanations(text: str) -> GeneratedExplanations:
    """
    Parse the model output.

    Raises:
        ExplanationError: invalid JSON or a missing/empty explanation
    """
    try:
        return GeneratedExplanations.model_validate(json.loads(strip_code_fences(text)))
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        raise ExplanationError("Failed to parse model response as valid explanations") from e


class ExplanationGenerator:
    """Generate all three explanation types in one model call."""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    @traced("generate_explanations")
    async def generate(self, context: QuestionContext) -> ExplanationResult:
        try:
            response = await self.llm_client.generate(
                build_explanation_prompt(context),
                system_prompt=SYSTEM_PROMPT,
                agent_name=self.__class__.__name__,
            )
        except Exception as e:
            logger.error(f"Explanation generation failed for {context.id}: {e}")
            raise ExplanationError(str(e)) from e

        explanations = parse_explanations(response.content)
        logger.info(f"Generated explanations for {context.id} ({response.tokens_total} tokens)")
        return ExplanationResult(explanations=explanations, tokens_used=response.tokens_total)
