"""Insight agent - use Claude to find the transcript segments relevant to a prompt."""

from agents.base import BaseAgent
from lib.segments import Generator, extract, load_segments, save_segments

# Separate from insights.json, which BaseAgent.run writes with the run status
INSIGHTS_FILE = "insight_segments.json"

SYSTEM_PROMPT = (
    "You are an AI assistant that helps extract insights from video transcripts. "
    "Your task is to find relevant segments based on the user prompt and return "
    "them in a structured format."
)

USER_PROMPT_TEMPLATE = """Here is a transcript with timestamps:

{transcript}

Based on this prompt: "{prompt}", identify the most relevant segments. For each segment, return the start time, end time, and text content, one per line as [MM:SS-MM:SS] text. Focus on extracting insights that directly relate to the prompt."""


def make_claude_generator(api_key: str, config: dict) -> Generator:
    """Build a generate(transcript_text, prompt) callable backed by Claude."""
    import anthropic

    client = anthropic.Anthropic(api_key=api_key)
    ic = config.get("insights", {})
    model = ic.get("llm_model", "claude-sonnet-4-6")
    temperature = ic.get("llm_temperature", 0.3)
    max_tokens = ic.get("max_tokens", 2048)

    def generate(transcript_text: str, prompt: str) -> str:
        message = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=SYSTEM_PROMPT,
            messages=[{
                "role": "user",
                "content": USER_PROMPT_TEMPLATE.format(transcript=transcript_text, prompt=prompt),
            }],
        )
        return "".join(block.text for block in message.content if hasattr(block, "text"))

    return generate


class InsightAgent(BaseAgent):
    name = "insights"

    def execute(self) -> dict:
        prompt = self.options.get("prompt", "")
        segments = load_segments(self.session_dir, "transcript.json")

        if not prompt or not segments:
            self.logger.info("No prompt or no transcript; skipping extraction")
            insights = []
        else:
            generate = make_claude_generator(self.ctx.require("anthropic_api_key"), self.config)
            self.logger.info(f"Extracting insights for prompt: {prompt!r}")
            insights = extract(segments, prompt, generate)

        save_segments(self.session_dir, insights, INSIGHTS_FILE)
        return {
            "prompt": prompt,
            "insight_count": len(insights),
            "insights_path": str(self.session_dir / INSIGHTS_FILE),
        }
