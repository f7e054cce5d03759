"""
Prompt Builder - Turns a prospect's post into a reply-drafting prompt.

Adapts the instructions by tone (friendly / professional / challenger) and
by platform. Short-form platforms get a hard length rule in the prompt; the
gateway never truncates the model's answer itself.

Usage:
    from signalreach.agents.prompt_builder import build_prompt

    prompt = build_prompt(post_text, "twitter", "challenger",
                          instructions="mention the free audit")
"""

from signalreach.db.models import PLATFORM_TWITTER, char_limit_for, normalize_platform

DEFAULT_TONE = "friendly"

TONE_GUIDES = {
    "friendly": (
        'Warm, human, and casual. Use first-person ("I"), sound like a real person. '
        "Emoji is acceptable but not required."
    ),
    "professional": "Polished and business-appropriate. No slang or emoji. Lead with value.",
    "challenger": (
        "Slightly provocative and confident. Challenge the conventional thinking in the post. "
        "Be direct and bold."
    ),
}

TONES = tuple(TONE_GUIDES)

PLATFORM_LABELS = {
    "reddit": "Reddit",
    "twitter": "Twitter",
    "linkedin": "LinkedIn",
}

_BASE_RULES = (
    '- Write ONLY the reply text. No preamble, no "Here is the reply:", no quote of the original post.',
    '- Do not use hollow phrases like "Great post!" or "I totally agree!".',
    "- Reference something specific from their post to show you actually read it.",
    "- End with a soft conversation-starter (a question or light CTA).",
)


def resolve_tone(tone: str) -> str:
    """Map a tone label to a known tone, falling back to the default."""
    label = (tone or "").strip().lower()
    return label if label in TONE_GUIDES else DEFAULT_TONE


def build_prompt(post_context: str, platform: str, tone: str,
                 instructions: str = "") -> str:
    """Build the single prompt sent to the model for one reply draft."""
    platform_key = normalize_platform(platform)
    platform_label = PLATFORM_LABELS.get(platform_key, platform.strip() or "social media")
    tone_guide = TONE_GUIDES[resolve_tone(tone)]

    lines = [
        "You are a B2B SaaS founder doing smart, intent-based outreach.",
        f"A prospect has just publicly posted the following on {platform_label}:",
        "",
        f'"{post_context.strip()}"',
        "",
        "Write a single, authentic reply to this post. Your goal is to start a "
        "genuine conversation, NOT to pitch immediately.",
        "",
        f"Tone guide: {tone_guide}",
        "",
        "Rules:",
        *_BASE_RULES,
    ]

    extra = (instructions or "").strip()
    if extra:
        lines.append(f"- Additional instructions from the sender: {extra}")

    limit = char_limit_for(platform_key)
    if platform_key == PLATFORM_TWITTER and limit:
        lines.append(
            f"- You MUST keep the response under {limit} characters. "
            "Be punchy and concise. Every word counts."
        )

    return "\n".join(lines)
