"""
SignalReach - LLM Gateway
Single interface for reply-draft generation against an OpenAI-compatible API.

Features:
- Explicitly constructed client (no module-level singleton)
- One attempt per request; retry is always operator-initiated
- Request tracing with a short request id and duration
- Logging redaction (prompt preview only, never keys)
"""

import logging
import time
import uuid

from openai import OpenAI

from signalreach.agents.prompt_builder import build_prompt
from signalreach.errors import DraftGenerationError

logger = logging.getLogger("signalreach.agents.llm_gateway")


def create_openai_client(api_key: str, base_url: str = None, timeout: int = 30) -> OpenAI:
    """Build the chat client. max_retries=0 keeps failures visible to the caller."""
    kwargs = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
    if base_url:
        kwargs["base_url"] = base_url
    return OpenAI(**kwargs)


class LLMGateway:
    """Generates reply drafts through an injected OpenAI-style client.

    Usage:
        gateway = LLMGateway(create_openai_client(key), model="gpt-4o-mini")
        draft = gateway.generate_draft(post, "reddit", "friendly")
    """

    def __init__(self, client, model: str, temperature: float = 0.8,
                 max_tokens: int = 400):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate(self, prompt: str, request_id: str = None) -> str:
        """Send one prompt and return the trimmed completion text.

        Raises:
            DraftGenerationError: On any upstream failure or an empty answer.
        """
        request_id = request_id or uuid.uuid4().hex[:12]
        start = time.time()

        prompt_preview = prompt[:80].replace("\n", " ") + ("..." if len(prompt) > 80 else "")
        logger.info("[%s] LLM request: model=%s, prompt='%s'", request_id, self.model, prompt_preview)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            text = (response.choices[0].message.content or "").strip()
        except Exception as e:
            logger.error("[%s] LLM call failed: %s", request_id, e)
            raise DraftGenerationError(detail=f"upstream error: {e}") from e

        duration_ms = int((time.time() - start) * 1000)
        if not text:
            logger.error("[%s] LLM returned an empty draft", request_id)
            raise DraftGenerationError(detail="empty completion")

        logger.info("[%s] LLM responded in %dms, %d chars", request_id, duration_ms, len(text),
                    extra={"duration_ms": duration_ms})
        return text

    def generate_draft(self, post_context: str, platform: str, tone: str,
                       instructions: str = "") -> str:
        """Build the reply prompt for a post and return one draft."""
        prompt = build_prompt(post_context, platform, tone, instructions)
        return self.generate(prompt)

    def health(self) -> dict:
        return {"provider": "openai-compatible", "model": self.model}
