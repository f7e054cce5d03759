"""Draft generation proxy route."""

import logging

from fastapi import APIRouter, Request
from pydantic import AliasChoices, BaseModel, Field, StrictStr, model_validator
from starlette.concurrency import run_in_threadpool

logger = logging.getLogger("signalreach.api.drafts")

router = APIRouter(prefix="/api", tags=["drafts"])


class DraftRequest(BaseModel):
    post_context: StrictStr = Field(validation_alias=AliasChoices("postContext", "post_content"))
    platform: StrictStr
    tone: StrictStr
    instructions: StrictStr = ""

    @model_validator(mode="before")
    @classmethod
    def check_required(cls, data):
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object.")
        data = dict(data)
        post = data.pop("postContext", None)
        legacy = data.pop("post_content", None)
        post = post if post is not None else legacy
        if not isinstance(post, str) or not post.strip():
            raise ValueError("postContext is required and must be a non-empty string.")
        # Whitespace-only platform and tone are accepted, empty ones are not
        if not isinstance(data.get("platform"), str) or not data["platform"]:
            raise ValueError("platform is required (e.g. twitter, reddit, linkedin).")
        if not isinstance(data.get("tone"), str) or not data["tone"]:
            raise ValueError("tone is required (e.g. friendly, professional, challenger).")
        if data.get("instructions") is None:
            data["instructions"] = ""
        data["postContext"] = post
        return data


@router.post("/generate-draft")
async def generate_draft(body: DraftRequest, request: Request):
    llm = request.app.state.llm
    draft = await run_in_threadpool(
        llm.generate_draft,
        body.post_context.strip(), body.platform.strip(), body.tone.strip(), body.instructions.strip(),
    )
    return {"draft": draft}
