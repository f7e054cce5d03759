"""Workspace onboarding, selection and pipeline settings routes."""

import logging
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from pydantic import BaseModel

from signalreach.api.deps import current_identity, get_profile_repo, get_workspace_repo, owned_workspace
from signalreach.db.models import DEFAULT_SCRAPE_FREQUENCY
from signalreach.errors import ConfigError
from signalreach.workspace_resolver import (
    ONBOARDING_PATH, MemorySelectionStore, NeedsOnboarding, Ready, WorkspaceResolver,
)

logger = logging.getLogger("signalreach.api.workspaces")

router = APIRouter(prefix="/api/workspaces", tags=["workspaces"])

Keywords = Union[str, List[str]]


class WorkspaceCreate(BaseModel):
    name: Optional[str] = None
    account_type: str = "saas"
    website_url: Optional[str] = None
    keywords: Optional[Keywords] = None
    scrape_frequency: str = DEFAULT_SCRAPE_FREQUENCY
    handles: Optional[Dict[str, str]] = None
    scrape_now: bool = True


class WorkspaceUpdate(BaseModel):
    keywords: Optional[Keywords] = None
    scrape_frequency: Optional[str] = None


def _dispatch_scrape(request: Request, background_tasks: BackgroundTasks, workspace_id: str) -> bool:
    runner = getattr(request.app.state, "scrape_runner", None)
    if runner is None:
        return False
    background_tasks.add_task(runner.run_for_workspace, workspace_id)
    logger.info("Scrape dispatched", extra={"workspace_id": workspace_id, "phase": "dispatch_scrape"})
    return True


@router.get("")
def list_workspaces(identity=Depends(current_identity), workspaces=Depends(get_workspace_repo)):
    return workspaces.list_for_user(identity.id)


@router.get("/resolve")
def resolve_workspace(preferred_id: str = None, identity=Depends(current_identity),
                      workspaces=Depends(get_workspace_repo)):
    """Select the active workspace; the caller persists the choice locally."""
    resolver = WorkspaceResolver(workspaces, MemorySelectionStore())
    result = resolver.resolve(identity, preferred_id=preferred_id)
    body = {"state": result.state, "workspaces": resolver.list_workspaces()}
    if isinstance(result, Ready):
        body["workspace"] = result.workspace
    elif isinstance(result, NeedsOnboarding):
        body["redirect"] = ONBOARDING_PATH
    else:
        body["error"] = result.detail
    return body


@router.post("", status_code=201)
def create_workspace(data: WorkspaceCreate, request: Request, background_tasks: BackgroundTasks,
                     identity=Depends(current_identity), workspaces=Depends(get_workspace_repo),
                     profiles=Depends(get_profile_repo)):
    """Onboarding: create the workspace, save handles, kick off the first scrape."""
    workspace = workspaces.create(
        identity.id,
        name=data.name,
        keywords=data.keywords,
        account_type=data.account_type,
        website_url=data.website_url,
        scrape_frequency=data.scrape_frequency,
    )
    if data.handles:
        profiles.upsert_many(identity.id, data.handles, workspace_id=workspace["id"])

    queued = False
    if data.scrape_now and workspace.get("keywords"):
        queued = _dispatch_scrape(request, background_tasks, workspace["id"])
    return dict(workspace, scrape_queued=queued)


@router.patch("/{workspace_id}")
def update_workspace(workspace_id: str, data: WorkspaceUpdate,
                     identity=Depends(current_identity), workspaces=Depends(get_workspace_repo)):
    owned_workspace(workspace_id, identity, workspaces)
    return workspaces.update_settings(
        workspace_id, keywords=data.keywords, scrape_frequency=data.scrape_frequency,
    )


@router.post("/{workspace_id}/scrape", status_code=202)
def scrape_workspace(workspace_id: str, request: Request, background_tasks: BackgroundTasks,
                     identity=Depends(current_identity), workspaces=Depends(get_workspace_repo)):
    """Fire-and-forget scrape of one workspace. No completion signal."""
    owned_workspace(workspace_id, identity, workspaces)
    if not _dispatch_scrape(request, background_tasks, workspace_id):
        raise ConfigError("Scraping is not configured.")
    return {"status": "queued", "workspace_id": workspace_id}
