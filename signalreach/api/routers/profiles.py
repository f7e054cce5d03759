"""Social profile routes (the user's own handles per platform)."""

from typing import Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from signalreach.api.deps import current_identity, get_profile_repo, get_workspace_repo, owned_workspace

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


class ProfilesUpdate(BaseModel):
    handles: Dict[str, str]
    workspace_id: Optional[str] = None


@router.get("")
def get_profiles(identity=Depends(current_identity), profiles=Depends(get_profile_repo)):
    return profiles.list_for_user(identity.id)


@router.put("")
def save_profiles(data: ProfilesUpdate, identity=Depends(current_identity),
                  profiles=Depends(get_profile_repo), workspaces=Depends(get_workspace_repo)):
    if data.workspace_id:
        owned_workspace(data.workspace_id, identity, workspaces)
    profiles.upsert_many(identity.id, data.handles, workspace_id=data.workspace_id)
    return profiles.list_for_user(identity.id)
