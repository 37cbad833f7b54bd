import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response

from rollout.metrics import record_evaluation, record_mutation
from rollout.schemas import ActivationResult, NamesPayload, PercentageUpdate
from rollout.services.feature_manager import FeatureManagerInterface

logger = logging.getLogger(__name__)

router = APIRouter(tags=["features"])

def get_feature_manager(request: Request) -> FeatureManagerInterface:
    return request.app.state.feature_manager

@router.get("/features", response_model=List[str])
async def list_features(manager: FeatureManagerInterface = Depends(get_feature_manager)):
    return await manager.get_all_features()

@router.put("/features/{name}/percentage", status_code=204)
async def set_percentage(name: str, payload: PercentageUpdate, manager: FeatureManagerInterface = Depends(get_feature_manager)):
    record_mutation("set_percentage")
    await manager.set_percentage(name, payload.percentage)
    return Response(status_code=204)

@router.post("/features/{name}/groups", status_code=204)
async def set_groups(name: str, payload: NamesPayload, manager: FeatureManagerInterface = Depends(get_feature_manager)):
    record_mutation("set_groups")
    await manager.set_groups(name, payload.items)
    return Response(status_code=204)

@router.delete("/features/{name}/groups", status_code=204)
async def remove_groups(name: str, payload: NamesPayload, manager: FeatureManagerInterface = Depends(get_feature_manager)):
    record_mutation("remove_groups")
    await manager.remove_groups(name, payload.items)
    return Response(status_code=204)

@router.post("/features/{name}/users", status_code=204)
async def set_users(name: str, payload: NamesPayload, manager: FeatureManagerInterface = Depends(get_feature_manager)):
    record_mutation("set_users")
    await manager.set_users(name, payload.items)
    return Response(status_code=204)

@router.delete("/features/{name}/users", status_code=204)
async def remove_users(name: str, payload: NamesPayload, manager: FeatureManagerInterface = Depends(get_feature_manager)):
    record_mutation("remove_users")
    await manager.remove_users(name, payload.items)
    return Response(status_code=204)

@router.post("/features/{name}/deactivate", status_code=204)
async def deactivate(name: str, manager: FeatureManagerInterface = Depends(get_feature_manager)):
    await manager.deactivate(name)
    return Response(status_code=204)

@router.get("/features/{name}/active", response_model=ActivationResult)
async def is_active(name: str, user: Optional[str] = None, group: Optional[str] = None,
                    manager: FeatureManagerInterface = Depends(get_feature_manager)):
    active = await manager.is_active_for(name, user=user, group=group)
    record_evaluation(name, active)
    return {"feature": name, "active": active}
