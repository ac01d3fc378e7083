from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ...api import deps
from ...api.dispatch import ActionDispatcher

router = APIRouter(tags=["actions"])


@router.post("/actions")
def run_action(
    payload: dict[str, Any] | None = Body(default=None),
    dispatcher: ActionDispatcher = Depends(deps.get_dispatcher),
):
    status_code, body = dispatcher.dispatch(payload)
    return JSONResponse(status_code=status_code, content=body)


@router.get("/actions")
def list_actions(dispatcher: ActionDispatcher = Depends(deps.get_dispatcher)):
    return {"actions": dispatcher.actions}
