# authgate/api/routes/auth.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from authgate.api.deps import get_workflow
from authgate.schemas.auth import ActionResult
from authgate.services.auth_service import AuthWorkflow

router = APIRouter(tags=["Auth"])

# Bodies are taken as raw JSON: field validation happens in the workflow so
# malformed input (missing body, arrays, scalars) yields the usual 400
# "Validation failed".
JsonBody = Optional[Any]


def _fields(body: JsonBody) -> Dict[str, Any]:
    return body if isinstance(body, dict) else {}


def _respond(result: ActionResult) -> JSONResponse:
    return JSONResponse(result.model_dump(exclude_none=True), status_code=result.status)


@router.post("/login")
async def api_login(body: JsonBody = Body(None), wf: AuthWorkflow = Depends(get_workflow)):
    f = _fields(body)
    return _respond(await wf.login(f.get("email"), f.get("password")))


@router.post("/register")
async def api_register(body: JsonBody = Body(None), wf: AuthWorkflow = Depends(get_workflow)):
    f = _fields(body)
    return _respond(await wf.register(f.get("email"), f.get("name"), f.get("password")))


# ----------------------------
# Email verification
# ----------------------------

@router.post("/verify")
async def api_verify(body: JsonBody = Body(None), wf: AuthWorkflow = Depends(get_workflow)):
    return _respond(await wf.verify_token(_fields(body).get("token")))


@router.post("/verify/resend")
async def api_verify_resend(body: JsonBody = Body(None), wf: AuthWorkflow = Depends(get_workflow)):
    return _respond(await wf.resend_verification(_fields(body).get("email")))


# ----------------------------
# Password reset
# ----------------------------

@router.post("/password-reset/start")
async def api_password_reset_start(body: JsonBody = Body(None), wf: AuthWorkflow = Depends(get_workflow)):
    return _respond(await wf.request_password_reset(_fields(body).get("email")))


@router.post("/password-reset/confirm")
async def api_password_reset_confirm(body: JsonBody = Body(None), wf: AuthWorkflow = Depends(get_workflow)):
    f = _fields(body)
    return _respond(await wf.reset_password(f.get("token"), f.get("new_password")))
