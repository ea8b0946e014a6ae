"""Registration, login and profile routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from concorde.api._errors import to_http_error
from concorde.api.deps import get_users_service
from concorde.api.schemas import LoginRequest
from concorde.domain import models
from concorde.domain.users import UsersService
from concorde.infra.auth import ActorContext, get_current_actor

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=models.Session, status_code=201)
async def register_endpoint(
	payload: models.Registration,
	service: UsersService = Depends(get_users_service),
) -> models.Session:
	try:
		return await service.register(payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/login", response_model=models.Session)
async def login_endpoint(
	payload: LoginRequest,
	service: UsersService = Depends(get_users_service),
) -> models.Session:
	try:
		return await service.login(payload.identity, payload.password)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/{user_id}", response_model=models.UserProfile)
async def get_user_endpoint(
	user_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: UsersService = Depends(get_users_service),
) -> models.UserProfile:
	try:
		return await service.get_profile(actor, user_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
