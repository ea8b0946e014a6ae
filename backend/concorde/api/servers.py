"""Server administration, discovery and membership routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from concorde.api._errors import to_http_error
from concorde.api.deps import get_servers_service
from concorde.api.schemas import ServerCreateRequest
from concorde.domain import models
from concorde.domain.servers import ServersService
from concorde.infra.auth import ActorContext, get_current_actor

router = APIRouter(prefix="/servers", tags=["servers"])


@router.post("/create", response_model=models.Server, status_code=201)
async def create_server_endpoint(
	payload: ServerCreateRequest,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.Server:
	try:
		return await service.create_server(actor, payload.name)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/update/{server_id}", response_model=models.Server)
async def update_server_endpoint(
	server_id: str,
	payload: models.ServerPatch,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.Server:
	try:
		return await service.update_server(actor, server_id, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/remove/{server_id}", response_model=models.Server)
async def remove_server_endpoint(
	server_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.Server:
	try:
		return await service.remove_server(actor, server_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/list", response_model=list[models.Server])
async def list_my_servers_endpoint(
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> list[models.Server]:
	try:
		return await service.list_my_servers(actor)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/getAll", response_model=models.ServerPage)
async def list_servers_endpoint(
	page: int = Query(default=1),
	limit: int = Query(default=30),
	name: Optional[str] = Query(default=None),
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.ServerPage:
	try:
		return await service.list_servers(actor, page, limit, name=name)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/{server_id}", response_model=models.Server)
async def get_server_endpoint(
	server_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.Server:
	try:
		return await service.get_server(actor, server_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/{server_id}/ban/{user_id}", response_model=models.Server)
async def ban_user_endpoint(
	server_id: str,
	user_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.Server:
	try:
		return await service.ban_user(actor, server_id, user_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/{server_id}/leave", response_model=models.Server)
async def leave_server_endpoint(
	server_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.Server:
	try:
		return await service.leave_server(actor, server_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
