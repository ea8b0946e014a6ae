"""Join-request routes for servers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from concorde.api._errors import to_http_error
from concorde.api.deps import get_servers_service
from concorde.api.schemas import JoinRequestCreate
from concorde.domain import models
from concorde.domain.servers import ServersService
from concorde.infra.auth import ActorContext, get_current_actor

router = APIRouter(prefix="/server_requests", tags=["server_requests"])


@router.post("/create", response_model=models.ServerJoinRequest, status_code=201)
async def create_request_endpoint(
	payload: JoinRequestCreate,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.ServerJoinRequest:
	try:
		return await service.request_to_join(actor, payload.to)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/accept/{request_id}", response_model=models.ServerJoinRequest)
async def accept_request_endpoint(
	request_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.ServerJoinRequest:
	try:
		return await service.accept_join_request(actor, request_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/decline/{request_id}", response_model=models.ServerJoinRequest)
async def decline_request_endpoint(
	request_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.ServerJoinRequest:
	try:
		return await service.decline_join_request(actor, request_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/cancel/{request_id}", response_model=models.ServerJoinRequest)
async def cancel_request_endpoint(
	request_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.ServerJoinRequest:
	try:
		return await service.cancel_join_request(actor, request_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/list/{server_id}", response_model=models.JoinRequestPage)
async def list_requests_endpoint(
	server_id: str,
	page: int = Query(default=1),
	limit: int = Query(default=30),
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> models.JoinRequestPage:
	try:
		return await service.list_join_requests(actor, server_id, page, limit)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/mine", response_model=list[models.ServerJoinRequest])
async def list_mine_endpoint(
	actor: ActorContext = Depends(get_current_actor),
	service: ServersService = Depends(get_servers_service),
) -> list[models.ServerJoinRequest]:
	try:
		return await service.list_my_join_requests(actor)
	except Exception as exc:
		raise to_http_error(exc) from exc
