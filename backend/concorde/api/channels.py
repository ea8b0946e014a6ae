"""Channel routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from concorde.api._errors import to_http_error
from concorde.api.deps import get_channels_service
from concorde.api.schemas import ChannelCreateRequest
from concorde.domain import models
from concorde.domain.channels import ChannelsService
from concorde.infra.auth import ActorContext, get_current_actor

router = APIRouter(prefix="/channels", tags=["channels"])


@router.post("/create", response_model=models.Channel, status_code=201)
async def create_channel_endpoint(
	payload: ChannelCreateRequest,
	actor: ActorContext = Depends(get_current_actor),
	service: ChannelsService = Depends(get_channels_service),
) -> models.Channel:
	try:
		return await service.create_channel(actor, payload.server, payload.name)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/update/{channel_id}", response_model=models.Channel)
async def update_channel_endpoint(
	channel_id: str,
	payload: models.ChannelPatch,
	actor: ActorContext = Depends(get_current_actor),
	service: ChannelsService = Depends(get_channels_service),
) -> models.Channel:
	try:
		return await service.update_channel(actor, channel_id, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/delete/{channel_id}", response_model=models.Channel)
async def delete_channel_endpoint(
	channel_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ChannelsService = Depends(get_channels_service),
) -> models.Channel:
	try:
		return await service.delete_channel(actor, channel_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/list/{server_id}", response_model=list[models.Channel])
async def list_channels_endpoint(
	server_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ChannelsService = Depends(get_channels_service),
) -> list[models.Channel]:
	try:
		return await service.list_channels(actor, server_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/repair/{server_id}", response_model=models.Server)
async def repair_index_endpoint(
	server_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: ChannelsService = Depends(get_channels_service),
) -> models.Server:
	try:
		return await service.repair_channel_index(actor, server_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
