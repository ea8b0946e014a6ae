"""Friend request and friendship routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from concorde.api._errors import to_http_error
from concorde.api.deps import get_friends_service
from concorde.api.schemas import FriendInviteRequest, StatusResponse
from concorde.domain import models
from concorde.domain.friends import FriendsService
from concorde.infra.auth import ActorContext, get_current_actor

router = APIRouter(prefix="/friends", tags=["friends"])


@router.post("/invite", response_model=models.FriendRequest, status_code=201)
async def invite_endpoint(
	payload: FriendInviteRequest,
	actor: ActorContext = Depends(get_current_actor),
	service: FriendsService = Depends(get_friends_service),
) -> models.FriendRequest:
	try:
		return await service.invite(actor, payload.user)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/accept/{request_id}", response_model=models.FriendRequest)
async def accept_endpoint(
	request_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: FriendsService = Depends(get_friends_service),
) -> models.FriendRequest:
	try:
		return await service.accept(actor, request_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/decline/{request_id}", response_model=models.FriendRequest)
async def decline_endpoint(
	request_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: FriendsService = Depends(get_friends_service),
) -> models.FriendRequest:
	try:
		return await service.decline(actor, request_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/cancel/{request_id}", response_model=models.FriendRequest)
async def cancel_endpoint(
	request_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: FriendsService = Depends(get_friends_service),
) -> models.FriendRequest:
	try:
		return await service.cancel(actor, request_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/remove/{friend_id}", response_model=StatusResponse)
async def remove_endpoint(
	friend_id: str,
	actor: ActorContext = Depends(get_current_actor),
	service: FriendsService = Depends(get_friends_service),
) -> StatusResponse:
	try:
		await service.remove(actor, friend_id)
		return StatusResponse()
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/list", response_model=list[models.UserProfile])
async def list_endpoint(
	actor: ActorContext = Depends(get_current_actor),
	service: FriendsService = Depends(get_friends_service),
) -> list[models.UserProfile]:
	try:
		return await service.list(actor)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/list-request", response_model=list[models.FriendRequestSummary])
async def list_requests_endpoint(
	actor: ActorContext = Depends(get_current_actor),
	service: FriendsService = Depends(get_friends_service),
) -> list[models.FriendRequestSummary]:
	try:
		return await service.list_pending_incoming(actor)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/list-sent", response_model=list[models.FriendRequestSummary])
async def list_sent_endpoint(
	actor: ActorContext = Depends(get_current_actor),
	service: FriendsService = Depends(get_friends_service),
) -> list[models.FriendRequestSummary]:
	try:
		return await service.list_pending_outgoing(actor)
	except Exception as exc:
		raise to_http_error(exc) from exc
