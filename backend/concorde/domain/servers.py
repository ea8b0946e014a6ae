"""Server ownership, join-request lifecycle, membership and bans.

A server is administered by exactly one ``owner`` who is always a member.
Membership changes are union/difference writes on ``members``; accepting a
join request adds the requester and then deletes the request, which is the
commit point of that sequence.
"""

from __future__ import annotations

import logging
from typing import Optional

from concorde.domain import guards, models, mutations, records, validation
from concorde.domain.exceptions import (
	AlreadyMemberError,
	ForbiddenError,
	NotFoundError,
	NotMemberError,
	SelfBanError,
)
from concorde.infra.auth import ActorContext
from concorde.obs import metrics as obs_metrics
from concorde.settings import settings
from concorde.store import filters
from concorde.store.base import CHANNELS, SERVER_REQUESTS, SERVERS, RecordNotFound, Store

logger = logging.getLogger(__name__)

_ENGINE = "servers"


class ServersService:
	"""Create and administer servers and their membership."""

	def __init__(self, *, store: Store) -> None:
		self.store = store
		self.servers = store.collection(SERVERS)
		self.requests = store.collection(SERVER_REQUESTS)
		self.channels = store.collection(CHANNELS)

	async def _load_server(self, server_id: str) -> models.Server:
		return await records.fetch(self.store, SERVERS, server_id, models.Server, detail="server_not_found")

	async def _load_owned_server(self, actor: ActorContext, server_id: str) -> models.Server:
		server = await self._load_server(server_id)
		return guards.require_server_owner(server, actor.id)

	async def _load_request(self, request_id: str) -> models.ServerJoinRequest:
		return await records.fetch(
			self.store, SERVER_REQUESTS, request_id, models.ServerJoinRequest, detail="request_not_found"
		)

	async def _delete_request(self, request_id: str) -> None:
		try:
			await self.requests.delete(request_id)
		except RecordNotFound:
			raise NotFoundError("request_not_found") from None

	async def _load_request_for_owner(
		self,
		actor: ActorContext,
		request_id: str,
	) -> tuple[models.ServerJoinRequest, models.Server]:
		request = await self._load_request(request_id)
		try:
			server = await self._load_server(request.to_id)
		except NotFoundError:
			# The target server is gone; the request can never be honoured
			await self._delete_request(request.id)
			raise
		guards.require_server_owner(server, actor.id)
		return request, server

	async def create_server(self, actor: ActorContext, name: str) -> models.Server:
		clean = validation.clean_name(name)
		created = await self.servers.create(
			{"name": clean, "owner": actor.id, "members": [actor.id], "channels": []}
		)
		server = models.Server.model_validate(created)
		obs_metrics.inc_relationship_op(_ENGINE, "create")
		logger.info("server.create", extra={"server_id": server.id})
		return server

	async def get_server(self, actor: ActorContext, server_id: str) -> models.Server:
		return await self._load_server(server_id)

	async def update_server(self, actor: ActorContext, server_id: str, patch: models.ServerPatch) -> models.Server:
		server = await self._load_owned_server(actor, server_id)
		changes: dict[str, object] = {}
		if patch.name is not None:
			changes["name"] = validation.clean_name(patch.name)
		if not changes:
			return server
		try:
			updated = await self.servers.update(server.id, changes)
		except RecordNotFound:
			raise NotFoundError("server_not_found") from None
		obs_metrics.inc_relationship_op(_ENGINE, "update")
		logger.info("server.update", extra={"server_id": server.id, "fields": sorted(changes)})
		return models.Server.model_validate(updated)

	async def remove_server(self, actor: ActorContext, server_id: str) -> models.Server:
		"""Delete a server after its channels and pending join requests.

		Each channel leaves the index before it is deleted so the index never
		points at a missing channel; the server delete is the commit point.
		"""
		server = await self._load_owned_server(actor, server_id)
		for row in await self.channels.query(filters.eq("server", server.id)):
			try:
				await mutations.remove_from_set(self.servers, server.id, "channels", row["id"])
			except RecordNotFound:
				raise NotFoundError("server_not_found") from None
			try:
				await self.channels.delete(row["id"])
			except RecordNotFound:
				pass
		for row in await self.requests.query(filters.eq("to", server.id)):
			try:
				await self.requests.delete(row["id"])
			except RecordNotFound:
				pass
		try:
			await self.servers.delete(server.id)
		except RecordNotFound:
			raise NotFoundError("server_not_found") from None
		obs_metrics.inc_relationship_op(_ENGINE, "remove")
		logger.info("server.remove", extra={"server_id": server.id})
		return server

	async def request_to_join(self, actor: ActorContext, server_id: str) -> models.ServerJoinRequest:
		# Duplicate join requests are accepted on purpose; see DESIGN.md
		server = await self._load_server(server_id)
		if guards.is_server_member(server, actor.id):
			raise AlreadyMemberError()
		created = await self.requests.create({"from": actor.id, "to": server.id})
		request = models.ServerJoinRequest.model_validate(created)
		obs_metrics.inc_relationship_op(_ENGINE, "request_join")
		logger.info("server.join_request", extra={"request_id": request.id, "server_id": server.id})
		return request

	async def accept_join_request(self, actor: ActorContext, request_id: str) -> models.ServerJoinRequest:
		request, server = await self._load_request_for_owner(actor, request_id)
		if await records.load_profile(self.store, request.from_id) is None:
			# Requester deleted their account; the request can never be honoured
			await self._delete_request(request.id)
			obs_metrics.inc_relationship_op(_ENGINE, "accept_join", "user_missing")
			raise NotFoundError("user_not_found")
		try:
			await mutations.add_to_set(self.servers, server.id, "members", request.from_id)
		except RecordNotFound:
			await self._delete_request(request.id)
			raise NotFoundError("server_not_found") from None
		await self._delete_request(request.id)
		obs_metrics.inc_relationship_op(_ENGINE, "accept_join")
		logger.info(
			"server.join_accept",
			extra={"request_id": request.id, "server_id": server.id, "member_id": request.from_id},
		)
		return request

	async def decline_join_request(self, actor: ActorContext, request_id: str) -> models.ServerJoinRequest:
		request, server = await self._load_request_for_owner(actor, request_id)
		await self._delete_request(request.id)
		obs_metrics.inc_relationship_op(_ENGINE, "decline_join")
		logger.info("server.join_decline", extra={"request_id": request.id, "server_id": server.id})
		return request

	async def cancel_join_request(self, actor: ActorContext, request_id: str) -> models.ServerJoinRequest:
		request = await self._load_request(request_id)
		if not guards.is_self(request.from_id, actor.id):
			raise ForbiddenError("not_requester")
		await self._delete_request(request.id)
		obs_metrics.inc_relationship_op(_ENGINE, "cancel_join")
		logger.info("server.join_cancel", extra={"request_id": request.id, "server_id": request.to_id})
		return request

	async def list_join_requests(
		self,
		actor: ActorContext,
		server_id: str,
		page: int,
		limit: int,
	) -> models.JoinRequestPage:
		validation.check_page(page, limit, max_limit=settings.join_requests_max_limit)
		server = await self._load_owned_server(actor, server_id)
		rows = await self.requests.query(filters.eq("to", server.id), page=page, limit=limit, sort="created")
		items: list[models.JoinRequestSummary] = []
		for row in rows:
			request = models.ServerJoinRequest.model_validate(row)
			profile = await records.load_profile(self.store, request.from_id)
			if profile is None:
				continue
			items.append(
				models.JoinRequestSummary(id=request.id, from_id=request.from_id, to_id=request.to_id, requester=profile)
			)
		return models.JoinRequestPage(page=page, limit=limit, items=items)

	async def list_my_join_requests(self, actor: ActorContext) -> list[models.ServerJoinRequest]:
		rows = await self.requests.query(filters.eq("from", actor.id), sort="-created")
		return [models.ServerJoinRequest.model_validate(row) for row in rows]

	async def list_my_servers(self, actor: ActorContext) -> list[models.Server]:
		rows = await self.servers.query(filters.like("members", actor.id), sort="created")
		servers = [models.Server.model_validate(row) for row in rows]
		# "~" is a substring match; keep exact members only
		return [server for server in servers if guards.is_server_member(server, actor.id)]

	async def list_servers(
		self,
		actor: ActorContext,
		page: int,
		limit: int,
		*,
		name: Optional[str] = None,
	) -> models.ServerPage:
		validation.check_page(page, limit, max_limit=settings.join_requests_max_limit)
		expr = filters.like("name", name.strip()) if name and name.strip() else None
		rows = await self.servers.query(expr, page=page, limit=limit, sort="name")
		return models.ServerPage(page=page, limit=limit, items=[models.Server.model_validate(row) for row in rows])

	async def ban_user(self, actor: ActorContext, server_id: str, target_user_id: str) -> models.Server:
		"""Remove ``target_user_id`` from the members. The user may request to join again."""
		guards.require_not_self(target_user_id, actor.id, error=SelfBanError)
		server = await self._load_owned_server(actor, server_id)
		if not guards.is_server_member(server, target_user_id):
			raise NotMemberError()
		try:
			updated = await mutations.remove_from_set(self.servers, server.id, "members", target_user_id)
		except RecordNotFound:
			raise NotFoundError("server_not_found") from None
		obs_metrics.inc_relationship_op(_ENGINE, "ban")
		logger.info("server.ban", extra={"server_id": server.id, "target_user": target_user_id})
		return models.Server.model_validate(updated)

	async def leave_server(self, actor: ActorContext, server_id: str) -> models.Server:
		server = await self._load_server(server_id)
		if guards.is_server_owner(server, actor.id):
			raise ForbiddenError("owner_cannot_leave")
		if not guards.is_server_member(server, actor.id):
			raise NotMemberError()
		try:
			updated = await mutations.remove_from_set(self.servers, server.id, "members", actor.id)
		except RecordNotFound:
			raise NotFoundError("server_not_found") from None
		obs_metrics.inc_relationship_op(_ENGINE, "leave")
		logger.info("server.leave", extra={"server_id": server.id})
		return models.Server.model_validate(updated)
