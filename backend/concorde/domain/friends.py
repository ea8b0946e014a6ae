"""Friend-request lifecycle and the symmetric friends set.

Accepting a request is three independent writes applied in a fixed order:

1. add ``to`` to the sender's friends (union)
2. add ``from`` to the recipient's friends (union)
3. delete the request (commit point)

A crash before step 3 leaves the request pending; accepting it again
re-applies the unions as no-ops and completes the sequence.
"""

from __future__ import annotations

import logging

from concorde.domain import guards, models, mutations, records
from concorde.domain.exceptions import (
	AlreadyFriendsError,
	DuplicateRequestError,
	ForbiddenError,
	NotFoundError,
)
from concorde.infra.auth import ActorContext
from concorde.obs import metrics as obs_metrics
from concorde.store import filters
from concorde.store.base import FRIEND_REQUESTS, USERS, RecordNotFound, Store

logger = logging.getLogger(__name__)

_ENGINE = "friends"


class FriendsService:
	"""Invite, accept, decline, cancel and remove friendships."""

	def __init__(self, *, store: Store) -> None:
		self.store = store
		self.users = store.collection(USERS)
		self.requests = store.collection(FRIEND_REQUESTS)

	async def _load_request(self, request_id: str) -> models.FriendRequest:
		return await records.fetch(
			self.store, FRIEND_REQUESTS, request_id, models.FriendRequest, detail="request_not_found"
		)

	async def _load_addressed_request(self, actor: ActorContext, request_id: str) -> models.FriendRequest:
		request = await self._load_request(request_id)
		if not guards.is_self(request.to_id, actor.id):
			raise ForbiddenError("not_recipient")
		return request

	async def _delete_request(self, request_id: str) -> None:
		try:
			await self.requests.delete(request_id)
		except RecordNotFound:
			# Raced with another accept/decline of the same request
			raise NotFoundError("request_not_found") from None

	async def invite(self, actor: ActorContext, target_user_id: str) -> models.FriendRequest:
		guards.require_not_self(target_user_id, actor.id)
		target = await records.fetch(self.store, USERS, target_user_id, models.User, detail="user_not_found")
		if actor.id in target.friends:
			obs_metrics.inc_relationship_op(_ENGINE, "invite", "already_friends")
			raise AlreadyFriendsError()
		pending = await self.requests.query(
			filters.and_(filters.eq("from", actor.id), filters.eq("to", target.id)),
			page=1,
			limit=1,
		)
		if pending:
			obs_metrics.inc_relationship_op(_ENGINE, "invite", "duplicate")
			raise DuplicateRequestError()
		created = await self.requests.create({"from": actor.id, "to": target.id})
		request = models.FriendRequest.model_validate(created)
		obs_metrics.inc_relationship_op(_ENGINE, "invite")
		logger.info("friend.invite", extra={"request_id": request.id, "from_user": actor.id, "to_user": target.id})
		return request

	async def accept(self, actor: ActorContext, request_id: str) -> models.FriendRequest:
		request = await self._load_addressed_request(actor, request_id)
		try:
			await mutations.add_to_set(self.users, request.from_id, "friends", request.to_id)
			await mutations.add_to_set(self.users, request.to_id, "friends", request.from_id)
		except RecordNotFound:
			# One side of the pair is gone: the request can never complete
			await self._delete_request(request.id)
			obs_metrics.inc_relationship_op(_ENGINE, "accept", "user_missing")
			raise NotFoundError("user_not_found") from None
		await self._delete_request(request.id)
		obs_metrics.inc_relationship_op(_ENGINE, "accept")
		logger.info(
			"friend.accept",
			extra={"request_id": request.id, "from_user": request.from_id, "to_user": request.to_id},
		)
		return request

	async def decline(self, actor: ActorContext, request_id: str) -> models.FriendRequest:
		request = await self._load_addressed_request(actor, request_id)
		await self._delete_request(request.id)
		obs_metrics.inc_relationship_op(_ENGINE, "decline")
		logger.info("friend.decline", extra={"request_id": request.id, "from_user": request.from_id})
		return request

	async def cancel(self, actor: ActorContext, request_id: str) -> models.FriendRequest:
		"""Withdraw a request the actor sent."""
		request = await self._load_request(request_id)
		if not guards.is_self(request.from_id, actor.id):
			raise ForbiddenError("not_sender")
		await self._delete_request(request.id)
		obs_metrics.inc_relationship_op(_ENGINE, "cancel")
		logger.info("friend.cancel", extra={"request_id": request.id, "to_user": request.to_id})
		return request

	async def remove(self, actor: ActorContext, friend_id: str) -> None:
		"""Drop the friendship on both sides; unknown or absent friends are a no-op."""
		guards.require_not_self(friend_id, actor.id)
		try:
			await mutations.remove_from_set(self.users, actor.id, "friends", friend_id)
		except RecordNotFound:
			raise NotFoundError("user_not_found") from None
		try:
			await mutations.remove_from_set(self.users, friend_id, "friends", actor.id)
		except RecordNotFound:
			logger.info("friend.remove_dangling", extra={"friend_id": friend_id})
		obs_metrics.inc_relationship_op(_ENGINE, "remove")
		logger.info("friend.remove", extra={"friend_id": friend_id})

	async def list(self, actor: ActorContext) -> list[models.UserProfile]:
		user = await records.fetch(self.store, USERS, actor.id, models.User, detail="user_not_found")
		return await records.expand_profiles(self.store, user.friends)

	async def _summaries(self, expr: str, *, counterpart: str) -> list[models.FriendRequestSummary]:
		rows = await self.requests.query(expr, sort="-created")
		summaries: list[models.FriendRequestSummary] = []
		for row in rows:
			request = models.FriendRequest.model_validate(row)
			other_id = request.from_id if counterpart == "from" else request.to_id
			profile = await records.load_profile(self.store, other_id)
			if profile is None:
				continue
			summaries.append(
				models.FriendRequestSummary(id=request.id, from_id=request.from_id, to_id=request.to_id, user=profile)
			)
		return summaries

	async def list_pending_incoming(self, actor: ActorContext) -> list[models.FriendRequestSummary]:
		return await self._summaries(filters.eq("to", actor.id), counterpart="from")

	async def list_pending_outgoing(self, actor: ActorContext) -> list[models.FriendRequestSummary]:
		return await self._summaries(filters.eq("from", actor.id), counterpart="to")
