"""Channel lifecycle and the server's channel index.

Creating a channel writes the channel first and the index entry second; if
the index write fails the channel is deleted again, so only a crash between
the two writes can leave an unlisted channel. Deleting goes the other way:
the index entry is dropped before the channel. ``repair_channel_index``
restores equality after an interruption.
"""

from __future__ import annotations

import logging

from concorde.domain import guards, models, mutations, records, validation
from concorde.domain.exceptions import NotFoundError
from concorde.infra.auth import ActorContext
from concorde.obs import metrics as obs_metrics
from concorde.store import filters
from concorde.store.base import CHANNELS, SERVERS, RecordNotFound, Store

logger = logging.getLogger(__name__)

_ENGINE = "channels"


class ChannelsService:
	def __init__(self, *, store: Store) -> None:
		self.store = store
		self.servers = store.collection(SERVERS)
		self.channels = store.collection(CHANNELS)

	async def _load_channel(self, channel_id: str) -> models.Channel:
		return await records.fetch(self.store, CHANNELS, channel_id, models.Channel, detail="channel_not_found")

	async def _load_owned_server(self, actor: ActorContext, server_id: str) -> models.Server:
		server = await records.fetch(self.store, SERVERS, server_id, models.Server, detail="server_not_found")
		return guards.require_server_owner(server, actor.id)

	async def _discard(self, channel: models.Channel) -> None:
		"""Undo a create whose index write failed so no channel is left unlisted."""
		try:
			await self.channels.delete(channel.id)
		except RecordNotFound:
			pass
		logger.info("channel.create_rolled_back", extra={"channel_id": channel.id, "server_id": channel.server})

	async def create_channel(self, actor: ActorContext, server_id: str, name: str) -> models.Channel:
		server_id = validation.clean_identifier(server_id, field="server")
		clean = validation.clean_name(name)
		server = await self._load_owned_server(actor, server_id)
		created = await self.channels.create({"name": clean, "owner": actor.id, "server": server.id})
		channel = models.Channel.model_validate(created)
		try:
			await mutations.add_to_set(self.servers, server.id, "channels", channel.id)
		except RecordNotFound:
			# Server removed between the gate and the index write
			await self._discard(channel)
			raise NotFoundError("server_not_found") from None
		except Exception:
			await self._discard(channel)
			raise
		obs_metrics.inc_relationship_op(_ENGINE, "create")
		logger.info("channel.create", extra={"channel_id": channel.id, "server_id": server.id})
		return channel

	async def update_channel(self, actor: ActorContext, channel_id: str, patch: models.ChannelPatch) -> models.Channel:
		channel = guards.require_channel_owner(await self._load_channel(channel_id), actor.id)
		if patch.name is None:
			return channel
		try:
			updated = await self.channels.update(channel.id, {"name": validation.clean_name(patch.name)})
		except RecordNotFound:
			raise NotFoundError("channel_not_found") from None
		obs_metrics.inc_relationship_op(_ENGINE, "update")
		logger.info("channel.update", extra={"channel_id": channel.id})
		return models.Channel.model_validate(updated)

	async def delete_channel(self, actor: ActorContext, channel_id: str) -> models.Channel:
		channel = guards.require_channel_owner(await self._load_channel(channel_id), actor.id)
		try:
			await mutations.remove_from_set(self.servers, channel.server, "channels", channel.id)
		except RecordNotFound:
			# Orphaned channel: nothing indexes it any more
			logger.info("channel.delete_orphan", extra={"channel_id": channel.id, "server_id": channel.server})
		try:
			await self.channels.delete(channel.id)
		except RecordNotFound:
			raise NotFoundError("channel_not_found") from None
		obs_metrics.inc_relationship_op(_ENGINE, "delete")
		logger.info("channel.delete", extra={"channel_id": channel.id, "server_id": channel.server})
		return channel

	async def list_channels(self, actor: ActorContext, server_id: str) -> list[models.Channel]:
		rows = await self.channels.query(filters.eq("server", server_id), sort="created")
		return [models.Channel.model_validate(row) for row in rows]

	async def repair_channel_index(self, actor: ActorContext, server_id: str) -> models.Server:
		"""Rewrite ``server.channels`` to exactly the channels that exist for it."""
		server = await self._load_owned_server(actor, server_id)
		rows = await self.channels.query(filters.eq("server", server.id), sort="created")
		existing = [row["id"] for row in rows]

		def rebuild(current: list[str]) -> list[str]:
			# Keep the stored order for ids that survive, append the rest
			kept = [channel_id for channel_id in current if channel_id in existing]
			return mutations.union(kept, *existing)

		try:
			updated = await mutations.apply_set_update(self.servers, server.id, "channels", rebuild)
		except RecordNotFound:
			raise NotFoundError("server_not_found") from None
		if updated.get("channels") != server.channels:
			obs_metrics.inc_relationship_op(_ENGINE, "repair")
			logger.info(
				"channel.repair_index",
				extra={"server_id": server.id, "before": len(server.channels), "after": len(existing)},
			)
		return models.Server.model_validate(updated)
