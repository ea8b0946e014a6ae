"""Per-request service resolution from the application's store."""

from __future__ import annotations

from fastapi import Request

from concorde.domain.channels import ChannelsService
from concorde.domain.friends import FriendsService
from concorde.domain.servers import ServersService
from concorde.domain.users import UsersService
from concorde.store.base import Store


def get_store(request: Request) -> Store:
	return request.app.state.store


def get_users_service(request: Request) -> UsersService:
	return UsersService(store=get_store(request))


def get_friends_service(request: Request) -> FriendsService:
	return FriendsService(store=get_store(request))


def get_servers_service(request: Request) -> ServersService:
	return ServersService(store=get_store(request))


def get_channels_service(request: Request) -> ChannelsService:
	return ChannelsService(store=get_store(request))
