"""Domain models for the relationship core.

Store records are plain dicts; these models are what the engines work with.
Request records keep the store's ``from``/``to`` field names as aliases.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from concorde.domain.validation import Name, Password


class _Record(BaseModel):
	model_config = ConfigDict(extra="ignore", populate_by_name=True)

	id: str
	version: Optional[int] = None


class User(_Record):
	"""A registered account and its symmetric friends set."""

	username: str
	email: Optional[str] = None
	name: Optional[str] = None
	avatar: Optional[str] = None
	friends: list[str] = Field(default_factory=list)


class Server(_Record):
	"""A guild administered by a single owner."""

	name: str
	owner: str
	members: list[str] = Field(default_factory=list)
	channels: list[str] = Field(default_factory=list)


class Channel(_Record):
	name: str
	owner: str
	server: str


class FriendRequest(_Record):
	"""Pending friend request; deleted once accepted, declined or cancelled."""

	from_id: str = Field(alias="from")
	to_id: str = Field(alias="to")
	created: Optional[str] = None


class ServerJoinRequest(_Record):
	"""Pending request from a user (``from``) to join a server (``to``)."""

	from_id: str = Field(alias="from")
	to_id: str = Field(alias="to")
	created: Optional[str] = None


class UserProfile(BaseModel):
	"""Public projection of a user used by list expansions."""

	id: str
	username: str
	name: Optional[str] = None
	avatar: Optional[str] = None


class FriendRequestSummary(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	id: str
	from_id: str = Field(alias="from")
	to_id: str = Field(alias="to")
	user: UserProfile


class JoinRequestSummary(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	id: str
	from_id: str = Field(alias="from")
	to_id: str = Field(alias="to")
	requester: UserProfile


class JoinRequestPage(BaseModel):
	page: int
	limit: int
	items: list[JoinRequestSummary]


class ServerPage(BaseModel):
	page: int
	limit: int
	items: list[Server]


class ServerPatch(BaseModel):
	name: Optional[Name] = None


class ChannelPatch(BaseModel):
	name: Optional[Name] = None


class Registration(BaseModel):
	"""Sign-up payload; the store receives the password and its confirmation."""

	model_config = ConfigDict(populate_by_name=True)

	username: Name
	email: EmailStr
	password: Password
	password_confirm: str = Field(alias="passwordConfirm")
	name: Name

	@field_validator("password_confirm")
	@classmethod
	def _matches_password(cls, value: str, info: ValidationInfo) -> str:
		password = info.data.get("password")
		if password is not None and value != password:
			raise ValueError("must match password")
		return value


class Session(BaseModel):
	"""Outcome of register/login: the profile and a bearer token."""

	user: UserProfile
	token: str
