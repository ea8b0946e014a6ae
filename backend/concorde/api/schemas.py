"""Request bodies accepted by the relationship API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from concorde.domain.validation import Identifier, Name


class LoginRequest(BaseModel):
	identity: str = Field(..., min_length=1, max_length=255, description="Username or email")
	password: str = Field(..., min_length=1)


class FriendInviteRequest(BaseModel):
	user: str = Field(..., min_length=2, max_length=255)


class ServerCreateRequest(BaseModel):
	name: Name


class JoinRequestCreate(BaseModel):
	to: Identifier = Field(..., description="Server id")


class ChannelCreateRequest(BaseModel):
	server: Identifier
	name: Name


class StatusResponse(BaseModel):
	status: str = "ok"
