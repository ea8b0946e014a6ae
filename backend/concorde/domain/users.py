"""Account registration, login and public profiles."""

from __future__ import annotations

import logging

from concorde.domain import models, records
from concorde.domain.exceptions import InvalidCredentialError, NotFoundError, ValidationError
from concorde.infra.auth import ActorContext, issue_access_token
from concorde.obs import metrics as obs_metrics
from concorde.store.base import USERS, AuthenticationFailed, StoreRejected, Store

logger = logging.getLogger(__name__)


class UsersService:
	def __init__(self, *, store: Store) -> None:
		self.store = store
		self.users = store.collection(USERS)

	def _session(self, record: dict) -> models.Session:
		profile = records.to_profile(self.store, record)
		return models.Session(user=profile, token=issue_access_token(profile.id, username=profile.username))

	async def register(self, payload: models.Registration) -> models.Session:
		"""Create an account from an already validated payload and open a session.

		Password hashing happens in the store; the plain password is only
		forwarded with its confirmation. Uniqueness is also the store's call.
		"""
		try:
			created = await self.users.create(
				{
					"username": payload.username,
					"email": str(payload.email),
					"name": payload.name,
					"password": payload.password,
					"passwordConfirm": payload.password_confirm,
					"emailVisibility": True,
					"verified": True,
					"friends": [],
				}
			)
		except StoreRejected as exc:
			raise ValidationError(exc.errors) from None
		obs_metrics.inc_user_registered()
		logger.info("user.register", extra={"new_user_id": created["id"]})
		return self._session(created)

	async def login(self, identity: str, password: str) -> models.Session:
		if not identity or not password:
			obs_metrics.inc_login("invalid")
			raise InvalidCredentialError("invalid_credentials")
		try:
			record = await self.store.authenticate(identity.strip(), password)
		except AuthenticationFailed:
			obs_metrics.inc_login("rejected")
			raise InvalidCredentialError("invalid_credentials") from None
		obs_metrics.inc_login("ok")
		logger.info("user.login", extra={"login_user_id": record["id"]})
		return self._session(record)

	async def get_profile(self, actor: ActorContext, user_id: str) -> models.UserProfile:
		profile = await records.load_profile(self.store, user_id)
		if profile is None:
			raise NotFoundError("user_not_found")
		return profile
