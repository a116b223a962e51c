"""Authentication helpers for FastAPI endpoints.

Resolves the Identity collaborator: the current user id and roles. Bearer
JWTs are verified with PyJWT; the X-User-* headers are a dev-only fallback
for local tools and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from callhub.infra import jwt as jwt_helper
from callhub.moderation.domain.models import Actor
from callhub.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	roles: Tuple[str, ...] = ()
	handle: Optional[str] = None

	def has_role(self, role: str) -> bool:
		return role in self.roles

	def is_operator(self) -> bool:
		return any(self.has_role(role) for role in settings.operator_roles)

	def to_actor(self) -> Actor:
		return Actor(id=self.id, role="operator" if self.is_operator() else "user")


_bearer_scheme = HTTPBearer(auto_error=False)


def _parse_roles(claim: object) -> Tuple[str, ...]:
	if isinstance(claim, (list, tuple)):
		return tuple(str(r).strip() for r in claim if str(r).strip())
	if isinstance(claim, str):
		return tuple(part.strip() for part in claim.split(",") if part.strip())
	return ()


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser."""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# Normalise all decode failures to invalid_token for the API surface
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	handle = payload.get("handle")
	return AuthenticatedUser(
		id=sub,
		roles=_parse_roles(payload.get("roles") or payload.get("role")),
		handle=str(handle) if handle is not None else None,
	)


async def get_optional_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_roles: Optional[str] = Header(default=None, alias="X-User-Roles"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[AuthenticatedUser]:
	"""Resolve the caller if one is presented, otherwise return None."""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)
	# In dev only, allow X-User-* fallback for local tools
	if settings.is_dev() and x_user_id:
		return AuthenticatedUser(id=x_user_id, roles=_parse_roles(x_user_roles))
	return None


async def get_current_user(
	user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> AuthenticatedUser:
	if user is None:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	return user


async def get_operator_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	if user.is_operator():
		return user
	raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")


async def get_actor(user: Optional[AuthenticatedUser] = Depends(get_optional_user)) -> Optional[Actor]:
	"""Domain view of the caller; None lets the pipeline raise its own auth error."""
	return user.to_actor() if user is not None else None


async def get_operator_actor(user: AuthenticatedUser = Depends(get_operator_user)) -> Actor:
	return user.to_actor()
