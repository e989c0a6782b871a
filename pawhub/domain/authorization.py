# SPDX-License-Identifier: Apache-2.0

"""
Authorization gate for role-based access control.

``check_roles`` is the pure decision: allow iff the actor's role list
intersects the operation's allow-set. ``authorize`` and ``require_roles`` add
the actor lookup in front of it.
"""

import logging
from typing import Iterable, List, Optional, Protocol
from dataclasses import dataclass, field

from ..models.entities import Usuario
from ..models.enums import Role
from ..middleware.error_handler import ActorNotFoundError, ForbiddenError
from .roles import describe_roles

logger = logging.getLogger(__name__)


class UsuarioLookup(Protocol):
    def find_by_id(self, usuario_id: str) -> Optional[Usuario]:
        ...


@dataclass
class AuthorizationResult:
    """Result of an authorization check."""
    allowed: bool
    reason: Optional[str] = None
    matched_roles: List[str] = field(default_factory=list)


def check_roles(actor_roles: Iterable[str], allowed_roles: Iterable[Role]) -> AuthorizationResult:
    """
    Decide whether a role list satisfies an allow-set.
    
    Args:
        actor_roles: Roles currently held by the actor
        allowed_roles: Roles authorized for the operation
        
    Returns:
        AuthorizationResult; allowed iff the intersection is non-empty
    """
    held = {Role(role) for role in actor_roles}
    allowed = {Role(role) for role in allowed_roles}
    matched = held & allowed
    
    if matched:
        return AuthorizationResult(
            allowed=True,
            matched_roles=[role.value for role in Role if role in matched]
        )
    
    return AuthorizationResult(
        allowed=False,
        reason=f"Requer um dos papéis: {describe_roles(allowed)}"
    )


def authorize(usuarios: UsuarioLookup, acting_user_id: str,
              allowed_roles: Iterable[Role]) -> AuthorizationResult:
    """
    Look up the actor and check its roles against an allow-set.
    
    Raises:
        ActorNotFoundError: if the acting user does not exist
    """
    actor = usuarios.find_by_id(acting_user_id) if acting_user_id else None
    if actor is None:
        raise ActorNotFoundError()
    
    return check_roles(actor.roles, allowed_roles)


def require_roles(usuarios: UsuarioLookup, acting_user_id: str,
                  allowed_roles: Iterable[Role], message: Optional[str] = None) -> AuthorizationResult:
    """
    Like ``authorize`` but raises on denial.
    
    Raises:
        ActorNotFoundError: if the acting user does not exist
        ForbiddenError: if no held role is in the allow-set
    """
    allowed_roles = frozenset(Role(role) for role in allowed_roles)
    result = authorize(usuarios, acting_user_id, allowed_roles)
    
    if not result.allowed:
        logger.warning(
            "Authorization denied",
            extra={
                "actor_id": acting_user_id,
                "allowed_roles": describe_roles(allowed_roles),
                "reason": result.reason
            }
        )
        raise ForbiddenError(message or result.reason)
    
    return result
