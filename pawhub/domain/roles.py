# SPDX-License-Identifier: Apache-2.0

"""
Role vocabulary and the static allow-set configuration.

Each scoped role (Administrador, Funcionario, Voluntario, Doador) is described
by a ``RoleDescriptor``: which roles may create, update and delete its
memberships, which collection materializes it and which attributes it carries.
The mapping is configuration, not computed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Type

from ..models.base import MembershipEntity
from ..models.enums import Role
from ..models.entities import Administrador, Funcionario, Voluntario, Doador
from ..models.requests import (
    ActorRequest,
    MembershipCreateRequest,
    AdministradorCreateRequest,
    AdministradorUpdateRequest,
    FuncionarioCreateRequest,
    FuncionarioUpdateRequest,
    VoluntarioCreateRequest,
    VoluntarioUpdateRequest,
    DoadorCreateRequest,
    DoadorUpdateRequest,
)


# Declaration order of the vocabulary, used to render allow-sets in messages
ROLE_ORDER: List[Role] = list(Role)

SUPER_ADMIN_ONLY: FrozenSet[Role] = frozenset({Role.SUPER_ADMIN})
PROJECT_MANAGERS: FrozenSet[Role] = frozenset({Role.SUPER_ADMIN, Role.ADMINISTRADOR})

# Project-independent operations
PROMOTE_SUPER_ADMIN_ROLES = SUPER_ADMIN_ONLY
CREATE_PROJETO_ROLES = SUPER_ADMIN_ONLY
UPDATE_PROJETO_ROLES = PROJECT_MANAGERS
DEACTIVATE_USUARIO_ROLES = PROJECT_MANAGERS
# Besides the user editing their own profile
UPDATE_USUARIO_ROLES = PROJECT_MANAGERS

# Roles a new user may ask for at registration; scoped roles come from grants
REGISTRATION_ROLES: FrozenSet[Role] = frozenset({Role.ADOTANTE, Role.SUPER_ADMIN})

MAX_SUPER_ADMINS = 2


def describe_roles(roles: Iterable[Role]) -> str:
    """Render an allow-set as "SuperAdmin ou Administrador"."""
    wanted = {Role(role) for role in roles}
    return " ou ".join(role.value for role in ROLE_ORDER if role in wanted)


@dataclass(frozen=True)
class RoleDescriptor:
    """Static description of one scoped role."""
    
    role: Role
    collection: str
    slug: str
    singular: str
    plural: str
    model: Type[MembershipEntity]
    create_request: Type[MembershipCreateRequest]
    update_request: Type[ActorRequest]
    create_roles: FrozenSet[Role]
    update_roles: FrozenSet[Role]
    delete_roles: FrozenSet[Role]
    defaults: Mapping[str, Any] = field(default_factory=dict)
    
    @property
    def attribute_names(self) -> List[str]:
        """Role-specific attributes (everything but key and timestamps)."""
        base = set(MembershipEntity.model_fields)
        return [name for name in self.model.model_fields if name not in base]
    
    @property
    def audit_entity(self) -> str:
        return self.role.value.lower()
    
    def forbidden_message(self, verb: str, allowed: FrozenSet[Role]) -> str:
        """Message for a Gate denial, e.g. "Apenas SuperAdmin ou Administrador podem cadastrar doadores"."""
        auxiliary = "pode" if len(allowed) == 1 else "podem"
        return f"Apenas {describe_roles(allowed)} {auxiliary} {verb} {self.plural}"
    
    def not_found_message(self) -> str:
        return f"{self.singular.capitalize()} não encontrado"
    
    def already_member_message(self) -> str:
        return f"Usuário já está cadastrado como {self.singular} neste projeto"


ADMINISTRADOR = RoleDescriptor(
    role=Role.ADMINISTRADOR,
    collection="administradores",
    slug="administradores",
    singular="administrador",
    plural="administradores de projetos",
    model=Administrador,
    create_request=AdministradorCreateRequest,
    update_request=AdministradorUpdateRequest,
    create_roles=SUPER_ADMIN_ONLY,
    update_roles=SUPER_ADMIN_ONLY,
    delete_roles=SUPER_ADMIN_ONLY,
)

FUNCIONARIO = RoleDescriptor(
    role=Role.FUNCIONARIO,
    collection="funcionarios",
    slug="funcionarios",
    singular="funcionário",
    plural="funcionários",
    model=Funcionario,
    create_request=FuncionarioCreateRequest,
    update_request=FuncionarioUpdateRequest,
    create_roles=PROJECT_MANAGERS,
    update_roles=PROJECT_MANAGERS,
    delete_roles=PROJECT_MANAGERS,
    defaults={"privilegios": False},
)

VOLUNTARIO = RoleDescriptor(
    role=Role.VOLUNTARIO,
    collection="voluntarios",
    slug="voluntarios",
    singular="voluntário",
    plural="voluntários",
    model=Voluntario,
    create_request=VoluntarioCreateRequest,
    update_request=VoluntarioUpdateRequest,
    create_roles=PROJECT_MANAGERS,
    update_roles=PROJECT_MANAGERS,
    delete_roles=PROJECT_MANAGERS,
)

DOADOR = RoleDescriptor(
    role=Role.DOADOR,
    collection="doadores",
    slug="doadores",
    singular="doador",
    plural="doadores",
    model=Doador,
    create_request=DoadorCreateRequest,
    update_request=DoadorUpdateRequest,
    create_roles=PROJECT_MANAGERS,
    update_roles=PROJECT_MANAGERS,
    delete_roles=PROJECT_MANAGERS,
)

SCOPED_ROLES: Dict[Role, RoleDescriptor] = {
    descriptor.role: descriptor
    for descriptor in (ADMINISTRADOR, FUNCIONARIO, VOLUNTARIO, DOADOR)
}


def get_descriptor(role) -> RoleDescriptor:
    """
    Look up the descriptor of a scoped role.
    
    Raises:
        KeyError: if ``role`` is not a scoped role (SuperAdmin, Adotante)
    """
    return SCOPED_ROLES[Role(role)]
