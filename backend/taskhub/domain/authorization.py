"""Authorization predicate for task and project operations.

Roles are expressed as data: ``CAPABILITIES`` lists, per role, the actions
granted on *managed* resources (the resource's department lies in the
actor's department hierarchy) and on *involved* resources (the actor owns
the resource, is assigned to it, or collaborates on the project).

The department hierarchy is resolved by the caller before the predicate
runs, so ``can_act`` does no I/O and is deterministic:

- HR_ADMIN (or any actor flagged ``is_hr_admin``): every action anywhere.
- MANAGER: full control inside the hierarchy except hard delete; read-only
  on resources elsewhere that the manager is involved in.
- STAFF: read/write on resources they are involved in; never removes other
  users' assignments, project collaborators, archives, or hard-deletes.

CREATE is decided by department alone: STAFF may create in their own
department, MANAGER anywhere in the hierarchy, HR_ADMIN anywhere.
"""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from taskhub.domain.records import Role


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    WRITE = "write"
    REMOVE_ASSIGNEE = "remove_assignee"
    REMOVE_COLLABORATOR = "remove_collaborator"
    ARCHIVE = "archive"
    DELETE = "delete"


class ResourceKind(str, Enum):
    TASK = "task"
    PROJECT = "project"


@dataclass(frozen=True)
class Capability:
    """Actions a role holds on managed and on involved resources."""

    managed: frozenset[Action]
    involved: frozenset[Action]
    unrestricted: bool = False


_ALL_ACTIONS = frozenset(Action)

CAPABILITIES: dict[Role, Capability] = {
    Role.HR_ADMIN: Capability(
        managed=_ALL_ACTIONS,
        involved=_ALL_ACTIONS,
        unrestricted=True,
    ),
    Role.MANAGER: Capability(
        managed=frozenset(
            {
                Action.READ,
                Action.CREATE,
                Action.WRITE,
                Action.REMOVE_ASSIGNEE,
                Action.REMOVE_COLLABORATOR,
                Action.ARCHIVE,
            }
        ),
        involved=frozenset({Action.READ}),
    ),
    Role.STAFF: Capability(
        managed=frozenset(),
        involved=frozenset({Action.READ, Action.WRITE}),
    ),
}


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation.

    ``managed_department_ids`` holds the actor's own department plus every
    transitively subordinate department.
    """

    user_id: UUID
    department_id: UUID
    role: Role
    is_hr_admin: bool = False
    managed_department_ids: frozenset[UUID] = field(default_factory=frozenset)

    @property
    def effective_role(self) -> Role:
        return Role.HR_ADMIN if self.is_hr_admin else self.role

    @property
    def is_manager_or_above(self) -> bool:
        return self.effective_role in (Role.MANAGER, Role.HR_ADMIN)


@dataclass(frozen=True)
class ResourceRef:
    """What the predicate needs to know about a task or project."""

    kind: ResourceKind
    department_id: UUID
    owner_id: UUID | None = None
    assignee_ids: frozenset[UUID] = field(default_factory=frozenset)
    collaborator_ids: frozenset[UUID] = field(default_factory=frozenset)

    def involves(self, user_id: UUID) -> bool:
        return (
            user_id == self.owner_id
            or user_id in self.assignee_ids
            or (self.kind is ResourceKind.PROJECT and user_id in self.collaborator_ids)
        )


def can_act(actor: Actor, resource: ResourceRef, action: Action) -> bool:
    """Return True if ``actor`` may perform ``action`` on ``resource``."""
    capability = CAPABILITIES[actor.effective_role]
    if capability.unrestricted:
        return True

    if action is Action.CREATE:
        if actor.effective_role is Role.STAFF:
            return resource.department_id == actor.department_id
        return resource.department_id in actor.managed_department_ids

    if resource.department_id in actor.managed_department_ids and action in capability.managed:
        return True

    return resource.involves(actor.user_id) and action in capability.involved
