"""
Role-Based Access Control (RBAC) policy table.

Roles:
  - admin: full access to users and records
  - hr: employees, clients, documents it is listed on
  - client_manager: clients and the projects it runs
  - employee: own profile, active colleagues, projects it takes part in

Every route decision goes through evaluate(). A decision is one of:
  - ALLOW: proceed
  - DENY: raise Forbidden
  - ALLOW_WITH_SCOPE: proceed, but AND the scope into the listing query

Record-level checks pass the record's owner ids (or the document ACL) so the
same table answers both "may I list these" and "may I touch this one".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Collection, Dict, Optional, Tuple

from records.errors import Forbidden


class Role(str, Enum):
    ADMIN = "admin"
    HR = "hr"
    CLIENT_MANAGER = "client_manager"
    EMPLOYEE = "employee"


ALL_ROLES = tuple(Role)


class Resource(str, Enum):
    USER = "user"
    EMPLOYEE = "employee"
    CLIENT = "client"
    PROJECT = "project"
    DOCUMENT = "document"
    REPORT_EMPLOYEES = "report_employees"
    REPORT_PROJECTS = "report_projects"


class Action(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ADD_TEAM = "add_team"
    ADD_CONTRACT = "add_contract"
    ARCHIVE = "archive"
    PROFILE = "profile"
    EXPORT = "export"


class Scope(str, Enum):
    """Listing restrictions the query layer knows how to express."""

    ACTIVE_ONLY = "active_only"
    PROJECT_PARTICIPANT = "project_participant"
    ACL_VIEW = "acl_view"


class Effect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    ALLOW_WITH_SCOPE = "allow_with_scope"


@dataclass(frozen=True)
class Rule:
    """
    One cell of the policy table.

    owned: the requester must be among the record's owners
    scope: restriction applied when listing (no record at hand)
    acl: "view" or "edit"; the requester's role must be on the record's ACL
    """

    owned: bool = False
    scope: Optional[Scope] = None
    acl: Optional[str] = None


@dataclass(frozen=True)
class Decision:
    effect: Effect
    scope: Optional[Scope] = None
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.effect != Effect.DENY


ALLOW = Rule()


def _cells(roles, rule: Rule = ALLOW) -> Dict[Role, Rule]:
    return {role: rule for role in roles}


_STAFF = (Role.ADMIN, Role.HR, Role.CLIENT_MANAGER)

POLICY: Dict[Tuple[Resource, Action], Dict[Role, Rule]] = {
    # Users
    (Resource.USER, Action.LIST): _cells([Role.ADMIN]),
    (Resource.USER, Action.DELETE): _cells([Role.ADMIN]),
    (Resource.USER, Action.READ): {Role.ADMIN: ALLOW, Role.EMPLOYEE: Rule(owned=True)},
    (Resource.USER, Action.UPDATE): {Role.ADMIN: ALLOW, Role.EMPLOYEE: Rule(owned=True)},
    (Resource.USER, Action.PROFILE): _cells(ALL_ROLES),
    # Employees
    (Resource.EMPLOYEE, Action.LIST): {**_cells(_STAFF), Role.EMPLOYEE: Rule(scope=Scope.ACTIVE_ONLY)},
    (Resource.EMPLOYEE, Action.READ): {**_cells(_STAFF), Role.EMPLOYEE: Rule(owned=True)},
    (Resource.EMPLOYEE, Action.CREATE): _cells([Role.ADMIN, Role.HR]),
    (Resource.EMPLOYEE, Action.UPDATE): _cells([Role.ADMIN, Role.HR]),
    (Resource.EMPLOYEE, Action.DELETE): _cells([Role.ADMIN]),
    # Clients
    (Resource.CLIENT, Action.LIST): _cells(_STAFF),
    (Resource.CLIENT, Action.READ): _cells(_STAFF),
    (Resource.CLIENT, Action.UPDATE): _cells(_STAFF),
    (Resource.CLIENT, Action.CREATE): _cells([Role.ADMIN, Role.CLIENT_MANAGER]),
    (Resource.CLIENT, Action.ADD_CONTRACT): _cells([Role.ADMIN, Role.CLIENT_MANAGER]),
    # Projects
    (Resource.PROJECT, Action.LIST): {
        **_cells(_STAFF),
        Role.EMPLOYEE: Rule(owned=True, scope=Scope.PROJECT_PARTICIPANT),
    },
    (Resource.PROJECT, Action.READ): {
        **_cells(_STAFF),
        Role.EMPLOYEE: Rule(owned=True, scope=Scope.PROJECT_PARTICIPANT),
    },
    (Resource.PROJECT, Action.CREATE): _cells([Role.ADMIN, Role.CLIENT_MANAGER]),
    (Resource.PROJECT, Action.UPDATE): {
        Role.ADMIN: ALLOW, Role.CLIENT_MANAGER: ALLOW, Role.EMPLOYEE: Rule(owned=True),
    },
    (Resource.PROJECT, Action.ADD_TEAM): {
        Role.ADMIN: ALLOW, Role.CLIENT_MANAGER: ALLOW, Role.EMPLOYEE: Rule(owned=True),
    },
    # Documents
    (Resource.DOCUMENT, Action.LIST): _cells(ALL_ROLES, Rule(acl="view", scope=Scope.ACL_VIEW)),
    (Resource.DOCUMENT, Action.READ): _cells(ALL_ROLES, Rule(acl="view", scope=Scope.ACL_VIEW)),
    (Resource.DOCUMENT, Action.UPDATE): _cells(ALL_ROLES, Rule(acl="edit")),
    (Resource.DOCUMENT, Action.CREATE): _cells(ALL_ROLES),
    (Resource.DOCUMENT, Action.ARCHIVE): _cells([Role.ADMIN, Role.HR]),
    # Reports
    (Resource.REPORT_EMPLOYEES, Action.EXPORT): _cells([Role.ADMIN, Role.HR]),
    (Resource.REPORT_PROJECTS, Action.EXPORT): {
        **_cells(_STAFF),
        Role.EMPLOYEE: Rule(scope=Scope.PROJECT_PARTICIPANT),
    },
}


def _as_role(role) -> Optional[Role]:
    try:
        return Role(role)
    except ValueError:
        return None


def evaluate(
    role,
    resource: Resource,
    action: Action,
    requester_id: Optional[str] = None,
    owners: Optional[Collection[str]] = None,
    acl: Optional[Dict[str, Collection[str]]] = None,
) -> Decision:
    """
    Decide whether `role` may perform `action` on `resource`.

    Pass `owners` (user ids that own the record) for record-level checks on
    ownership rules, and `acl` ({"view": [...], "edit": [...]}) for documents.
    Without either, rules that need them fall back to their listing scope, or
    deny when they have none.
    """
    role = _as_role(role)
    cell = POLICY.get((resource, action), {})
    rule = cell.get(role) if role else None

    if rule is None:
        return Decision(Effect.DENY, reason=f"{role.value if role else 'unknown'} may not {action.value} {resource.value}")

    if rule.acl:
        if acl is not None:
            if role.value in set(acl.get(rule.acl) or ()):
                return Decision(Effect.ALLOW)
            return Decision(Effect.DENY, reason=f"role not on {rule.acl} list")
        if rule.scope:
            return Decision(Effect.ALLOW_WITH_SCOPE, scope=rule.scope)
        return Decision(Effect.DENY, reason=f"{rule.acl} list required")

    if rule.owned:
        if owners is not None:
            if requester_id is not None and requester_id in set(owners):
                return Decision(Effect.ALLOW)
            return Decision(Effect.DENY, reason="not an owner of this record")
        if rule.scope:
            return Decision(Effect.ALLOW_WITH_SCOPE, scope=rule.scope)
        return Decision(Effect.DENY, reason="ownership cannot be established")

    if rule.scope:
        return Decision(Effect.ALLOW_WITH_SCOPE, scope=rule.scope)
    return Decision(Effect.ALLOW)


def authorize(role, resource: Resource, action: Action, **kwargs) -> Decision:
    """evaluate() that raises Forbidden on deny."""
    decision = evaluate(role, resource, action, **kwargs)
    if not decision.allowed:
        raise Forbidden()
    return decision
