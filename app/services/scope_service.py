# app/services/scope_service.py
"""
Tenant scope resolution and module gating.

Resolves which subsidiary (or the consolidated "all subsidiaries" view) a user's
requests are scoped to, and answers module access questions against a fixed
permission table. The resolved TenantScope is passed explicitly to every fetch;
there is no process-wide "current subsidiary".

Persisted state: one scope_preferences row per user, written only on explicit
selection or resolution (last write wins).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Mapping, Optional

from sqlalchemy.orm import Session

from app.exceptions import ScopeResolutionError
from app.models.subsidiary import Subsidiary, UserProfile, UserSubsidiaryPermission, ScopePreference
from app.utils.logger import get_logger

logger = get_logger(__name__)


class PermissionLevel(str, Enum):
    FULL_ACCESS = "full_access"
    OPERATIONAL_ACCESS = "operational_access"
    READ_ONLY_ACCESS = "read_only_access"
    FUEL_ONLY_ACCESS = "fuel_only_access"
    MAINTENANCE_ONLY_ACCESS = "maintenance_only_access"


FULL = PermissionLevel.FULL_ACCESS
OPERATIONAL = PermissionLevel.OPERATIONAL_ACCESS
READ_ONLY = PermissionLevel.READ_ONLY_ACCESS
FUEL_ONLY = PermissionLevel.FUEL_ONLY_ACCESS
MAINTENANCE_ONLY = PermissionLevel.MAINTENANCE_ONLY_ACCESS

ALL_LEVELS = frozenset(PermissionLevel)

# module → permission levels that may open it
MODULE_PERMISSIONS: dict[str, frozenset] = {
    "dashboard":    ALL_LEVELS,
    "analytics":    frozenset({FULL, OPERATIONAL, READ_ONLY}),
    "reports":      frozenset({FULL, OPERATIONAL, READ_ONLY}),
    "vehicles":     frozenset({FULL, OPERATIONAL, READ_ONLY}),
    "drivers":      frozenset({FULL, OPERATIONAL, READ_ONLY}),
    "documents":    frozenset({FULL, OPERATIONAL, READ_ONLY}),
    "odometer":     frozenset({FULL, OPERATIONAL, READ_ONLY}),
    "fuel":         frozenset({FULL, OPERATIONAL, FUEL_ONLY}),
    "tanks":        frozenset({FULL, OPERATIONAL, FUEL_ONLY}),
    "maintenance":  frozenset({FULL, OPERATIONAL, MAINTENANCE_ONLY}),
    "parts":        frozenset({FULL, OPERATIONAL, MAINTENANCE_ONLY}),
    "budget":       frozenset({FULL, OPERATIONAL}),
    "vendors":      frozenset({FULL, OPERATIONAL}),
    "settings":     frozenset({FULL}),
    "users":        frozenset({FULL}),
    "subsidiaries": frozenset({FULL}),
}

# levels that may modify data in a module they can open
WRITE_LEVELS = ALL_LEVELS - {READ_ONLY}


@dataclass(frozen=True)
class TenantScope:
    """Resolved scope for one user session: a single subsidiary or the consolidated view."""
    user_id: int
    tenant_id: Optional[int]
    all_tenants: bool
    permissions: Mapping[int, PermissionLevel] = field(default_factory=dict)

    @property
    def tenant_ids(self) -> tuple:
        return tuple(self.permissions)

    def filter_ids(self) -> tuple:
        """Subsidiary ids rows must belong to: one id, or every accessible id when consolidated."""
        if self.all_tenants:
            return self.tenant_ids
        return (self.tenant_id,)

    def level_for(self, tenant_id: Optional[int]) -> Optional[PermissionLevel]:
        return self.permissions.get(tenant_id)

    def __str__(self):
        target = "all" if self.all_tenants else self.tenant_id
        return f"scope(user={self.user_id}, subsidiary={target})"


def _coerce_level(raw) -> Optional[PermissionLevel]:
    try:
        return PermissionLevel(raw)
    except ValueError:
        logger.warning(f"Ignoring unknown permission level {raw!r}")
        return None


def effective_grants(user, grants: Iterable, subsidiaries: Iterable) -> dict:
    """
    Map subsidiary id → PermissionLevel for every active subsidiary the user may see,
    in subsidiary-name order. Super-admins get full_access everywhere without grant rows.
    """
    active = sorted((s for s in subsidiaries if s.is_active),
                    key=lambda s: (s.subsidiary_name or "", s.id))
    if user.is_super_admin:
        return {s.id: FULL for s in active}

    by_subsidiary = {}
    for g in grants:
        if g.user_id != user.id or not getattr(g, "is_active", True):
            continue
        level = _coerce_level(g.permission_level)
        if level is not None:
            by_subsidiary[g.subsidiary_id] = level
    return {s.id: by_subsidiary[s.id] for s in active if s.id in by_subsidiary}


def resolve_scope(user, grants: Iterable, subsidiaries: Iterable, preference=None) -> TenantScope:
    """
    Pick the scope for a session. Fails closed: no surviving grant → ScopeResolutionError.

    Order: saved consolidated flag (only with 2+ subsidiaries), saved subsidiary,
    the user's default subsidiary, then the first accessible subsidiary by name.
    """
    permissions = effective_grants(user, grants, subsidiaries)
    if not permissions:
        logger.warning(f"[SCOPE] user={user.id} has no active subsidiary grant — access denied")
        raise ScopeResolutionError(user.id)

    if preference is not None:
        if preference.all_subsidiaries and len(permissions) > 1:
            return TenantScope(user.id, None, True, permissions)
        if preference.subsidiary_id in permissions:
            return TenantScope(user.id, preference.subsidiary_id, False, permissions)
        logger.info(f"[SCOPE] user={user.id} saved selection no longer accessible, falling back")

    if user.default_subsidiary_id in permissions:
        return TenantScope(user.id, user.default_subsidiary_id, False, permissions)
    return TenantScope(user.id, next(iter(permissions)), False, permissions)


def select_scope(scope: TenantScope, subsidiary_id: Optional[int] = None,
                 all_subsidiaries: bool = False) -> TenantScope:
    """Explicit user selection. Only subsidiaries already in the user's grants are selectable."""
    if all_subsidiaries:
        if len(scope.permissions) > 1:
            return TenantScope(scope.user_id, None, True, scope.permissions)
        return TenantScope(scope.user_id, next(iter(scope.permissions)), False, scope.permissions)

    if subsidiary_id not in scope.permissions:
        raise ScopeResolutionError(scope.user_id, f"no access to subsidiary {subsidiary_id}")
    return TenantScope(scope.user_id, subsidiary_id, False, scope.permissions)


# ── Module gating ────────────────────────────────────────────────────────────

def _admin_only(allowed: frozenset) -> bool:
    return allowed == frozenset({FULL})


def can_access_module(scope: TenantScope, module: str, tenant_id: Optional[int] = None) -> bool:
    """
    Read access to a module for the target subsidiary (default: the selected one).
    In the consolidated view, admin-only modules are closed and the rest open when
    at least one accessible subsidiary's level allows them.
    """
    allowed = MODULE_PERMISSIONS.get(module)
    if allowed is None:
        return False

    target = tenant_id if tenant_id is not None else scope.tenant_id
    if target is not None:
        return scope.level_for(target) in allowed

    if _admin_only(allowed):
        return False
    return any(level in allowed for level in scope.permissions.values())


def can_write_module(scope: TenantScope, module: str, tenant_id: Optional[int] = None) -> bool:
    """Write access. The consolidated view without an explicit subsidiary is read-only."""
    target = tenant_id if tenant_id is not None else scope.tenant_id
    if target is None:
        return False
    return can_access_module(scope, module, target) and scope.level_for(target) in WRITE_LEVELS


def narrow_to_module(scope: TenantScope, module: str) -> TenantScope:
    """
    Consolidated scope limited to the subsidiaries whose level opens `module`,
    so a union never includes rows from a subsidiary the module is closed for.
    """
    if not scope.all_tenants:
        return scope
    allowed = MODULE_PERMISSIONS.get(module, frozenset())
    permissions = {k: v for k, v in scope.permissions.items() if v in allowed}
    return TenantScope(scope.user_id, None, True, permissions)


def module_access_map(scope: TenantScope) -> dict:
    return {
        module: {"read": can_access_module(scope, module), "write": can_write_module(scope, module)}
        for module in MODULE_PERMISSIONS
    }


# ── Persistence ──────────────────────────────────────────────────────────────

def load_preference(db: Session, user_id: int) -> Optional[ScopePreference]:
    return db.query(ScopePreference).filter(ScopePreference.user_id == user_id).first()


def save_preference(db: Session, scope: TenantScope) -> ScopePreference:
    """Upsert the user's scope preference. Always commits immediately."""
    pref = load_preference(db, scope.user_id)
    if not pref:
        pref = ScopePreference(user_id=scope.user_id)
        db.add(pref)
    pref.subsidiary_id = scope.tenant_id
    pref.all_subsidiaries = scope.all_tenants
    pref.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"[SCOPE] saved {scope}")
    return pref


def load_access_context(db: Session, user_id: int):
    """Fetch the user, their grant rows, and all subsidiaries."""
    user = db.query(UserProfile).filter(UserProfile.id == user_id).first()
    if not user:
        raise ScopeResolutionError(user_id, "unknown user")
    grants = db.query(UserSubsidiaryPermission).filter(UserSubsidiaryPermission.user_id == user_id).all()
    subsidiaries = db.query(Subsidiary).all()
    return user, grants, subsidiaries


def resolve_and_persist(db: Session, user_id: int) -> TenantScope:
    """Restore the user's last scope (or pick a default) and persist the outcome."""
    user, grants, subsidiaries = load_access_context(db, user_id)
    scope = resolve_scope(user, grants, subsidiaries, load_preference(db, user_id))
    save_preference(db, scope)
    return scope


def change_scope(db: Session, user_id: int, subsidiary_id: Optional[int] = None,
                 all_subsidiaries: bool = False) -> TenantScope:
    """Apply an explicit selection and persist it."""
    user, grants, subsidiaries = load_access_context(db, user_id)
    current = resolve_scope(user, grants, subsidiaries, load_preference(db, user_id))
    scope = select_scope(current, subsidiary_id, all_subsidiaries)
    save_preference(db, scope)
    return scope


def current_scope(db: Session, user_id: int) -> TenantScope:
    """Resolve the scope for one request without writing the preference back."""
    user, grants, subsidiaries = load_access_context(db, user_id)
    return resolve_scope(user, grants, subsidiaries, load_preference(db, user_id))
