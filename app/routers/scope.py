# app/routers/scope.py
"""Subsidiary scope: read, switch, and the module access map for the current scope."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_user_id, get_scope
from app.schemas.scope import ScopeOut, ScopeSelect
from app.services.scope_service import TenantScope, resolve_and_persist, change_scope, module_access_map

router = APIRouter()


def _out(scope: TenantScope) -> ScopeOut:
    return ScopeOut(
        subsidiary_id=scope.tenant_id,
        all_subsidiaries=scope.all_tenants,
        accessible_subsidiaries=list(scope.tenant_ids),
        permissions={k: v.value for k, v in scope.permissions.items()},
    )


@router.get("/scope", response_model=ScopeOut, summary="Resolve and persist the caller's scope")
def get_current_scope(user_id: int = Depends(get_user_id), db: Session = Depends(get_db)):
    return _out(resolve_and_persist(db, user_id))


@router.put("/scope", response_model=ScopeOut, summary="Switch subsidiary or consolidated view")
def set_scope(body: ScopeSelect, user_id: int = Depends(get_user_id), db: Session = Depends(get_db)):
    return _out(change_scope(db, user_id, body.subsidiary_id, body.all_subsidiaries))


@router.get("/scope/modules", summary="Module read/write access for the current scope")
def get_module_access(scope: TenantScope = Depends(get_scope)):
    return module_access_map(scope)
