# app/dependencies.py
"""
FastAPI dependencies shared by the routers: caller identity, resolved scope, module gates.
Authentication happens upstream; the gateway forwards the user id in X-User-Id.
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.database import SessionLocal, get_db
from app.services.entity_fetcher import EntityFetcher
from app.services.scope_service import TenantScope, can_access_module, current_scope, narrow_to_module


def get_fetcher() -> EntityFetcher:
    return EntityFetcher(SessionLocal)


def get_user_id(x_user_id: int = Header(..., alias="X-User-Id")) -> int:
    return x_user_id


def get_scope(user_id: int = Depends(get_user_id), db: Session = Depends(get_db)) -> TenantScope:
    return current_scope(db, user_id)


def module_scope(scope: TenantScope, module: str) -> TenantScope:
    """403 unless `scope` may read `module`; otherwise the scope narrowed to that module."""
    if not can_access_module(scope, module):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail=f"No access to module '{module}' in {scope}")
    return narrow_to_module(scope, module)


def require_module(module: str):
    """Dependency factory over module_scope() for routes gated on a fixed module."""
    def _check(scope: TenantScope = Depends(get_scope)) -> TenantScope:
        return module_scope(scope, module)
    return _check
