from fastapi import Depends, HTTPException, status
from honesty_store.users.auth import get_current_user
from honesty_store.users import schemas as user_schemas
from typing import List, Set


def role_required(allowed_roles: List[str]):
    allowed_set: Set[str] = set(r.strip().lower() for r in (allowed_roles or []))

    def wrapper(current_user: user_schemas.UserDisplaySchema = Depends(get_current_user)):
        user_roles = set(r.strip().lower() for r in (current_user.roles or []))

        # Admin bypass
        if "admin" in user_roles:
            return current_user

        if not user_roles.intersection(allowed_set):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )

        return current_user

    return wrapper


# Stock accounting screens are admin/developer only
admin_required = role_required(["admin", "developer"])
