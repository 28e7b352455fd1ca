from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Optional


# -------- CURRENT USER (from the auth provider's token) --------
class UserDisplaySchema(BaseModel):
    id: str
    email: Optional[str] = None
    roles: List[str] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator("roles", mode="before")
    @classmethod
    def ensure_roles_list(cls, v):
        # Normalize: None -> empty list, "a,b" -> ["a","b"], list -> stripped strings
        if v is None:
            return []
        if isinstance(v, str):
            return [r.strip() for r in v.split(",") if r.strip()]
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        return []
