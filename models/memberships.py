"""Membership models"""

from fastapi import Body
from pydantic import BaseModel
from typing import Annotated, Literal, Optional, Union


class MembershipCreate(BaseModel):
    action: Literal["create"]
    user_id: str
    membership_type_id: str
    start_date: Optional[str] = None
    custom_expiry_date: Optional[str] = None
    auto_renew: bool = False
    notes: Optional[str] = None


class MembershipRenew(BaseModel):
    action: Literal["renew"]
    membership_id: str
    membership_type_id: Optional[str] = None
    custom_expiry_date: Optional[str] = None
    auto_renew: Optional[bool] = None
    notes: Optional[str] = None


# POST /api/memberships body, discriminated on `action`
MembershipAction = Annotated[Union[MembershipCreate, MembershipRenew], Body(discriminator="action")]


MEMBERSHIPS_INDEXES = [
    {
        "keys": [("user_id", 1), ("start_date", -1)],
        "name": "user_memberships_idx"
    },
]
