"""
Auth dependencies for the flight school API
Contains shared authentication dependencies to avoid circular imports
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from motor.motor_asyncio import AsyncIOMotorDatabase
from database.mongodb import get_database
from models.user import User, UserRole
from services.auth_service import decode_access_token
import logging

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> User:
    """Get current authenticated user from token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id: str = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    user_doc = await db.users.find_one({"_id": user_id})
    if user_doc is None:
        raise credentials_exception

    return User(
        id=user_doc["_id"],
        email=user_doc["email"],
        first_name=user_doc.get("first_name"),
        last_name=user_doc.get("last_name"),
        role=UserRole(user_doc.get("role", UserRole.MEMBER.value)),
        created_at=user_doc.get("created_at"),
    )

async def require_staff(current_user: User = Depends(get_current_user)) -> User:
    """Owners, admins and instructors only"""
    if not current_user.is_staff:
        logger.warning(f"User {current_user.id} ({current_user.role.value}) denied staff access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Insufficient permissions"
        )
    return current_user

def ensure_self_or_staff(current_user: User, member_id: str):
    """Members may only read their own records"""
    if not current_user.is_staff and current_user.id != member_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Cannot access other users"
        )
