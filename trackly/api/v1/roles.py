from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trackly.database import get_db
from trackly.dependencies import get_current_user
from trackly.security import Caller
from trackly.schemas.role import RoleChangeRequest, RoleChangeResponse
from trackly.services.role_service import RoleService

router = APIRouter()


@router.post("/manage-roles", response_model=RoleChangeResponse)
async def manage_roles(
    role_data: RoleChangeRequest,
    current_user: Caller = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Promote a member to admin or demote an admin to member (owner/admin only)."""
    service = RoleService(db)
    new_role = service.change_role(
        current_user, role_data.household_id, role_data.target_user_id, role_data.new_role
    )
    return RoleChangeResponse(success=True, new_role=new_role.value)
