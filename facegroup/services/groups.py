from typing import Optional

from facegroup.core.errors import ForbiddenError, NotFoundError
from facegroup.models import Group, GroupMember


async def get_group(group_id) -> Group:
    group = await Group.filter(id=group_id).first()
    if not group:
        raise NotFoundError("Group not found")
    return group


async def get_membership(group_id, user_id) -> Optional[GroupMember]:
    return await GroupMember.filter(group_id=group_id, user_id=user_id).first()


async def require_member(group_id, user_id) -> GroupMember:
    membership = await get_membership(group_id, user_id)
    if not membership:
        raise NotFoundError("Group not found or you do not have access")
    return membership


async def require_admin(group_id, user_id, message: str = "Admin access required") -> GroupMember:
    membership = await get_membership(group_id, user_id)
    if not membership or not membership.is_admin:
        raise ForbiddenError(message)
    return membership
