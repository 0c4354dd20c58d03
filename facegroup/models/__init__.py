# Import all models for Tortoise ORM registration
from .base import BaseModel
from .user import User
from .group import Group, GroupMember, ROLE_ADMIN, ROLE_MEMBER
from .media import Media
from .face import Face
from .cluster import FaceCluster, FaceClusterMember, CLUSTER_NAME_MAX_LENGTH

__all__ = [
    "BaseModel",
    "User",
    "Group",
    "GroupMember",
    "ROLE_ADMIN",
    "ROLE_MEMBER",
    "Media",
    "Face",
    "FaceCluster",
    "FaceClusterMember",
    "CLUSTER_NAME_MAX_LENGTH",
]
