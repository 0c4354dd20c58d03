from tortoise import fields
from .base import BaseModel

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"


class Group(BaseModel):
    name = fields.CharField(max_length=255)
    collection_id = fields.CharField(max_length=255, null=True)
    # bumped on every persisted rebuild; compared before writing cluster state
    cluster_version = fields.IntField(default=0)

    @property
    def face_collection_id(self) -> str:
        return self.collection_id or f"face-media-group-{self.id}"

    class Meta:
        table = "groups"


class GroupMember(BaseModel):
    group = fields.ForeignKeyField("models.Group", related_name="members", on_delete=fields.CASCADE)
    user = fields.ForeignKeyField("models.User", related_name="memberships", on_delete=fields.CASCADE)
    role = fields.CharField(max_length=16, default=ROLE_MEMBER)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    class Meta:
        table = "group_members"
        unique_together = ("group", "user")
