from tortoise import fields
from .base import BaseModel

CLUSTER_NAME_MAX_LENGTH = 50


class FaceCluster(BaseModel):
    group = fields.ForeignKeyField("models.Group", related_name="clusters", on_delete=fields.CASCADE)
    cluster_name = fields.CharField(max_length=CLUSTER_NAME_MAX_LENGTH, null=True)
    # kept equal to the member row count by facegroup.services.membership
    appearance_count = fields.IntField(default=0)
    confidence = fields.FloatField(default=0.0)

    class Meta:
        table = "face_clusters"


class FaceClusterMember(BaseModel):
    cluster = fields.ForeignKeyField("models.FaceCluster", related_name="members", on_delete=fields.CASCADE)
    face = fields.OneToOneField("models.Face", related_name="membership", on_delete=fields.CASCADE)
    confidence = fields.FloatField()

    class Meta:
        table = "face_cluster_members"
