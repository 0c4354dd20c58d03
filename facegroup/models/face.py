from tortoise import fields
from .base import BaseModel


class Face(BaseModel):
    """A face detection indexed in the group's oracle collection."""

    media = fields.ForeignKeyField("models.Media", related_name="faces", on_delete=fields.CASCADE)
    oracle_face_id = fields.CharField(max_length=255, unique=True, index=True)
    x = fields.FloatField()
    y = fields.FloatField()
    width = fields.FloatField()
    height = fields.FloatField()
    confidence = fields.FloatField()
    brightness = fields.FloatField(null=True)
    sharpness = fields.FloatField(null=True)
    roll = fields.FloatField(null=True)
    yaw = fields.FloatField(null=True)
    pitch = fields.FloatField(null=True)
    quality_score = fields.IntField(null=True)
    processed = fields.BooleanField(default=False, index=True)

    @property
    def pose(self):
        if self.roll is None or self.yaw is None or self.pitch is None:
            return None
        return (self.roll, self.yaw, self.pitch)

    @property
    def bounding_box(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    class Meta:
        table = "faces"
