from tortoise import fields
from .base import BaseModel


class Media(BaseModel):
    group = fields.ForeignKeyField("models.Group", related_name="media", on_delete=fields.CASCADE)
    uploaded_by = fields.ForeignKeyField(
        "models.User",
        related_name="uploads",
        null=True,
        on_delete=fields.SET_NULL,
    )
    original_filename = fields.CharField(max_length=512, null=True)
    content_type = fields.CharField(max_length=100, null=True)
    storage_key = fields.CharField(max_length=1024)

    class Meta:
        table = "media"
