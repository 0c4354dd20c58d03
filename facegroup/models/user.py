from tortoise import fields
from .base import BaseModel


class User(BaseModel):
    email = fields.CharField(max_length=255, unique=True, index=True)
    name = fields.CharField(max_length=255, null=True)

    class Meta:
        table = "users"
