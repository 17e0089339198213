from enum import Enum

from tortoise import fields
from .base import BaseModel


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(BaseModel):
    email = fields.CharField(max_length=255, unique=True, index=True)
    name = fields.CharField(max_length=255, null=True)
    role = fields.CharEnumField(Role, default=Role.USER)

    class Meta:
        table = "users"
