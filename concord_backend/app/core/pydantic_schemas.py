"""
Pydantic 模型定义入口。
响应序列化模型用于把 ORM 对象转换为快照，请求模型用于校验 JSON 请求体。
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import ChannelType, MemberRole, ROLE_RANK


class ProfileSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    image_url: Optional[str] = None
    email: Optional[str] = None


class MemberSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    role: MemberRole
    profile_id: int
    server_id: int
    profile: Optional[ProfileSchema] = None


class ChannelSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    name: str
    type: ChannelType
    server_id: int
    profile_id: int


class ServerSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    image_url: str
    invite_code: str
    profile_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ServerDetailSchema(ServerSchema):
    """星球详情，附带成员（含资料）和频道"""

    members: List[MemberSchema] = []
    channels: List[ChannelSchema] = []

    @field_validator("members")
    @classmethod
    def order_members_by_role(cls, members):
        # ADMIN、MODERATOR、GUEST 顺序，同角色按加入顺序
        return sorted(members, key=lambda m: (ROLE_RANK[MemberRole(m.role)], m.id))


class ConversationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_one_id: int
    member_two_id: int
    member_one: MemberSchema
    member_two: MemberSchema


# ==================== 请求体 ====================


class ServerCreateSchema(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    image_url: str = Field(min_length=1)


class ServerUpdateSchema(ServerCreateSchema):
    pass


class RoleChangeSchema(BaseModel):
    role: MemberRole


class ChannelCreateSchema(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    type: ChannelType = ChannelType.TEXT


class ChannelUpdateSchema(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    type: ChannelType


class ConversationRequestSchema(BaseModel):
    member_one_id: int
    member_two_id: int


class InviteJoinSchema(BaseModel):
    profile_id: Optional[int] = None
