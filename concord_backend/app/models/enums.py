import enum


class MemberRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    GUEST = "GUEST"


class ChannelType(str, enum.Enum):
    TEXT = "TEXT"
    AUDIO = "AUDIO"
    VIDEO = "VIDEO"


# 数值越小权限越高
ROLE_RANK = {MemberRole.ADMIN: 0, MemberRole.MODERATOR: 1, MemberRole.GUEST: 2}

# 可以管理频道的角色
MANAGER_ROLES = (MemberRole.ADMIN, MemberRole.MODERATOR)

# 每个星球都有且仅有一个，不能改名也不能删除
GENERAL_CHANNEL_NAME = "general"


def is_reserved_channel_name(name) -> bool:
    """频道名是否为保留名称"""
    return name == GENERAL_CHANNEL_NAME
