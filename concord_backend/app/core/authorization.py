"""
授权核心

星球、成员、频道生命周期上的受保护状态变更。

每个变更操作都把授权条件写进同一条条件 UPDATE / DELETE / INSERT ... SELECT
语句的 WHERE 子句，由数据库一次性完成检查和写入。受影响行数为 0 时说明条件
不成立，此时才做只读查询来决定抛出 NotFound、Forbidden 还是 BadRequest，
这个查询从不参与授权。
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import and_, delete, exists, insert, literal, select, update

from app.blueprints.channels.models import Channel
from app.blueprints.profiles.models import Profile
from app.blueprints.servers.models import Member, Server
from app.core import identity
from app.core.errors import BadRequest, Forbidden, NotFound
from app.core.extensions import db
from app.core.pydantic_schemas import MemberSchema, ServerDetailSchema, ServerSchema
from app.models.enums import (
    ChannelType,
    GENERAL_CHANNEL_NAME,
    MANAGER_ROLES,
    MemberRole,
    is_reserved_channel_name,
)

logger = logging.getLogger(__name__)

servers = Server.__table__
members = Member.__table__
channels = Channel.__table__


# ==================== 条件子句 ====================


def _owned_by(server_id, profile: Profile):
    return and_(servers.c.id == server_id, servers.c.profile_id == profile.id)


def _caller_is_owner(server_id, profile: Profile):
    return exists().where(_owned_by(server_id, profile))


def _caller_is_manager(server_id, profile: Profile):
    return exists().where(
        members.c.server_id == server_id,
        members.c.profile_id == profile.id,
        members.c.role.in_(MANAGER_ROLES),
    )


def _channel_is_mutable():
    return channels.c.name != GENERAL_CHANNEL_NAME


def _new_invite_code() -> str:
    return str(uuid.uuid4())


def _apply(stmt) -> int:
    """执行条件写入，返回受影响行数"""
    return db.session.execute(stmt).rowcount


def _snapshot(server_id) -> Optional[ServerDetailSchema]:
    db.session.expire_all()
    server = db.session.get(Server, server_id)
    if server is None:
        return None
    return ServerDetailSchema.model_validate(server)


def _check_channel_name(name: str):
    if is_reserved_channel_name(name):
        raise BadRequest(f"频道名称不能为 {GENERAL_CHANNEL_NAME}")


def _as_role(role) -> MemberRole:
    try:
        return MemberRole(role)
    except ValueError:
        raise BadRequest(f"无效的角色: {role}")


def _as_channel_type(channel_type) -> ChannelType:
    try:
        return ChannelType(channel_type)
    except ValueError:
        raise BadRequest(f"无效的频道类型: {channel_type}")


# ==================== 失败原因归类 ====================


def _refuse_owner_action(server_id, profile: Profile, action: str):
    db.session.rollback()
    if db.session.get(Server, server_id) is None:
        raise NotFound("星球不存在")
    logger.warning(f"拒绝{action}: 用户 {profile.id} 不是星球 {server_id} 的所有者")
    raise Forbidden(f"只有星球所有者可以{action}")


def _refuse_member_action(server_id, member_id, profile: Profile, action: str):
    db.session.rollback()
    server = db.session.get(Server, server_id)
    if server is None:
        raise NotFound("星球不存在")
    if server.profile_id != profile.id:
        logger.warning(f"拒绝{action}: 用户 {profile.id} 不是星球 {server_id} 的所有者")
        raise Forbidden(f"只有星球所有者可以{action}")
    target = Member.query.filter_by(id=member_id, server_id=server_id).first()
    if target is None:
        raise NotFound("成员不存在")
    logger.warning(f"拒绝{action}: 用户 {profile.id} 试图操作自己")
    raise Forbidden(f"不能对自己{action}")


def _refuse_channel_action(server_id, channel_id, profile: Profile, action: str):
    db.session.rollback()
    if db.session.get(Server, server_id) is None:
        raise NotFound("星球不存在")
    if channel_id is not None:
        channel = Channel.query.filter_by(id=channel_id, server_id=server_id).first()
        if channel is None:
            raise NotFound("频道不存在")
        if is_reserved_channel_name(channel.name):
            raise BadRequest(f"{GENERAL_CHANNEL_NAME} 频道不能{action}")
    logger.warning(f"拒绝{action}: 用户 {profile.id} 在星球 {server_id} 中不是管理员或版主")
    raise Forbidden(f"只有管理员或版主可以{action}")


# ==================== 星球生命周期 ====================


def create_server(profile: Optional[Profile], name: str, image_url: str) -> ServerDetailSchema:
    """
    创建星球，同时创建 general 频道和所有者的 ADMIN 成员

    参数:
        profile (Profile): 调用者
        name (str): 星球名称
        image_url (str): 星球图片

    返回:
        ServerDetailSchema: 新星球
    """
    profile = identity.require_profile(profile)

    server = Server(
        name=name,
        image_url=image_url,
        profile_id=profile.id,
        invite_code=_new_invite_code(),
    )
    server.channels.append(
        Channel(name=GENERAL_CHANNEL_NAME, type=ChannelType.TEXT, profile_id=profile.id)
    )
    server.members.append(Member(profile_id=profile.id, role=MemberRole.ADMIN))
    db.session.add(server)
    db.session.commit()

    logger.info(f"星球创建成功: {name}, ID: {server.id}, 所有者: {profile.id}")
    return _snapshot(server.id)


def update_server(
    profile: Optional[Profile], server_id, name: str, image_url: str
) -> ServerDetailSchema:
    """修改星球名称和图片，仅所有者"""
    profile = identity.require_profile(profile)

    stmt = (
        update(servers)
        .where(_owned_by(server_id, profile))
        .values(name=name, image_url=image_url)
    )
    if _apply(stmt) == 0:
        _refuse_owner_action(server_id, profile, "修改星球信息")
    db.session.commit()

    logger.info(f"星球信息已更新: {server_id}")
    return _snapshot(server_id)


def rotate_invite_code(profile: Optional[Profile], server_id) -> ServerDetailSchema:
    """重新生成邀请码，旧邀请码立即失效"""
    profile = identity.require_profile(profile)
    if not server_id:
        raise NotFound("星球不存在")

    stmt = (
        update(servers)
        .where(_owned_by(server_id, profile))
        .values(invite_code=_new_invite_code())
    )
    if _apply(stmt) == 0:
        _refuse_owner_action(server_id, profile, "重新生成邀请码")
    db.session.commit()

    logger.info(f"星球 {server_id} 的邀请码已更新")
    return _snapshot(server_id)


def delete_server(profile: Optional[Profile], server_id) -> ServerDetailSchema:
    """删除星球，成员和频道由外键级联删除"""
    profile = identity.require_profile(profile)

    # 仅用于响应体
    snapshot = _snapshot(server_id)
    if _apply(delete(servers).where(_owned_by(server_id, profile))) == 0:
        _refuse_owner_action(server_id, profile, "删除星球")
    db.session.commit()

    logger.info(f"星球已删除: {server_id}")
    return snapshot


# ==================== 成员生命周期 ====================


def leave_server(profile: Optional[Profile], server_id) -> ServerDetailSchema:
    """退出星球。所有者不能退出，只能删除星球"""
    profile = identity.require_profile(profile)

    stmt = delete(members).where(
        members.c.server_id == server_id,
        members.c.profile_id == profile.id,
        exists().where(servers.c.id == server_id, servers.c.profile_id != profile.id),
    )
    if _apply(stmt) == 0:
        db.session.rollback()
        server = db.session.get(Server, server_id)
        if server is None:
            raise NotFound("星球不存在")
        if server.profile_id == profile.id:
            logger.warning(f"拒绝退出: 用户 {profile.id} 是星球 {server_id} 的所有者")
            raise Forbidden("星球所有者不能退出星球")
        raise NotFound("你不是该星球的成员")
    db.session.commit()

    logger.info(f"用户 {profile.id} 退出星球 {server_id}")
    return _snapshot(server_id)


def change_role(
    profile: Optional[Profile], server_id, member_id, role
) -> ServerDetailSchema:
    """
    修改成员角色

    仅星球所有者可以操作，且不能修改自己的成员记录
    """
    profile = identity.require_profile(profile)
    role = _as_role(role)

    stmt = (
        update(members)
        .where(
            members.c.id == member_id,
            members.c.server_id == server_id,
            members.c.profile_id != profile.id,
            _caller_is_owner(server_id, profile),
        )
        .values(role=role)
    )
    if _apply(stmt) == 0:
        _refuse_member_action(server_id, member_id, profile, "修改角色")
    db.session.commit()

    logger.info(f"星球 {server_id} 成员 {member_id} 角色改为 {role.value}")
    return _snapshot(server_id)


def kick_member(profile: Optional[Profile], server_id, member_id) -> ServerDetailSchema:
    """移除成员，规则同 change_role"""
    profile = identity.require_profile(profile)

    stmt = delete(members).where(
        members.c.id == member_id,
        members.c.server_id == server_id,
        members.c.profile_id != profile.id,
        _caller_is_owner(server_id, profile),
    )
    if _apply(stmt) == 0:
        _refuse_member_action(server_id, member_id, profile, "移除成员")
    db.session.commit()

    logger.info(f"星球 {server_id} 成员 {member_id} 已被移除")
    return _snapshot(server_id)


# ==================== 频道生命周期 ====================


def create_channel(
    profile: Optional[Profile], server_id, name: str, channel_type=ChannelType.TEXT
) -> ServerDetailSchema:
    """创建频道，调用者需要是该星球的 ADMIN 或 MODERATOR"""
    profile = identity.require_profile(profile)
    _check_channel_name(name)
    channel_type = _as_channel_type(channel_type)

    # 只有调用者在该星球拥有管理角色时 SELECT 才会产出一行
    source = select(
        literal(name),
        literal(channel_type, channels.c.type.type),
        members.c.server_id,
        members.c.profile_id,
    ).where(
        members.c.server_id == server_id,
        members.c.profile_id == profile.id,
        members.c.role.in_(MANAGER_ROLES),
    )
    stmt = insert(channels).from_select(
        ["name", "type", "server_id", "profile_id"], source
    )
    if _apply(stmt) == 0:
        _refuse_channel_action(server_id, None, profile, "创建频道")
    db.session.commit()

    logger.info(f"星球 {server_id} 创建频道: {name}")
    return _snapshot(server_id)


def edit_channel(
    profile: Optional[Profile], server_id, channel_id, name: str, channel_type
) -> ServerDetailSchema:
    """修改频道名称和类型，general 频道不可修改"""
    profile = identity.require_profile(profile)
    _check_channel_name(name)
    channel_type = _as_channel_type(channel_type)

    stmt = (
        update(channels)
        .where(
            channels.c.id == channel_id,
            channels.c.server_id == server_id,
            _channel_is_mutable(),
            _caller_is_manager(server_id, profile),
        )
        .values(name=name, type=channel_type)
    )
    if _apply(stmt) == 0:
        _refuse_channel_action(server_id, channel_id, profile, "修改")
    db.session.commit()

    logger.info(f"星球 {server_id} 频道 {channel_id} 已修改")
    return _snapshot(server_id)


def delete_channel(profile: Optional[Profile], server_id, channel_id) -> ServerDetailSchema:
    """删除频道，general 频道不可删除"""
    profile = identity.require_profile(profile)

    stmt = delete(channels).where(
        channels.c.id == channel_id,
        channels.c.server_id == server_id,
        _channel_is_mutable(),
        _caller_is_manager(server_id, profile),
    )
    if _apply(stmt) == 0:
        _refuse_channel_action(server_id, channel_id, profile, "删除")
    db.session.commit()

    logger.info(f"星球 {server_id} 频道 {channel_id} 已删除")
    return _snapshot(server_id)


# ==================== 查询 ====================


def current_member(server_id, profile_id) -> Optional[MemberSchema]:
    """某个用户在星球中的成员记录"""
    member = Member.query.filter_by(server_id=server_id, profile_id=profile_id).first()
    if member is None:
        return None
    return MemberSchema.model_validate(member)


def find_servers(profile_id) -> List[ServerSchema]:
    """用户加入的所有星球，按加入顺序"""
    rows = (
        Server.query.join(Server.members)
        .filter(Member.profile_id == profile_id)
        .order_by(Member.id)
        .all()
    )
    return [ServerSchema.model_validate(s) for s in rows]


def find_server(profile_id) -> Optional[ServerSchema]:
    """用户加入的第一个星球"""
    found = find_servers(profile_id)
    return found[0] if found else None
