"""
邀请码兑换

join_through_invite 通过一条 INSERT ... SELECT 原子地把调用者加入邀请码对应的星球；
resolve_invite 在其上实现"已加入则跳转，否则加入后跳转"的邀请链接流程。
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from flask import current_app
from sqlalchemy import insert, literal, select
from sqlalchemy.exc import IntegrityError

from app.blueprints.profiles.models import Profile
from app.blueprints.servers.models import Member, Server
from app.core import identity
from app.core.errors import Conflict, NotFound
from app.core.extensions import db
from app.core.pydantic_schemas import ServerDetailSchema, ServerSchema
from app.models.enums import MemberRole

logger = logging.getLogger(__name__)

servers = Server.__table__
members = Member.__table__


class InviteState(Enum):
    """邀请链接处理结果"""

    UNAUTHENTICATED = "unauthenticated"  # 跳转登录
    INVALID_CODE = "invalid_code"  # 跳转首页
    ALREADY_MEMBER = "already_member"  # 跳转星球，无写入
    JOINED = "joined"  # 加入后跳转星球
    NOT_FOUND = "not_found"  # 邀请码失效，不跳转


@dataclass
class InviteResolution:
    state: InviteState
    server: Optional[ServerSchema] = None
    redirect_to: Optional[str] = None


def is_well_formed_invite_code(invite_code) -> bool:
    if not invite_code:
        return False
    try:
        uuid.UUID(str(invite_code))
    except ValueError:
        return False
    return True


def existing_server(invite_code: str, profile_id) -> Optional[ServerSchema]:
    """邀请码对应的星球中已包含该用户时返回该星球"""
    server = (
        Server.query.join(Server.members)
        .filter(Server.invite_code == invite_code, Member.profile_id == profile_id)
        .first()
    )
    if server is None:
        return None
    return ServerSchema.model_validate(server)


def join_through_invite(profile: Optional[Profile], invite_code: str) -> ServerDetailSchema:
    """
    通过邀请码加入星球，角色为 GUEST

    参数:
        profile (Profile): 调用者
        invite_code (str): 邀请码

    返回:
        ServerDetailSchema: 加入的星球

    异常:
        NotFound: 邀请码不存在，或在兑换时已被轮换、星球已被删除
        Conflict: 调用者已经是该星球成员
    """
    profile = identity.require_profile(profile)

    server_id = db.session.scalar(
        select(servers.c.id).where(servers.c.invite_code == invite_code)
    )
    if server_id is None:
        raise NotFound("邀请码无效")

    # 再次匹配邀请码，期间被轮换或删除则不插入任何行
    source = select(
        literal(profile.id),
        servers.c.id,
        literal(MemberRole.GUEST, members.c.role.type),
    ).where(servers.c.id == server_id, servers.c.invite_code == invite_code)
    stmt = insert(members).from_select(["profile_id", "server_id", "role"], source)

    try:
        inserted = db.session.execute(stmt).rowcount
    except IntegrityError:
        db.session.rollback()
        logger.info(f"用户 {profile.id} 已经是星球 {server_id} 的成员")
        raise Conflict("已经是星球成员")

    if inserted == 0:
        db.session.rollback()
        raise NotFound("邀请码已失效")
    db.session.commit()

    logger.info(f"用户 {profile.id} 通过邀请码加入星球 {server_id}")
    db.session.expire_all()
    return ServerDetailSchema.model_validate(db.session.get(Server, server_id))


def resolve_invite(profile: Optional[Profile], invite_code: str) -> InviteResolution:
    """处理用户打开邀请链接"""
    config = current_app.config

    if profile is None:
        return InviteResolution(InviteState.UNAUTHENTICATED, redirect_to=config["SIGN_IN_URL"])

    if not is_well_formed_invite_code(invite_code):
        return InviteResolution(InviteState.INVALID_CODE, redirect_to=config["HOME_URL"])

    server = existing_server(invite_code, profile.id)
    if server is not None:
        return _to_server(InviteState.ALREADY_MEMBER, server)

    try:
        server = join_through_invite(profile, invite_code)
    except Conflict:
        # 并发的重复提交，另一方已完成加入
        server = existing_server(invite_code, profile.id)
        if server is None:
            return InviteResolution(InviteState.NOT_FOUND)
        return _to_server(InviteState.ALREADY_MEMBER, server)
    except NotFound:
        logger.info(f"邀请码 {invite_code} 已失效")
        return InviteResolution(InviteState.NOT_FOUND)

    return _to_server(InviteState.JOINED, server)


def _to_server(state: InviteState, server: ServerSchema) -> InviteResolution:
    url = current_app.config["SERVER_URL_TEMPLATE"].format(server_id=server.id)
    return InviteResolution(state, server=server, redirect_to=url)
