"""
一对一会话匹配

会话按有序的 (member_one_id, member_two_id) 存储，但关系本身是对称的，
所以查找时要检查两种顺序。新会话统一按 (较小ID, 较大ID) 写入，
依靠唯一约束保证并发创建时同一对成员只留下一行。
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError

from app.blueprints.conversations.models import Conversation
from app.blueprints.profiles.models import Profile
from app.blueprints.servers.models import Member
from app.core import identity
from app.core.errors import BadRequest, Conflict, Forbidden, NotFound
from app.core.extensions import db
from app.core.pydantic_schemas import ConversationSchema

logger = logging.getLogger(__name__)


def canonical_pair(member_one_id: int, member_two_id: int) -> Tuple[int, int]:
    return min(member_one_id, member_two_id), max(member_one_id, member_two_id)


def _lookup(member_one_id, member_two_id) -> Optional[ConversationSchema]:
    """按两种顺序查找会话，返回第一个命中的"""
    for one, two in (
        (member_one_id, member_two_id),
        (member_two_id, member_one_id),
    ):
        conversation = Conversation.query.filter_by(
            member_one_id=one, member_two_id=two
        ).first()
        if conversation is not None:
            return ConversationSchema.model_validate(conversation)
    logger.debug(f"成员 {member_one_id} 与 {member_two_id} 之间没有会话")
    return None


def _check_participants(profile: Profile, member_one_id, member_two_id):
    if member_one_id == member_two_id:
        raise BadRequest("不能与自己创建会话")

    one = db.session.get(Member, member_one_id)
    two = db.session.get(Member, member_two_id)
    if one is None or two is None:
        raise NotFound("成员不存在")
    if one.server_id != two.server_id:
        raise BadRequest("两个成员不在同一个星球")
    if profile.id not in (one.profile_id, two.profile_id):
        logger.warning(f"拒绝访问会话: 用户 {profile.id} 不是会话参与者")
        raise Forbidden("只能访问自己参与的会话")


def find_conversation(
    profile: Optional[Profile], member_one_id, member_two_id
) -> Optional[ConversationSchema]:
    """查找两个成员之间的会话，调用者必须是其中一方"""
    profile = identity.require_profile(profile)
    _check_participants(profile, member_one_id, member_two_id)
    return _lookup(member_one_id, member_two_id)


def _insert_pair(member_one_id, member_two_id) -> ConversationSchema:
    one, two = canonical_pair(member_one_id, member_two_id)
    conversation = Conversation(member_one_id=one, member_two_id=two)
    try:
        # 冲突时只回滚这个保存点
        with db.session.begin_nested():
            db.session.add(conversation)
    except IntegrityError:
        raise Conflict("会话已存在")
    db.session.commit()

    logger.info(f"创建会话: {conversation.id}, 成员 {one} 与 {two}")
    return ConversationSchema.model_validate(conversation)


def create_new_conversation(
    profile: Optional[Profile], member_one_id, member_two_id
) -> ConversationSchema:
    """
    创建会话

    异常:
        Conflict: 这对成员之间已经存在会话
    """
    profile = identity.require_profile(profile)
    _check_participants(profile, member_one_id, member_two_id)
    # 历史数据可能按非规范顺序存储，唯一约束覆盖不到
    if _lookup(member_one_id, member_two_id) is not None:
        raise Conflict("会话已存在")
    return _insert_pair(member_one_id, member_two_id)


def get_or_create_conversation(
    profile: Optional[Profile], member_one_id, member_two_id
) -> ConversationSchema:
    """查找会话，不存在则创建；并发创建时冲突的一方重新读取"""
    profile = identity.require_profile(profile)
    _check_participants(profile, member_one_id, member_two_id)

    conversation = _lookup(member_one_id, member_two_id)
    if conversation is not None:
        return conversation

    try:
        return _insert_pair(member_one_id, member_two_id)
    except Conflict:
        conversation = _lookup(member_one_id, member_two_id)
        if conversation is None:
            raise
        return conversation
