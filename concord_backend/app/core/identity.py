"""
身份解析

把身份提供方签发的JWT中的用户ID映射为应用内的 Profile，首次出现时自动创建。
Profile 作为显式参数传给授权核心的每个操作，而不是全局状态。
"""

import logging
from typing import Optional

from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from sqlalchemy.exc import IntegrityError

from app.blueprints.profiles.models import Profile
from app.core.errors import Unauthenticated
from app.core.extensions import db

logger = logging.getLogger(__name__)


def current_profile(create: bool = True) -> Optional[Profile]:
    """
    解析当前请求的调用者资料

    参数:
        create (bool): 资料不存在时是否按token中的声明创建

    返回:
        Optional[Profile]: 没有有效身份时返回 None
    """
    verify_jwt_in_request(optional=True)
    user_id = get_jwt_identity()
    if not user_id:
        return None

    profile = Profile.query.filter_by(user_id=str(user_id)).first()
    if profile or not create:
        return profile

    return _create_profile(str(user_id), get_jwt())


def require_profile(profile: Optional[Profile]) -> Profile:
    """授权核心操作的第一步：没有调用者身份直接拒绝"""
    if profile is None:
        raise Unauthenticated()
    return profile


def _create_profile(user_id: str, claims: dict) -> Profile:
    profile = Profile(
        user_id=user_id,
        name=claims.get("name") or user_id,
        image_url=claims.get("image_url"),
        email=claims.get("email"),
    )
    db.session.add(profile)
    try:
        db.session.commit()
    except IntegrityError:
        # 同一用户的并发首次请求，另一方已经创建
        db.session.rollback()
        return Profile.query.filter_by(user_id=user_id).one()

    logger.info(f"创建用户资料: {user_id}, ID: {profile.id}")
    return profile
