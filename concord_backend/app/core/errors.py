"""
授权核心错误类型

服务层只抛出这些异常，由 register_error_handlers 统一转换为
{"error": ..., "code": ...} 格式的 JSON 响应
"""

import logging

from flask import jsonify
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.core.extensions import db, jwt

logger = logging.getLogger(__name__)


class AccessError(Exception):
    """授权核心错误基类"""

    status_code = 500
    code = "INTERNAL"
    default_message = "服务器内部错误"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> tuple:
        return {"error": self.message, "code": self.code}, self.status_code


class Unauthenticated(AccessError):
    """无法解析出调用者身份"""

    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "未授权访问"


class Forbidden(AccessError):
    """调用者缺少所需的所有权或角色"""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "权限不足"


class BadRequest(AccessError):
    """输入通过校验但业务上不允许"""

    status_code = 400
    code = "BAD_REQUEST"
    default_message = "参数错误"


class NotFound(AccessError):
    """引用的实体不存在或已被并发删除"""

    status_code = 404
    code = "NOT_FOUND"
    default_message = "资源不存在"


class Conflict(AccessError):
    """违反唯一性约束"""

    status_code = 409
    code = "CONFLICT"
    default_message = "资源已存在"


def register_error_handlers(app):
    """注册统一错误处理"""

    @app.errorhandler(AccessError)
    def handle_access_error(e: AccessError):
        db.session.rollback()
        body, status = e.to_response()
        return jsonify(body), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        details = e.errors(include_url=False, include_context=False, include_input=False)
        return (
            jsonify({"error": "参数错误", "code": BadRequest.code, "details": details}),
            400,
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e: IntegrityError):
        db.session.rollback()
        logger.warning(f"数据库约束冲突: {e.orig}")
        body, status = Conflict().to_response()
        return jsonify(body), status


@jwt.unauthorized_loader
def _missing_token(reason):
    body, status = Unauthenticated(f"未授权访问: {reason}").to_response()
    return jsonify(body), status


@jwt.invalid_token_loader
def _invalid_token(reason):
    body, status = Unauthenticated(f"无效的token: {reason}").to_response()
    return jsonify(body), status


@jwt.expired_token_loader
def _expired_token(_jwt_header, _jwt_payload):
    body, status = Unauthenticated("token已过期").to_response()
    return jsonify(body), status
