from . import profiles_bp
from flask import current_app, jsonify
from flask_jwt_extended import jwt_required
from app.core import authorization, identity
from app.core.errors import Forbidden
from app.core.pydantic_schemas import ProfileSchema


@profiles_bp.route("/profiles/me", methods=["GET"])
@jwt_required()
def initial_profile():
    """
    获取当前用户资料，首次访问时创建
    ---
    tags:
      - Profiles
    security:
      - Bearer: []
    responses:
      200:
        description: 用户资料
      401:
        description: 未授权
    """
    profile = identity.require_profile(identity.current_profile())
    return jsonify(ProfileSchema.model_validate(profile).model_dump()), 200


@profiles_bp.route("/profiles/<int:profile_id>/servers", methods=["GET"])
@jwt_required()
def find_servers(profile_id):
    """
    获取当前用户加入的星球列表，只能查询自己
    ---
    tags:
      - Profiles
    security:
      - Bearer: []
    parameters:
      - in: path
        name: profile_id
        type: integer
        required: true
    responses:
      200:
        description: 星球列表
      403:
        description: 不能查询其他用户
    """
    profile = identity.require_profile(identity.current_profile())
    if profile_id != profile.id:
        raise Forbidden("只能查询自己加入的星球")
    servers = authorization.find_servers(profile_id)
    return jsonify({"servers": [s.model_dump(mode="json") for s in servers]}), 200


@profiles_bp.route("/setup", methods=["GET"])
@jwt_required()
def setup():
    """
    首次进入应用
    已加入星球时给出第一个星球的跳转地址，否则 server 为 null，由前端展示创建星球弹窗
    ---
    tags:
      - Profiles
    security:
      - Bearer: []
    responses:
      200:
        description: 初始化信息
        schema:
          type: object
          properties:
            profile:
              type: object
            server:
              type: object
            redirect_to:
              type: string
    """
    profile = identity.require_profile(identity.current_profile())
    server = authorization.find_server(profile.id)
    redirect_to = None
    if server is not None:
        redirect_to = current_app.config["SERVER_URL_TEMPLATE"].format(
            server_id=server.id
        )
    return (
        jsonify(
            {
                "profile": ProfileSchema.model_validate(profile).model_dump(),
                "server": server.model_dump(mode="json") if server else None,
                "redirect_to": redirect_to,
            }
        ),
        200,
    )
