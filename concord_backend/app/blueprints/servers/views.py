from . import servers_bp
from flask import request, jsonify
from flask_jwt_extended import jwt_required
from app.core import authorization, identity
from app.core.errors import Forbidden
from app.core.pydantic_schemas import (
    RoleChangeSchema,
    ServerCreateSchema,
    ServerUpdateSchema,
)


def _server_response(server, message, status=200):
    return jsonify({"message": message, "server": server.model_dump(mode="json")}), status


@servers_bp.route("/servers", methods=["POST"])
@jwt_required()
def create_server():
    """
    创建星球
    同时创建 general 频道，并把创建者加入为 ADMIN
    ---
    tags:
      - Servers
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - image_url
          properties:
            name:
              type: string
              example: 我的星球
            image_url:
              type: string
              example: https://example.com/server.png
    responses:
      201:
        description: 星球创建成功
      400:
        description: 参数错误
      401:
        description: 未授权
    """
    data = ServerCreateSchema.model_validate(request.get_json(silent=True) or {})
    server = authorization.create_server(
        identity.current_profile(), data.name, data.image_url
    )
    return _server_response(server, "星球创建成功", 201)


@servers_bp.route("/servers/<int:server_id>", methods=["PATCH"])
@jwt_required()
def update_server(server_id):
    """
    修改星球名称和图片（仅所有者）
    ---
    tags:
      - Servers
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
        description: 星球ID
        example: 1
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - image_url
          properties:
            name:
              type: string
            image_url:
              type: string
    responses:
      200:
        description: 更新成功
      403:
        description: 不是星球所有者
      404:
        description: 星球不存在
    """
    data = ServerUpdateSchema.model_validate(request.get_json(silent=True) or {})
    server = authorization.update_server(
        identity.current_profile(), server_id, data.name, data.image_url
    )
    return _server_response(server, "星球信息已更新")


@servers_bp.route("/servers/<int:server_id>/invite-code", methods=["PATCH"])
@jwt_required()
def generate_new_invite_code(server_id):
    """
    重新生成邀请码（仅所有者）
    ---
    tags:
      - Servers
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
    responses:
      200:
        description: 邀请码已更新，旧邀请码失效
      403:
        description: 不是星球所有者
      404:
        description: 星球不存在
    """
    server = authorization.rotate_invite_code(identity.current_profile(), server_id)
    return _server_response(server, "邀请码已更新")


@servers_bp.route("/servers/<int:server_id>", methods=["DELETE"])
@jwt_required()
def delete_server(server_id):
    """
    删除星球（仅所有者），成员和频道一并删除
    ---
    tags:
      - Servers
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
    responses:
      200:
        description: 星球已删除
      403:
        description: 不是星球所有者
      404:
        description: 星球不存在
    """
    server = authorization.delete_server(identity.current_profile(), server_id)
    return _server_response(server, "星球已删除")


@servers_bp.route("/servers/<int:server_id>/leave", methods=["PATCH"])
@jwt_required()
def leave_server(server_id):
    """
    退出星球，所有者不能退出
    ---
    tags:
      - Servers
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
    responses:
      200:
        description: 已退出
      403:
        description: 所有者不能退出
      404:
        description: 星球不存在或不是成员
    """
    server = authorization.leave_server(identity.current_profile(), server_id)
    return _server_response(server, "已退出星球")


@servers_bp.route("/servers/<int:server_id>/members/<int:member_id>", methods=["PATCH"])
@jwt_required()
def change_member_role(server_id, member_id):
    """
    修改成员角色（仅所有者，不能修改自己）
    ---
    tags:
      - Members
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
      - in: path
        name: member_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - role
          properties:
            role:
              type: string
              enum: [ADMIN, MODERATOR, GUEST]
    responses:
      200:
        description: 角色已修改，返回按角色排序的成员列表
      403:
        description: 不是所有者或试图修改自己
      404:
        description: 星球或成员不存在
    """
    data = RoleChangeSchema.model_validate(request.get_json(silent=True) or {})
    server = authorization.change_role(
        identity.current_profile(), server_id, member_id, data.role
    )
    return _server_response(server, "角色已修改")


@servers_bp.route("/servers/<int:server_id>/members/<int:member_id>", methods=["DELETE"])
@jwt_required()
def kick_member(server_id, member_id):
    """
    移除星球成员（仅所有者，不能移除自己）
    ---
    tags:
      - Members
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
      - in: path
        name: member_id
        type: integer
        required: true
    responses:
      200:
        description: 成员已移除
      403:
        description: 不是所有者或试图移除自己
      404:
        description: 星球或成员不存在
    """
    server = authorization.kick_member(identity.current_profile(), server_id, member_id)
    return _server_response(server, "成员已移除")


@servers_bp.route("/servers/<int:server_id>/members/current", methods=["GET"])
@jwt_required()
def current_member(server_id):
    """
    获取用户在星球中的成员记录
    ---
    tags:
      - Members
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
      - in: query
        name: profile_id
        type: integer
        description: 默认为当前用户
    responses:
      200:
        description: 成员记录，不是成员时为 null
      403:
        description: profile_id 不是当前用户
    """
    profile = identity.require_profile(identity.current_profile())
    profile_id = request.args.get("profile_id", profile.id, type=int)
    if profile_id != profile.id:
        raise Forbidden("只能查询自己的成员记录")
    member = authorization.current_member(server_id, profile_id)
    return jsonify({"member": member.model_dump(mode="json") if member else None}), 200
