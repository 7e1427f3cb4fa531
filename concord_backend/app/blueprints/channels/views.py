from . import channels_bp
from flask import request, jsonify
from flask_jwt_extended import jwt_required
from app.core import authorization, identity
from app.core.pydantic_schemas import ChannelCreateSchema, ChannelUpdateSchema


@channels_bp.route("/servers/<int:server_id>/channels", methods=["POST"])
@jwt_required()
def create_channel(server_id):
    """
    创建频道
    仅星球的 ADMIN 或 MODERATOR 可以创建，名称不能为 general
    ---
    tags:
      - Channels
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
          properties:
            name:
              type: string
              example: 闲聊
            type:
              type: string
              enum: [TEXT, AUDIO, VIDEO]
              example: TEXT
    responses:
      201:
        description: 频道创建成功
      400:
        description: 参数错误或使用了保留名称
      403:
        description: 角色不足
      404:
        description: 星球不存在
    """
    data = ChannelCreateSchema.model_validate(request.get_json(silent=True) or {})
    server = authorization.create_channel(
        identity.current_profile(), server_id, data.name, data.type
    )
    return (
        jsonify({"message": "频道创建成功", "server": server.model_dump(mode="json")}),
        201,
    )


@channels_bp.route("/servers/<int:server_id>/channels/<int:channel_id>", methods=["PATCH"])
@jwt_required()
def edit_channel(server_id, channel_id):
    """
    修改频道，general 频道不可修改
    ---
    tags:
      - Channels
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
      - in: path
        name: channel_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - type
          properties:
            name:
              type: string
            type:
              type: string
              enum: [TEXT, AUDIO, VIDEO]
    responses:
      200:
        description: 修改成功
      400:
        description: 目标或新名称为 general
      403:
        description: 角色不足
      404:
        description: 星球或频道不存在
    """
    data = ChannelUpdateSchema.model_validate(request.get_json(silent=True) or {})
    server = authorization.edit_channel(
        identity.current_profile(), server_id, channel_id, data.name, data.type
    )
    return jsonify({"message": "频道已修改", "server": server.model_dump(mode="json")}), 200


@channels_bp.route(
    "/servers/<int:server_id>/channels/<int:channel_id>", methods=["DELETE"]
)
@jwt_required()
def delete_channel(server_id, channel_id):
    """
    删除频道，general 频道不可删除
    ---
    tags:
      - Channels
    security:
      - Bearer: []
    parameters:
      - in: path
        name: server_id
        type: integer
        required: true
      - in: path
        name: channel_id
        type: integer
        required: true
    responses:
      200:
        description: 频道已删除
      400:
        description: general 频道不可删除
      403:
        description: 角色不足
      404:
        description: 星球或频道不存在
    """
    server = authorization.delete_channel(
        identity.current_profile(), server_id, channel_id
    )
    return jsonify({"message": "频道已删除", "server": server.model_dump(mode="json")}), 200
