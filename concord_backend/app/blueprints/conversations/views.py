from . import conversations_bp
from flask import request, jsonify
from flask_jwt_extended import jwt_required
from app.core import conversations, identity
from app.core.errors import BadRequest
from app.core.pydantic_schemas import ConversationRequestSchema


@conversations_bp.route("/conversations", methods=["GET"])
@jwt_required()
def find_conversation():
    """
    查找两个成员之间的会话（与参数顺序无关）
    ---
    tags:
      - Conversations
    security:
      - Bearer: []
    parameters:
      - in: query
        name: member_one_id
        type: integer
        required: true
      - in: query
        name: member_two_id
        type: integer
        required: true
    responses:
      200:
        description: 会话，不存在时为 null
      400:
        description: 参数错误
      403:
        description: 调用者不是会话参与者
      404:
        description: 成员不存在
    """
    profile = identity.current_profile()
    member_one_id = request.args.get("member_one_id", type=int)
    member_two_id = request.args.get("member_two_id", type=int)
    if member_one_id is None or member_two_id is None:
        raise BadRequest("member_one_id 和 member_two_id 必填")
    conversation = conversations.find_conversation(
        profile, member_one_id, member_two_id
    )
    return (
        jsonify(
            {
                "conversation": (
                    conversation.model_dump(mode="json") if conversation else None
                )
            }
        ),
        200,
    )


@conversations_bp.route("/conversations", methods=["POST"])
@jwt_required()
def create_new_conversation():
    """
    创建会话
    ---
    tags:
      - Conversations
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - member_one_id
            - member_two_id
          properties:
            member_one_id:
              type: integer
            member_two_id:
              type: integer
    responses:
      201:
        description: 会话创建成功
      403:
        description: 调用者不是会话参与者
      404:
        description: 成员不存在
      409:
        description: 会话已存在
    """
    data = ConversationRequestSchema.model_validate(request.get_json(silent=True) or {})
    conversation = conversations.create_new_conversation(
        identity.current_profile(), data.member_one_id, data.member_two_id
    )
    return jsonify({"conversation": conversation.model_dump(mode="json")}), 201


@conversations_bp.route("/conversations", methods=["PUT"])
@jwt_required()
def get_or_create_conversation():
    """
    查找会话，不存在则创建
    ---
    tags:
      - Conversations
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - member_one_id
            - member_two_id
          properties:
            member_one_id:
              type: integer
            member_two_id:
              type: integer
    responses:
      200:
        description: 会话
      403:
        description: 调用者不是会话参与者
      404:
        description: 成员不存在
    """
    data = ConversationRequestSchema.model_validate(request.get_json(silent=True) or {})
    conversation = conversations.get_or_create_conversation(
        identity.current_profile(), data.member_one_id, data.member_two_id
    )
    return jsonify({"conversation": conversation.model_dump(mode="json")}), 200
