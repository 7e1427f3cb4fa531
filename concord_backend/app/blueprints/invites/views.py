from . import invites_bp, invite_links_bp
from flask import request, jsonify, redirect
from flask_jwt_extended import jwt_required
from app.core import identity, invites
from app.core.errors import Forbidden, NotFound
from app.core.pydantic_schemas import InviteJoinSchema


@invites_bp.route("/invites/<invite_code>/server", methods=["GET"])
@jwt_required()
def existing_server(invite_code):
    """
    查询用户是否已加入邀请码对应的星球
    ---
    tags:
      - Invites
    security:
      - Bearer: []
    parameters:
      - in: path
        name: invite_code
        type: string
        required: true
      - in: query
        name: profile_id
        type: integer
        description: 默认为当前用户
    responses:
      200:
        description: 已加入时返回星球，否则为 null
      403:
        description: profile_id 不是当前用户
    """
    profile = identity.require_profile(identity.current_profile())
    profile_id = request.args.get("profile_id", profile.id, type=int)
    if profile_id != profile.id:
        raise Forbidden("只能查询自己的加入状态")
    server = invites.existing_server(invite_code, profile_id)
    return jsonify({"server": server.model_dump(mode="json") if server else None}), 200


@invites_bp.route("/invites/<invite_code>/join", methods=["POST"])
@jwt_required()
def join_through_invite(invite_code):
    """
    通过邀请码加入星球
    ---
    tags:
      - Invites
    security:
      - Bearer: []
    parameters:
      - in: path
        name: invite_code
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            profile_id:
              type: integer
              description: 只能是当前用户
    responses:
      201:
        description: 成功加入星球
      403:
        description: profile_id 不是当前用户
      404:
        description: 邀请码无效或已失效
      409:
        description: 已经是成员
    """
    profile = identity.require_profile(identity.current_profile())
    data = InviteJoinSchema.model_validate(request.get_json(silent=True) or {})
    if data.profile_id is not None and data.profile_id != profile.id:
        raise Forbidden("只能为自己兑换邀请码")
    server = invites.join_through_invite(profile, invite_code)
    return (
        jsonify({"message": "成功加入星球", "server": server.model_dump(mode="json")}),
        201,
    )


@invite_links_bp.route("/invite/<invite_code>", methods=["GET"])
@jwt_required(optional=True)
def open_invite_link(invite_code):
    """
    打开邀请链接
    未登录跳转登录页，邀请码格式错误跳转首页，已加入或加入成功后跳转星球
    ---
    tags:
      - Invites
    parameters:
      - in: path
        name: invite_code
        type: string
        required: true
    responses:
      302:
        description: 跳转
      404:
        description: 邀请码已失效
    """
    resolution = invites.resolve_invite(identity.current_profile(), invite_code)
    if resolution.redirect_to is None:
        raise NotFound("邀请码已失效")
    return redirect(resolution.redirect_to)
