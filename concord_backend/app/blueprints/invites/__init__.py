from flask import Blueprint

invites_bp = Blueprint("invites", __name__)
# 邀请链接页面，不带 /api 前缀
invite_links_bp = Blueprint("invite_links", __name__)

from . import views
