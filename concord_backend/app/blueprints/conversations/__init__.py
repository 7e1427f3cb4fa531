from flask import Blueprint

conversations_bp = Blueprint("conversations", __name__)

from . import views
