from flask import Blueprint

channels_bp = Blueprint("channels", __name__)

from . import views
