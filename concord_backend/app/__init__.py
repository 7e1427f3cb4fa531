import logging

from flask import Flask
from config import (
    DevelopmentConfig,
    TestingConfig,
    ProductionConfig,
)
from app.core.extensions import db, migrate, jwt
from app.core.errors import register_error_handlers
from flasgger import Swagger
from dotenv import load_dotenv

# 导入所有模型以确保它们被注册到SQLAlchemy元数据中
from app.blueprints.profiles.models import Profile
from app.blueprints.servers.models import Server, Member
from app.blueprints.channels.models import Channel
from app.blueprints.conversations.models import Conversation

# 注册蓝图
from app.blueprints.profiles import profiles_bp
from app.blueprints.servers import servers_bp
from app.blueprints.channels import channels_bp
from app.blueprints.conversations import conversations_bp
from app.blueprints.invites import invites_bp, invite_links_bp

# 加载.env文件
load_dotenv()

swagger_template = {
    "swagger": "2.0",
    "info": {
        "title": "Concord API",
        "description": "Concord 星球、成员、频道与邀请码接口文档。",
        "version": "1.0.0",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "身份提供方签发的JWT，格式: Bearer <token>",
        }
    },
}

swagger_config = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: True,  # 所有路由
            "model_filter": lambda tag: True,  # 所有模型
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",  # 仅开发环境下生效
}

CONFIGS = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def create_app(config_name="development"):
    """应用工厂函数"""
    app = Flask(__name__)

    # 根据配置名称选择配置类，未知名称使用开发配置
    app.config.from_object(CONFIGS.get(config_name, DevelopmentConfig))
    logging.getLogger().setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    register_error_handlers(app)

    # 注册蓝图
    app.register_blueprint(profiles_bp, url_prefix="/api")
    app.register_blueprint(servers_bp, url_prefix="/api")
    app.register_blueprint(channels_bp, url_prefix="/api")
    app.register_blueprint(conversations_bp, url_prefix="/api")
    app.register_blueprint(invites_bp, url_prefix="/api")
    app.register_blueprint(invite_links_bp)

    # 仅开发/测试环境下启用默认Swagger UI
    if config_name in ("development", "testing"):
        Swagger(app, template=swagger_template, config=swagger_config)
    else:
        Swagger(
            app, template=swagger_template, config={"swagger_ui": False, "specs": []}
        )

    return app
