"""
测试公共夹具
每个测试使用独立的内存数据库
"""

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from app.core.extensions import db
from app.blueprints.profiles.models import Profile


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_profile(app):
    """直接写入一条用户资料"""

    def _make(user_id, name=None):
        profile = Profile(user_id=user_id, name=name or user_id)
        db.session.add(profile)
        db.session.commit()
        return profile

    return _make


@pytest.fixture
def auth_headers(app):
    """模拟身份提供方签发的token"""

    def _headers(user_id, **claims):
        token = create_access_token(identity=user_id, additional_claims=claims)
        return {"Authorization": f"Bearer {token}"}

    return _headers
