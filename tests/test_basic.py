"""
基本功能测试
验证应用是否能正常启动和基本功能
"""

from app import create_app
from app.core.extensions import db


def test_app_creation():
    """测试应用创建"""
    app = create_app("testing")
    assert app is not None
    assert app.config["TESTING"] == True


def test_database_creation():
    """测试数据库创建"""
    app = create_app("testing")
    with app.app_context():
        db.create_all()

        inspector = db.inspect(db.engine)
        tables = inspector.get_table_names()
        print(f"创建的数据库表: {tables}")

        for table in ("profiles", "servers", "members", "channels", "conversations"):
            assert table in tables

        db.drop_all()


def test_sqlite_foreign_keys_enabled(app):
    """级联删除依赖外键约束"""
    result = db.session.execute(db.text("PRAGMA foreign_keys")).scalar()
    assert result == 1


def test_protected_endpoint_requires_token(client):
    """没有token的请求返回401"""
    response = client.get("/api/setup")
    assert response.status_code == 401
    data = response.get_json()
    assert data["code"] == "UNAUTHENTICATED"
    assert "error" in data
