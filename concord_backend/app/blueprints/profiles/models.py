from app.models.base import BaseModel
from app.core.extensions import db


class Profile(BaseModel):
    __tablename__ = "profiles"
    id = db.Column(db.Integer, primary_key=True)
    # 身份提供方的用户ID
    user_id = db.Column(db.String(128), unique=True, nullable=False)
    name = db.Column(db.String(128), nullable=False)
    image_url = db.Column(db.Text)
    email = db.Column(db.String(255))
