from app.models.base import BaseModel
from app.models.enums import ChannelType
from app.core.extensions import db


class Channel(BaseModel):
    __tablename__ = "channels"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    type = db.Column(
        db.Enum(ChannelType, name="channel_type"),
        nullable=False,
        default=ChannelType.TEXT,
        server_default=ChannelType.TEXT.value,
    )
    server_id = db.Column(
        db.Integer,
        db.ForeignKey("servers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # 创建者
    profile_id = db.Column(
        db.Integer,
        db.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
