from app.models.base import BaseModel
from app.core.extensions import db


class Conversation(BaseModel):
    __tablename__ = "conversations"
    id = db.Column(db.Integer, primary_key=True)
    member_one_id = db.Column(
        db.Integer,
        db.ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_two_id = db.Column(
        db.Integer,
        db.ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    member_one = db.relationship("Member", foreign_keys=[member_one_id])
    member_two = db.relationship("Member", foreign_keys=[member_two_id])
    # 新会话按 (较小ID, 较大ID) 写入，保证同一对成员只有一行
    __table_args__ = (
        db.UniqueConstraint("member_one_id", "member_two_id", name="uq_member_pair"),
    )
