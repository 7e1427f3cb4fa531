
from app.models.base import BaseModel
from app.models.enums import MemberRole
from app.core.extensions import db


class Server(BaseModel):
    __tablename__ = "servers"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    image_url = db.Column(db.Text, nullable=False)
    # 所有者，与 ADMIN 角色是两回事
    profile_id = db.Column(
        db.Integer,
        db.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invite_code = db.Column(db.String(64), unique=True, nullable=False)

    owner = db.relationship("Profile")
    members = db.relationship(
        "Member",
        back_populates="server",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Member.id",
    )
    channels = db.relationship(
        "Channel",
        backref=db.backref("server"),
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Channel.id",
    )


class Member(BaseModel):
    __tablename__ = "members"
    id = db.Column(db.Integer, primary_key=True)
    role = db.Column(
        db.Enum(MemberRole, name="member_role"),
        nullable=False,
        default=MemberRole.GUEST,
        server_default=MemberRole.GUEST.value,
    )
    profile_id = db.Column(
        db.Integer,
        db.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    server_id = db.Column(
        db.Integer,
        db.ForeignKey("servers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    profile = db.relationship("Profile")
    server = db.relationship("Server", back_populates="members")
    __table_args__ = (
        db.UniqueConstraint("server_id", "profile_id", name="uq_server_profile"),
    )
