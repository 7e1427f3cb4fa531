"""
邀请码兑换与邀请链接流程测试
"""

import uuid

import pytest

from app.core import authorization, invites
from app.core.errors import Conflict, NotFound, Unauthenticated
from app.core.invites import InviteState
from app.blueprints.servers.models import Member


@pytest.fixture
def owner(make_profile):
    return make_profile("user_p1", "P1")


@pytest.fixture
def visitor(make_profile):
    return make_profile("user_p2", "P2")


@pytest.fixture
def server(owner):
    return authorization.create_server(owner, "Test", "x")


def _member_count(server, profile):
    return Member.query.filter_by(server_id=server.id, profile_id=profile.id).count()


def test_join_through_invite_adds_guest(visitor, server):
    joined = invites.join_through_invite(visitor, server.invite_code)

    assert joined.id == server.id
    roles = {m.profile_id: m.role for m in joined.members}
    assert roles[visitor.id] == "GUEST"


def test_join_twice_is_conflict(visitor, server):
    invites.join_through_invite(visitor, server.invite_code)
    with pytest.raises(Conflict):
        invites.join_through_invite(visitor, server.invite_code)
    assert _member_count(server, visitor) == 1


def test_join_with_unknown_code(visitor):
    with pytest.raises(NotFound):
        invites.join_through_invite(visitor, str(uuid.uuid4()))


def test_join_requires_profile(server):
    with pytest.raises(Unauthenticated):
        invites.join_through_invite(None, server.invite_code)


def test_existing_server(owner, visitor, server):
    assert invites.existing_server(server.invite_code, owner.id).id == server.id
    assert invites.existing_server(server.invite_code, visitor.id) is None


def test_resolve_invite_joins_then_is_idempotent(visitor, server):
    """重复打开邀请链接不会产生第二条成员记录"""
    first = invites.resolve_invite(visitor, server.invite_code)
    second = invites.resolve_invite(visitor, server.invite_code)

    assert first.state == InviteState.JOINED
    assert second.state == InviteState.ALREADY_MEMBER
    assert first.redirect_to == second.redirect_to == f"/servers/{server.id}"
    assert _member_count(server, visitor) == 1


def test_resolve_invite_for_owner_is_already_member(owner, server):
    resolution = invites.resolve_invite(owner, server.invite_code)
    assert resolution.state == InviteState.ALREADY_MEMBER
    assert resolution.server.id == server.id


def test_resolve_invite_unauthenticated(server):
    resolution = invites.resolve_invite(None, server.invite_code)
    assert resolution.state == InviteState.UNAUTHENTICATED
    assert resolution.redirect_to == "/sign-in"


@pytest.mark.parametrize("code", ["", None, "not-a-code"])
def test_resolve_invite_malformed_code(visitor, code):
    resolution = invites.resolve_invite(visitor, code)
    assert resolution.state == InviteState.INVALID_CODE
    assert resolution.redirect_to == "/"


def test_resolve_invite_after_rotation(owner, visitor, server):
    """轮换后旧邀请码不能再加入"""
    authorization.rotate_invite_code(owner, server.id)

    resolution = invites.resolve_invite(visitor, server.invite_code)

    assert resolution.state == InviteState.NOT_FOUND
    assert resolution.redirect_to is None
    assert _member_count(server, visitor) == 0


def test_resolve_invite_concurrent_join(monkeypatch, visitor, server):
    """预检查之后另一个请求先完成加入，仍然只有一条成员记录"""
    real_existing = invites.existing_server
    calls = []

    def stale_existing(invite_code, profile_id):
        calls.append(invite_code)
        if len(calls) == 1:
            invites.join_through_invite(visitor, invite_code)
            return None
        return real_existing(invite_code, profile_id)

    monkeypatch.setattr(invites, "existing_server", stale_existing)

    resolution = invites.resolve_invite(visitor, server.invite_code)

    assert resolution.state == InviteState.ALREADY_MEMBER
    assert _member_count(server, visitor) == 1


def test_join_after_server_deleted(owner, visitor, server):
    authorization.delete_server(owner, server.id)
    resolution = invites.resolve_invite(visitor, server.invite_code)
    assert resolution.state == InviteState.NOT_FOUND
