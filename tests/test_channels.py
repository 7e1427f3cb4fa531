"""
频道管理测试
ADMIN、MODERATOR 可以管理频道，general 频道永远不能改名或删除
"""

import pytest

from app.core import authorization, invites
from app.core.errors import BadRequest, Forbidden, NotFound
from app.blueprints.channels.models import Channel
from app.core.extensions import db


@pytest.fixture
def owner(make_profile):
    return make_profile("user_p1", "P1")


@pytest.fixture
def guest(make_profile):
    return make_profile("user_p2", "P2")


@pytest.fixture
def server(owner, guest):
    server = authorization.create_server(owner, "Test", "x")
    invites.join_through_invite(guest, server.invite_code)
    return server


def _promote(owner, server, profile, role):
    member = authorization.current_member(server.id, profile.id)
    authorization.change_role(owner, server.id, member.id, role)


def _general_id(server):
    return Channel.query.filter_by(server_id=server.id, name="general").one().id


def test_create_channel_named_general_is_bad_request(guest, server):
    with pytest.raises(BadRequest):
        authorization.create_channel(guest, server.id, "general", "TEXT")


def test_guest_cannot_create_channel(guest, server):
    with pytest.raises(Forbidden):
        authorization.create_channel(guest, server.id, "random", "TEXT")
    assert Channel.query.filter_by(server_id=server.id).count() == 1


def test_moderator_creates_channel(owner, guest, server):
    _promote(owner, server, guest, "MODERATOR")

    result = authorization.create_channel(guest, server.id, "voice", "AUDIO")

    created = [c for c in result.channels if c.name == "voice"]
    assert len(created) == 1
    assert created[0].type == "AUDIO"
    assert created[0].profile_id == guest.id


def test_create_channel_default_type_is_text(owner, server):
    result = authorization.create_channel(owner, server.id, "random")
    assert [c.type for c in result.channels if c.name == "random"] == ["TEXT"]


def test_create_channel_in_missing_server(owner):
    with pytest.raises(NotFound):
        authorization.create_channel(owner, 999, "random", "TEXT")


def test_create_channel_rejects_unknown_type(owner, server):
    with pytest.raises(BadRequest):
        authorization.create_channel(owner, server.id, "random", "HOLOGRAM")


def test_edit_channel(owner, server):
    created = authorization.create_channel(owner, server.id, "random", "TEXT")
    channel_id = [c.id for c in created.channels if c.name == "random"][0]

    result = authorization.edit_channel(owner, server.id, channel_id, "movies", "VIDEO")

    edited = [c for c in result.channels if c.id == channel_id][0]
    assert edited.name == "movies"
    assert edited.type == "VIDEO"


def test_cannot_rename_channel_to_general(owner, server):
    created = authorization.create_channel(owner, server.id, "random", "TEXT")
    channel_id = [c.id for c in created.channels if c.name == "random"][0]
    with pytest.raises(BadRequest):
        authorization.edit_channel(owner, server.id, channel_id, "general", "TEXT")


@pytest.mark.parametrize("role", ["ADMIN", "MODERATOR", "GUEST"])
def test_general_cannot_be_edited_or_deleted(owner, guest, server, role):
    """所有角色都不能修改或删除 general 频道"""
    if role != "GUEST":
        _promote(owner, server, guest, role)
    general_id = _general_id(server)

    with pytest.raises(BadRequest):
        authorization.edit_channel(guest, server.id, general_id, "lobby", "TEXT")
    with pytest.raises(BadRequest):
        authorization.delete_channel(guest, server.id, general_id)

    general = db.session.get(Channel, general_id)
    assert general.name == "general"


def test_owner_cannot_delete_general(owner, server):
    with pytest.raises(BadRequest):
        authorization.delete_channel(owner, server.id, _general_id(server))


def test_guest_cannot_edit_or_delete_channel(owner, guest, server):
    created = authorization.create_channel(owner, server.id, "random", "TEXT")
    channel_id = [c.id for c in created.channels if c.name == "random"][0]

    with pytest.raises(Forbidden):
        authorization.edit_channel(guest, server.id, channel_id, "mine", "TEXT")
    with pytest.raises(Forbidden):
        authorization.delete_channel(guest, server.id, channel_id)
    assert db.session.get(Channel, channel_id).name == "random"


def test_moderator_deletes_channel(owner, guest, server):
    _promote(owner, server, guest, "MODERATOR")
    created = authorization.create_channel(owner, server.id, "random", "TEXT")
    channel_id = [c.id for c in created.channels if c.name == "random"][0]

    result = authorization.delete_channel(guest, server.id, channel_id)

    assert [c.name for c in result.channels] == ["general"]


def test_channel_of_other_server_is_not_found(owner, server):
    other = authorization.create_server(owner, "Other", "y")
    created = authorization.create_channel(owner, other.id, "random", "TEXT")
    channel_id = [c.id for c in created.channels if c.name == "random"][0]

    with pytest.raises(NotFound):
        authorization.delete_channel(owner, server.id, channel_id)
    assert db.session.get(Channel, channel_id) is not None


def test_demoted_admin_loses_channel_management(owner, guest, server):
    _promote(owner, server, guest, "ADMIN")
    authorization.create_channel(guest, server.id, "random", "TEXT")
    _promote(owner, server, guest, "GUEST")

    with pytest.raises(Forbidden):
        authorization.create_channel(guest, server.id, "another", "TEXT")
