import pytest
from sqlalchemy import text

from messenger.core.dto import RelationshipKind
from messenger.core.exceptions import NotFoundError, InvalidOperationError, StoreError


def assert_disjoint(session):
    assert not set(session.contacts) & set(session.blocked)


@pytest.mark.asyncio
async def test_add_contact(relationships, login):
    alice = await login("alice")

    assert await relationships.add_contact(alice, "bob")

    assert list(alice.contacts) == ["bob"]
    assert alice.contacts["bob"].phone_num == "5550101"
    assert alice.blocked == {}


@pytest.mark.asyncio
async def test_add_contact_twice_is_a_no_op(relationships, login, user_gateway):
    alice = await login("alice")
    await relationships.add_contact(alice, "bob")

    assert not await relationships.add_contact(alice, "bob")

    stored = await user_gateway.get_relationships("alice", RelationshipKind.CONTACT)
    assert [user.login for user in stored] == ["bob"]


@pytest.mark.asyncio
async def test_contact_evicts_block(relationships, login):
    alice = await login("alice")
    await relationships.add_block(alice, "bob")
    assert "bob" in alice.blocked

    await relationships.add_contact(alice, "bob")

    assert "bob" in alice.contacts
    assert "bob" not in alice.blocked
    assert_disjoint(alice)


@pytest.mark.asyncio
async def test_block_evicts_contact(relationships, login):
    alice = await login("alice")
    await relationships.add_contact(alice, "bob")
    await relationships.add_contact(alice, "carol")

    assert await relationships.add_block(alice, "bob")

    assert list(alice.contacts) == ["carol"]
    assert list(alice.blocked) == ["bob"]
    assert_disjoint(alice)


@pytest.mark.asyncio
async def test_block_twice_is_a_no_op(relationships, login):
    alice = await login("alice")
    await relationships.add_block(alice, "bob")

    assert not await relationships.add_block(alice, "bob")
    assert list(alice.blocked) == ["bob"]


@pytest.mark.asyncio
async def test_lists_stay_disjoint_over_many_changes(relationships, login):
    alice = await login("alice")
    steps = [
        ("contact", "bob"), ("block", "carol"), ("block", "bob"),
        ("contact", "carol"), ("contact", "dave"), ("block", "dave"),
        ("contact", "bob"),
    ]
    for kind, target in steps:
        if kind == "contact":
            await relationships.add_contact(alice, target)
        else:
            await relationships.add_block(alice, target)
        assert_disjoint(alice)

    assert sorted(alice.contacts) == ["bob", "carol"]
    assert sorted(alice.blocked) == ["dave"]


@pytest.mark.asyncio
async def test_unknown_user_is_rejected(relationships, login):
    alice = await login("alice")

    with pytest.raises(NotFoundError):
        await relationships.add_contact(alice, "mallory")
    with pytest.raises(NotFoundError):
        await relationships.add_block(alice, "mallory")


@pytest.mark.asyncio
async def test_self_relationship_is_rejected(relationships, login):
    alice = await login("alice")

    with pytest.raises(InvalidOperationError):
        await relationships.add_contact(alice, "alice")
    with pytest.raises(InvalidOperationError):
        await relationships.add_block(alice, "alice")


@pytest.mark.asyncio
async def test_remove_contact_and_block(relationships, login):
    alice = await login("alice")
    await relationships.add_contact(alice, "bob")
    await relationships.add_block(alice, "carol")

    await relationships.remove_contact(alice, "bob")
    await relationships.remove_block(alice, "carol")

    assert alice.contacts == {}
    assert alice.blocked == {}


@pytest.mark.asyncio
async def test_remove_absent_entry_is_silent(relationships, login):
    alice = await login("alice")

    await relationships.remove_contact(alice, "bob")
    await relationships.remove_block(alice, "mallory")

    assert alice.contacts == {}


@pytest.mark.asyncio
async def test_lists_belong_to_their_owner(relationships, login):
    alice = await login("alice")
    bob = await login("bob")
    await relationships.add_contact(alice, "carol")
    await relationships.add_block(bob, "carol")

    assert list(alice.contacts) == ["carol"]
    assert alice.blocked == {}
    assert list(bob.blocked) == ["carol"]
    assert bob.contacts == {}


@pytest.mark.asyncio
async def test_find_user_by_phone(relationships, users):
    user = await relationships.find_user_by_phone("5550102")
    assert user.login == "carol"

    with pytest.raises(NotFoundError):
        await relationships.find_user_by_phone("000")


async def reject_list_inserts(db_manager):
    async with db_manager.session() as session:
        await session.execute(text(
            "CREATE TRIGGER reject_list_insert BEFORE INSERT ON user_list_contains "
            "BEGIN SELECT RAISE(ABORT, 'list insert rejected'); END"
        ))


@pytest.mark.asyncio
async def test_failed_insert_rolls_back_eviction(relationships, login, user_gateway, db_manager):
    alice = await login("alice")
    await relationships.add_block(alice, "bob")
    await reject_list_inserts(db_manager)

    with pytest.raises(StoreError):
        await relationships.add_contact(alice, "bob")

    blocked = await user_gateway.get_relationships("alice", RelationshipKind.BLOCK)
    contacts = await user_gateway.get_relationships("alice", RelationshipKind.CONTACT)
    assert [user.login for user in blocked] == ["bob"]
    assert contacts == []
