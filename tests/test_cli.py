"""
Menu flows driven by scripted console input.
"""

import io

import pytest

from messenger.ui import Console, MessengerCLI


def make_cli(lines: list[str], accounts, relationships, chats, config) -> tuple[MessengerCLI, io.StringIO]:
    stdout = io.StringIO()
    console = Console(stdin=io.StringIO("".join(line + "\n" for line in lines)), stdout=stdout)
    cli = MessengerCLI(console, accounts, relationships, chats, ui=config.ui)
    return cli, stdout


@pytest.mark.asyncio
async def test_register_log_in_and_add_contact(accounts, relationships, chats, config, users):
    cli, stdout = make_cli([
        "1", "zoe", "pw", "5559999",
        "x",
        "2", "zoe", "pw",
        "1", "5550101",
        "2", "b",
        "9",
        "9",
    ], accounts, relationships, chats, config)

    await cli.run()

    output = stdout.getvalue()
    assert "User successfully created!" in output
    assert "Your input is invalid!" in output
    assert "User added to contact list successfully!" in output
    assert "0. bob" in output
    assert output.rstrip().endswith("Disconnecting from database...")

    zoe = await accounts.log_in("zoe", "pw")
    assert list(zoe.contacts) == ["bob"]


@pytest.mark.asyncio
async def test_group_message_from_contact_list(accounts, relationships, chats, config, users):
    cli, stdout = make_cli([
        "2", "alice", "alice-pw",
        "1", "5550101",
        "1", "5550102",
        "5", "2", "0", "0", "f", "hello all",
        "6", "0", "1", "b", "b",
        "9",
        "9",
    ], accounts, relationships, chats, config)

    await cli.run()

    output = stdout.getvalue()
    assert "Message sent!" in output
    assert "Group Chat(3)" in output
    assert "hello all" in output

    alice = await accounts.log_in("alice", "alice-pw")
    chat = alice.ordered_chats()[0]
    assert chat.members == ["alice", "bob", "carol"]


@pytest.mark.asyncio
async def test_chat_owner_cannot_delete_account(accounts, relationships, chats, config, users, user_gateway):
    cli, stdout = make_cli([
        "2", "alice", "alice-pw",
        "5", "1", "bob", "hi bob",
        "8", "y",
        "9",
        "9",
    ], accounts, relationships, chats, config)

    await cli.run()

    output = stdout.getvalue()
    assert "Message sent!" in output
    assert "there are linked information to this account" in output
    assert await user_gateway.get_user_by_login("alice") is not None


@pytest.mark.asyncio
async def test_wrong_password_is_reported(accounts, relationships, chats, config, users):
    cli, stdout = make_cli(["2", "alice", "nope", "9"], accounts, relationships, chats, config)

    await cli.run()

    assert "Incorrect username or password." in stdout.getvalue()


@pytest.mark.asyncio
async def test_closed_input_ends_the_program(accounts, relationships, chats, config):
    cli, stdout = make_cli([], accounts, relationships, chats, config)

    await cli.run()

    assert "Disconnecting from database..." in stdout.getvalue()
