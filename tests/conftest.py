"""
Shared fixtures: a fresh SQLite store per test, the gateways on top of it
and the services wired the way the dishka providers wire them.
"""

import pytest
import pytest_asyncio

from messenger.config import Config, DBConfig, UIConfig
from messenger.core.db_manager import DatabaseManager
from messenger.core.gateways import UserGateway, ChatGateway, MessageGateway
from messenger.services import AccountService, ChatService, RelationshipManager, SessionContext

USERS = {
    "alice": "5550100",
    "bob": "5550101",
    "carol": "5550102",
    "dave": "5550103",
    "erin": "5550104",
}


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        db=DBConfig(path=str(tmp_path / "messenger.db")),
        ui=UIConfig(page_size=10, wrap_width=40),
    )


@pytest_asyncio.fixture
async def db_manager(config):
    manager = DatabaseManager(config)
    await manager.initialize()
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def user_gateway(db_manager) -> UserGateway:
    return UserGateway(db_manager)


@pytest.fixture
def chat_gateway(db_manager) -> ChatGateway:
    return ChatGateway(db_manager)


@pytest.fixture
def message_gateway(db_manager) -> MessageGateway:
    return MessageGateway(db_manager)


@pytest.fixture
def relationships(user_gateway) -> RelationshipManager:
    return RelationshipManager(user_gateway)


@pytest.fixture
def chats(chat_gateway, message_gateway, user_gateway) -> ChatService:
    return ChatService(chat_gateway, message_gateway, user_gateway)


@pytest.fixture
def accounts(user_gateway, chat_gateway, relationships, chats) -> AccountService:
    return AccountService(user_gateway, chat_gateway, relationships, chats)


@pytest_asyncio.fixture
async def users(accounts):
    for login, phone in USERS.items():
        await accounts.register(login, f"{login}-pw", phone)
    return USERS


@pytest_asyncio.fixture
async def login(accounts, users):
    async def _login(name: str) -> SessionContext:
        return await accounts.log_in(name, f"{name}-pw")
    return _login
