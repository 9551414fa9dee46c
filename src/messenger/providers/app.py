from typing import AsyncIterable
import logging

from dishka import Provider, Scope, provide

from messenger.config import Config, load_config
from messenger.core.db_manager import DatabaseManager
from messenger.core.gateways import UserGateway, ChatGateway, MessageGateway
from messenger.services import AccountService, ChatService, RelationshipManager
from messenger.ui import Console, MessengerCLI

class AdaptersProvider(Provider):
    def __init__(self, env_path: str | None = ".env", console: Console | None = None):
        super().__init__()
        self.env_path = env_path
        self.console = console

    @provide(scope=Scope.APP)
    def get_config(self) -> Config:
        return load_config(self.env_path)

    @provide(scope=Scope.APP)
    def get_logger(self) -> logging.Logger:
        return logging.getLogger("messenger")

    @provide(scope=Scope.APP)
    def get_console(self) -> Console:
        return self.console or Console()

    @provide(scope=Scope.APP)
    async def get_db_manager(self, config: Config) -> AsyncIterable[DatabaseManager]:
        db_manager = DatabaseManager(config)
        await db_manager.initialize()
        await db_manager.create_tables()
        yield db_manager
        await db_manager.close()

class GatewaysProvider(Provider):
    @provide(scope=Scope.REQUEST)
    def get_user_gateway(
            self,
            db_manager: DatabaseManager,
            logger: logging.Logger
    ) -> UserGateway:
        return UserGateway(db_manager, logger)

    @provide(scope=Scope.REQUEST)
    def get_chat_gateway(
            self,
            db_manager: DatabaseManager,
            logger: logging.Logger
    ) -> ChatGateway:
        return ChatGateway(db_manager, logger)

    @provide(scope=Scope.REQUEST)
    def get_message_gateway(
            self,
            db_manager: DatabaseManager,
            logger: logging.Logger
    ) -> MessageGateway:
        return MessageGateway(db_manager, logger)

class ServicesProvider(Provider):
    @provide(scope=Scope.REQUEST)
    def get_relationship_manager(
            self,
            user_gateway: UserGateway,
            logger: logging.Logger
    ) -> RelationshipManager:
        return RelationshipManager(user_gateway, logger)

    @provide(scope=Scope.REQUEST)
    def get_chat_service(
            self,
            chat_gateway: ChatGateway,
            message_gateway: MessageGateway,
            user_gateway: UserGateway,
            logger: logging.Logger
    ) -> ChatService:
        return ChatService(chat_gateway, message_gateway, user_gateway, logger)

    @provide(scope=Scope.REQUEST)
    def get_account_service(
            self,
            user_gateway: UserGateway,
            chat_gateway: ChatGateway,
            relationships: RelationshipManager,
            chats: ChatService,
            logger: logging.Logger
    ) -> AccountService:
        return AccountService(user_gateway, chat_gateway, relationships, chats, logger)

    @provide(scope=Scope.REQUEST)
    def get_cli(
            self,
            console: Console,
            accounts: AccountService,
            relationships: RelationshipManager,
            chats: ChatService,
            config: Config,
            logger: logging.Logger
    ) -> MessengerCLI:
        return MessengerCLI(
            console=console,
            accounts=accounts,
            relationships=relationships,
            chats=chats,
            ui=config.ui,
            logger=logger
        )
