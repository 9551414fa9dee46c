import logging

from messenger.core.exceptions import NotFoundError, InvalidOperationError, InvalidInputError
from messenger.core.interfaces import UserInterface, ChatInterface
from messenger.core.dto import UserDTO

from .session import SessionContext
from .relationships import RelationshipManager
from .chats import ChatService


class AccountService:
    def __init__(
            self,
            user_gateway: UserInterface,
            chat_gateway: ChatInterface,
            relationships: RelationshipManager,
            chats: ChatService,
            logger: logging.Logger | None = None
    ):
        self.user_gateway = user_gateway
        self.chat_gateway = chat_gateway
        self.relationships = relationships
        self.chats = chats
        self.logger = logger or logging.getLogger(__name__)

    async def login_taken(self, login: str) -> bool:
        return await self.user_gateway.get_user_by_login(login) is not None

    async def phone_taken(self, phone_num: str) -> bool:
        return await self.user_gateway.get_user_by_phone(phone_num) is not None

    async def register(self, login: str, password: str, phone_num: str) -> UserDTO:
        if not login or not password or not phone_num:
            raise InvalidInputError("Login, password and phone number are required")
        if await self.login_taken(login):
            raise InvalidOperationError("This login is already existed, please try another.")
        if await self.phone_taken(phone_num):
            raise InvalidOperationError("This phone number is already existed, please try another.")

        user = await self.user_gateway.create_user(login, password, phone_num)
        self.logger.info("Registered user %s", login)
        return user

    async def log_in(self, login: str, password: str) -> SessionContext:
        user = await self.user_gateway.check_credentials(login, password)
        if user is None:
            raise NotFoundError("Incorrect username or password.")

        session = SessionContext(user=user)
        await self.relationships.refresh(session)
        await self.chats.refresh(session)
        self.logger.info("%s logged in", login)
        return session

    async def update_status(self, session: SessionContext, status: str) -> None:
        await self.user_gateway.update_status(session.login, status)
        session.user = session.user.model_copy(update={"status": status})

    async def delete_account(self, session: SessionContext) -> None:
        """
        Fails while the user still owns chats or is one of the two members of a
        chat. Ends the session on success.
        """
        if await self.chat_gateway.count_owned_chats(session.login):
            raise InvalidOperationError(
                "Sorry, there are linked information to this account. It cannot be deleted"
            )
        await self.user_gateway.delete_user(session.login)
        self.logger.info("Deleted account %s", session.login)
        session.end()
