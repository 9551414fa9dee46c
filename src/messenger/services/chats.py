from dataclasses import dataclass
import logging

from messenger.core.dto import ChatDTO, ChatType, MessageDTO, classify
from messenger.core.exceptions import NotFoundError, InvalidOperationError
from messenger.core.interfaces import ChatInterface, MessageInterface, UserInterface

from .session import SessionContext


@dataclass(frozen=True)
class DirectUser:
    login: str

@dataclass(frozen=True)
class NewGroup:
    members: tuple[str, ...]

@dataclass(frozen=True)
class ExistingChat:
    chat_id: int

MessageTarget = DirectUser | NewGroup | ExistingChat


class ChatService:
    """
    Chat lifecycle and membership rules.

    A chat with exactly two members is private, anything else is a group;
    every membership change re-evaluates the type. The creator of a chat
    (init_sender) is its owner and the only one who may change its
    membership or delete it. Messages may only be edited or deleted by
    their sender.

    Attributes:
        chat_gateway: Chat persistence interface
        message_gateway: Message persistence interface
        user_gateway: User persistence interface, for existence checks
        logger: Logger instance for tracking operations
    """
    def __init__(
            self,
            chat_gateway: ChatInterface,
            message_gateway: MessageInterface,
            user_gateway: UserInterface,
            logger: logging.Logger | None = None
    ):
        self.chat_gateway = chat_gateway
        self.message_gateway = message_gateway
        self.user_gateway = user_gateway
        self.logger = logger or logging.getLogger(__name__)

    async def refresh(self, session: SessionContext) -> list[ChatDTO]:
        session.set_chats(await self.chat_gateway.get_chats_for_member(session.login))
        return session.ordered_chats()

    async def send_message(self, session: SessionContext, target: MessageTarget, text: str) -> MessageDTO:
        if isinstance(target, DirectUser):
            message = await self.start_direct_chat(session, target.login, text)
        elif isinstance(target, NewGroup):
            message = await self.start_group_chat(session, list(target.members), text)
        elif isinstance(target, ExistingChat):
            message = await self.post_to_chat(session, target.chat_id, text)
        else:
            raise TypeError(f"Unsupported message target: {target!r}")

        await self.refresh(session)
        return message

    async def start_direct_chat(self, session: SessionContext, counterpart: str, text: str) -> MessageDTO:
        """
        Reuses the two-member chat of both users with the lowest chat_id or
        creates a private one.
        """
        if counterpart == session.login:
            raise InvalidOperationError("Cannot start a chat with yourself")
        await self._require_user(counterpart)
        return await self.chat_gateway.send_direct(session.login, counterpart, text)

    async def start_group_chat(self, session: SessionContext, members: list[str], text: str) -> MessageDTO:
        recipients = []
        for login in members:
            if login != session.login and login not in recipients:
                recipients.append(login)
        if not recipients:
            raise InvalidOperationError("Choose at least one user")
        for login in recipients:
            await self._require_user(login)

        recipients.append(session.login)
        return await self.chat_gateway.create_chat_with_message(
            session.login, recipients, classify(len(recipients)), text
        )

    async def post_to_chat(self, session: SessionContext, chat_id: int, text: str) -> MessageDTO:
        chat = await self.get_chat(chat_id)
        if session.login not in chat.members:
            raise InvalidOperationError("You are not a member of this chat")
        return await self.message_gateway.create_message(chat_id, session.login, text)

    async def get_chat(self, chat_id: int) -> ChatDTO:
        chat = await self.chat_gateway.get_chat(chat_id)
        if chat is None:
            raise NotFoundError("Chat not exists")
        return chat

    async def list_messages(self, chat_id: int) -> list[MessageDTO]:
        return await self.message_gateway.get_messages(chat_id)

    async def list_members(self, chat_id: int) -> list[str]:
        return await self.chat_gateway.get_members(chat_id)

    async def add_members(self, session: SessionContext, chat_id: int, logins: list[str]) -> ChatDTO:
        chat = await self._owned_chat(session, chat_id)
        for login in logins:
            await self._require_user(login)

        updated = await self.chat_gateway.add_members(chat.chat_id, logins)
        if updated.chat_type != chat.chat_type:
            self.logger.info("Chat %s is now %s", chat_id, updated.chat_type.value)
        await self.refresh(session)
        return updated

    async def remove_members(self, session: SessionContext, chat_id: int, logins: list[str]) -> list[str]:
        """
        Removes members in the given order. Once the chat is down to two
        members the remaining logins are left in place and the chat becomes
        private.
        """
        chat = await self._owned_chat(session, chat_id)
        if chat.chat_type == ChatType.PRIVATE:
            raise InvalidOperationError("Can't delete members from private chat!")
        if chat.init_sender in logins:
            raise InvalidOperationError("The chat owner cannot be removed")

        removed = await self.chat_gateway.remove_members(chat.chat_id, logins)
        await self.refresh(session)
        return removed

    async def delete_chat(self, session: SessionContext, chat_id: int) -> None:
        chat = await self._owned_chat(session, chat_id)
        await self.chat_gateway.delete_chat(chat.chat_id)
        self.logger.info("%s deleted chat %s", session.login, chat_id)
        await self.refresh(session)

    async def edit_message(self, session: SessionContext, msg_id: int, text: str) -> None:
        await self._own_message(session, msg_id)
        await self.message_gateway.update_text(msg_id, text)
        await self.refresh(session)

    async def delete_message(self, session: SessionContext, msg_id: int) -> None:
        await self._own_message(session, msg_id)
        await self.message_gateway.delete_message(msg_id)
        await self.refresh(session)

    async def _owned_chat(self, session: SessionContext, chat_id: int) -> ChatDTO:
        chat = await self.get_chat(chat_id)
        if not chat.is_owner(session.login):
            raise InvalidOperationError("Only the chat owner can do this")
        return chat

    async def _own_message(self, session: SessionContext, msg_id: int) -> MessageDTO:
        message = await self.message_gateway.get_message_by_id(msg_id)
        if message is None:
            raise NotFoundError("Message not exists")
        if message.sender != session.login:
            raise InvalidOperationError("Only the sender can change this message")
        return message

    async def _require_user(self, login: str) -> None:
        if await self.user_gateway.get_user_by_login(login) is None:
            raise NotFoundError(f"User {login} not exists")
