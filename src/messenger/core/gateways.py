from collections import defaultdict
import logging
import secrets

from sqlalchemy import select, insert, update, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from .database import User, UserList, UserListContains, Chat, ChatList, Message
from .interfaces import UserInterface, ChatInterface, MessageInterface
from .dto import UserDTO, ChatDTO, ChatType, MessageDTO, RelationshipKind, classify
from .exceptions import NotFoundError, InvalidOperationError, StoreError
from .db_manager import DatabaseManager


def _user_dto(user: User) -> UserDTO:
    return UserDTO(
        login=user.login,
        phone_num=user.phone_num,
        status=user.status
    )

def _message_dto(msg: Message) -> MessageDTO:
    return MessageDTO(
        msg_id=msg.msg_id,
        chat_id=msg.chat_id,
        text=msg.msg_text,
        timestamp=msg.msg_timestamp,
        sender=msg.sender_login
    )

async def _insert_message(session: AsyncSession, chat_id: int, sender: str, text: str) -> MessageDTO:
    stmt = insert(Message).values(
        chat_id=chat_id,
        msg_text=text,
        sender_login=sender
    ).returning(Message)
    result = await session.execute(stmt)
    return _message_dto(result.scalars().first())

async def _member_count(session: AsyncSession, chat_id: int) -> int:
    stmt = select(func.count()).select_from(ChatList).where(ChatList.chat_id == chat_id)
    return (await session.execute(stmt)).scalar_one()

async def _reclassify(session: AsyncSession, chat_id: int, member_count: int) -> ChatType:
    chat_type = classify(member_count)
    stmt = update(Chat).where(
        Chat.chat_id == chat_id,
        Chat.chat_type != chat_type.value
    ).values(chat_type=chat_type.value)
    await session.execute(stmt)
    return chat_type


class UserGateway(UserInterface):
    __slots__ = ("_db_manager", "_logger")

    def __init__(self, db_manager: DatabaseManager, logger: logging.Logger | None = None):
        self._db_manager = db_manager
        self._logger = logger or logging.getLogger(__name__)

    async def create_user(self, login: str, password: str, phone_num: str) -> UserDTO:
        try:
            async with self._db_manager.session() as session:
                block_id = (await session.execute(
                    insert(UserList).values(list_type=RelationshipKind.BLOCK.value).returning(UserList.list_id)
                )).scalar_one()
                contact_id = (await session.execute(
                    insert(UserList).values(list_type=RelationshipKind.CONTACT.value).returning(UserList.list_id)
                )).scalar_one()

                stmt = insert(User).values(
                    login=login,
                    phone_num=phone_num,
                    password=password,
                    block_list=block_id,
                    contact_list=contact_id
                ).returning(User)
                result = await session.execute(stmt)
                return _user_dto(result.scalars().first())
        except SQLAlchemyError as e:
            self._logger.error("Error creating user in database: %s", e)
            raise StoreError("Failed to create user") from e

    async def get_user_by_login(self, login: str) -> UserDTO | None:
        try:
            async with self._db_manager.session() as session:
                stmt = select(User).where(User.login == login)
                result = await session.execute(stmt)
                user = result.scalars().first()
                return _user_dto(user) if user else None
        except SQLAlchemyError as e:
            self._logger.error("Error getting user by login in database: %s", e)
            raise StoreError("Failed to look up user") from e

    async def get_user_by_phone(self, phone_num: str) -> UserDTO | None:
        try:
            async with self._db_manager.session() as session:
                stmt = select(User).where(User.phone_num == phone_num)
                result = await session.execute(stmt)
                user = result.scalars().first()
                return _user_dto(user) if user else None
        except SQLAlchemyError as e:
            self._logger.error("Error getting user by phone in database: %s", e)
            raise StoreError("Failed to look up user") from e

    async def check_credentials(self, login: str, password: str) -> UserDTO | None:
        try:
            async with self._db_manager.session() as session:
                stmt = select(User).where(User.login == login)
                result = await session.execute(stmt)
                user = result.scalars().first()
        except SQLAlchemyError as e:
            self._logger.error("Error checking credentials in database: %s", e)
            raise StoreError("Failed to check credentials") from e

        if user is None or not secrets.compare_digest(user.password.encode(), password.encode()):
            return None
        return _user_dto(user)

    async def update_status(self, login: str, status: str) -> None:
        try:
            async with self._db_manager.session() as session:
                stmt = update(User).where(User.login == login).values(status=status)
                await session.execute(stmt)
        except SQLAlchemyError as e:
            self._logger.error("Error updating status in database: %s", e)
            raise StoreError("Failed to update status") from e

    @staticmethod
    async def _list_ids(session: AsyncSession, owner: str) -> tuple[int, int]:
        stmt = select(User.contact_list, User.block_list).where(User.login == owner)
        row = (await session.execute(stmt)).first()
        if row is None:
            raise NotFoundError(f"User {owner} does not exist")
        return row.contact_list, row.block_list

    async def get_relationships(self, owner: str, kind: RelationshipKind) -> list[UserDTO]:
        list_owner = aliased(User)
        list_column = list_owner.contact_list if kind == RelationshipKind.CONTACT else list_owner.block_list
        try:
            async with self._db_manager.session() as session:
                list_id = select(list_column).where(list_owner.login == owner).scalar_subquery()
                stmt = select(User).join(
                    UserListContains, UserListContains.list_member == User.login
                ).where(
                    UserListContains.list_id == list_id
                ).order_by(User.login)
                result = await session.execute(stmt)
                return [_user_dto(user) for user in result.scalars().all()]
        except SQLAlchemyError as e:
            self._logger.error("Error getting %s list in database: %s", kind.value, e)
            raise StoreError(f"Failed to load {kind.value} list") from e

    async def add_relationship(self, owner: str, target: str, kind: RelationshipKind) -> bool:
        try:
            async with self._db_manager.session() as session:
                contact_list, block_list = await self._list_ids(session, owner)
                if kind == RelationshipKind.CONTACT:
                    target_list, opposite_list = contact_list, block_list
                else:
                    target_list, opposite_list = block_list, contact_list

                stmt = select(UserListContains).where(
                    UserListContains.list_id == target_list,
                    UserListContains.list_member == target
                )
                if (await session.execute(stmt)).scalars().first() is not None:
                    return False

                # contact and block lists never share a member
                await session.execute(delete(UserListContains).where(
                    UserListContains.list_id == opposite_list,
                    UserListContains.list_member == target
                ))
                await session.execute(insert(UserListContains).values(
                    list_id=target_list,
                    list_member=target
                ))
                return True
        except SQLAlchemyError as e:
            self._logger.error("Error adding %s to %s list in database: %s", target, kind.value, e)
            raise StoreError(f"Failed to update {kind.value} list") from e

    async def remove_relationship(self, owner: str, target: str, kind: RelationshipKind) -> None:
        try:
            async with self._db_manager.session() as session:
                contact_list, block_list = await self._list_ids(session, owner)
                list_id = contact_list if kind == RelationshipKind.CONTACT else block_list
                await session.execute(delete(UserListContains).where(
                    UserListContains.list_id == list_id,
                    UserListContains.list_member == target
                ))
        except SQLAlchemyError as e:
            self._logger.error("Error removing %s from %s list in database: %s", target, kind.value, e)
            raise StoreError(f"Failed to update {kind.value} list") from e

    async def delete_user(self, login: str) -> None:
        try:
            async with self._db_manager.session() as session:
                contact_list, block_list = await self._list_ids(session, login)

                owned = (await session.execute(
                    select(func.count()).select_from(Chat).where(Chat.init_sender == login)
                )).scalar_one()
                if owned:
                    raise InvalidOperationError(
                        "There are chats linked to this account. It cannot be deleted"
                    )

                chat_ids = (await session.execute(
                    select(ChatList.chat_id).where(ChatList.member == login)
                )).scalars().all()
                for chat_id in chat_ids:
                    if await _member_count(session, chat_id) <= 2:
                        raise InvalidOperationError(
                            "Leaving a chat would leave it with a single member. It cannot be deleted"
                        )

                await session.execute(delete(UserListContains).where(
                    UserListContains.list_member == login
                ))
                await session.execute(delete(UserListContains).where(
                    UserListContains.list_id.in_([contact_list, block_list])
                ))
                await session.execute(delete(ChatList).where(ChatList.member == login))
                for chat_id in chat_ids:
                    await _reclassify(session, chat_id, await _member_count(session, chat_id))

                await session.execute(delete(User).where(User.login == login))
                await session.execute(delete(UserList).where(
                    UserList.list_id.in_([contact_list, block_list])
                ))
        except SQLAlchemyError as e:
            self._logger.error("Error deleting user in database: %s", e)
            raise StoreError("Failed to delete user") from e


class ChatGateway(ChatInterface):
    __slots__ = ("_db_manager", "_logger")

    def __init__(self, db_manager: DatabaseManager, logger: logging.Logger | None = None):
        self._db_manager = db_manager
        self._logger = logger or logging.getLogger(__name__)

    @staticmethod
    async def _load_chats(session: AsyncSession, chats: list[Chat]) -> list[ChatDTO]:
        if not chats:
            return []
        chat_ids = [chat.chat_id for chat in chats]

        members = defaultdict(list)
        rows = await session.execute(
            select(ChatList.chat_id, ChatList.member).where(
                ChatList.chat_id.in_(chat_ids)
            ).order_by(ChatList.chat_id, ChatList.member)
        )
        for chat_id, member in rows:
            members[chat_id].append(member)

        rows = await session.execute(
            select(Message.chat_id, func.max(Message.msg_timestamp)).where(
                Message.chat_id.in_(chat_ids)
            ).group_by(Message.chat_id)
        )
        last_activity = {chat_id: timestamp for chat_id, timestamp in rows}

        return [
            ChatDTO(
                chat_id=chat.chat_id,
                chat_type=ChatType(chat.chat_type),
                init_sender=chat.init_sender,
                members=members[chat.chat_id],
                last_activity=last_activity.get(chat.chat_id)
            ) for chat in chats
        ]

    async def get_chat(self, chat_id: int) -> ChatDTO | None:
        try:
            async with self._db_manager.session() as session:
                chat = (await session.execute(
                    select(Chat).where(Chat.chat_id == chat_id)
                )).scalars().first()
                if chat is None:
                    return None
                return (await self._load_chats(session, [chat]))[0]
        except SQLAlchemyError as e:
            self._logger.error("Error getting chat %s in database: %s", chat_id, e)
            raise StoreError("Failed to load chat") from e

    async def get_chats_for_member(self, login: str) -> list[ChatDTO]:
        try:
            async with self._db_manager.session() as session:
                stmt = select(Chat).join(
                    ChatList, ChatList.chat_id == Chat.chat_id
                ).where(ChatList.member == login)
                chats = (await session.execute(stmt)).scalars().all()
                return await self._load_chats(session, list(chats))
        except SQLAlchemyError as e:
            self._logger.error("Error getting chats for %s in database: %s", login, e)
            raise StoreError("Failed to load chats") from e

    async def get_members(self, chat_id: int) -> list[str]:
        try:
            async with self._db_manager.session() as session:
                stmt = select(ChatList.member).where(
                    ChatList.chat_id == chat_id
                ).order_by(ChatList.member)
                return list((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            self._logger.error("Error getting members of chat %s in database: %s", chat_id, e)
            raise StoreError("Failed to load chat members") from e

    async def count_owned_chats(self, login: str) -> int:
        try:
            async with self._db_manager.session() as session:
                stmt = select(func.count()).select_from(Chat).where(Chat.init_sender == login)
                return (await session.execute(stmt)).scalar_one()
        except SQLAlchemyError as e:
            self._logger.error("Error counting chats of %s in database: %s", login, e)
            raise StoreError("Failed to count chats") from e

    @staticmethod
    async def _insert_chat(session: AsyncSession, initiator: str, members: list[str], chat_type: ChatType) -> int:
        stmt = insert(Chat).values(
            chat_type=chat_type.value,
            init_sender=initiator
        ).returning(Chat.chat_id)
        chat_id = (await session.execute(stmt)).scalar_one()
        for member in members:
            await session.execute(insert(ChatList).values(chat_id=chat_id, member=member))
        return chat_id

    async def send_direct(self, initiator: str, counterpart: str, text: str) -> MessageDTO:
        try:
            async with self._db_manager.session() as session:
                first, second = aliased(ChatList), aliased(ChatList)
                shared = select(first.chat_id).join(
                    second, first.chat_id == second.chat_id
                ).where(
                    first.member == initiator,
                    second.member == counterpart
                )
                # lowest chat_id wins when several two-member chats qualify
                stmt = select(ChatList.chat_id).where(
                    ChatList.chat_id.in_(shared)
                ).group_by(ChatList.chat_id).having(
                    func.count() == 2
                ).order_by(ChatList.chat_id).limit(1)
                chat_id = (await session.execute(stmt)).scalar_one_or_none()

                if chat_id is None:
                    chat_id = await self._insert_chat(
                        session, initiator, [initiator, counterpart], ChatType.PRIVATE
                    )
                    self._logger.info("Created private chat %s for %s and %s", chat_id, initiator, counterpart)

                return await _insert_message(session, chat_id, initiator, text)
        except SQLAlchemyError as e:
            self._logger.error("Error sending direct message in database: %s", e)
            raise StoreError("Failed to send message") from e

    async def create_chat_with_message(
            self,
            initiator: str,
            members: list[str],
            chat_type: ChatType,
            text: str
    ) -> MessageDTO:
        try:
            async with self._db_manager.session() as session:
                chat_id = await self._insert_chat(session, initiator, members, chat_type)
                self._logger.info("Created %s chat %s with %d members", chat_type.value, chat_id, len(members))
                return await _insert_message(session, chat_id, initiator, text)
        except SQLAlchemyError as e:
            self._logger.error("Error creating chat in database: %s", e)
            raise StoreError("Failed to create chat") from e

    async def add_members(self, chat_id: int, logins: list[str]) -> ChatDTO:
        try:
            async with self._db_manager.session() as session:
                existing = set((await session.execute(
                    select(ChatList.member).where(ChatList.chat_id == chat_id)
                )).scalars().all())

                for login in logins:
                    if login in existing:
                        continue
                    await session.execute(insert(ChatList).values(chat_id=chat_id, member=login))
                    existing.add(login)

                await _reclassify(session, chat_id, len(existing))
                chat = (await session.execute(
                    select(Chat).where(Chat.chat_id == chat_id)
                )).scalars().first()
                return (await self._load_chats(session, [chat]))[0]
        except SQLAlchemyError as e:
            self._logger.error("Error adding members to chat %s in database: %s", chat_id, e)
            raise StoreError("Failed to add members") from e

    async def remove_members(self, chat_id: int, logins: list[str]) -> list[str]:
        try:
            async with self._db_manager.session() as session:
                members = set((await session.execute(
                    select(ChatList.member).where(ChatList.chat_id == chat_id)
                )).scalars().all())

                removed = []
                for login in logins:
                    # the batch ends as soon as the chat is down to two members
                    if len(members) <= 2:
                        break
                    if login not in members:
                        continue
                    await session.execute(delete(ChatList).where(
                        ChatList.chat_id == chat_id,
                        ChatList.member == login
                    ))
                    members.discard(login)
                    removed.append(login)

                chat_type = await _reclassify(session, chat_id, len(members))
                self._logger.info(
                    "Removed %d members from chat %s, now %s", len(removed), chat_id, chat_type.value
                )
                return removed
        except SQLAlchemyError as e:
            self._logger.error("Error removing members from chat %s in database: %s", chat_id, e)
            raise StoreError("Failed to remove members") from e

    async def delete_chat(self, chat_id: int) -> None:
        try:
            async with self._db_manager.session() as session:
                await session.execute(delete(Message).where(Message.chat_id == chat_id))
                await session.execute(delete(ChatList).where(ChatList.chat_id == chat_id))
                await session.execute(delete(Chat).where(Chat.chat_id == chat_id))
        except SQLAlchemyError as e:
            self._logger.error("Error deleting chat %s in database: %s", chat_id, e)
            raise StoreError("Failed to delete chat") from e


class MessageGateway(MessageInterface):
    __slots__ = ("_db_manager", "_logger")

    def __init__(self, db_manager: DatabaseManager, logger: logging.Logger | None = None):
        self._db_manager = db_manager
        self._logger = logger or logging.getLogger(__name__)

    async def create_message(self, chat_id: int, sender: str, text: str) -> MessageDTO:
        try:
            async with self._db_manager.session() as session:
                return await _insert_message(session, chat_id, sender, text)
        except SQLAlchemyError as e:
            self._logger.error("Error creating message in database: %s", e)
            raise StoreError("Failed to send message") from e

    async def get_messages(self, chat_id: int) -> list[MessageDTO]:
        try:
            async with self._db_manager.session() as session:
                stmt = select(Message).where(
                    Message.chat_id == chat_id
                ).order_by(Message.msg_timestamp.desc(), Message.msg_id.desc())
                result = await session.execute(stmt)
                return [_message_dto(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            self._logger.error("Error getting messages in database: %s", e)
            raise StoreError("Failed to load messages") from e

    async def get_message_by_id(self, msg_id: int) -> MessageDTO | None:
        try:
            async with self._db_manager.session() as session:
                stmt = select(Message).where(Message.msg_id == msg_id)
                msg = (await session.execute(stmt)).scalars().first()
                return _message_dto(msg) if msg else None
        except SQLAlchemyError as e:
            self._logger.error("Error getting message by ID in database: %s", e)
            raise StoreError("Failed to load message") from e

    async def update_text(self, msg_id: int, text: str) -> None:
        try:
            async with self._db_manager.session() as session:
                stmt = update(Message).where(Message.msg_id == msg_id).values(msg_text=text)
                await session.execute(stmt)
        except SQLAlchemyError as e:
            self._logger.error("Error editing message in database: %s", e)
            raise StoreError("Failed to edit message") from e

    async def delete_message(self, msg_id: int) -> None:
        try:
            async with self._db_manager.session() as session:
                await session.execute(delete(Message).where(Message.msg_id == msg_id))
        except SQLAlchemyError as e:
            self._logger.error("Error deleting message in database: %s", e)
            raise StoreError("Failed to delete message") from e
