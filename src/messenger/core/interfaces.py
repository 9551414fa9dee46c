from abc import ABC, abstractmethod

from .dto import UserDTO, ChatDTO, ChatType, MessageDTO, RelationshipKind

class UserInterface(ABC):
    @abstractmethod
    async def create_user(
            self,
            login: str,
            password: str,
            phone_num: str
    ) -> UserDTO:
        """
        Creates a user together with its empty block and contact lists.
        :param login:
        :param password:
        :param phone_num:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_user_by_login(
            self,
            login: str
    ) -> UserDTO | None:
        """
        Get user by USR.login
        :param login:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_user_by_phone(
            self,
            phone_num: str
    ) -> UserDTO | None:
        """
        Get user by USR.phone_num
        :param phone_num:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def check_credentials(
            self,
            login: str,
            password: str
    ) -> UserDTO | None:
        """
        Returns the user if login and password match.
        :param login:
        :param password:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def update_status(
            self,
            login: str,
            status: str
    ) -> None:
        """
        Updates the free-text status of a user.
        :param login:
        :param status:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_relationships(
            self,
            owner: str,
            kind: RelationshipKind
    ) -> list[UserDTO]:
        """
        Gets the users on the owner's contact or block list.
        :param owner:
        :param kind:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def add_relationship(
            self,
            owner: str,
            target: str,
            kind: RelationshipKind
    ) -> bool:
        """
        Puts target on the owner's list of the given kind, evicting it from the
        opposite list in the same transaction.
        :param owner:
        :param target:
        :param kind:
        :return: False if target was already on that list
        """
        raise NotImplementedError()

    @abstractmethod
    async def remove_relationship(
            self,
            owner: str,
            target: str,
            kind: RelationshipKind
    ) -> None:
        """
        Removes target from the owner's list of the given kind.
        :param owner:
        :param target:
        :param kind:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def delete_user(
            self,
            login: str
    ) -> None:
        """
        Deletes a user who owns no chats and whose chats all keep at least
        two members without them.
        :param login:
        :return:
        """
        raise NotImplementedError()


class ChatInterface(ABC):
    @abstractmethod
    async def get_chat(
            self,
            chat_id: int
    ) -> ChatDTO | None:
        """
        Gets a chat with its members and last activity.
        :param chat_id:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_chats_for_member(
            self,
            login: str
    ) -> list[ChatDTO]:
        """
        Gets every chat the user is a member of.
        :param login:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_members(
            self,
            chat_id: int
    ) -> list[str]:
        """
        Gets the logins of the chat members.
        :param chat_id:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def count_owned_chats(
            self,
            login: str
    ) -> int:
        """
        Counts the chats whose init_sender is the user.
        :param login:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def send_direct(
            self,
            initiator: str,
            counterpart: str,
            text: str
    ) -> MessageDTO:
        """
        Appends a message to the two-member chat of initiator and counterpart,
        creating the chat first if there is none.
        :param initiator:
        :param counterpart:
        :param text:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def create_chat_with_message(
            self,
            initiator: str,
            members: list[str],
            chat_type: ChatType,
            text: str
    ) -> MessageDTO:
        """
        Creates a chat, its memberships and its first message atomically.
        :param initiator:
        :param members:
        :param chat_type:
        :param text:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def add_members(
            self,
            chat_id: int,
            logins: list[str]
    ) -> ChatDTO:
        """
        Inserts memberships and re-evaluates the chat type.
        :param chat_id:
        :param logins:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def remove_members(
            self,
            chat_id: int,
            logins: list[str]
    ) -> list[str]:
        """
        Removes memberships in order, stopping once two members remain.
        :param chat_id:
        :param logins:
        :return: logins actually removed
        """
        raise NotImplementedError()

    @abstractmethod
    async def delete_chat(
            self,
            chat_id: int
    ) -> None:
        """
        Deletes the chat with its memberships and messages.
        :param chat_id:
        :return:
        """
        raise NotImplementedError()


class MessageInterface(ABC):
    @abstractmethod
    async def create_message(
            self,
            chat_id: int,
            sender: str,
            text: str
    ) -> MessageDTO:
        """
        Creates a new message; the timestamp is assigned on insert.
        :param chat_id:
        :param sender:
        :param text:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_messages(
            self,
            chat_id: int
    ) -> list[MessageDTO]:
        """
        Gets the messages of a chat, newest first.
        :param chat_id:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_message_by_id(
            self,
            msg_id: int
    ) -> MessageDTO | None:
        """
        Gets a message by ID.
        :param msg_id:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def update_text(
            self,
            msg_id: int,
            text: str
    ) -> None:
        """
        Replaces the text of a message.
        :param msg_id:
        :param text:
        :return:
        """
        raise NotImplementedError()

    @abstractmethod
    async def delete_message(
            self,
            msg_id: int
    ) -> None:
        """
        Deletes a message.
        :param msg_id:
        :return:
        """
        raise NotImplementedError()
