from dataclasses import dataclass, field
from datetime import datetime

from messenger.core.dto import UserDTO, ChatDTO


@dataclass
class SessionContext:
    """
    State of one logged-in user.

    The store is authoritative: relationship and chat views are rebuilt
    wholesale from it after every mutation and never edited in place.

    Attributes:
        user: Authenticated user
        contacts: Contact list keyed by login
        blocked: Block list keyed by login
        chats: Chats the user belongs to, keyed by chat_id
        chat_order: chat_ids ordered by latest activity, newest first
    """
    user: UserDTO
    contacts: dict[str, UserDTO] = field(default_factory=dict)
    blocked: dict[str, UserDTO] = field(default_factory=dict)
    chats: dict[int, ChatDTO] = field(default_factory=dict)
    chat_order: list[int] = field(default_factory=list)
    active: bool = True

    @property
    def login(self) -> str:
        return self.user.login

    def set_relationships(self, contacts: list[UserDTO], blocked: list[UserDTO]) -> None:
        self.contacts = {user.login: user for user in contacts}
        self.blocked = {user.login: user for user in blocked}

    def set_chats(self, chats: list[ChatDTO]) -> None:
        ordered = sorted(chats, key=_chat_sort_key)
        self.chats = {chat.chat_id: chat for chat in ordered}
        self.chat_order = [chat.chat_id for chat in ordered]

    def ordered_chats(self) -> list[ChatDTO]:
        return [self.chats[chat_id] for chat_id in self.chat_order]

    def end(self) -> None:
        self.active = False


def _chat_sort_key(chat: ChatDTO) -> tuple:
    # newest activity first, chats without messages last
    if chat.last_activity is None:
        return (1, 0.0, -chat.chat_id)
    return (0, -_epoch(chat.last_activity), -chat.chat_id)

def _epoch(timestamp: datetime) -> float:
    return (timestamp - datetime(1970, 1, 1)).total_seconds()
