from pydantic import BaseModel, constr
from datetime import datetime
from enum import Enum

class ChatType(str, Enum):
    PRIVATE = "private"
    GROUP = "group"

class RelationshipKind(str, Enum):
    CONTACT = "contact"
    BLOCK = "block"

def classify(member_count: int) -> ChatType:
    """
    A chat is private exactly when it has two members.
    :param member_count:
    :return:
    """
    return ChatType.PRIVATE if member_count == 2 else ChatType.GROUP

class UserDTO(BaseModel):
    login: constr(min_length=1, max_length=50)
    phone_num: str
    status: str | None = None

class ChatDTO(BaseModel):
    chat_id: int
    chat_type: ChatType
    init_sender: str
    members: list[str] = []
    last_activity: datetime | None = None

    @property
    def member_count(self) -> int:
        return len(self.members)

    def is_owner(self, login: str) -> bool:
        return self.init_sender == login

    def display_name_for(self, viewer: str) -> str:
        if self.chat_type == ChatType.PRIVATE:
            others = [member for member in self.members if member != viewer]
            if others:
                return others[0]
        return f"Group Chat({self.member_count})"

class MessageDTO(BaseModel):
    msg_id: int
    chat_id: int
    text: str
    timestamp: datetime
    sender: str
