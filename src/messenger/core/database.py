from sqlalchemy import ForeignKey, String, Text, DateTime, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from datetime import datetime, timezone
from typing import List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

class Base(DeclarativeBase):
    pass

class UserList(Base):
    __tablename__ = "user_list"

    list_id: Mapped[int] = mapped_column(primary_key=True)
    list_type: Mapped[str] = mapped_column(String(10))

    entries: Mapped[List["UserListContains"]] = relationship(back_populates="user_list")

class UserListContains(Base):
    __tablename__ = "user_list_contains"

    list_id: Mapped[int] = mapped_column(ForeignKey("user_list.list_id"), primary_key=True)
    list_member: Mapped[str] = mapped_column(ForeignKey("usr.login"), primary_key=True)

    user_list: Mapped["UserList"] = relationship(back_populates="entries")

class User(Base):
    __tablename__ = "usr"

    login: Mapped[str] = mapped_column(String(50), primary_key=True)
    phone_num: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[Optional[str]] = mapped_column(String(140), nullable=True)
    block_list: Mapped[int] = mapped_column(ForeignKey("user_list.list_id"))
    contact_list: Mapped[int] = mapped_column(ForeignKey("user_list.list_id"))

    owned_chats: Mapped[List["Chat"]] = relationship(back_populates="owner")

class Chat(Base):
    __tablename__ = "chat"

    chat_id: Mapped[int] = mapped_column(primary_key=True)
    chat_type: Mapped[str] = mapped_column(String(10))
    init_sender: Mapped[str] = mapped_column(ForeignKey("usr.login"))

    owner: Mapped["User"] = relationship(back_populates="owned_chats")
    members: Mapped[List["ChatList"]] = relationship(back_populates="chat")
    messages: Mapped[List["Message"]] = relationship(back_populates="chat")

class ChatList(Base):
    __tablename__ = "chat_list"

    chat_id: Mapped[int] = mapped_column(ForeignKey("chat.chat_id"), primary_key=True)
    member: Mapped[str] = mapped_column(ForeignKey("usr.login"), primary_key=True)

    chat: Mapped["Chat"] = relationship(back_populates="members")

    __table_args__ = (
        Index('ix_chat_list_member', 'member'),
    )

class Message(Base):
    __tablename__ = "message"

    msg_id: Mapped[int] = mapped_column(primary_key=True)
    chat_id: Mapped[int] = mapped_column(ForeignKey("chat.chat_id"))
    msg_text: Mapped[str] = mapped_column(Text)
    msg_timestamp: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    # login is kept as history after the sender deletes the account
    sender_login: Mapped[str] = mapped_column(String(50))

    chat: Mapped["Chat"] = relationship(back_populates="messages")

    __table_args__ = (
        Index('ix_message_chat_timestamp', 'chat_id', 'msg_timestamp'),
    )
