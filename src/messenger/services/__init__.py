from .session import SessionContext
from .relationships import RelationshipManager
from .chats import ChatService, DirectUser, NewGroup, ExistingChat, MessageTarget
from .accounts import AccountService
