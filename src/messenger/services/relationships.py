import logging

from messenger.core.dto import UserDTO, RelationshipKind
from messenger.core.exceptions import NotFoundError, InvalidOperationError
from messenger.core.interfaces import UserInterface

from .session import SessionContext


class RelationshipManager:
    """
    Contact and block lists of the session user.

    A login is on at most one of the two lists: putting it on one list
    takes it off the other in the same transaction.
    """
    def __init__(self, user_gateway: UserInterface, logger: logging.Logger | None = None):
        self.user_gateway = user_gateway
        self.logger = logger or logging.getLogger(__name__)

    async def refresh(self, session: SessionContext) -> None:
        contacts = await self.user_gateway.get_relationships(session.login, RelationshipKind.CONTACT)
        blocked = await self.user_gateway.get_relationships(session.login, RelationshipKind.BLOCK)
        session.set_relationships(contacts, blocked)

    async def find_user_by_phone(self, phone_num: str) -> UserDTO:
        user = await self.user_gateway.get_user_by_phone(phone_num)
        if user is None:
            raise NotFoundError("User not exists")
        return user

    async def find_user_by_login(self, login: str) -> UserDTO:
        user = await self.user_gateway.get_user_by_login(login)
        if user is None:
            raise NotFoundError("User not exists")
        return user

    async def add_contact(self, session: SessionContext, target: str) -> bool:
        """
        Returns False when target already is a contact.
        """
        return await self._add(session, target, RelationshipKind.CONTACT)

    async def add_block(self, session: SessionContext, target: str) -> bool:
        """
        Returns False when target already is blocked.
        """
        return await self._add(session, target, RelationshipKind.BLOCK)

    async def remove_contact(self, session: SessionContext, target: str) -> None:
        await self.user_gateway.remove_relationship(session.login, target, RelationshipKind.CONTACT)
        await self.refresh(session)

    async def remove_block(self, session: SessionContext, target: str) -> None:
        await self.user_gateway.remove_relationship(session.login, target, RelationshipKind.BLOCK)
        await self.refresh(session)

    async def _add(self, session: SessionContext, target: str, kind: RelationshipKind) -> bool:
        if target == session.login:
            raise InvalidOperationError(f"Cannot add yourself to your {kind.value} list")
        await self.find_user_by_login(target)

        added = await self.user_gateway.add_relationship(session.login, target, kind)
        await self.refresh(session)

        if added:
            self.logger.info("%s added %s to %s list", session.login, target, kind.value)
        return added
