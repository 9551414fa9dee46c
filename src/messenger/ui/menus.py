import logging
from typing import Awaitable, Callable, TypeVar

from messenger.config import UIConfig
from messenger.core.dto import ChatDTO, ChatType, MessageDTO, UserDTO
from messenger.core.exceptions import MessengerError, InvalidInputError, NotFoundError
from messenger.services import (
    AccountService, ChatService, RelationshipManager, SessionContext,
    DirectUser, NewGroup, ExistingChat
)

from .console import Console, parse_int, wrap_text, format_timestamp
from .pagination import PageView, MultiSelectView

T = TypeVar("T")

BACK = "b"
MORE = "m"
FINISH = "f"


class MessengerCLI:
    """
    Interactive menus of the messenger.

    Every menu action runs behind _guard, which reports MessengerError to the
    user and returns to the calling menu. Lists are reloaded from the store
    after each action taken on one of their items.
    """
    def __init__(
            self,
            console: Console,
            accounts: AccountService,
            relationships: RelationshipManager,
            chats: ChatService,
            ui: UIConfig | None = None,
            logger: logging.Logger | None = None
    ):
        self.console = console
        self.accounts = accounts
        self.relationships = relationships
        self.chats = chats
        self.ui = ui or UIConfig()
        self.logger = logger or logging.getLogger(__name__)

    async def run(self) -> None:
        self.greeting()
        try:
            while True:
                self.console.write("MAIN MENU")
                self.console.write("---------")
                self.console.write("1. Create user")
                self.console.write("2. Log in")
                self.console.write("9. < EXIT")
                choice = self.console.read_choice()
                if choice == 1:
                    await self._guard(self.create_user())
                elif choice == 2:
                    session = await self._guard(self.log_in())
                    if session is not None:
                        await self.user_menu(session)
                elif choice == 9:
                    break
                else:
                    self.console.write("Unrecognized choice!")
        except EOFError:
            self.logger.debug("Input closed, leaving")
        self.console.write("Disconnecting from database...")

    def greeting(self) -> None:
        self.console.write(
            "\n\n*******************************************************\n"
            "              User Interface                           \n"
            "*******************************************************\n"
        )

    async def _guard(self, action: Awaitable[T]) -> T | None:
        try:
            return await action
        except MessengerError as e:
            self.logger.debug("Operation failed: %s", e)
            self.console.write(str(e))
            return None

    async def create_user(self) -> None:
        login = self.console.prompt("\tEnter user login: ")
        while await self.accounts.login_taken(login):
            self.console.write("\tThis login is already existed, please try another.\n")
            login = self.console.prompt("\tEnter user login: ")

        password = self.console.prompt("\tEnter user password: ")

        phone = self.console.prompt("\tEnter user phone: ")
        while await self.accounts.phone_taken(phone):
            self.console.write("\tThis phone number is already existed, please try another.\n")
            phone = self.console.prompt("\tEnter user phone: ")

        await self.accounts.register(login, password, phone)
        self.console.write("User successfully created!")

    async def log_in(self) -> SessionContext:
        login = self.console.prompt("\tEnter user login: ")
        password = self.console.prompt("\tEnter user password: ")
        return await self.accounts.log_in(login, password)

    async def user_menu(self, session: SessionContext) -> None:
        while session.active:
            self.console.write("MAIN MENU")
            self.console.write("---------")
            self.console.write("1. Add to contact list")
            self.console.write("2. Browse contact list")
            self.console.write("3. Add to block list")
            self.console.write("4. Browse block list")
            self.console.write("5. Write a new message")
            self.console.write("6. Current chats")
            self.console.write("7. Update status")
            self.console.write("8. Delete account")
            self.console.write(".........................")
            self.console.write("9. Log out")
            choice = self.console.read_choice()
            if choice == 1:
                await self._guard(self.add_to_contact(session))
            elif choice == 2:
                await self._guard(self.list_contacts(session))
            elif choice == 3:
                await self._guard(self.add_to_block(session))
            elif choice == 4:
                await self._guard(self.list_blocks(session))
            elif choice == 5:
                await self._guard(self.new_message(session))
            elif choice == 6:
                await self._guard(self.list_chats(session))
            elif choice == 7:
                await self._guard(self.update_status(session))
            elif choice == 8:
                await self._guard(self.delete_account(session))
            elif choice == 9:
                session.end()
            else:
                self.console.write("Unrecognized choice!")

    # relationships

    async def _ask_user_by_phone(self, session: SessionContext) -> UserDTO | None:
        while True:
            phone = self.console.prompt(f"\tEnter the user's phone number({BACK} to go back): ")
            if phone == BACK:
                return None
            try:
                user = await self.relationships.find_user_by_phone(phone)
            except NotFoundError:
                self.console.write("\tUser not exists, please try another.\n")
                continue
            if user.login == session.login:
                self.console.write("\tThat is your own number, please try another.\n")
                continue
            return user

    async def add_to_contact(self, session: SessionContext) -> None:
        while True:
            user = await self._ask_user_by_phone(session)
            if user is None:
                return
            if user.login in session.contacts:
                self.console.write("\tUser is in your contact list!\n")
                continue
            await self._add_contact(session, user.login)
            return

    async def add_to_block(self, session: SessionContext) -> None:
        user = await self._ask_user_by_phone(session)
        if user is not None:
            await self._add_block(session, user.login)

    async def _add_contact(self, session: SessionContext, login: str) -> None:
        if await self.relationships.add_contact(session, login):
            self.console.write("User added to contact list successfully!\n")
        else:
            self.console.write("\tUser is in your contact list!")

    async def _add_block(self, session: SessionContext, login: str) -> None:
        if await self.relationships.add_block(session, login):
            self.console.write("User added to block list successfully!")
        else:
            self.console.write("\tUser already in block list.")

    async def list_contacts(self, session: SessionContext) -> None:
        async def load() -> list[UserDTO]:
            await self.relationships.refresh(session)
            return list(session.contacts.values())

        async def on_select(contact: UserDTO) -> None:
            self.console.write(contact.login + ":")
            self.console.write("1. Send message")
            self.console.write("2. Add to block list")
            self.console.write("3. Delete contact")
            choice = self.console.read_choice()
            if choice == 1:
                await self._send(session, DirectUser(contact.login))
            elif choice == 2:
                await self._add_block(session, contact.login)
            elif choice == 3:
                await self.relationships.remove_contact(session, contact.login)
                self.console.write("Contact deleted successfully!")
            else:
                self.console.write("Unrecognized choice!")

        await self._browse(
            load,
            header=lambda: self.console.write(f"\n{'Contact':<23}Status"),
            row=lambda index, user: f"{index}. {user.login:<20}{user.status or ''}",
            noun="contact",
            on_select=on_select,
        )

    async def list_blocks(self, session: SessionContext) -> None:
        async def load() -> list[UserDTO]:
            await self.relationships.refresh(session)
            return list(session.blocked.values())

        async def on_select(blocked: UserDTO) -> None:
            self.console.write(blocked.login + ":")
            self.console.write("1. Add to contact list")
            self.console.write("2. Delete block")
            choice = self.console.read_choice()
            if choice == 1:
                await self._add_contact(session, blocked.login)
            elif choice == 2:
                await self.relationships.remove_block(session, blocked.login)
                self.console.write("Block deleted successfully!")
            else:
                self.console.write("Unrecognized choice!")

        await self._browse(
            load,
            header=lambda: self.console.write("\nBlocks"),
            row=lambda index, user: f"{index}. {user.login}",
            noun="block",
            on_select=on_select,
        )

    # browsing

    async def _browse(
            self,
            load: Callable[[], Awaitable[list[T]]],
            header: Callable[[], None],
            row: Callable[[int, T], str],
            noun: str,
            on_select: Callable[[T], Awaitable[None]]
    ) -> None:
        view = PageView(await load(), self.ui.page_size)
        redraw = True
        while True:
            if not view.items:
                self.console.write("\nEmpty")
                return
            if redraw:
                header()
                for index, item in view.render():
                    self.console.write(row(index, item))
            redraw = True

            choice = self.console.prompt(f"\nChoose a {noun}({BACK} to go back, {MORE} to view more): ")
            if choice == BACK:
                if not view.back():
                    return
            elif choice == MORE:
                if not view.next():
                    self.console.write(f"No more {noun}s.")
                    redraw = False
            else:
                try:
                    index = parse_int(choice)
                except InvalidInputError:
                    self.console.write("Unrecognized choice!")
                    redraw = False
                    continue
                item = view.select(index)
                if item is None:
                    redraw = False
                    continue
                await self._guard(on_select(item))
                view.reload(await load())

    async def choose_users(self, logins: list[str]) -> list[str] | None:
        """
        Multi-select over logins. Returns None if the user backs out of the
        first page.
        """
        view = MultiSelectView(logins, self.ui.page_size)
        redraw = True
        while True:
            if redraw:
                self.console.write("")
                for index, login in view.render():
                    self.console.write(f"{index}. {login}")
            redraw = True

            choice = self.console.prompt(
                f"\nChoose a user({BACK} to go back, {MORE} to view more, {FINISH} to finish choosing): "
            )
            if choice == BACK:
                if not view.back():
                    return None
            elif choice == MORE:
                if not view.next():
                    self.console.write("No more users.")
                    redraw = False
            elif choice == FINISH:
                return view.finish()
            else:
                try:
                    index = parse_int(choice)
                except InvalidInputError:
                    self.console.write("Unrecognized choice!")
                    redraw = False
                    continue
                if view.select(index) is None:
                    redraw = False

    # messages

    async def _send(self, session: SessionContext, target) -> None:
        text = self.console.read_text()
        if text is None:
            return
        await self.chats.send_message(session, target, text)
        self.console.write("Message sent!")

    async def new_message(self, session: SessionContext) -> None:
        self.console.write("1. Enter user's login")
        self.console.write("2. Choose from contact list")
        self.console.write("3. Back")
        choice = self.console.read_choice()
        if choice == 1:
            while True:
                login = self.console.prompt(f"\tEnter the login name of user({BACK} to go back): ")
                if login == BACK:
                    return
                try:
                    user = await self.relationships.find_user_by_login(login)
                except NotFoundError:
                    self.console.write("\tUser not exist!")
                    continue
                break
            await self._send(session, DirectUser(user.login))
        elif choice == 2:
            chosen = await self.choose_users(list(session.contacts))
            if chosen:
                await self._send(session, NewGroup(tuple(chosen)))
        elif choice != 3:
            self.console.write("Unrecognized choice!")

    async def list_chats(self, session: SessionContext) -> None:
        async def load() -> list[ChatDTO]:
            return await self.chats.refresh(session)

        async def on_select(chat: ChatDTO) -> None:
            await self.chat_menu(session, chat)

        await self._browse(
            load,
            header=lambda: self.console.write(f"\n{'Chat':<23}{'Last updated':<23}Type"),
            row=lambda index, chat: (
                f"{index}. {chat.display_name_for(session.login):<20}"
                f"{format_timestamp(chat.last_activity):<23}{chat.chat_type.value}"
            ),
            noun="chat",
            on_select=on_select,
        )

    async def chat_menu(self, session: SessionContext, chat: ChatDTO) -> None:
        self.console.write("\n" + chat.display_name_for(session.login) + ":")
        options = [("Read chat messages", self.list_messages), ("Browse chat members", self.list_members)]
        if chat.is_owner(session.login):
            options.append(("Delete chat", self.delete_chat))
        for number, (label, _) in enumerate(options, start=1):
            self.console.write(f"{number}. {label}")
        self.console.write(f"{len(options) + 1}. Back")

        choice = self.console.read_choice()
        if 1 <= choice <= len(options):
            await options[choice - 1][1](session, chat)

    async def list_messages(self, session: SessionContext, chat: ChatDTO) -> None:
        view = PageView(await self.chats.list_messages(chat.chat_id), self.ui.page_size)
        while True:
            self.console.write("")
            if not view.items:
                self.console.write("Empty")
            for index, message in view.render():
                self.console.write(f"{index}. {message.sender:<20}{format_timestamp(message.timestamp)}:")
                for line in wrap_text(message.text, self.ui.wrap_width):
                    self.console.write("   " + line)

            self.console.write("\n1. Create new message")
            self.console.write("2. Edit a message")
            choice = self.console.prompt(f"Please make a choice({BACK} to go back, {MORE} to view more): ")
            if choice == BACK:
                if not view.back():
                    return
                continue
            elif choice == MORE:
                if not view.next():
                    self.console.write("No more messages.")
                continue
            elif choice == "1":
                await self._guard(self._send(session, ExistingChat(chat.chat_id)))
            elif choice == "2":
                picked = self.console.prompt(f"Choose a message({BACK} to go back): ")
                if picked == BACK:
                    continue
                try:
                    message = view.select(parse_int(picked))
                except InvalidInputError:
                    self.console.write("Unrecognized choice!")
                    continue
                if message is not None:
                    await self._guard(self.message_menu(session, message))
            else:
                self.console.write("Unrecognized choice!")
                continue
            view.reload(await self.chats.list_messages(chat.chat_id))

    async def message_menu(self, session: SessionContext, message: MessageDTO) -> None:
        self.console.write("\n".join(wrap_text(message.text, 50)) + ":")
        if message.sender != session.login:
            self.console.write("1. Back")
            self.console.read_choice()
            return

        self.console.write("1. Edit message")
        self.console.write("2. Delete message")
        self.console.write("3. Back")
        choice = self.console.read_choice()
        if choice == 1:
            text = self.console.read_text()
            if text is not None:
                await self.chats.edit_message(session, message.msg_id, text)
                self.console.write("Message edited!")
        elif choice == 2:
            if self.console.confirm("Are you sure want to delete this message?(y/n): "):
                await self.chats.delete_message(session, message.msg_id)
                self.console.write("Message deleted!")

    async def list_members(self, session: SessionContext, chat: ChatDTO) -> None:
        while True:
            chat = await self.chats.get_chat(chat.chat_id)
            self.console.write("\n " + chat.display_name_for(session.login) + ":")
            for index, member in enumerate(chat.members):
                self.console.write(f"{index}. {member}")

            # only the owner may change membership
            if not chat.is_owner(session.login):
                return

            self.console.write("\n1. Add new members")
            self.console.write("2. Delete members")
            self.console.write("3. Back")
            choice = self.console.read_choice()
            if choice == 3:
                return
            elif choice == 1:
                candidates = [login for login in session.contacts if login not in chat.members]
                chosen = await self.choose_users(candidates)
                if chosen:
                    await self.chats.add_members(session, chat.chat_id, chosen)
                    self.console.write("Members added successfully!")
                return
            elif choice == 2:
                if chat.chat_type == ChatType.PRIVATE:
                    self.console.write("Can't delete members from private chat!")
                    return
                candidates = [login for login in chat.members if login != chat.init_sender]
                chosen = await self.choose_users(candidates)
                if chosen:
                    removed = await self.chats.remove_members(session, chat.chat_id, chosen)
                    if len(removed) < len(chosen):
                        self.console.write(f"Chat is down to two members, {len(removed)} removed.")
                    else:
                        self.console.write("Members deleted successfully!")
                return
            else:
                self.console.write("Unrecognized choice!")

    async def delete_chat(self, session: SessionContext, chat: ChatDTO) -> None:
        if self.console.confirm("Are you sure to delete this chat? (y/n): "):
            await self.chats.delete_chat(session, chat.chat_id)
            self.console.write("Chat deleted successfully!")

    # account

    async def update_status(self, session: SessionContext) -> None:
        status = self.console.prompt("\tEnter your new status: ")
        await self.accounts.update_status(session, status)
        self.console.write("Status updated!")

    async def delete_account(self, session: SessionContext) -> None:
        if not self.console.confirm("\tDo you want to delete your account? (type y to confirm) "):
            return
        await self.accounts.delete_account(session)
        self.console.write("\tUser deleted successfully!\nBye!")
