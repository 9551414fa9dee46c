import sys
import textwrap
from datetime import datetime
from typing import TextIO

from messenger.core.exceptions import InvalidInputError

CANCEL_TEXT = "BBB"


def parse_int(text: str) -> int:
    try:
        return int(text.strip())
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{text!r} is not a number") from e

def wrap_text(text: str, width: int) -> list[str]:
    return textwrap.wrap(text, width) or [""]

def format_timestamp(timestamp: datetime | None) -> str:
    if timestamp is None:
        return "-"
    return timestamp.strftime("%Y-%m-%d %H:%M:%S")


class Console:
    """
    Line based input and output. Streams default to the process stdin/stdout
    and are injectable so menus can be driven by scripted input.
    """
    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def write(self, text: str = "") -> None:
        self.stdout.write(text + "\n")
        self.stdout.flush()

    def prompt(self, text: str) -> str:
        self.stdout.write(text)
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            raise EOFError("input closed")
        return line.rstrip("\r\n")

    def read_choice(self) -> int:
        while True:
            try:
                return parse_int(self.prompt("Please make your choice: "))
            except InvalidInputError:
                self.write("Your input is invalid!")

    def read_text(self) -> str | None:
        """
        Returns None when the user types the cancel word.
        """
        text = self.prompt(f"\nEnter text(type {CANCEL_TEXT} to go back): ")
        if text == CANCEL_TEXT:
            return None
        return text

    def confirm(self, text: str) -> bool:
        return self.prompt(text).strip() == "y"
