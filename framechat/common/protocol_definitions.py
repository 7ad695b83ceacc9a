"""
Protocol definitions for the framechat broadcast chat service.

This module defines the message structures, the command sub-protocol and the
response texts exchanged between client and server.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from framechat.common.constants import Commands, COMMAND_SIGIL, SERVER_NAME


@dataclass(frozen=True)
class InboundEnvelope:
    """A decoded message tagged with the id of the connection it came from."""
    sender_id: int
    payload: str


@dataclass(frozen=True)
class AccountRecord:
    """Persisted account structure."""
    username: str
    password: str


class Verb(Enum):
    """Command verbs and their argument counts."""
    LOGIN = (Commands.LOGIN, 2)
    CREATE = (Commands.CREATE, 2)
    WHISPER = (Commands.WHISPER, 2)
    LISTALL = (Commands.LISTALL, 0)
    PING = (Commands.PING, 0)
    ABOUTME = (Commands.ABOUTME, 0)
    STOP = (Commands.STOP, 0)

    def __init__(self, word: str, arity: int):
        self.word = word
        self.arity = arity

    @classmethod
    def from_word(cls, word: str) -> 'Verb':
        for verb in cls:
            if verb.word == word:
                return verb
        raise UnknownCommandError(word)


USAGE = {
    Verb.LOGIN: "Usage: /login <user> <pass>",
    Verb.CREATE: "Usage: /create <user> <pass>",
    Verb.WHISPER: "Usage: /whisper <user> <message>",
    Verb.LISTALL: "Usage: /listall",
    Verb.PING: "Usage: /ping",
    Verb.ABOUTME: "Usage: /aboutme",
    Verb.STOP: "Usage: /stop",
}


@dataclass(frozen=True)
class CommandInvocation:
    """A parsed command: verb plus its arguments."""
    verb: Verb
    args: Tuple[str, ...]


class CommandParseError(Exception):
    """Raised when a command line cannot be parsed."""


class UnknownCommandError(CommandParseError):
    """Raised for a verb outside the supported set."""

    def __init__(self, word: str):
        super().__init__(f"Unknown command: {word}")
        self.word = word


class CommandArityError(CommandParseError):
    """Raised when a verb gets the wrong number of arguments."""

    def __init__(self, verb: Verb, given: int):
        super().__init__(f"{verb.word} expects {verb.arity} argument(s), got {given}")
        self.verb = verb
        self.given = given

    @property
    def usage(self) -> str:
        return USAGE[self.verb]


def is_command(text: str) -> bool:
    """Return True if the text is a command rather than chat."""
    return text.startswith(COMMAND_SIGIL)


def parse_command(text: str) -> CommandInvocation:
    """
    Parse a ``/verb arg...`` line.

    /whisper keeps the message after the target name as one argument with
    its original spacing. Every other verb takes an exact number of
    whitespace-separated arguments.
    """
    tokens = text.split()
    if not tokens:
        raise UnknownCommandError(text)
    verb = Verb.from_word(tokens[0])

    if verb is Verb.WHISPER:
        parts = text.split(None, 2)
        if len(parts) < 3:
            raise CommandArityError(verb, len(parts) - 1)
        return CommandInvocation(verb, (parts[1], parts[2].strip()))

    args = tuple(tokens[1:])
    if len(args) != verb.arity:
        raise CommandArityError(verb, len(args))
    return CommandInvocation(verb, args)


def create_chat_message(username: str, text: str) -> str:
    """Create a broadcast chat line."""
    return f"{username}: {text}"


def create_whisper_message(from_username: str, text: str) -> str:
    """Create a direct message line."""
    return f"(whisper) {from_username}: {text}"


def create_server_message(text: str) -> str:
    """Create an operator announcement."""
    return f"{SERVER_NAME}: {text}"


def create_login_success_message(username: str) -> str:
    return f"Welcome back, {username}!"


def create_login_failed_message() -> str:
    return "Login failed: wrong username or password"


def create_account_created_message(username: str) -> str:
    return f"Account created. Welcome, {username}!"


def create_account_exists_message(username: str) -> str:
    return f"Account {username} already exists"


def create_invalid_credentials_message() -> str:
    return "Names and passwords may not contain ';' or '='"


def create_user_not_found_message(username: str) -> str:
    return f"User {username} not found"


def create_user_list_header_message(count: int) -> str:
    return f"Users online: {count}"


def create_pong_message() -> str:
    return "pong"


def create_about_message(username: str, uid: int) -> str:
    return f"Username: {username}, ID: {uid}"


def create_shutdown_message() -> str:
    return "Server is shutting down."


def create_error_message(text: str) -> str:
    return f"Error: {text}"
