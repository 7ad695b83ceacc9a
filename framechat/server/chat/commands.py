"""
Command dispatcher module.

Interprets ``/verb arg...`` messages on behalf of the router. The only
state it touches is the invoking user's registry entry and the account
store, both owned by the router.
"""

from framechat.common.constants import OPERATOR_ID
from framechat.common.protocol_definitions import (
    Verb, CommandInvocation, CommandArityError, UnknownCommandError, parse_command, is_command,
    create_login_success_message, create_login_failed_message, create_account_created_message,
    create_account_exists_message, create_invalid_credentials_message, create_whisper_message,
    create_user_not_found_message, create_user_list_header_message, create_pong_message,
    create_about_message, create_server_message, create_error_message
)
from framechat.server.accounts.account_store import LookupResult, is_storable
from framechat.server.utils.logger import logger


class CommandDispatcher:
    """Server-side command handling."""

    def __init__(self, router, accounts):
        self.router = router
        self.accounts = accounts
        self.handlers = {
            Verb.LOGIN: self.handle_login,
            Verb.CREATE: self.handle_create,
            Verb.WHISPER: self.handle_whisper,
            Verb.LISTALL: self.handle_listall,
            Verb.PING: self.handle_ping,
            Verb.ABOUTME: self.handle_aboutme,
        }

    async def dispatch(self, user, text: str):
        """Parse and run a command sent by a connected user."""
        try:
            invocation = parse_command(text)
        except UnknownCommandError:
            logger.log_unknown_command(user.uid, text)
            return
        except CommandArityError as e:
            logger.debug(f"Bad arguments from uid={user.uid}: {e}")
            await self.router.send(user, create_error_message(e.usage))
            return

        handler = self.handlers.get(invocation.verb)
        if handler is None:
            logger.warning(f"uid={user.uid} tried operator command {invocation.verb.word}")
            return
        await handler(user, invocation)

    async def handle_login(self, user, invocation: CommandInvocation):
        """Rename the user if the credentials match a stored account."""
        username, password = invocation.args
        result = self.accounts.lookup(username, password)
        if result is LookupResult.CORRECT_PASSWORD:
            user.username = username
            logger.log_login(username, user.uid, True)
            await self.router.send(user, create_login_success_message(username))
        else:
            logger.log_login(username, user.uid, False)
            await self.router.send(user, create_login_failed_message())

    async def handle_create(self, user, invocation: CommandInvocation):
        """Create an account if the name is free, then log the user in."""
        username, password = invocation.args
        if not (is_storable(username) and is_storable(password)):
            await self.router.send(user, create_error_message(create_invalid_credentials_message()))
            return

        if self.accounts.lookup(username, password) is not LookupResult.ABSENT:
            await self.router.send(user, create_account_exists_message(username))
            return

        self.accounts.insert(username, password)
        user.username = username
        logger.log_account_created(username, user.uid)
        await self.router.send(user, create_account_created_message(username))

    async def handle_whisper(self, user, invocation: CommandInvocation):
        """Send a message to one user by display name."""
        target_name, text = invocation.args
        target = self.router.find_user(target_name)
        if target is None:
            await self.router.send(user, create_user_not_found_message(target_name))
            return
        logger.log_whisper(user.username, user.uid, target.username, target.uid)
        await self.router.send(target, create_whisper_message(user.username, text))

    async def handle_listall(self, user, invocation: CommandInvocation):
        """Send a header frame and then one frame per connected user."""
        names = [u.username for u in self.router.users]
        if not await self.router.send(user, create_user_list_header_message(len(names))):
            return
        for name in names:
            if not await self.router.send(user, name):
                return

    async def handle_ping(self, user, invocation: CommandInvocation):
        await self.router.send(user, create_pong_message())

    async def handle_aboutme(self, user, invocation: CommandInvocation):
        await self.router.send(user, create_about_message(user.username, user.uid))

    async def handle_operator(self, text: str):
        """Run a line typed by the server operator."""
        if not text:
            return
        if not is_command(text):
            await self.router.broadcast(create_server_message(text))
            return

        try:
            invocation = parse_command(text)
        except UnknownCommandError:
            logger.log_unknown_command(OPERATOR_ID, text)
            return
        except CommandArityError as e:
            logger.warning(e.usage)
            return

        if invocation.verb is Verb.STOP:
            await self.router.shutdown()
        elif invocation.verb is Verb.LISTALL:
            names = ', '.join(f"{u.username} (uid={u.uid})" for u in self.router.users)
            logger.info(f"Users online: {len(self.router.users)} {names}")
        else:
            logger.warning(f"{invocation.verb.word} is not available to the operator")
