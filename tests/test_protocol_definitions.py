#!/usr/bin/env python3
"""
Unit tests for command parsing.
"""

import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from framechat.common.protocol_definitions import (
    Verb, CommandInvocation, CommandArityError, UnknownCommandError, CommandParseError,
    parse_command, is_command, create_chat_message
)


class TestParseCommand(unittest.TestCase):
    """Test cases for parse_command."""

    def test_login(self):
        self.assertEqual(parse_command("/login alice secret"),
                         CommandInvocation(Verb.LOGIN, ("alice", "secret")))

    def test_create_with_extra_whitespace(self):
        self.assertEqual(parse_command("  /create   bob  pw "),
                         CommandInvocation(Verb.CREATE, ("bob", "pw")))

    def test_whisper_keeps_message_spacing(self):
        invocation = parse_command("/whisper bob hello  there friend")
        self.assertIs(invocation.verb, Verb.WHISPER)
        self.assertEqual(invocation.args, ("bob", "hello  there friend"))

    def test_zero_argument_verbs(self):
        for word, verb in [("/listall", Verb.LISTALL), ("/ping", Verb.PING),
                           ("/aboutme", Verb.ABOUTME), ("/stop", Verb.STOP)]:
            self.assertEqual(parse_command(word), CommandInvocation(verb, ()))

    def test_unknown_verb(self):
        with self.assertRaises(UnknownCommandError) as ctx:
            parse_command("/dance now")
        self.assertEqual(ctx.exception.word, "/dance")

    def test_bare_sigil_is_unknown(self):
        with self.assertRaises(UnknownCommandError):
            parse_command("/")

    def test_login_arity(self):
        with self.assertRaises(CommandArityError) as ctx:
            parse_command("/login alice")
        self.assertIs(ctx.exception.verb, Verb.LOGIN)
        self.assertEqual(ctx.exception.given, 1)
        self.assertEqual(ctx.exception.usage, "Usage: /login <user> <pass>")

    def test_create_too_many_args(self):
        with self.assertRaises(CommandArityError):
            parse_command("/create a b c")

    def test_whisper_without_message(self):
        with self.assertRaises(CommandArityError) as ctx:
            parse_command("/whisper bob")
        self.assertEqual(ctx.exception.given, 1)

    def test_ping_with_args(self):
        with self.assertRaises(CommandArityError):
            parse_command("/ping now")

    def test_errors_share_a_base(self):
        self.assertTrue(issubclass(UnknownCommandError, CommandParseError))
        self.assertTrue(issubclass(CommandArityError, CommandParseError))

    def test_verb_from_word(self):
        self.assertIs(Verb.from_word("/aboutme"), Verb.ABOUTME)
        self.assertEqual(Verb.WHISPER.arity, 2)


class TestHelpers(unittest.TestCase):

    def test_is_command(self):
        self.assertTrue(is_command("/ping"))
        self.assertFalse(is_command("hello /ping"))
        self.assertFalse(is_command(""))

    def test_chat_message_format(self):
        self.assertEqual(create_chat_message("Guest2", "hi"), "Guest2: hi")


if __name__ == '__main__':
    unittest.main()
