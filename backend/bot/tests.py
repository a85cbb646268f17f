import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from redis.exceptions import RedisError
from telegram import Bot, User as TGUser
from telegram.error import BadRequest, Forbidden
from telegram.ext import CallbackQueryHandler, CommandHandler

from bot import consts, redis
from bot.core import command_help, command_start, handle_error, handle_reaction_callback
from bot.core.utils import get_bot_commands, get_commands_help
from bot.dispatcher import (
    collect_handlers,
    extract_handlers,
    setup_application,
    setup_commands,
    sort_by_type,
)
from bot import group_reaction
from bot.group_reaction import command_react, command_react_with, command_show
from bot.group_reaction.commands import format_summary, get_command_name
from bot.management.commands.setwebhook import update_webhook
from bot.markup import format_count, gen_buttons, make_reactions_keyboard
from bot.utils import get_display_names, is_reaction_message, read_state, try_delete
from bot.wrapper import HandlerWrapper, command
from core.codec import MARKER
from core.reactions import REACTIONS, Reaction
from core.state import ReactionState
from tests.fixtures import render_html

UP = Reaction.UP
HEART = Reaction.HEART


def sent_kwargs():
    return Bot.send_message.call_args.kwargs


def edited_kwargs():
    return Bot.edit_message_text.call_args.kwargs


def answered_kwargs():
    return Bot.answer_callback_query.call_args.kwargs


def flat_buttons(markup):
    return [button for row in markup.inline_keyboard for button in row]


class TestMarkup:
    def test_format_count(self):
        assert format_count(0) == '0'
        assert format_count(999) == '999'
        assert format_count(20_000) == '20k'
        assert format_count(20_100) == '20.1k'

    def test_gen_buttons_blank(self):
        buttons = gen_buttons()
        assert [b.text for b in buttons] == [r.glyph for r in REACTIONS]
        assert [b.callback_data for b in buttons] == [r.identifier for r in REACTIONS]

    def test_gen_buttons_counts(self):
        state = ReactionState({UP: {1, 2, 3}, HEART: {1}})
        buttons = gen_buttons(state)
        assert buttons[0].text == f'{HEART.glyph} 1'
        assert buttons[REACTIONS.index(UP)].text == f'{UP.glyph} 3'
        assert buttons[1].text == Reaction.LAUGH.glyph

    def test_make_reactions_keyboard(self):
        kb = make_reactions_keyboard().inline_keyboard
        assert len(kb) == 1
        assert len(kb[0]) == len(REACTIONS)

    def test_make_reactions_keyboard_columns(self):
        kb = make_reactions_keyboard(max_cols=4).inline_keyboard
        assert [len(row) for row in kb] == [4, 2]


@pytest.mark.usefixtures(
    'create_bot',
    'create_tg_user',
    'create_tg_message',
    'create_reaction_message',
    'mock_bot',
)
class TestUtils:
    async def test_try_delete(self):
        msg = self.create_tg_message()
        await try_delete(msg)
        Bot.delete_message.assert_awaited_once()
        assert Bot.delete_message.call_args.kwargs['message_id'] == msg.message_id

    @pytest.mark.parametrize('error', [
        Forbidden('Forbidden: bot was kicked from the supergroup chat'),
        BadRequest("Message can't be deleted"),
        BadRequest('Not enough rights to delete a message'),
    ])
    async def test_try_delete_not_allowed(self, error):
        Bot.delete_message.side_effect = error
        await try_delete(self.create_tg_message())

    async def test_try_delete_other_error(self):
        Bot.delete_message.side_effect = BadRequest('Chat not found')
        with pytest.raises(BadRequest):
            await try_delete(self.create_tg_message())

    def test_is_reaction_message(self):
        bot = self.create_bot()
        assert is_reaction_message(bot, self.create_reaction_message(bot=bot))
        assert is_reaction_message(bot, self.create_reaction_message({UP: {1}}, bot=bot))

    def test_is_reaction_message_foreign(self):
        bot = self.create_bot()
        assert not is_reaction_message(bot, None)
        assert not is_reaction_message(bot, self.create_tg_message(bot=bot, text=MARKER))
        other_bot = self.create_tg_user(is_bot=True)
        assert not is_reaction_message(bot, self.create_tg_message(bot=bot, user=other_bot, text=MARKER))
        bot_user = bot.bot
        assert not is_reaction_message(bot, self.create_tg_message(bot=bot, user=bot_user, text='hi'))

    def test_read_state(self):
        state = ReactionState({UP: {3}, HEART: {1, 2}})
        msg = self.create_reaction_message(state)
        assert read_state(msg) == state
        assert read_state(self.create_tg_message(text='just text')) is None

    async def test_get_display_names(self):
        def get_chat_member(chat_id, user_id):
            if user_id == 3:
                raise BadRequest('User not found')
            return Mock(user=TGUser(user_id, f'user{user_id}', False))

        Bot.get_chat_member.side_effect = get_chat_member
        names = await get_display_names(self.create_bot(), -1, [2, 1, 3, 2])
        assert names == {2: 'user2', 1: 'user1', 3: consts.UNKNOWN_USER}
        assert Bot.get_chat_member.await_count == 3


class TestSummary:
    def test_get_command_name(self):
        assert get_command_name(Mock(text='/love@reaxnbot'), '') == 'love'
        assert get_command_name(Mock(text='/UP 1 2'), '') == 'up'
        assert get_command_name(Mock(text='hello'), 'r') == 'r'

    def test_format_summary(self):
        state = ReactionState({UP: {3}, HEART: {2, 1}})
        names = {1: 'B', 2: 'C', 3: 'D'}
        assert format_summary(state, names) == '\n'.join([
            f'{HEART.glyph}{consts.SUMMARY_SEPARATOR}B, C',
            f'{UP.glyph}{consts.SUMMARY_SEPARATOR}D',
        ])


@pytest.mark.usefixtures(
    'create_bot',
    'create_tg_user',
    'create_tg_chat',
    'create_tg_message',
    'create_update',
    'create_context',
    'mock_bot',
)
class TestReactCommand:
    async def test_react(self):
        bot = self.create_bot()
        target = self.create_tg_message(bot=bot, text='hello')
        update = self.create_update(bot=bot, text='/r', reply_to_message=target)

        await command_react(update, self.create_context(bot=bot))

        Bot.delete_message.assert_awaited_once()
        assert Bot.delete_message.call_args.kwargs['message_id'] == update.effective_message.message_id
        Bot.send_message.assert_awaited_once()
        kwargs = sent_kwargs()
        assert kwargs['chat_id'] == target.chat_id
        assert kwargs['reply_parameters'].message_id == target.message_id
        assert kwargs['text'] == MARKER
        assert kwargs['disable_notification']
        buttons = flat_buttons(kwargs['reply_markup'])
        assert [b.callback_data for b in buttons] == [r.identifier for r in REACTIONS]
        assert [b.text for b in buttons] == [r.glyph for r in REACTIONS]

    async def test_react_delete_not_allowed(self):
        Bot.delete_message.side_effect = BadRequest("Message can't be deleted")
        bot = self.create_bot()
        target = self.create_tg_message(bot=bot)
        update = self.create_update(bot=bot, text='/r', reply_to_message=target)

        await command_react(update, self.create_context(bot=bot))

        assert sent_kwargs()['text'] == MARKER

    async def test_react_without_reply(self):
        bot = self.create_bot()
        update = self.create_update(bot=bot, text='/r')

        await command_react(update, self.create_context(bot=bot))

        Bot.delete_message.assert_not_awaited()
        text = consts.REPLY_REQUIRED.format(command='r', purpose='reacting to')
        assert sent_kwargs()['text'] == text

    @pytest.mark.parametrize('arg', ['👍', 'up', 'UP'])
    async def test_react_with_argument(self, arg):
        bot = self.create_bot()
        user = self.create_tg_user(id=42)
        target = self.create_tg_message(bot=bot)
        update = self.create_update(bot=bot, user=user, text=f'/r {arg}', reply_to_message=target)

        await command_react(update, self.create_context(bot=bot, args=[arg]))

        text, entities = render_html(sent_kwargs()['text'])
        assert entities[0]['url'] == 'https://reaxnbot.dev/reactions?up=42'
        assert text == f'{MARKER} {UP.glyph} 1'
        buttons = flat_buttons(sent_kwargs()['reply_markup'])
        assert buttons[REACTIONS.index(UP)].text == f'{UP.glyph} 1'

    async def test_react_unknown_argument(self):
        bot = self.create_bot()
        target = self.create_tg_message(bot=bot)
        update = self.create_update(bot=bot, text='/r 🍕', reply_to_message=target)

        await command_react(update, self.create_context(bot=bot, args=['🍕']))

        Bot.delete_message.assert_not_awaited()
        assert sent_kwargs()['text'].startswith("I don't know reaction '🍕'")

    @pytest.mark.parametrize('text', ['/love', '/heart@reaxnbot'])
    async def test_shortcut(self, text):
        bot = self.create_bot()
        user = self.create_tg_user(id=7)
        target = self.create_tg_message(bot=bot)
        update = self.create_update(bot=bot, user=user, text=text, reply_to_message=target)

        await command_react_with(update, self.create_context(bot=bot))

        Bot.delete_message.assert_awaited_once()
        _, entities = render_html(sent_kwargs()['text'])
        assert entities[0]['url'] == 'https://reaxnbot.dev/reactions?love=7'

    async def test_shortcut_without_reply(self):
        bot = self.create_bot()
        update = self.create_update(bot=bot, text='/up')

        await command_react_with(update, self.create_context(bot=bot))

        text = consts.REPLY_REQUIRED.format(command='up', purpose='reacting to')
        assert sent_kwargs()['text'] == text


@pytest.mark.usefixtures(
    'create_bot',
    'create_tg_user',
    'create_tg_chat',
    'create_tg_message',
    'create_reaction_message',
    'create_callback_update',
    'create_context',
    'mock_bot',
)
class TestReactionCallback:
    async def press(self, bot, panel, data, user):
        update = self.create_callback_update(data, message=panel, user=user, bot=bot)
        await handle_reaction_callback(update, self.create_context(bot=bot))

    async def test_press_and_press_again(self):
        bot = self.create_bot()
        user = self.create_tg_user(id=42)
        panel = self.create_reaction_message(bot=bot)

        await self.press(bot, panel, 'up', user)

        kwargs = edited_kwargs()
        assert kwargs['message_id'] == panel.message_id
        text, entities = render_html(kwargs['text'])
        assert entities[0]['url'] == 'https://reaxnbot.dev/reactions?up=42'
        assert text == f'{MARKER} {UP.glyph} 1'
        buttons = flat_buttons(kwargs['reply_markup'])
        assert buttons[REACTIONS.index(UP)].text == f'{UP.glyph} 1'
        assert answered_kwargs()['text'] == UP.glyph

        panel = self.create_reaction_message(html=kwargs['text'], bot=bot, chat=panel.chat)
        await self.press(bot, panel, 'up', user)

        kwargs = edited_kwargs()
        assert kwargs['text'] == MARKER
        assert [b.text for b in flat_buttons(kwargs['reply_markup'])] == [r.glyph for r in REACTIONS]
        assert answered_kwargs()['text'] == consts.CANCEL_GLYPH

    async def test_press_keeps_other_votes(self):
        bot = self.create_bot()
        panel = self.create_reaction_message({HEART: {1, 2}, UP: {3}}, bot=bot)

        await self.press(bot, panel, 'love', self.create_tg_user(id=3))

        _, entities = render_html(edited_kwargs()['text'])
        assert entities[0]['url'] == 'https://reaxnbot.dev/reactions?love=1,2,3&up=3'
        assert answered_kwargs()['text'] == HEART.glyph

    async def test_unknown_payload(self):
        bot = self.create_bot()
        panel = self.create_reaction_message(bot=bot)

        await self.press(bot, panel, 'pizza', self.create_tg_user())

        Bot.edit_message_text.assert_not_awaited()
        assert answered_kwargs()['text'] == consts.INVALID_BUTTON
        assert answered_kwargs()['show_alert']

    async def test_message_not_available(self):
        bot = self.create_bot()

        await self.press(bot, None, 'up', self.create_tg_user())

        Bot.edit_message_text.assert_not_awaited()
        assert answered_kwargs()['text'] == consts.MESSAGE_GONE
        assert answered_kwargs()['show_alert']

    async def test_corrupt_state(self):
        bot = self.create_bot()
        html = f'<a href="https://reaxnbot.dev/reactions?up=abc">{MARKER}</a> {UP.glyph} <b>1</b>'
        panel = self.create_reaction_message(html=html, bot=bot)

        await self.press(bot, panel, 'up', self.create_tg_user())

        Bot.edit_message_text.assert_not_awaited()
        assert answered_kwargs()['text'] == consts.CORRUPT_STATE
        assert answered_kwargs()['show_alert']

    async def test_message_gone(self):
        Bot.edit_message_text.side_effect = BadRequest('Message to edit not found')
        bot = self.create_bot()
        panel = self.create_reaction_message(bot=bot)

        await self.press(bot, panel, 'up', self.create_tg_user())

        assert answered_kwargs()['text'] == consts.MESSAGE_GONE

    async def test_not_modified(self):
        Bot.edit_message_text.side_effect = BadRequest('Message is not modified: specified new message content is the same')
        bot = self.create_bot()
        panel = self.create_reaction_message(bot=bot)

        await self.press(bot, panel, 'up', self.create_tg_user())

        assert answered_kwargs()['text'] == UP.glyph

    async def test_edit_error(self):
        Bot.edit_message_text.side_effect = BadRequest('Chat not found')
        bot = self.create_bot()
        panel = self.create_reaction_message(bot=bot)

        with pytest.raises(BadRequest):
            await self.press(bot, panel, 'up', self.create_tg_user())
        Bot.answer_callback_query.assert_not_awaited()


@pytest.mark.usefixtures(
    'create_bot',
    'create_tg_user',
    'create_tg_chat',
    'create_tg_message',
    'create_reaction_message',
    'create_update',
    'create_context',
    'mock_bot',
)
class TestShowCommand:
    async def show(self, bot, target):
        update = self.create_update(bot=bot, text='/s', reply_to_message=target)
        await command_show(update, self.create_context(bot=bot))

    async def test_show(self):
        names = {5: 'B', 7: 'C'}
        Bot.get_chat_member.side_effect = lambda chat_id, user_id: Mock(
            user=TGUser(user_id, names[user_id], False),
        )
        bot = self.create_bot()
        panel = self.create_reaction_message({HEART: {7, 5}}, bot=bot)

        await self.show(bot, panel)

        kwargs = sent_kwargs()
        assert kwargs['text'] == f'{HEART.glyph} — B, C'
        assert kwargs['chat_id'] == panel.chat_id
        assert kwargs['reply_parameters'].message_id == panel.message_id

    async def test_show_unknown_user(self):
        def get_chat_member(chat_id, user_id):
            if user_id == 2:
                raise Forbidden('Forbidden: bot was kicked')
            return Mock(user=TGUser(user_id, 'A', False))

        Bot.get_chat_member.side_effect = get_chat_member
        bot = self.create_bot()
        panel = self.create_reaction_message({UP: {1}, Reaction.DOWN: {2}}, bot=bot)

        await self.show(bot, panel)

        assert sent_kwargs()['text'] == '\n'.join([
            f'{UP.glyph} — A',
            f'{Reaction.DOWN.glyph} — {consts.UNKNOWN_USER}',
        ])

    async def test_show_empty(self):
        bot = self.create_bot()
        await self.show(bot, self.create_reaction_message(bot=bot))
        assert sent_kwargs()['text'] == consts.NO_REACTIONS
        Bot.get_chat_member.assert_not_awaited()

    async def test_show_not_reaction_message(self):
        bot = self.create_bot()
        await self.show(bot, self.create_tg_message(bot=bot, text='hello'))
        assert sent_kwargs()['text'] == consts.NOT_REACTION_MESSAGE.format(command='s')

    async def test_show_without_reply(self):
        bot = self.create_bot()
        await self.show(bot, None)
        text = consts.REPLY_REQUIRED.format(command='s', purpose='asking about')
        assert sent_kwargs()['text'] == text

    async def test_show_corrupt_state(self):
        bot = self.create_bot()
        html = f'<a href="https://reaxnbot.dev/reactions?pizza=1">{MARKER}</a> '
        await self.show(bot, self.create_reaction_message(html=html, bot=bot))
        assert sent_kwargs()['text'] == consts.CORRUPT_STATE


class TestMessageLock:
    async def hold(self, order, name, message_id=2):
        async with redis.message_lock(1, message_id):
            order.append(f'{name} in')
            await asyncio.sleep(0.01)
            order.append(f'{name} out')

    async def test_local_lock(self, mocker):
        mocker.patch.object(redis, 'rc', None)
        order = []
        await asyncio.gather(self.hold(order, 'a'), self.hold(order, 'b'))
        assert order == ['a in', 'a out', 'b in', 'b out']

    async def test_local_lock_other_message(self, mocker):
        mocker.patch.object(redis, 'rc', None)
        order = []
        await asyncio.gather(self.hold(order, 'a'), self.hold(order, 'b', message_id=3))
        assert order == ['a in', 'b in', 'a out', 'b out']

    async def test_redis_lock(self, mock_redis):
        order = []
        await self.hold(order, 'a')
        assert order == ['a in', 'a out']
        mock_redis.lock.assert_called_once_with('lock:message:1:2', timeout=5, blocking_timeout=3)
        lock = mock_redis.lock.return_value
        lock.acquire.assert_awaited_once()
        lock.release.assert_awaited_once()

    async def test_redis_lock_busy(self, mock_redis):
        lock = mock_redis.lock.return_value
        lock.acquire.return_value = False
        order = []
        await self.hold(order, 'a')
        assert order == ['a in', 'a out']
        lock.release.assert_not_awaited()

    async def test_redis_unavailable(self, mock_redis):
        lock = mock_redis.lock.return_value
        lock.acquire.side_effect = RedisError('connection refused')
        order = []
        await self.hold(order, 'a')
        assert order == ['a in', 'a out']
        lock.release.assert_not_awaited()


class TestDispatcher:
    def test_extract_handlers(self):
        handlers = extract_handlers(group_reaction)
        assert {h.name for h in handlers} == {'command_react', 'command_react_with', 'command_show'}

    def test_sort_by_type(self):
        handlers = [handle_reaction_callback, command_react]
        sort_by_type(handlers)
        assert handlers == [command_react, handle_reaction_callback]

    def test_collect_handlers(self):
        handlers = collect_handlers()
        assert handlers[-1] is handle_reaction_callback
        assert all(isinstance(h.handler, CommandHandler) for h in handlers[:-1])
        assert command_show in handlers

    def test_setup_application(self):
        application = Mock()
        setup_application(application, inspect=False)
        assert application.add_handler.call_count == len(collect_handlers())
        application.add_error_handler.assert_called_once_with(handle_error)

    async def test_setup_commands(self):
        application = Mock()
        application.bot.set_my_commands = AsyncMock()
        await setup_commands(application)
        commands = application.bot.set_my_commands.call_args.args[0]
        assert [c.command for c in commands] == ['help', 'guide', 'r', 's']

    async def test_handle_error(self):
        context = Mock(error=ValueError('boom'))
        await handle_error(None, context)


class TestWrapper:
    async def test_command(self):
        @command('foo')
        async def command_foo(update, context):
            """Do foo."""
            return update, context

        assert isinstance(command_foo, HandlerWrapper)
        assert isinstance(command_foo.handler, CommandHandler)
        assert command_foo.handler.commands == frozenset({'foo'})
        assert command_foo.name == 'command_foo'
        assert command_foo.__doc__ == 'Do foo.'
        assert await command_foo(1, 2) == (1, 2)

    def test_callback_handler(self):
        assert isinstance(handle_reaction_callback.handler, CallbackQueryHandler)


class TestHelp:
    def test_commands(self):
        assert command_help.commands == ['help', 'h']
        assert command_react.commands == ['r']
        assert handle_reaction_callback.commands == []

    def test_description(self):
        assert command_react.description == 'Reply to a message to attach reactions to it.'
        assert command_start.description == ''

    def test_get_commands_help(self):
        lines = list(get_commands_help(command_react, command_show))
        assert lines[0].startswith('/r - Reply to a message to attach reactions to it.')
        assert lines[1] == '/s - Reply to a reaction message to show who reacted with what.'

    def test_get_bot_commands(self):
        commands = get_bot_commands(command_help, command_react)
        assert [(c.command, c.description) for c in commands] == [
            ('help', 'Show list of commands.'),
            ('r', 'Reply to a message to attach reactions to it.'),
        ]

    @pytest.mark.usefixtures('mock_bot')
    async def test_command_help(self, create_update, create_context):
        update = create_update(text='/help')
        await command_help(update, create_context())
        text = sent_kwargs()['text']
        assert '/r' in text
        assert '/s' in text
        assert UP.glyph in text


class TestSetWebhook:
    async def test_set(self):
        bot = AsyncMock()
        await update_webhook(bot, 'https://example.com/webhook/token')
        bot.set_webhook.assert_awaited_once_with('https://example.com/webhook/token')
        bot.delete_webhook.assert_not_awaited()

    async def test_remove(self):
        bot = AsyncMock()
        await update_webhook(bot)
        bot.delete_webhook.assert_awaited_once()
        bot.set_webhook.assert_not_awaited()
