import logging

import pytest

from eden.commands import (
    CommandRegistry,
    Message,
    User,
    build_registry,
    with_allow_no_whitespace,
    with_args,
    with_command_func,
    with_permission_check,
    with_prefix,
    with_var_args,
)
from eden.errors import CommandOptionError, RegistryFrozenError
from eden.store import Permission
from tests.fixtures.fakes import RecordingContext, make_message


def recorder(name, calls):
    async def handler(ctx, message, args):
        calls.append((name, list(args)))

    return handler


class TestMatchRule:
    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def registry(self, calls):
        registry = CommandRegistry()
        registry.register("hello", recorder("hello", calls))
        return registry

    async def test_exact_command_fires_with_no_args(self, registry, calls):
        await registry.execute_commands(make_message(".hello"), RecordingContext())
        assert calls == [("hello", [])]

    async def test_adjacent_text_does_not_fire(self, registry, calls):
        await registry.execute_commands(make_message(".hellothere"), RecordingContext())
        assert calls == []

    async def test_too_many_args_does_not_fire(self, registry, calls):
        await registry.execute_commands(make_message(".hello extra"), RecordingContext())
        assert calls == []

    async def test_trailing_whitespace_is_zero_args(self, registry, calls):
        await registry.execute_commands(make_message(".hello   "), RecordingContext())
        assert calls == [("hello", [])]

    async def test_prefix_must_start_message(self, registry, calls):
        await registry.execute_commands(make_message("say .hello"), RecordingContext())
        assert calls == []

    async def test_allow_no_whitespace(self, calls):
        registry = CommandRegistry()
        registry.register(
            "roll", recorder("roll", calls), with_allow_no_whitespace(), with_var_args(0, 1)
        )
        await registry.execute_commands(make_message(".roll2d6"), RecordingContext())
        assert calls == [("roll", ["2d6"])]

    async def test_var_args_bounds_are_inclusive(self, calls):
        registry = CommandRegistry()
        registry.register("add", recorder("add", calls), with_var_args(1, 2))
        ctx = RecordingContext()
        for content in (".add", '.add "New York"', ".add a b", ".add a b c"):
            await registry.execute_commands(make_message(content), ctx)
        assert calls == [("add", ["New York"]), ("add", ["a", "b"])]

    async def test_with_args_exact(self, calls):
        registry = CommandRegistry()
        registry.register("pair", recorder("pair", calls), with_args(2))
        ctx = RecordingContext()
        await registry.execute_commands(make_message(".pair a"), ctx)
        await registry.execute_commands(make_message(".pair a b"), ctx)
        assert calls == [("pair", ["a", "b"])]

    async def test_custom_prefix(self, calls):
        registry = CommandRegistry()
        registry.register("help", recorder("help", calls), with_prefix("!"))
        ctx = RecordingContext()
        await registry.execute_commands(make_message(".help"), ctx)
        await registry.execute_commands(make_message("!help"), ctx)
        assert calls == [("help", [])]

    async def test_command_func_computes_trigger_per_message(self, calls):
        registry = CommandRegistry()
        registry.register(
            "ping",
            recorder("ping", calls),
            with_command_func(lambda message: f"{message.target}: ping"),
        )
        ctx = RecordingContext()
        await registry.execute_commands(make_message("#eden: ping", target="#eden"), ctx)
        await registry.execute_commands(make_message("#other: ping", target="#eden"), ctx)
        assert calls == [("ping", [])]

    async def test_registry_default_prefix(self, calls):
        registry = CommandRegistry(default_prefix="~")
        registry.register("hello", recorder("hello", calls))
        await registry.execute_commands(make_message("~hello"), RecordingContext())
        assert calls == [("hello", [])]


class TestMultiMatch:
    async def test_every_matching_command_runs_once_in_order(self):
        calls = []
        registry = CommandRegistry()
        registry.register("a", recorder("first", calls), with_prefix("!"), with_var_args(0, 5))
        registry.register("ab", recorder("never", calls), with_prefix("?"))
        registry.register("", recorder("second", calls), with_prefix("!a"), with_var_args(0, 5))

        fired = await registry.execute_commands(make_message("!a x"), RecordingContext())

        assert calls == [("first", ["x"]), ("second", ["x"])]
        assert [c.name for c in fired] == ["a", ""]

    async def test_failing_command_func_does_not_stop_later_commands(self, caplog):
        calls = []

        def broken(message):
            return message.content.split()[5]

        registry = CommandRegistry()
        registry.register("a", recorder("a", calls), with_command_func(broken))
        registry.register("hello", recorder("hello", calls))

        with caplog.at_level(logging.ERROR):
            fired = await registry.execute_commands(make_message(".hello"), RecordingContext())

        assert [c.name for c in fired] == ["hello"]
        assert calls == [("hello", [])]
        assert "IndexError" in caplog.text

    async def test_failing_authorize_does_not_stop_later_commands(self):
        class BrokenAuthContext(RecordingContext):
            async def authorize(self, user, permission):
                raise RuntimeError("authorizer exploded")

        calls = []
        registry = CommandRegistry()
        registry.register("hello", recorder("guarded", calls), with_permission_check("op"))
        registry.register("hello", recorder("open", calls))

        fired = await registry.execute_commands(make_message(".hello"), BrokenAuthContext())

        assert calls == [("open", [])]
        assert len(fired) == 1


class TestPermissions:
    async def test_denied_command_is_silent_and_handler_not_run(self):
        calls = []
        registry = CommandRegistry()
        registry.register("op", recorder("op", calls), with_permission_check("op"))
        ctx = RecordingContext()

        fired = await registry.execute_commands(make_message(".op"), ctx)

        assert fired == []
        assert calls == []
        assert ctx.authorize_calls == [("alice", "op")]
        assert ctx.sent == []

    async def test_granted_command_runs(self):
        calls = []
        registry = CommandRegistry()
        registry.register("op", recorder("op", calls), with_permission_check(Permission("op")))
        ctx = RecordingContext(granted={"alice": {"op"}})
        await registry.execute_commands(make_message(".op"), ctx)
        assert calls == [("op", [])]

    async def test_authorize_skipped_when_syntax_does_not_match(self):
        registry = CommandRegistry()
        registry.register("op", recorder("op", []), with_permission_check("op"))
        ctx = RecordingContext()
        await registry.execute_commands(make_message(".op too many"), ctx)
        await registry.execute_commands(make_message(".opx"), ctx)
        assert ctx.authorize_calls == []


class TestRegistration:
    def test_register_returns_command(self):
        registry = CommandRegistry()
        command = registry.register("hello", recorder("hello", []), with_var_args(1, 3))
        assert command.name == "hello"
        assert (command.min_args, command.max_args) == (1, 3)
        assert command.prefix == "."
        assert list(registry) == [command]

    @pytest.mark.parametrize(
        "option",
        [
            with_var_args(3, 1),
            with_var_args(-1, 2),
            with_args(-1),
            with_permission_check(""),
            with_prefix(None),
            with_command_func("not callable"),
        ],
    )
    def test_malformed_option_raises_and_registers_nothing(self, option):
        registry = CommandRegistry()
        with pytest.raises(CommandOptionError):
            registry.register("bad", recorder("bad", []), option)
        assert len(registry) == 0

    def test_sealed_registry_rejects_registration(self):
        registry = CommandRegistry()
        registry.seal()
        assert registry.sealed
        with pytest.raises(RegistryFrozenError):
            registry.register("late", recorder("late", []))

    async def test_decorator_registers(self):
        registry = CommandRegistry()
        seen = []

        @registry.command("echo", with_var_args(0, 10))
        def echo(ctx, message, args):
            seen.append(" ".join(args))

        await registry.execute_commands(make_message('.echo a "b c"'), RecordingContext())
        assert seen == ["a b c"]


async def test_builtin_hello_replies_to_target():
    registry = build_registry()
    ctx = RecordingContext()
    message = Message(content=".hello", source=User("bob"), public=True, target="#room")
    await registry.execute_commands(message, ctx)
    assert ctx.sent == [("#room", "Hello world!")]
