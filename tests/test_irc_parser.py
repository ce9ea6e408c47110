import pytest

from eden.irc import build_line, parse_irc_message, split_server


def test_parse_privmsg():
    line = parse_irc_message(":alice!a@host PRIVMSG #eden :.add \"New York\" 5")
    assert line.prefix == "alice!a@host"
    assert line.nick == "alice"
    assert line.command == "PRIVMSG"
    assert line.params == ["#eden", '.add "New York" 5']
    assert line.target == "#eden"
    assert line.text == '.add "New York" 5'
    assert line.public is True


def test_private_message_is_not_public():
    line = parse_irc_message(":NickServ!s@services PRIVMSG eden :STATUS alice 3")
    assert line.public is False
    assert line.text == "STATUS alice 3"


def test_parse_tags():
    line = parse_irc_message("@id=123;flag :srv NOTICE * :hi")
    assert line.tags == {"id": "123", "flag": ""}
    assert line.command == "NOTICE"
    assert line.params == ["*", "hi"]


def test_parse_without_prefix():
    line = parse_irc_message("PING :irc.test")
    assert line.prefix is None
    assert line.nick == ""
    assert line.command == "PING"
    assert line.text == "irc.test"


def test_parse_mode_params():
    line = parse_irc_message(":NickServ!s@services MODE eden +r")
    assert line.params == ["eden", "+r"]


def test_command_is_upper_cased():
    assert parse_irc_message(":a!b@c privmsg #x :y").command == "PRIVMSG"


def test_prefix_only_line_has_no_command():
    line = parse_irc_message(":lonely")
    assert line.prefix == "lonely"
    assert line.command is None
    assert line.params == []


def test_build_line():
    assert build_line("QUIT") == "QUIT"
    assert build_line("PRIVMSG", "#eden", "Hello world!") == "PRIVMSG #eden :Hello world!"
    assert build_line("USER", "eden", "0", "*", "Eden Bot") == "USER eden 0 * :Eden Bot"


@pytest.mark.parametrize(
    ("server", "expected"),
    [
        ("irc.libera.chat", ("irc.libera.chat", 6667)),
        ("irc.libera.chat:6697", ("irc.libera.chat", 6697)),
        ("localhost:7000", ("localhost", 7000)),
    ],
)
def test_split_server(server, expected):
    assert split_server(server) == expected


@pytest.mark.parametrize("server", [":6667", "irc.test:abc", "irc.test:"])
def test_split_server_rejects_invalid(server):
    with pytest.raises(ValueError):
        split_server(server)
