"""Tests for server.py - the Flask-SocketIO host.

Uses Flask-SocketIO's built-in test client; no real network sockets. The
`server_module` fixture (conftest.py) re-imports `server` for every test so
connected players and the in-memory config never leak between tests.
"""

from unittest.mock import Mock

from message_service import MessageID, format_message
from permissions import Permission


def _contents(client):
    out = []
    for msg in client.get_received():
        if msg['name'] != 'message':
            continue
        payload = msg['args']
        # A single emitted dict arrives unwrapped; multiple args come as a list
        if isinstance(payload, list):
            payload = payload[0]
        out.append(payload['content'])
    return out


def _connect(srv, name):
    return srv.socketio.test_client(srv.app, auth={'name': name})


def test_connect_registers_player_and_welcomes(server_module):
    client = _connect(server_module, "Alice")
    assert client.is_connected()
    assert server_module.world.get_player_by_name("alice") is not None
    contents = _contents(client)
    assert format_message(MessageID.INFO_WELCOME, "Alice", "cleaningitem") in contents


def test_message_event_carries_typed_payload(server_module):
    client = _connect(server_module, "Alice")
    received = [m for m in client.get_received() if m['name'] == 'message']
    assert received
    payload = received[0]['args']
    if isinstance(payload, list):
        payload = payload[0]
    assert payload['type'] == 'system'
    assert payload['content'].startswith("Welcome, Alice.")


def test_duplicate_name_is_refused(server_module):
    first = _connect(server_module, "Alice")
    second = _connect(server_module, "alice")
    assert first.is_connected()
    assert not second.is_connected()
    assert len(server_module.world.players) == 1


def test_disconnect_removes_player(server_module):
    client = _connect(server_module, "Alice")
    client.disconnect()
    assert server_module.world.get_player_by_name("Alice") is None


def test_default_and_admin_permissions(server_module):
    _connect(server_module, "Alice")
    _connect(server_module, "Admin")
    alice = server_module.world.get_player_by_name("Alice")
    admin = server_module.world.get_player_by_name("Admin")
    assert alice.has_permission(Permission.CMD_CLEANING_ITEM_GET.value)
    assert not alice.has_permission(Permission.CMD_ADMIN_ITEM_SET_ACTIVE.value)
    assert admin.has_permission(Permission.CMD_ADMIN_ITEM_SET_ACTIVE.value)


def test_command_round_trip(server_module):
    client = _connect(server_module, "Admin")
    client.get_received()
    client.emit('message_to_server', {'content': '/cleaningitem active false'})
    assert _contents(client) == [format_message(MessageID.INFO_VALUE_CHANGED, "cleaningitem active", "false")]
    assert server_module.store.is_cleaning_item_active() is False


def test_get_puts_item_in_inventory(server_module):
    client = _connect(server_module, "Alice")
    client.get_received()
    client.emit('message_to_server', {'content': '/CleaningItem GET'})
    alice = server_module.world.get_player_by_name("Alice")
    assert len(alice.inventory) == 1
    assert _contents(client) == [format_message(MessageID.INFO_CLEANITEM_YOU_GET)]


def test_permission_denied_over_socket(server_module):
    client = _connect(server_module, "Alice")
    client.get_received()
    client.emit('message_to_server', {'content': '/cleaningitem name Hacked'})
    contents = _contents(client)
    assert len(contents) == 1
    assert Permission.CMD_ADMIN_ITEM_RENAME.value in contents[0]
    assert server_module.store.get_cleaning_item().display_name is None


def test_give_reaches_other_player(server_module):
    admin_client = _connect(server_module, "Admin")
    _connect(server_module, "Bob")
    admin_client.get_received()
    admin_client.emit('message_to_server', {'content': '/cleaningitem give bob'})
    assert len(server_module.world.get_player_by_name("Bob").inventory) == 1
    assert _contents(admin_client) == [format_message(MessageID.INFO_CLEANITEM_PLAYER_GET, "Bob")]


def test_invalid_payload(server_module):
    client = _connect(server_module, "Alice")
    client.get_received()
    client.emit('message_to_server', "just a string")
    assert _contents(client) == [format_message(MessageID.ERROR_INVALID_PAYLOAD)]


def test_message_too_long(server_module):
    client = _connect(server_module, "Alice")
    client.get_received()
    client.emit('message_to_server', {'content': '/' + 'x' * server_module.MAX_MESSAGE_LEN})
    assert _contents(client) == [format_message(MessageID.ERROR_MESSAGE_TOO_LONG, server_module.MAX_MESSAGE_LEN)]


def test_unknown_alias_and_plain_text(server_module):
    client = _connect(server_module, "Alice")
    client.get_received()
    client.emit('message_to_server', {'content': '/nope arg'})
    client.emit('message_to_server', {'content': 'hello there'})
    assert _contents(client) == [
        format_message(MessageID.ERROR_UNKNOWN_COMMAND, "nope"),
        format_message(MessageID.ERROR_NOT_A_COMMAND, "cleaningitem"),
    ]


def test_complete_event_acks_candidates(server_module):
    client = _connect(server_module, "Alice")
    _connect(server_module, "Bob")
    ack = client.emit('complete', {'content': '/cleaningitem give '}, callback=True)
    assert ack == {'completions': ['@a', 'Alice', 'Bob']}
    ack = client.emit('complete', {'content': '/clean'}, callback=True)
    assert ack == {'completions': ['cleaningitem']}


class TestDispatchLine:

    def test_dispatch_line_returns_tree_result(self, server_module, recording_sender):
        sender = recording_sender({'*'})
        result = server_module.dispatch_line(sender, "/cleaningitem openEvent true")
        assert result.ok
        assert server_module.store.is_open_event() is True

    def test_handler_crash_is_reported_not_raised(self, server_module, recording_sender, monkeypatch):
        sender = recording_sender({'*'})
        broken = Mock()
        broken.on_command.side_effect = RuntimeError("boom")
        monkeypatch.setitem(server_module.commands, "cleaningitem", broken)
        assert server_module.dispatch_line(sender, "/cleaningitem get") is None
        assert sender.contents == [format_message(MessageID.ERROR_COMMAND_FAILED, "cleaningitem")]

    def test_console_sender_runs_everything(self, server_module):
        result = server_module.dispatch_line(server_module.console, "/cleaningitem durabilityLoss false")
        assert result.ok
        assert server_module.store.is_durability_loss_active() is False
        assert server_module.console.messages[-1]['type'] == 'system'

    def test_bare_slash(self, server_module, recording_sender):
        sender = recording_sender()
        assert server_module.dispatch_line(sender, "/") is None
        assert sender.contents == [format_message(MessageID.ERROR_NOT_A_COMMAND, "cleaningitem")]


class TestCompleteLine:

    def test_alias_completion(self, server_module, recording_sender):
        sender = recording_sender()
        assert server_module.complete_line(sender, "/") == ["cleaningitem"]
        assert server_module.complete_line(sender, "/x") == []

    def test_subcommand_completion(self, server_module, recording_sender):
        sender = recording_sender()
        assert server_module.complete_line(sender, "/cleaningitem a") == ["active"]
        assert server_module.complete_line(sender, "/cleaningitem active ") == ["false", "true"]

    def test_non_command_and_unknown_alias(self, server_module, recording_sender):
        sender = recording_sender()
        assert server_module.complete_line(sender, "hello") == []
        assert server_module.complete_line(sender, "/nope ") == []
