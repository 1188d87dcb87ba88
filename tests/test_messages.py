"""Tests for message type tags and builders."""

from acedb_mcp.protocol.framing import Frame, ServerConfig, parse_frame
from acedb_mcp.protocol.messages import (
    ENCORE_PAYLOAD,
    MessageType,
    build_encore,
    build_request,
    is_continuation,
)


def test_message_type_values():
    """Tag strings match what the server sends."""
    assert MessageType.REQUEST.value == "ACESERV_MSGREQ"
    assert MessageType.DATA.value == "ACESERV_MSGDATA"
    assert MessageType.OK.value == "ACESERV_MSGOK"
    assert MessageType.ENCORE.value == "ACESERV_MSGENCORE"
    assert MessageType.FAIL.value == "ACESERV_MSGFAIL"
    assert MessageType.KILL.value == "ACESERV_MSGKILL"


def test_build_request():
    """A request frame carries the command text."""
    parsed = parse_frame(build_request("find Locus *"))
    assert parsed.msg_type == MessageType.REQUEST.value
    assert parsed.text == "find Locus *"


def test_build_request_echoes_config():
    """The latched capability fields are echoed back."""
    config = ServerConfig(4, 17, 8192)
    assert parse_frame(build_request("list", config)).config == config


def test_build_encore():
    """The acknowledgement uses the continuation tag and a fixed body."""
    parsed = parse_frame(build_encore())
    assert parsed.msg_type == MessageType.ENCORE.value
    assert parsed.text == ENCORE_PAYLOAD == "encore"


def test_is_continuation():
    """Only the continuation tag announces more parts."""
    assert is_continuation(Frame(msg_type="ACESERV_MSGENCORE", payload=b""))
    assert not is_continuation(Frame(msg_type="ACESERV_MSGOK", payload=b""))
    assert not is_continuation(Frame(msg_type="ACESERV_MSGDATA", payload=b""))


def test_is_continuation_matches_prefix():
    """The check is a prefix match on the tag."""
    assert is_continuation(Frame(msg_type="ACESERV_MSGENCORE_X", payload=b""))
