import json

import pytest

from helpers import encode_row, field_json, result_json
from psdbapi.exceptions import ApplicationError, ProtocolError
from psdbapi.protocol import (
    Field,
    basic_auth,
    build_execute_body,
    build_headers,
    parse_response,
    read_result,
)


def parse(payload, operation="execute"):
    return parse_response(json.dumps(payload, separators=(",", ":")).encode(), operation)


def test_basic_auth():
    assert basic_auth("u", "p") == "Basic dTpw"


def test_headers():
    headers = build_headers("db.example.com", "u", "p")
    assert headers == {
        "Host": "db.example.com",
        "Content-Type": "application/json",
        "User-Agent": "database-python",
        "Authorization": "Basic dTpw",
    }


def test_execute_body_replays_session_verbatim():
    session = b'{"signature":"abc","x": [1, 2]}'
    body = build_execute_body('select "a"\n', session)
    assert body == b'{"query":"select \\"a\\"\\n","session":{"signature":"abc","x": [1, 2]}}'
    assert json.loads(body) == {"query": 'select "a"\n', "session": {"signature": "abc", "x": [1, 2]}}


def test_invalid_json():
    with pytest.raises(ProtocolError, match="invalid JSON"):
        parse_response(b"{not json", "execute")


def test_non_object_payload():
    with pytest.raises(ProtocolError, match="unexpected payload"):
        parse([1, 2])


SESSION_SOURCE = '{ "b": 1.0e3, "a": {"c": "é", "c": 1.10}, "s": "\\ud800" }'


def test_session_is_cut_from_body_unchanged():
    body = ('{"result": {}, "session": ' + SESSION_SOURCE + '\n}').encode()
    assert parse_response(body, "execute").session == SESSION_SOURCE.encode()


def test_last_repeated_session_wins():
    envelope = parse_response(b'{"session": {"a": 1}, "error": {}, "session" : {"b":2.50}}', "execute")
    assert envelope.session == b'{"b":2.50}'


def test_body_must_be_utf8():
    with pytest.raises(ProtocolError, match="invalid JSON"):
        parse_response(b'{"session": {"s": "\xff"}}', "execute")


def test_execute_body_escapes_lone_surrogate():
    body = build_execute_body("select '\ud800'", b"{}")
    assert body == b'{"query":"select \'\\ud800\'","session":{}}'


@pytest.mark.parametrize("session", [None, "abc", 12, ["x"]])
def test_non_object_session_is_absent(session):
    assert parse({"session": session}).session is None


def test_error_message():
    envelope = parse({"session": {"s": 1}, "error": {"message": "boom", "code": "X"}})
    assert envelope.session == b'{"s":1}'
    with pytest.raises(ApplicationError, match="boom") as exc_info:
        envelope.raise_for_error()
    assert exc_info.value.message == "boom"


@pytest.mark.parametrize("error", [{}, {"message": None}, {"message": 5}, {"message": ["a"]}])
def test_error_without_string_message(error):
    with pytest.raises(ApplicationError) as exc_info:
        parse({"error": error}).raise_for_error()
    assert exc_info.value.message == "unknown error"


def test_error_short_circuits_result():
    envelope = parse({"error": {"message": "no"}, "result": {"fields": "garbage"}})
    with pytest.raises(ApplicationError):
        envelope.raise_for_error()


def test_no_error_is_quiet():
    parse({"result": {}}).raise_for_error()


def test_no_result():
    with pytest.raises(ProtocolError, match="no result"):
        read_result(parse({"session": {}}))


def test_missing_fields():
    with pytest.raises(ProtocolError, match="missing fields"):
        read_result(parse({"result": {"rows": []}}))


def test_missing_rows():
    with pytest.raises(ProtocolError, match="missing rows"):
        read_result(parse({"result": {"fields": []}}))


def test_empty_result_is_valid():
    assert read_result(parse(result_json([], []))) == ([], [])


def test_fields_and_rows():
    payload = result_json(
        [
            field_json("id", "INT64", columnLength=20, charset=63, flags=49667),
            {"name": "name"},
        ],
        [encode_row(b"1", b"alice"), encode_row(b"2", b"")],
    )
    fields, rows = read_result(parse(payload))

    assert fields[0] == Field(name="id", type="INT64", table="t", column_length=20, charset=63, flags=49667)
    assert fields[1] == Field(name="name")
    assert fields[1].column_length == 0 and fields[1].type == ""
    assert [[bytes(v) for v in r] for r in rows] == [[b"1", b"alice"], [b"2", b""]]


def test_numeric_strings_accepted_for_field_sizes():
    fields, _ = read_result(parse(result_json([field_json("id", columnLength="20")], [])))
    assert fields[0].column_length == 20


@pytest.mark.parametrize("bad", [{"name": "x", "flags": -1}, {"name": "x", "charset": "utf8"}, "x"])
def test_invalid_field(bad):
    with pytest.raises(ProtocolError, match="invalid field"):
        read_result(parse(result_json([bad], [])))


def test_row_width_must_match_fields():
    payload = result_json([field_json("a"), field_json("b")], [encode_row(b"1")])
    with pytest.raises(ProtocolError, match="1 values for 2 fields"):
        read_result(parse(payload))


def test_bad_row_discards_result():
    payload = result_json([field_json("a")], [encode_row(b"1"), {"values": "MQ==", "lengths": ["2"]}])
    with pytest.raises(ProtocolError, match="row 1"):
        read_result(parse(payload))


@pytest.mark.parametrize("row", [["x"], {"values": "MQ==", "lengths": "1"}])
def test_malformed_row_shape(row):
    with pytest.raises(ProtocolError):
        read_result(parse(result_json([field_json("a")], [row])))
