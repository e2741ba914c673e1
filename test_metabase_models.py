#!/usr/bin/env python3
"""
Tests for the dataset wire models, argument decoding and result formatting.
"""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from metabase_mcp.metabase import (
    MetabaseQuery,
    MetabaseResponse,
    QueryResult,
    RawFallbackResult,
    RawResponse,
    ValidationError,
    decode_tool_arguments,
    encode_query,
    format_result,
    parse_dataset_response
)

COUNT_COLUMN = {
    "display_name": "count",
    "source": "native",
    "field_ref": ["field", "count", {"base-type": "type/BigInteger"}],
    "name": "count",
    "base_type": "type/BigInteger",
    "effective_type": "type/BigInteger"
}

DATASET_RESPONSE = {
    "data": {
        "rows": [[42]],
        "cols": [COUNT_COLUMN],
        "native_form": {"query": "SELECT COUNT(*) FROM users", "params": None},
        "results_timezone": "UTC",
        "results_metadata": {
            "columns": [{
                "display_name": "count",
                "field_ref": ["field", "count", {"base-type": "type/BigInteger"}],
                "name": "count",
                "base_type": "type/BigInteger",
                "effective_type": "type/BigInteger",
                "semantic_type": None,
                "fingerprint": {
                    "global": {"distinct-count": 1, "nil%": 0.0},
                    "type": {"type/Number": {"min": 42.0, "max": 42.0, "avg": 42.0}}
                }
            }]
        },
        "insights": None
    },
    "cached": False,
    "database_id": 31,
    "started_at": "2024-05-01T10:00:00.123Z",
    "json_query": {
        "type": "native",
        "database": 31,
        "native": {"query": "SELECT COUNT(*) FROM users", "template-tags": {}},
        "middleware": {"js-int-to-string?": True}
    },
    "average_execution_time": None,
    "status": "completed",
    "context": "ad-hoc",
    "row_count": 1,
    "running_time": 57
}


def _raw(status_code, reason, body):
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode("utf-8")
    return RawResponse(status_code=status_code, reason_phrase=reason, body=body)


# ---------------------------------------------------------------------------
# Argument decoding
# ---------------------------------------------------------------------------

def test_decode_accepts_non_empty_query():
    assert decode_tool_arguments({"query": "SELECT 1"}).query == "SELECT 1"


@pytest.mark.parametrize("arguments", [None, "SELECT 1", ["SELECT 1"], 42])
def test_decode_rejects_non_mapping(arguments):
    with pytest.raises(ValidationError, match="invalid arguments format"):
        decode_tool_arguments(arguments)


@pytest.mark.parametrize("arguments", [{}, {"query": ""}, {"query": 1}, {"query": None}, {"sql": "SELECT 1"}])
def test_decode_rejects_missing_or_bad_query(arguments):
    with pytest.raises(ValidationError, match="query is required"):
        decode_tool_arguments(arguments)


# ---------------------------------------------------------------------------
# Outbound query
# ---------------------------------------------------------------------------

def test_native_query_wire_body():
    query = MetabaseQuery.native_sql(31, "SELECT COUNT(*) FROM users")

    assert encode_query(query) == (
        b'{"type":"native","database":31,"native":'
        b'{"query":"SELECT COUNT(*) FROM users","template-tags":{}},"parameters":[]}'
    )
    assert query.to_wire() == {
        "type": "native",
        "database": 31,
        "native": {"query": "SELECT COUNT(*) FROM users", "template-tags": {}},
        "parameters": []
    }


def test_native_query_is_immutable():
    query = MetabaseQuery.native_sql(1, "SELECT 1")
    with pytest.raises(PydanticValidationError):
        query.database = 2


# ---------------------------------------------------------------------------
# Inbound response
# ---------------------------------------------------------------------------

def test_full_response_parses_with_null_optionals():
    parsed = MetabaseResponse.model_validate_json(json.dumps(DATASET_RESPONSE))

    assert parsed.status == "completed"
    assert parsed.average_execution_time is None
    assert parsed.data.insights is None
    metadata = parsed.data.results_metadata.columns[0]
    assert metadata.semantic_type is None
    assert metadata.fingerprint.global_.distinct_count == 1
    assert parsed.json_query.middleware == {"js-int-to-string?": True}


def test_absent_fields_default():
    parsed = MetabaseResponse.model_validate_json(b'{"status": "completed"}')

    assert parsed.row_count == 0
    assert parsed.data.rows == []
    assert parsed.data.cols == []
    assert parsed.cached is False


def test_parsed_response_becomes_query_result():
    query = MetabaseQuery.native_sql(31, "SELECT COUNT(*) FROM users")
    result = parse_dataset_response(_raw(202, "Accepted", DATASET_RESPONSE), query)

    assert isinstance(result, QueryResult)
    assert result.kind == "result"
    assert result.rows == [[42]]
    assert result.query_sent == query


def test_unauthenticated_text_body_falls_back():
    query = MetabaseQuery.native_sql(31, "SELECT 1")
    result = parse_dataset_response(_raw(401, "Unauthorized", "Unauthenticated"), query)

    assert isinstance(result, RawFallbackResult)
    assert result.kind == "fallback"
    assert result.status_code == 401
    assert result.status == "401 Unauthorized"
    assert result.body == "Unauthenticated"
    assert result.query_sent == query


@pytest.mark.parametrize("body", [
    "<html><body>502 Bad Gateway</body></html>",
    "",
    "[1, 2, 3]",
    '{"status": 5}',
    '{"row_count": "many"}',
    '{"data": {"rows": "none"}}',
    '{"data": {"rows": [[1e400]]}}',
    '{"data": {"rows": [[1.5, NaN]]}, "status": "completed"}',
    '{"average_execution_time": -1e999}',
])
def test_incompatible_bodies_fall_back(body):
    query = MetabaseQuery.native_sql(31, "SELECT 1")
    result = parse_dataset_response(_raw(500, "Internal Server Error", body), query)

    assert isinstance(result, RawFallbackResult)
    assert result.body == body


def test_null_rows_and_columns_keep_their_place():
    body = '{"status": "completed", "data": {"rows": [[1, null], null], "cols": [null, {"name": "id"}]}}'
    query = MetabaseQuery.native_sql(31, "SELECT id, note FROM users")
    result = parse_dataset_response(_raw(202, "Accepted", body), query)

    assert isinstance(result, QueryResult)
    assert result.rows == [[1, None], None]
    assert [column.name for column in result.columns] == ["", "id"]
    assert json.loads(format_result(result))["rows"] == [[1, None], None]


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def test_format_query_result():
    query = MetabaseQuery.native_sql(31, "SELECT COUNT(*) FROM users")
    result = parse_dataset_response(_raw(202, "Accepted", DATASET_RESPONSE), query)

    text = format_result(result)
    payload = json.loads(text)

    assert text.startswith('{\n  "status": "completed"')
    assert list(payload) == [
        "status", "row_count", "running_time", "database_id",
        "cached", "rows", "columns", "query_sent"
    ]
    assert payload["row_count"] == 1
    assert payload["running_time"] == 57
    assert payload["database_id"] == 31
    assert payload["cached"] is False
    assert payload["rows"] == [[42]]
    assert payload["columns"] == [COUNT_COLUMN]
    assert payload["query_sent"] == query.to_wire()


def test_format_includes_remote_query_error():
    failed = {
        "status": "failed",
        "error": "Table \"USERZ\" not found",
        "database_id": 31,
        "row_count": 0,
        "running_time": 12,
        "data": {"rows": [], "cols": []}
    }
    query = MetabaseQuery.native_sql(31, "SELECT * FROM userz")
    payload = json.loads(format_result(parse_dataset_response(_raw(202, "Accepted", failed), query)))

    assert payload["status"] == "failed"
    assert payload["error"] == "Table \"USERZ\" not found"


def test_format_fallback_result():
    query = MetabaseQuery.native_sql(31, "SELECT 1")
    result = parse_dataset_response(_raw(401, "Unauthorized", "Unauthenticated"), query)

    assert json.loads(format_result(result)) == {
        "status_code": 401,
        "status": "401 Unauthorized",
        "body": "Unauthenticated",
        "query_sent": query.to_wire()
    }
