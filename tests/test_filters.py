import uuid

from issue_tracker.database.collection import IssueCollection
from issue_tracker.filters import (
    as_text,
    build_list_filter,
    build_update_set,
    parse_bool_flag,
    split_id,
)


def test_parse_bool_flag():
    assert parse_bool_flag("true") is True
    assert parse_bool_flag("false") is False
    assert parse_bool_flag("flase") is False
    assert parse_bool_flag("True") is False
    assert parse_bool_flag(True) is True
    assert parse_bool_flag(False) is False


def test_list_filter_always_scopes_to_project():
    assert build_list_filter("apitest", {}, IssueCollection) == {"project": "apitest"}
    assert build_list_filter("apitest", {"project": "other"}, IssueCollection) == {
        "project": "apitest"
    }


def test_list_filter_skips_empty_values():
    query = build_list_filter("apitest", {"created_by": "", "assigned_to": "bob"}, IssueCollection)

    assert query == {"project": "apitest", "assigned_to": "bob"}


def test_list_filter_coerces_open_and_id():
    issue_id = uuid.uuid4()

    query = build_list_filter(
        "apitest", {"_id": str(issue_id), "open": "false"}, IssueCollection
    )

    assert query == {"project": "apitest", "_id": issue_id, "open": False}


def test_list_filter_passes_unknown_fields_through():
    query = build_list_filter("apitest", {"component": "auth", "open": "true"}, IssueCollection)

    assert query == {"project": "apitest", "component": "auth", "open": True}


def test_list_filter_with_invalid_id_matches_nothing():
    assert build_list_filter("apitest", {"_id": "123"}, IssueCollection) is None


def test_list_filter_with_empty_id_is_ignored():
    assert build_list_filter("apitest", {"_id": ""}, IssueCollection) == {"project": "apitest"}


def test_split_id():
    issue_id, fields = split_id({"_id": "abc", "issue_text": "x"})

    assert issue_id == "abc"
    assert fields == {"issue_text": "x"}
    assert split_id({"issue_text": "x"}) == (None, {"issue_text": "x"})


def test_update_set_drops_empty_strings():
    update = build_update_set({"issue_text": "", "assigned_to": "bob", "status_text": ""})

    assert update == {"assigned_to": "bob"}


def test_update_set_drops_immutable_fields():
    update = build_update_set({"project": "other", "created_on": "yesterday", "issue_title": "t"})

    assert update == {"issue_title": "t"}


def test_update_set_coerces_open():
    assert build_update_set({"open": "false"}) == {"open": False}
    assert build_update_set({"open": "true"}) == {"open": True}
    assert build_update_set({"open": False}) == {"open": False}


def test_update_set_keeps_unknown_fields():
    assert build_update_set({"component": "auth"}) == {"component": "auth"}


def test_update_set_can_be_empty():
    assert build_update_set({"issue_text": ""}) == {}


def test_as_text():
    assert as_text("bob") == "bob"
    assert as_text(True) == "true"
    assert as_text(False) == "false"
    assert as_text(42) == "42"
    assert as_text({"a": 1}) == '{"a": 1}'
    assert as_text(["x"]) == '["x"]'


def test_update_set_normalizes_issue_fields():
    update = build_update_set(
        {"assigned_to": None, "status_text": True, "issue_title": None, "issue_text": 3}
    )

    assert update == {"assigned_to": "", "status_text": "true", "issue_text": "3"}


def test_update_set_open_is_true_only_for_true():
    assert build_update_set({"open": None}) == {"open": False}
    assert build_update_set({"open": 1}) == {"open": False}
    assert build_update_set({"open": True}) == {"open": True}


def test_update_set_leaves_unknown_field_values_alone():
    assert build_update_set({"weight": 3, "labels": None}) == {"weight": 3, "labels": None}
