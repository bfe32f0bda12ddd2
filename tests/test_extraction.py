"""
Tests for the document capability and declarative extraction.

Tests cover:
- Parsing, root check and synthetic identities
- Location resolution (paths, attributes, identity tokens)
- Type coercion and coercion gaps
- The two-step wrapper join
"""
from datetime import date, datetime

import pytest

from cincensus.document import SourceDocument, write_document
from cincensus.engine.extraction import (
    ExtractionSpec,
    FieldSpec,
    coerce_value,
    extract_rows,
    resolve_wrapped_values,
)
from cincensus.exceptions import ParseError
from cincensus.models import FieldType


DOC = b"""<Message>
  <Children>
    <Child code="a">
      <ChildIdentifiers><LAchildID>C1</LAchildID></ChildIdentifiers>
      <ChildCharacteristics>
        <Disabilities><Disability>HAND</Disability><Disability>VIS</Disability></Disabilities>
      </ChildCharacteristics>
    </Child>
    <Child code="b">
      <ChildIdentifiers><LAchildID>C2</LAchildID></ChildIdentifiers>
    </Child>
  </Children>
</Message>"""


@pytest.fixture
def document():
    return SourceDocument.from_bytes(DOC, source="doc.xml")


# =============================================================================
# Document
# =============================================================================

class TestSourceDocument:
    """Tests for parsing and identities."""

    def test_identities_follow_document_order(self, document) -> None:
        children = document.select("/Message/Children/Child")
        assert len(children) == 2
        first, second = (document.identity(c) for c in children)
        assert document.identity(document.root) == 0
        assert first < second

    def test_parent_identity(self, document) -> None:
        child = document.select("/Message/Children/Child")[0]
        wrapper = document.select("/Message/Children")[0]
        assert document.parent_identity(child) == document.identity(wrapper)
        assert document.parent_identity(document.root) is None

    def test_select_wrong_root_is_empty(self, document) -> None:
        assert document.select("/Other/Children") == []
        assert document.select("/Message") == [document.root]

    def test_malformed_document_raises(self) -> None:
        with pytest.raises(ParseError) as excinfo:
            SourceDocument.from_bytes(b"<Message><Children></Message>")
        assert excinfo.value.code == "CC_PARSE_ERROR"

    def test_wrong_root_raises(self) -> None:
        with pytest.raises(ParseError):
            SourceDocument.from_bytes(b"<Return/>")

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(ParseError):
            SourceDocument.from_path(tmp_path / "absent.xml")


class TestResolve:
    """Tests for the location grammar."""

    def test_sub_path_text(self, document) -> None:
        child = document.select("/Message/Children/Child")[0]
        assert document.resolve(child, "ChildIdentifiers/LAchildID") == "C1"

    def test_missing_path_is_none(self, document) -> None:
        child = document.select("/Message/Children/Child")[1]
        assert document.resolve(child, "ChildCharacteristics/Ethnicity") is None
        assert document.resolve(child, "Nope") is None

    def test_attribute(self, document) -> None:
        child = document.select("/Message/Children/Child")[1]
        assert document.resolve(child, "@code") == "b"
        assert document.resolve(child, "@missing") is None

    def test_inner_text(self, document) -> None:
        leaf = document.select("/Message/Children/Child/ChildCharacteristics/Disabilities/Disability")[1]
        assert document.resolve(leaf, ".") == "VIS"

    def test_identity_tokens(self, document) -> None:
        child = document.select("/Message/Children/Child")[0]
        characteristics = document.select("/Message/Children/Child/ChildCharacteristics")[0]
        wrapper = document.select("/Message/Children/Child/ChildCharacteristics/Disabilities")[0]
        assert document.resolve(wrapper, "#id") == str(document.identity(wrapper))
        assert document.resolve(wrapper, "#parent") == str(document.identity(characteristics))
        assert document.resolve(wrapper, "../../#id") == str(document.identity(child))
        assert document.resolve(document.root, "#parent") is None


class TestWriter:
    """Tests for write_document."""

    def test_declaration_and_explicit_empty_elements(self, document) -> None:
        data = write_document(document.root)
        assert data.startswith(b'<?xml version="1.0" encoding="UTF-8"?><Message>')
        assert b"<Empty />" not in write_document(
            SourceDocument.from_bytes(b"<Message><Empty/></Message>").root
        )
        assert b"<Empty></Empty>" in write_document(
            SourceDocument.from_bytes(b"<Message><Empty/></Message>").root
        )


# =============================================================================
# Coercion
# =============================================================================

class TestCoerceValue:
    """Tests for coerce_value."""

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_absent(self, raw) -> None:
        for field_type in FieldType:
            assert coerce_value(raw, field_type) is None

    def test_text_is_raw(self) -> None:
        assert coerce_value("N4", FieldType.TEXT) == "N4"

    def test_integer(self) -> None:
        assert coerce_value("001", FieldType.INTEGER) == 1
        assert coerce_value("-3", FieldType.INTEGER) == -3
        assert coerce_value("1.5", FieldType.INTEGER) is None

    def test_date(self) -> None:
        assert coerce_value("2022-03-31", FieldType.DATE) == date(2022, 3, 31)
        assert coerce_value("2022-03-31Z", FieldType.DATE) == date(2022, 3, 31)
        assert coerce_value("2022-03-31+01:00", FieldType.DATE) == date(2022, 3, 31)
        assert coerce_value("2022-02-30", FieldType.DATE) is None
        assert coerce_value("31/03/2022", FieldType.DATE) is None

    def test_boolean(self) -> None:
        assert coerce_value("true", FieldType.BOOLEAN) is True
        assert coerce_value("1", FieldType.BOOLEAN) is True
        assert coerce_value("false", FieldType.BOOLEAN) is False
        assert coerce_value("0", FieldType.BOOLEAN) is False
        assert coerce_value("yes", FieldType.BOOLEAN) is None

    def test_datetime(self) -> None:
        assert coerce_value("2022-05-23T11:14:05.0Z", FieldType.DATETIME) == datetime(2022, 5, 23, 11, 14, 5)
        assert coerce_value("2022-05-23T11:14:05.123.0Z", FieldType.DATETIME) == datetime(
            2022, 5, 23, 11, 14, 5, 123000
        )
        assert coerce_value("2022-05-23T11:14:05+01:00", FieldType.DATETIME) == datetime(2022, 5, 23, 11, 14, 5)
        assert coerce_value("2022-05-23", FieldType.DATETIME) is None

    def test_datetime_truncates_to_milliseconds(self) -> None:
        value = coerce_value("2022-05-17T14:44:30.123456Z", FieldType.DATETIME)
        assert value == datetime(2022, 5, 17, 14, 44, 30, 123000)
        assert coerce_value("2022-05-17T14:44:30.5Z", FieldType.DATETIME).microsecond == 500000


# =============================================================================
# Extraction
# =============================================================================

class TestExtraction:
    """Tests for extract_rows and resolve_wrapped_values."""

    def test_extract_rows_projects_fields(self, document) -> None:
        spec = ExtractionSpec("/Message/Children/Child", (
            FieldSpec("id", "#id", FieldType.INTEGER),
            FieldSpec("la_child_id", "ChildIdentifiers/LAchildID"),
            FieldSpec("code", "@code"),
        ))
        rows = extract_rows(document, spec)
        assert [r["la_child_id"] for r in rows] == ["C1", "C2"]
        assert [r["code"] for r in rows] == ["a", "b"]
        assert all(isinstance(r["id"], int) for r in rows)

    def test_wrapped_values_join_to_owner(self, document) -> None:
        wrappers = extract_rows(document, ExtractionSpec(
            "/Message/Children/Child/ChildCharacteristics/Disabilities", (
                FieldSpec("wrapper_id", "#id", FieldType.INTEGER),
                FieldSpec("parent_id", "../../#id", FieldType.INTEGER),
            ),
        ))
        leaves = extract_rows(document, ExtractionSpec(
            "/Message/Children/Child/ChildCharacteristics/Disabilities/Disability", (
                FieldSpec("id", "#id", FieldType.INTEGER),
                FieldSpec("wrapper_id", "#parent", FieldType.INTEGER),
                FieldSpec("code", "."),
            ),
        ))
        joined = resolve_wrapped_values(wrappers, leaves)
        child_id = document.identity(document.select("/Message/Children/Child")[0])
        assert [(r["code"], r["parent_id"]) for r in joined] == [("HAND", child_id), ("VIS", child_id)]
        assert all("wrapper_id" not in r for r in joined)

    def test_leaves_without_wrapper_are_dropped(self) -> None:
        wrappers = [{"wrapper_id": 5, "parent_id": 1}]
        leaves = [
            {"id": 6, "wrapper_id": 5, "code": "A"},
            {"id": 8, "wrapper_id": 7, "code": "B"},
        ]
        assert resolve_wrapped_values(wrappers, leaves) == [{"id": 6, "code": "A", "parent_id": 1}]
