"""Tests for manifest tree reconstruction."""

import copy

import pytest

from app.core.exceptions import DataIntegrityFault
from app.services.manifest_tree import build_manifest_tree, flatten_manifest_tree


def test_build_simple_tree():
    """Test one folder holding one file."""
    records = [
        {"_id": "root:1", "uuid": "u1", "type": "folder", "name": "a"},
        {"_id": "u1:2", "type": "file", "name": "b.txt", "digest": "d1", "size": 10},
    ]

    tree = build_manifest_tree(records)
    data = [node.model_dump(exclude_none=True) for node in tree]

    assert data == [
        {
            "id": 1,
            "doc_id": "root:1",
            "name": "a",
            "type": "folder",
            "uuid": "u1",
            "files": [
                {
                    "id": 2,
                    "doc_id": "u1:2",
                    "name": "b.txt",
                    "type": "file",
                    "digest": "d1",
                    "size": 10,
                }
            ],
        }
    ]


def test_build_nested_tree(sample_records: list[dict]):
    """Test nesting, dense ids and sibling order."""
    tree = build_manifest_tree(sample_records)

    assert [node.name for node in tree] == ["docs", "c.txt"]
    docs = tree[0]
    assert [node.name for node in docs.files] == ["a.txt", "nested", "d.txt"]
    assert [node.id for node in docs.files] == [2, 3, 6]
    nested = docs.files[1]
    assert [node.name for node in nested.files] == ["b.txt"]
    assert tree[1].files is None


def test_flatten_recovers_all_records(sample_records: list[dict]):
    """Test the descendant count equals the record count."""
    tree = build_manifest_tree(sample_records)
    flat = flatten_manifest_tree(tree)

    assert len(flat) == len(sample_records)
    assert sorted(node.id for node in flat) == list(range(1, len(sample_records) + 1))
    assert {node.doc_id for node in flat} == {r["_id"] for r in sample_records}


def test_parent_child_relationships_preserved(sample_records: list[dict]):
    """Test every child sits under the folder named by its id prefix."""
    tree = build_manifest_tree(sample_records)

    def walk(nodes, parent):
        for node in nodes:
            assert node.doc_id.split(":", 1)[0] == parent
            if node.files is not None:
                walk(node.files, node.uuid)

    walk(tree, "root")


def test_build_is_idempotent(sample_records: list[dict]):
    """Test building twice gives identical trees and leaves input alone."""
    original = copy.deepcopy(sample_records)

    first = build_manifest_tree(sample_records)
    second = build_manifest_tree(sample_records)

    assert [n.model_dump() for n in first] == [n.model_dump() for n in second]
    assert sample_records == original


def test_empty_folder_has_empty_files():
    """Test folders without children keep an empty list."""
    tree = build_manifest_tree([{"_id": "root:1", "uuid": "u1", "type": "folder", "name": "empty"}])

    assert tree[0].files == []


def test_loosely_typed_fields_pass_through():
    """Test numeric names, uuids and fractional sizes are kept as stored."""
    records = [
        {"_id": "root:1", "uuid": 5, "type": "folder", "name": 2024, "uploadTime": "2024-01-01"},
        {"_id": "5:2", "type": "file", "name": 7, "digest": "d1", "size": 1.5, "uploadTime": 1.25},
    ]

    tree = build_manifest_tree(records)

    assert tree[0].name == 2024
    assert tree[0].uuid == 5
    assert tree[0].upload_time == "2024-01-01"
    child = tree[0].files[0]
    assert child.doc_id == "5:2"
    assert child.name == 7
    assert child.size == 1.5
    assert child.upload_time == 1.25


def test_orphan_record_aborts():
    """Test an unknown parent folder is a data integrity fault."""
    records = [
        {"_id": "root:1", "uuid": "u1", "type": "folder", "name": "a"},
        {"_id": "missing:2", "type": "file", "name": "orphan.txt"},
    ]

    with pytest.raises(DataIntegrityFault) as exc_info:
        build_manifest_tree(records)

    assert exc_info.value.record_id == "missing:2"
    assert exc_info.value.parent == "missing"


def test_parent_must_be_folder():
    """Test a file uuid cannot act as a parent."""
    records = [
        {"_id": "root:1", "uuid": "f1", "type": "file", "name": "a.txt"},
        {"_id": "f1:2", "type": "file", "name": "b.txt"},
    ]

    with pytest.raises(DataIntegrityFault):
        build_manifest_tree(records)
