"""Rebuild the folder tree from flat manifest records."""

from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from app.core.exceptions import DataIntegrityFault
from app.schemas.registry import ManifestNode, ManifestRecord

ROOT = "root"


def build_manifest_tree(
    records: Iterable[ManifestRecord | Mapping[str, Any]],
) -> list[ManifestNode]:
    """
    Build the manifest tree from records ordered by upload time.

    Each record gets a dense 1-based display id in input order. Records whose
    id starts with ``root:`` are top level; every other record is attached to
    the folder whose uuid matches its id prefix. Sibling order follows input
    order. The input is left untouched.

    Raises:
        DataIntegrityFault: a record's parent folder is unknown
    """
    items = [
        r if isinstance(r, ManifestRecord) else ManifestRecord.model_validate(r)
        for r in records
    ]

    nodes: list[ManifestNode] = []
    folders: dict[str, ManifestNode] = {}
    for index, record in enumerate(items, start=1):
        node = ManifestNode(
            id=index,
            doc_id=record.doc_id,
            name=record.name,
            type=record.type,
            digest=record.digest,
            size=record.size,
            upload_time=record.upload_time,
            uuid=record.uuid,
        )
        if record.is_folder:
            node.files = []
            if record.uuid is not None:
                folders[str(record.uuid)] = node
        nodes.append(node)

    root: list[ManifestNode] = []
    for record, node in zip(items, nodes):
        parent = record.parent
        if parent == ROOT:
            root.append(node)
            continue
        folder = folders.get(parent)
        if folder is None:
            raise DataIntegrityFault(record.doc_id, parent)
        folder.files.append(node)

    blobs = {f"{r.digest}|{r.size}" for r in items if r.is_file}
    logger.debug(
        f"Manifest tree built: {len(items)} records, {len(root)} top level, "
        f"{len(blobs)} distinct blobs"
    )
    return root


def flatten_manifest_tree(nodes: Iterable[ManifestNode]) -> list[ManifestNode]:
    """Depth-first flattening of a manifest tree."""
    flat: list[ManifestNode] = []
    for node in nodes:
        flat.append(node)
        if node.files:
            flat.extend(flatten_manifest_tree(node.files))
    return flat
