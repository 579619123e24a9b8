"""
Document store used to persist shoes and past views.

The store is a flat set of named collections holding JSON-like records keyed
by a random id. Only the handful of operations the sync layer needs are
supported: insert, query by one field, delete by id and delete by reference.
"""
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from .errors import StoreError
from .log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DocumentRef:
    """Points at one record in one collection."""
    collection: str
    id: str


@dataclass
class Document:
    """A record returned by a query."""
    id: str
    data: Dict[str, Any]
    ref: DocumentRef = field(repr=False)


def new_document_id() -> str:
    return uuid.uuid4().hex


class DocumentStore:
    """Interface of the remote collection store."""

    async def insert(self, collection: str, record: Dict[str, Any]) -> str:
        raise NotImplementedError

    async def query_by_field(self, collection: str, field_name: str, value: Any) -> List[Document]:
        raise NotImplementedError

    async def delete_by_id(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    async def delete_by_ref(self, ref: DocumentRef) -> None:
        await self.delete_by_id(ref.collection, ref.id)


class MemoryDocumentStore(DocumentStore):
    """Keeps every collection in a dict. Records come back in insertion order."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    async def insert(self, collection: str, record: Dict[str, Any]) -> str:
        doc_id = new_document_id()
        self.collections.setdefault(collection, {})[doc_id] = dict(record)
        return doc_id

    async def query_by_field(self, collection: str, field_name: str, value: Any) -> List[Document]:
        records = self.collections.get(collection, {})
        return [
            Document(id=doc_id, data=dict(data), ref=DocumentRef(collection, doc_id))
            for doc_id, data in records.items()
            if data.get(field_name) == value
        ]

    async def delete_by_id(self, collection: str, doc_id: str) -> None:
        records = self.collections.get(collection, {})
        if doc_id not in records:
            raise StoreError(f"Document {collection}/{doc_id} not found")
        del records[doc_id]


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonDocumentStore(DocumentStore):
    """
    Stores all collections in one JSON file.

    The file is read on every call and rewritten on every change, so several
    processes can share it as long as they do not write at the same moment.
    Datetimes are written as ISO-8601 strings.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Unexpected data in {self.path}")
        return data

    def _save(self, data: Dict[str, Dict[str, Dict[str, Any]]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2, default=_encode_value)
        except (OSError, TypeError) as e:
            raise StoreError(f"Failed to write {self.path}: {e}") from e

    async def insert(self, collection: str, record: Dict[str, Any]) -> str:
        data = self._load()
        doc_id = new_document_id()
        data.setdefault(collection, {})[doc_id] = record
        self._save(data)
        logger.debug("Inserted %s/%s", collection, doc_id)
        return doc_id

    async def query_by_field(self, collection: str, field_name: str, value: Any) -> List[Document]:
        records = self._load().get(collection, {})
        return [
            Document(id=doc_id, data=doc, ref=DocumentRef(collection, doc_id))
            for doc_id, doc in records.items()
            if isinstance(doc, dict) and doc.get(field_name) == value
        ]

    async def delete_by_id(self, collection: str, doc_id: str) -> None:
        data = self._load()
        records = data.get(collection, {})
        if doc_id not in records:
            raise StoreError(f"Document {collection}/{doc_id} not found")
        del records[doc_id]
        self._save(data)
        logger.debug("Deleted %s/%s", collection, doc_id)
