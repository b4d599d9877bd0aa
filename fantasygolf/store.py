"""
Document store used by the league services.

Collections hold plain dicts keyed by ``id``. Queries are equality matches on
top-level fields; a ``set`` value matches any of its members. Every write,
including a whole ``bulk_write`` batch, is applied to a copy of the
collection and swapped in only once it has succeeded, so readers never see a
partial batch.

Example:
    store = MemoryStore()
    doc = store.insert('golfers', {'first_name': 'Ann', 'last_name': 'Lee', 'price': 5_000_000})
    store.find('golfers', {'id': {doc['id']}})
"""

import copy
import logging
import uuid
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from .constants import UNIQUE_INDEXES
from .errors import DependencyError, DuplicateKeyError
from .utils import load_json, save_json

logger = logging.getLogger('fantasygolf.store')

Query = dict[str, Any]


def new_id() -> str:
    return uuid.uuid4().hex


def matches(doc: dict, query: Optional[Query]) -> bool:
    if not query:
        return True
    for key, expected in query.items():
        actual = doc.get(key)
        if isinstance(expected, (set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class _Collection:
    """Documents plus the lookup table of an optional unique index."""

    def __init__(self, name: str, unique: tuple[str, ...] = ()):
        self.name = name
        self.unique = unique
        self.docs: dict[str, dict] = {}
        self.index: dict[tuple, str] = {}

    def copy(self) -> '_Collection':
        clone = _Collection(self.name, self.unique)
        clone.docs = dict(self.docs)
        clone.index = dict(self.index)
        return clone

    def key_of(self, doc: dict) -> Optional[tuple]:
        if not self.unique:
            return None
        return tuple(doc.get(f) for f in self.unique)

    def lookup(self, query: Query) -> Optional[dict]:
        """Index hit when ``query`` is exactly the unique key."""
        if self.unique and set(query) == set(self.unique):
            doc_id = self.index.get(tuple(query[f] for f in self.unique))
            return self.docs.get(doc_id) if doc_id else None
        for doc in self.docs.values():
            if matches(doc, query):
                return doc
        return None

    def put(self, doc: dict) -> None:
        key = self.key_of(doc)
        if key is not None:
            owner = self.index.get(key)
            if owner is not None and owner != doc['id']:
                raise DuplicateKeyError(f'Duplicate key {dict(zip(self.unique, key))} in {self.name}')
            previous = self.docs.get(doc['id'])
            if previous is not None:
                old_key = self.key_of(previous)
                if old_key != key:
                    self.index.pop(old_key, None)
            self.index[key] = doc['id']
        self.docs[doc['id']] = doc

    def remove(self, doc_id: str) -> bool:
        doc = self.docs.pop(doc_id, None)
        if doc is None:
            return False
        key = self.key_of(doc)
        if key is not None:
            self.index.pop(key, None)
        return True


class MemoryStore:
    """In-process document store with unique indexes and atomic batches."""

    def __init__(self, unique_indexes: Optional[dict[str, tuple[str, ...]]] = None):
        self._unique = dict(UNIQUE_INDEXES if unique_indexes is None else unique_indexes)
        self._collections: dict[str, _Collection] = {}

    # -- internals -------------------------------------------------------

    def _collection(self, name: str) -> _Collection:
        if name not in self._collections:
            self._collections[name] = self._load(name)
        return self._collections[name]

    def _load(self, name: str) -> _Collection:
        return _Collection(name, self._unique.get(name, ()))

    def _persist(self, collection: _Collection) -> None:
        """Hook for durable stores. Raises DependencyError on failure."""

    def _write(self, name: str, apply: Callable[[_Collection], Any]) -> Any:
        staged = self._collection(name).copy()
        result = apply(staged)
        self._persist(staged)
        self._collections[name] = staged
        return result

    @staticmethod
    def _out(doc: Optional[dict]) -> Optional[dict]:
        return copy.deepcopy(doc) if doc is not None else None

    # -- reads -----------------------------------------------------------

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        return self._out(self._collection(collection).docs.get(doc_id))

    def find(
        self,
        collection: str,
        query: Optional[Query] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict]:
        docs = [d for d in self._collection(collection).docs.values() if matches(d, query)]
        if sort_by:
            docs.sort(key=lambda d: (d.get(sort_by) is None, d.get(sort_by)), reverse=descending)
        return [self._out(d) for d in docs]

    def find_one(self, collection: str, query: Query) -> Optional[dict]:
        return self._out(self._collection(collection).lookup(query))

    def count(self, collection: str, query: Optional[Query] = None) -> int:
        return sum(1 for d in self._collection(collection).docs.values() if matches(d, query))

    # -- writes ----------------------------------------------------------

    @staticmethod
    def _insert(coll: _Collection, doc: dict) -> dict:
        doc = copy.deepcopy(doc)
        doc.setdefault('id', new_id())
        if doc['id'] in coll.docs:
            raise DuplicateKeyError(f"Duplicate id {doc['id']} in {coll.name}")
        coll.put(doc)
        return doc

    @staticmethod
    def _update(coll: _Collection, doc_id: str, changes: dict) -> Optional[dict]:
        current = coll.docs.get(doc_id)
        if current is None:
            return None
        doc = {**current, **copy.deepcopy(changes), 'id': doc_id}
        coll.put(doc)
        return doc

    @classmethod
    def _upsert(cls, coll: _Collection, query: Query, changes: dict, on_insert: Optional[dict]) -> dict:
        current = coll.lookup(query)
        if current is not None:
            return cls._update(coll, current['id'], changes)
        return cls._insert(coll, {**(on_insert or {}), **query, **changes})

    def insert(self, collection: str, doc: dict) -> dict:
        return self._out(self._write(collection, lambda c: self._insert(c, doc)))

    def update(self, collection: str, doc_id: str, changes: dict) -> Optional[dict]:
        """Merge ``changes`` into a document. Returns None when it does not exist."""
        if doc_id not in self._collection(collection).docs:
            return None
        return self._out(self._write(collection, lambda c: self._update(c, doc_id, changes)))

    def update_many(self, collection: str, query: Optional[Query], changes: dict) -> int:
        def apply(coll: _Collection) -> int:
            ids = [d['id'] for d in coll.docs.values() if matches(d, query)]
            for doc_id in ids:
                self._update(coll, doc_id, changes)
            return len(ids)

        return self._write(collection, apply)

    def upsert(
        self,
        collection: str,
        query: Query,
        changes: dict,
        on_insert: Optional[dict] = None,
    ) -> dict:
        """
        Update the document matching ``query`` or insert a new one.

        ``on_insert`` fields (e.g. ``created_at``) are written only when the
        document is created.
        """
        return self._out(self._write(collection, lambda c: self._upsert(c, query, changes, on_insert)))

    def bulk_write(self, collection: str, operations: Iterable[tuple]) -> list[dict]:
        """
        Apply a batch of writes as one unit.

        Operations:
            ('insert', doc)
            ('update', doc_id, changes)
            ('upsert', query, changes[, on_insert])
            ('delete', doc_id)

        Returns:
            The written documents, in operation order (deletes excluded)
        """
        operations = list(operations)

        def apply(coll: _Collection) -> list[dict]:
            written = []
            for op in operations:
                kind = op[0]
                if kind == 'insert':
                    written.append(self._insert(coll, op[1]))
                elif kind == 'update':
                    doc = self._update(coll, op[1], op[2])
                    if doc is not None:
                        written.append(doc)
                elif kind == 'upsert':
                    written.append(self._upsert(coll, op[1], op[2], op[3] if len(op) > 3 else None))
                elif kind == 'delete':
                    coll.remove(op[1])
                else:
                    raise ValueError(f'Unknown bulk operation: {kind}')
            return written

        if not operations:
            return []
        return [self._out(d) for d in self._write(collection, apply)]

    def delete(self, collection: str, doc_id: str) -> bool:
        if doc_id not in self._collection(collection).docs:
            return False
        return self._write(collection, lambda c: c.remove(doc_id))

    def delete_many(self, collection: str, query: Optional[Query] = None) -> int:
        def apply(coll: _Collection) -> int:
            ids = [d['id'] for d in coll.docs.values() if matches(d, query)]
            for doc_id in ids:
                coll.remove(doc_id)
            return len(ids)

        if self.count(collection, query) == 0:
            return 0
        return self._write(collection, apply)


class JsonStore(MemoryStore):
    """
    MemoryStore persisted as one JSON file per collection under ``data_dir``.

    Collections are read lazily on first access. A missing file is an empty
    collection; an unreadable or malformed one raises DependencyError rather
    than loading as empty. A failed write raises DependencyError and leaves
    both the file and the in-memory state as they were.
    """

    def __init__(self, data_dir: Path | str, unique_indexes: Optional[dict[str, tuple[str, ...]]] = None):
        super().__init__(unique_indexes)
        self.data_dir = Path(data_dir)

    def _path(self, name: str) -> Path:
        return self.data_dir / f'{name}.json'

    def _load(self, name: str) -> _Collection:
        coll = super()._load(name)
        if not self._path(name).exists():
            return coll
        try:
            docs = load_json(self._path(name))
        except (OSError, ValueError) as e:
            raise DependencyError(f'Cannot load collection {name}: {e}') from e
        if not isinstance(docs, list):
            raise DependencyError(f'Cannot load collection {name}: expected a list of documents')
        for doc in docs:
            coll.put(doc)
        logger.debug(f'Loaded {len(coll.docs)} documents from {self._path(name)}')
        return coll

    def _persist(self, collection: _Collection) -> None:
        save_json(self._path(collection.name), list(collection.docs.values()))
