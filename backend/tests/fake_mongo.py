"""
In-memory stand-in for a Motor database, enough for the service layer:
filters ($in/$ne/$lt/$lte/$gt/$gte/$exists/$type/$or), $set/$inc/$setOnInsert
updates, projections, sort/skip/limit cursors and unique (partial) indexes
raising pymongo's DuplicateKeyError.

FakeClient hands out sessions whose transactions snapshot every collection
and restore it on abort. While a transaction is open, a write that does not
carry its session is recorded in FakeDatabase.stray_writes.
"""
import copy
from contextlib import asynccontextmanager
from types import SimpleNamespace

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

_MISSING = object()

_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "bool":   lambda v: isinstance(v, bool),
    "double": lambda v: isinstance(v, float),
    "int":    lambda v: isinstance(v, int) and not isinstance(v, bool),
    "null":   lambda v: v is None,
}


def _lookup(doc: dict, path: str):
    value = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _compare(op: str, value, arg) -> bool:
    if value is _MISSING or value is None:
        return False
    try:
        if op == "$lt":
            return value < arg
        if op == "$lte":
            return value <= arg
        if op == "$gt":
            return value > arg
        return value >= arg
    except TypeError:
        return False


def _match_condition(value, cond) -> bool:
    if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
        plain = None if value is _MISSING else value
        for op, arg in cond.items():
            if op == "$in":
                if plain not in arg:
                    return False
            elif op == "$nin":
                if plain in arg:
                    return False
            elif op == "$ne":
                if plain == arg:
                    return False
            elif op in ("$lt", "$lte", "$gt", "$gte"):
                if not _compare(op, value, arg):
                    return False
            elif op == "$exists":
                if (value is not _MISSING) != bool(arg):
                    return False
            elif op == "$type":
                if value is _MISSING or not _TYPE_CHECKS[arg](value):
                    return False
            else:
                raise NotImplementedError(f"Unsupported operator {op}")
        return True
    return (None if value is _MISSING else value) == cond


def matches(doc: dict, query: dict) -> bool:
    for key, cond in (query or {}).items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in cond):
                return False
        elif key == "$and":
            if not all(matches(doc, sub) for sub in cond):
                return False
        elif not _match_condition(_lookup(doc, key), cond):
            return False
    return True


def project(doc: dict, projection) -> dict:
    out = copy.deepcopy(doc)
    if not projection:
        return out
    included = [k for k, v in projection.items() if v and k != "_id"]
    if included:
        picked = {k: out[k] for k in included if k in out}
        if projection.get("_id", 1) and "_id" in out:
            picked["_id"] = out["_id"]
        return picked
    for key, flag in projection.items():
        if not flag:
            out.pop(key, None)
    return out


def _apply_update(doc: dict, update: dict, inserting: bool = False) -> None:
    for op, fields in update.items():
        if op == "$set":
            doc.update(copy.deepcopy(fields))
        elif op == "$inc":
            for key, delta in fields.items():
                doc[key] = doc.get(key, 0) + delta
        elif op == "$unset":
            for key in fields:
                doc.pop(key, None)
        elif op == "$setOnInsert":
            if inserting:
                doc.update(copy.deepcopy(fields))
        else:
            raise NotImplementedError(f"Unsupported update operator {op}")


def _index_values(doc: dict, keys: list) -> tuple:
    values = []
    for key in keys:
        value = _lookup(doc, key)
        values.append(None if value is _MISSING else value)
    return tuple(values)


def _sort_key(value):
    # None (or missing) sorts first, as in MongoDB
    return (0, 0) if value is None or value is _MISSING else (1, value)


class FakeCursor:
    def __init__(self, docs: list, projection=None):
        self._docs = docs
        self._projection = projection
        self._sort: list = []
        self._skip = 0
        self._limit = 0

    def sort(self, key_or_list, direction=None):
        if isinstance(key_or_list, str):
            self._sort = [(key_or_list, direction or 1)]
        else:
            self._sort = list(key_or_list)
        return self

    def skip(self, n: int):
        self._skip = n
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def _resolve(self) -> list:
        docs = list(self._docs)
        for key, direction in reversed(self._sort):
            docs.sort(key=lambda d: _sort_key(_lookup(d, key)), reverse=direction < 0)
        docs = docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        return [project(d, self._projection) for d in docs]

    async def to_list(self, length=None):
        docs = self._resolve()
        return docs if length is None else docs[:length]

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._resolve():
            yield doc


class FakeCollection:
    def __init__(self, name: str, database=None):
        self.name = name
        self.docs: list = []
        self.unique_indexes: list = []
        self.fail_on_insert = None    # exception raised by the next insert_one
        self._database = database

    def _track_write(self, kwargs: dict) -> None:
        active = self._database.active_session if self._database is not None else None
        if active is not None and kwargs.get("session") is not active:
            self._database.stray_writes.append(self.name)

    # ── indexes ──────────────────────────────────────────────────────────────

    async def create_indexes(self, index_models, **kwargs):
        names = []
        for model in index_models:
            index_doc = model.document
            if index_doc.get("unique"):
                self.unique_indexes.append({
                    "keys":    list(index_doc["key"].keys()),
                    "partial": index_doc.get("partialFilterExpression"),
                    "sparse":  index_doc.get("sparse", False),
                })
            names.append(index_doc["name"])
        return names

    def _check_unique(self, candidate: dict, ignore=None) -> None:
        for index in self.unique_indexes:
            if index["partial"] is not None and not matches(candidate, index["partial"]):
                continue
            raw = [_lookup(candidate, k) for k in index["keys"]]
            if index["sparse"] and all(v is _MISSING for v in raw):
                continue
            values = _index_values(candidate, index["keys"])
            for other in self.docs:
                if other is ignore:
                    continue
                if index["partial"] is not None and not matches(other, index["partial"]):
                    continue
                if _index_values(other, index["keys"]) == values:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: {self.name} index: {index['keys']}"
                    )

    # ── reads ────────────────────────────────────────────────────────────────

    def _matching(self, query) -> list:
        return [d for d in self.docs if matches(d, query)]

    async def find_one(self, query=None, projection=None, **kwargs):
        found = self._matching(query)
        return project(found[0], projection) if found else None

    def find(self, query=None, projection=None, **kwargs):
        return FakeCursor(self._matching(query), projection)

    async def count_documents(self, query=None, **kwargs):
        return len(self._matching(query))

    # ── writes ───────────────────────────────────────────────────────────────

    async def insert_one(self, document: dict, **kwargs):
        self._track_write(kwargs)
        if self.fail_on_insert is not None:
            exc, self.fail_on_insert = self.fail_on_insert, None
            raise exc
        if "_id" not in document:
            document["_id"] = ObjectId()
        stored = copy.deepcopy(document)
        self._check_unique(stored)
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=document["_id"], acknowledged=True)

    def _upsert(self, query: dict, update: dict) -> dict:
        doc = {
            k: v for k, v in query.items()
            if not k.startswith("$") and not (isinstance(v, dict) and any(op.startswith("$") for op in v))
        }
        _apply_update(doc, update, inserting=True)
        doc["_id"] = ObjectId()
        self._check_unique(doc)
        self.docs.append(doc)
        return doc

    def _modify(self, target: dict, update: dict) -> dict:
        updated = copy.deepcopy(target)
        _apply_update(updated, update)
        self._check_unique(updated, ignore=target)
        self.docs[self.docs.index(target)] = updated
        return updated

    async def update_one(self, query: dict, update: dict, upsert: bool = False, **kwargs):
        self._track_write(kwargs)
        found = self._matching(query)
        if not found:
            if upsert:
                doc = self._upsert(query, update)
                return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)
        before = found[0]
        after = self._modify(before, update)
        return SimpleNamespace(matched_count=1, modified_count=int(after != before), upserted_id=None)

    async def update_many(self, query: dict, update: dict, **kwargs):
        self._track_write(kwargs)
        found = self._matching(query)
        for doc in found:
            self._modify(doc, update)
        return SimpleNamespace(matched_count=len(found), modified_count=len(found), upserted_id=None)

    async def find_one_and_update(
        self,
        query: dict,
        update: dict,
        projection=None,
        return_document=False,
        upsert: bool = False,
        **kwargs,
    ):
        self._track_write(kwargs)
        found = self._matching(query)
        if not found:
            if upsert:
                doc = self._upsert(query, update)
                return project(doc, projection) if return_document else None
            return None
        before = found[0]
        after = self._modify(before, update)
        return project(after if return_document else before, projection)

    async def delete_many(self, query: dict, **kwargs):
        self._track_write(kwargs)
        found = self._matching(query)
        self.docs = [d for d in self.docs if d not in found]
        return SimpleNamespace(deleted_count=len(found))


class FakeDatabase:
    def __init__(self, name: str = "GetLifeTest"):
        self.name = name
        self.active_session = None
        self.stray_writes: list = []
        self._collections: dict = {}

    def __getattr__(self, name: str) -> FakeCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name, self)
        return self._collections[name]

    def snapshot(self) -> dict:
        return {name: copy.deepcopy(col.docs) for name, col in self._collections.items()}

    def restore(self, snapshot: dict) -> None:
        for name, col in self._collections.items():
            col.docs = snapshot.get(name, [])


class FakeSession:
    def __init__(self, database: FakeDatabase):
        self._database = database
        self.committed = False
        self.aborted = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    @asynccontextmanager
    async def start_transaction(self):
        saved = self._database.snapshot()
        self._database.active_session = self
        try:
            yield
        except Exception:
            self._database.restore(saved)
            self.aborted = True
            raise
        else:
            self.committed = True
        finally:
            self._database.active_session = None


class FakeClient:
    """Motor client stand-in: start_session() over one FakeDatabase."""

    def __init__(self, database: FakeDatabase):
        self.database = database
        self.sessions: list = []

    async def start_session(self) -> FakeSession:
        session = FakeSession(self.database)
        self.sessions.append(session)
        return session

    @property
    def session(self) -> FakeSession:
        """The most recently started session."""
        return self.sessions[-1]
