"""MongoDB implementation of DocumentStore.

Records live in a single collection keyed by their full path:

    {"_id": "area/greater-boston/cities/boston", "fields": {...}, "_rev": 3}

``_rev`` is bumped by every write and drives the compare-and-set used by
transactions. Change notifications come from a change stream; the collection
has pre- and post-images enabled so Update and Delete events carry ``before``.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from domain.exceptions import NotFound, ReadError, WriteError
from domain.models import ChangeEvent, DocumentPath, Record
from domain.repositories import DEFAULT_MAX_TRANSACTION_ATTEMPTS, DocumentStore

logger = logging.getLogger(__name__)

WATCHED_OPERATIONS = ["insert", "update", "replace", "delete"]


class MotorDocumentStore(DocumentStore):
    """Motor-backed DocumentStore.

    Either pass a ready collection (tests) or call ``connect_async()`` once at
    process start; the client is shared by every handler invocation.
    """

    def __init__(
        self,
        connection_string: str = "mongodb://localhost:27017",
        database_name: str = "documents",
        collection_name: str = "documents",
        max_transaction_attempts: int = DEFAULT_MAX_TRANSACTION_ATTEMPTS,
        collection: AsyncIOMotorCollection | None = None,
    ):
        super().__init__(max_transaction_attempts)
        self._connection_string = connection_string
        self._database_name = database_name
        self._collection_name = collection_name
        self._client: AsyncIOMotorClient | None = None
        self._collection = collection
        self._resume_token: dict[str, Any] | None = None

    async def connect_async(self) -> None:
        """Open the client, verify it and enable pre/post images on the collection."""
        if self._collection is not None:
            return

        logger.info(f"Connecting to MongoDB: {self._connection_string.split('@')[-1]} / {self._database_name}")
        self._client = AsyncIOMotorClient(self._connection_string)
        db = self._client[self._database_name]
        try:
            await self._client.admin.command("ping")
            if self._collection_name in await db.list_collection_names():
                await db.command("collMod", self._collection_name, changeStreamPreAndPostImages={"enabled": True})
            else:
                await db.create_collection(self._collection_name, changeStreamPreAndPostImages={"enabled": True})
        except PyMongoError as e:
            logger.error(f"❌ Failed to connect to MongoDB: {e}")
            raise
        self._collection = db[self._collection_name]
        logger.info("✅ MongoDB connection established")

    async def disconnect_async(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
            self._collection = None
            logger.info("MongoDB connection closed")

    @property
    def collection(self) -> AsyncIOMotorCollection:
        if self._collection is None:
            raise RuntimeError("MongoDB not connected. Call connect_async() first.")
        return self._collection

    async def read_async(self, path: DocumentPath | str) -> Record:
        path = DocumentPath.parse(path)
        try:
            doc = await self.collection.find_one({"_id": str(path)})
        except PyMongoError as e:
            raise ReadError(str(path), str(e)) from e
        if doc is None:
            raise NotFound(str(path))
        return Record.of(path, doc.get("fields", {}))

    async def write_async(self, path: DocumentPath | str, fields: dict[str, Any], merge: bool = True) -> None:
        path = DocumentPath.parse(path)
        for name in fields:
            if "." in name or name.startswith("$"):
                raise WriteError(str(path), f"invalid field name '{name}'")

        if not merge:
            update: dict[str, Any] = {"$set": {"fields": fields}, "$inc": {"_rev": 1}}
        elif fields:
            update = {"$set": {f"fields.{name}": value for name, value in fields.items()}, "$inc": {"_rev": 1}}
        else:
            update = {"$setOnInsert": {"fields": {}, "_rev": 1}}

        try:
            await self.collection.update_one({"_id": str(path)}, update, upsert=True)
        except PyMongoError as e:
            raise WriteError(str(path), str(e)) from e

    async def delete_async(self, path: DocumentPath | str) -> None:
        path = DocumentPath.parse(path)
        try:
            await self.collection.delete_one({"_id": str(path)})
        except PyMongoError as e:
            raise WriteError(str(path), str(e)) from e

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        """Watch the collection, resuming after the last change seen by a previous stream."""
        pipeline = [{"$match": {"operationType": {"$in": WATCHED_OPERATIONS}}}]
        async with self.collection.watch(
            pipeline,
            full_document="whenAvailable",
            full_document_before_change="whenAvailable",
            resume_after=self._resume_token,
        ) as stream:
            async for change in stream:
                self._resume_token = stream.resume_token
                event = self._to_change_event(change)
                if event is not None:
                    yield event

    async def _read_versioned_async(self, record_path: DocumentPath, field: str) -> tuple[Any, int]:
        try:
            doc = await self.collection.find_one({"_id": str(record_path)}, {f"fields.{field}": 1, "_rev": 1})
        except PyMongoError as e:
            raise ReadError(str(record_path), str(e)) from e
        if doc is None:
            return None, 0
        return doc.get("fields", {}).get(field), doc.get("_rev", 0)

    async def _compare_and_set_async(self, record_path: DocumentPath, field: str, value: Any, revision: int) -> bool:
        try:
            if revision == 0:
                # Missing or never-versioned Record: a concurrent insert surfaces as a duplicate key.
                await self.collection.update_one(
                    {"_id": str(record_path), "_rev": {"$exists": False}},
                    {"$set": {f"fields.{field}": value, "_rev": 1}},
                    upsert=True,
                )
                return True
            result = await self.collection.update_one(
                {"_id": str(record_path), "_rev": revision},
                {"$set": {f"fields.{field}": value}, "$inc": {"_rev": 1}},
            )
            return result.matched_count == 1
        except DuplicateKeyError:
            return False
        except PyMongoError as e:
            raise WriteError(str(record_path), str(e)) from e

    @staticmethod
    def _to_change_event(change: dict[str, Any]) -> ChangeEvent | None:
        path = DocumentPath.parse(change["documentKey"]["_id"])
        operation = change["operationType"]
        before_doc = change.get("fullDocumentBeforeChange")
        after_doc = change.get("fullDocument")
        before = Record.of(path, before_doc.get("fields", {})) if before_doc else None
        after = Record.of(path, after_doc.get("fields", {})) if after_doc else None

        if operation == "insert" and after is not None:
            return ChangeEvent.created(after)
        if operation in ("update", "replace") and before is not None and after is not None:
            return ChangeEvent.updated(before, after)
        if operation == "delete" and before is not None:
            return ChangeEvent.deleted(before)

        logger.warning(f"Skipping {operation} change on {path}: snapshot images unavailable")
        return None
