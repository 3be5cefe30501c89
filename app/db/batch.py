"""
WriteBatch - all-or-nothing multi-document writes.

Operations are staged in memory and applied inside a single MongoDB
transaction on commit. Either every staged write lands or none does.

Guarded operations (those given a guard_plan_id) raise RaceConditionError
when their filter matches nothing, which aborts the transaction. The plan
version guard uses this to detect a concurrent writer.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.exceptions import RaceConditionError, StoreError

logger = logging.getLogger(__name__)

INSERT = "insert"
UPDATE = "update"
DELETE = "delete"


@dataclass
class BatchOperation:
    kind: str
    collection: str
    filter: Dict[str, Any] = field(default_factory=dict)
    document: Optional[Dict[str, Any]] = None
    update: Optional[Dict[str, Any]] = None
    # plan id to report when a guarded operation matches nothing
    guard_plan_id: Optional[str] = None


class WriteBatch:
    """Collects writes and commits them in one transaction."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.operations: List[BatchOperation] = []

    def __len__(self) -> int:
        return len(self.operations)

    def insert(self, collection: str, document: Dict[str, Any]) -> None:
        self.operations.append(BatchOperation(INSERT, collection, document=document))

    def update(
        self,
        collection: str,
        filter: Dict[str, Any],
        update: Dict[str, Any],
        guard_plan_id: Optional[str] = None
    ) -> None:
        self.operations.append(
            BatchOperation(UPDATE, collection, filter=filter, update=update, guard_plan_id=guard_plan_id)
        )

    def delete(
        self,
        collection: str,
        filter: Dict[str, Any],
        guard_plan_id: Optional[str] = None
    ) -> None:
        self.operations.append(
            BatchOperation(DELETE, collection, filter=filter, guard_plan_id=guard_plan_id)
        )

    async def commit(self) -> None:
        """
        Apply every staged operation in one transaction.

        Raises RaceConditionError if a guarded operation matched nothing and
        StoreError if the store rejected the transaction. In both cases no
        write is applied.
        """
        if not self.operations:
            return

        try:
            async with await self.db.client.start_session() as session:
                async with session.start_transaction():
                    for operation in self.operations:
                        await self._apply(operation, session)
        except PyMongoError as exc:
            logger.exception("Batch of %d operations failed", len(self.operations))
            raise StoreError(f"Document store rejected the batch: {exc}") from exc

        logger.debug("Committed batch of %d operations", len(self.operations))

    async def _apply(self, operation: BatchOperation, session) -> None:
        collection = self.db[operation.collection]

        if operation.kind == INSERT:
            await collection.insert_one(operation.document, session=session)
            return

        if operation.kind == UPDATE:
            result = await collection.update_one(operation.filter, operation.update, session=session)
            matched = result.matched_count
        else:
            result = await collection.delete_one(operation.filter, session=session)
            matched = result.deleted_count

        if operation.guard_plan_id is not None and matched == 0:
            logger.warning(
                "Guarded %s on %s matched nothing; aborting batch",
                operation.kind,
                operation.collection
            )
            raise RaceConditionError(operation.guard_plan_id)
