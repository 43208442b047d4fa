import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession
from pymongo import IndexModel
from pymongo.errors import PyMongoError

from config import settings
from core.exceptions import internal_exception, precondition_exception

logger = logging.getLogger(__name__)

client: AsyncIOMotorClient = None
_db_instance = None


class _DbProxy:
    """
    Transparent proxy to the Motor database.
    Lets services do `from database import db` before connect_db() has run.
    db.collection is resolved against _db_instance at call time.
    """
    def __getattr__(self, name):
        if _db_instance is None:
            raise RuntimeError("Database not connected. Call connect_db() first.")
        return getattr(_db_instance, name)

    def __getitem__(self, name):
        if _db_instance is None:
            raise RuntimeError("Database not connected. Call connect_db() first.")
        return _db_instance[name]


db = _DbProxy()


def use_database(database, mongo_client: Optional[AsyncIOMotorClient] = None) -> None:
    """Point the proxy at an already-built database handle (scripts, tests)."""
    global client, _db_instance
    client = mongo_client
    _db_instance = database


async def connect_db():
    global client, _db_instance
    client = AsyncIOMotorClient(
        settings.MONGO_URL,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=10000,
        tz_aware=True,
    )
    _db_instance = client[settings.DB_NAME]
    logger.info(f"Connected to MongoDB: {settings.DB_NAME}")
    try:
        await create_indexes()
    except Exception as e:
        logger.warning(f"Could not create indexes (non-blocking): {e}")


async def close_db():
    global client
    if client:
        client.close()
        logger.info("MongoDB connection closed")


@asynccontextmanager
async def transaction() -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
    """
    Run a block as one MongoDB transaction.

    Yields the session to pass as ``session=`` to every collection call.
    Commits when the block exits normally, aborts when it raises.
    Yields None when transactions are disabled or no client is attached,
    in which case callers still rely on their conditional updates.

    A write conflict with a concurrent transaction surfaces as a precondition
    failure; any other storage error as an internal error. Neither is retried.
    """
    if client is None or not settings.MONGO_TRANSACTIONS:
        yield None
        return
    async with await client.start_session() as session:
        try:
            async with session.start_transaction():
                yield session
        except PyMongoError as exc:
            if exc.has_error_label("TransientTransactionError"):
                logger.warning("Transaction aborted by a concurrent update: %s", exc)
                raise precondition_exception("Concurrent update, please retry")
            logger.exception("Transaction failed")
            raise internal_exception("Storage transaction failed")


async def create_indexes():
    collections_to_index = {
        "credentials": [
            IndexModel([("email", 1)], unique=True),
            IndexModel([("user_id", 1)], unique=True),
        ],
        "profiles": [
            IndexModel([("user_id", 1)], unique=True),
            IndexModel([("role", 1)]),
        ],
        "services": [
            IndexModel([("service_id", 1)], unique=True),
            IndexModel([("is_active", 1)]),
        ],
        "orders": [
            IndexModel([("order_id", 1)], unique=True),
            IndexModel([("user_id", 1)]),
            IndexModel([("mitra_id", 1)]),
            IndexModel([("status", 1)]),
            IndexModel([("created_at", 1)]),
        ],
        "balance_transactions": [
            IndexModel([("tx_id", 1)], unique=True),
            IndexModel([("user_id", 1), ("status", 1)]),
            IndexModel([("order_id", 1)]),
            IndexModel([("created_at", 1)]),
            IndexModel(
                [("reference", 1)],
                unique=True,
                partialFilterExpression={"reference": {"$type": "string"}},
            ),
        ],
        "topup_requests": [
            IndexModel([("topup_id", 1)], unique=True),
            IndexModel([("user_id", 1)]),
            IndexModel([("status", 1)]),
        ],
        "vouchers": [
            IndexModel([("voucher_id", 1)], unique=True),
            IndexModel([("code", 1)], unique=True),
        ],
        "voucher_usages": [
            IndexModel([("usage_id", 1)], unique=True),
            IndexModel([("voucher_id", 1), ("user_id", 1)], unique=True),
        ],
        "mitra_verifications": [
            IndexModel([("verification_id", 1)], unique=True),
            IndexModel([("mitra_id", 1)]),
            IndexModel([("status", 1)]),
        ],
        "banners": [
            IndexModel([("banner_id", 1)], unique=True),
            IndexModel([("order_index", 1)]),
        ],
        "chat_messages": [
            IndexModel([("message_id", 1)], unique=True),
            IndexModel([("order_id", 1)]),
            IndexModel([("created_at", 1)]),
        ],
    }

    for collection_name, index_models in collections_to_index.items():
        try:
            await _db_instance[collection_name].create_indexes(index_models)
            logger.info(f"Indexes created for collection: {collection_name}")
        except Exception as e:
            logger.error(f"Failed to create indexes for collection {collection_name}: {e}")

    logger.info("All MongoDB indexes creation attempts completed.")
