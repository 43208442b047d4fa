import pytest
from pymongo.errors import OperationFailure

import database
from core.exceptions import InternalError, PreconditionFailedError


async def test_transaction_commits(mongo_client, fake_db):
    async with database.transaction() as session:
        assert session is mongo_client.session
        await fake_db.orders.insert_one({"order_id": "ord_1"}, session=session)
    assert mongo_client.session.committed
    assert len(fake_db.orders.docs) == 1


async def test_write_conflict_is_a_precondition_failure(mongo_client):
    conflict = OperationFailure("WriteConflict", code=112, details={"errorLabels": ["TransientTransactionError"]})
    with pytest.raises(PreconditionFailedError, match="Concurrent update"):
        async with database.transaction():
            raise conflict
    assert mongo_client.session.aborted


async def test_storage_failure_is_internal_and_rolls_back(mongo_client, fake_db):
    with pytest.raises(InternalError):
        async with database.transaction() as session:
            await fake_db.orders.insert_one({"order_id": "ord_1"}, session=session)
            raise OperationFailure("disk full", code=14031)
    assert mongo_client.session.aborted
    assert fake_db.orders.docs == []


async def test_write_outside_the_session_is_recorded(mongo_client, fake_db):
    async with database.transaction():
        await fake_db.orders.insert_one({"order_id": "ord_1"})
    assert fake_db.stray_writes == ["orders"]


async def test_no_session_without_transactions(fake_db):
    async with database.transaction() as session:
        assert session is None
