import uuid
from datetime import datetime, timedelta, timezone

import pytest

from promocode.models.object_versioning import ObjectVersioning
from promocode.services import object_versioning
from promocode.services.object_versioning import VersioningNotSupported, load_snapshot

from tests.fixtures_data import OTHER_TENANT_ID, TENANT_ID


def _version(object_id, *, object_type="PromotionalCode", tenant=TENANT_ID, minutes=0, after='{"n": 1}'):
    return ObjectVersioning(
        id=uuid.uuid4(),
        object_type=object_type,
        object_id=object_id,
        object_tenant=tenant,
        before_value=None,
        after_value=after,
        updated_on=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
        updated_by="alice",
    )


async def test_append_and_get_version(db):
    object_id = uuid.uuid4()
    version_id = await object_versioning.append_version(
        db,
        object_type="PromotionalCode",
        object_id=object_id,
        object_tenant=TENANT_ID,
        before_value=None,
        after_value='{"name": "Promo1"}',
        updated_by="alice",
    )

    version = await object_versioning.get_version(db, version_id)
    assert version is not None
    assert version.object_id == object_id
    assert version.before_value is None
    assert load_snapshot(version.after_value) == {"name": "Promo1"}
    assert version.updated_by == "alice"
    assert version.updated_on is not None


async def test_get_missing_version_returns_none(db):
    assert await object_versioning.get_version(db, uuid.uuid4()) is None


async def test_list_for_object_filters_and_orders_newest_first(db):
    object_id = uuid.uuid4()
    db.add_all(
        [
            _version(object_id, minutes=1, after='{"n": 1}'),
            _version(object_id, minutes=3, after='{"n": 3}'),
            _version(object_id, minutes=2, after='{"n": 2}'),
            _version(object_id, tenant=OTHER_TENANT_ID, minutes=5),
            _version(object_id, object_type="Tenant", minutes=6),
            _version(uuid.uuid4(), minutes=7),
        ]
    )
    await db.commit()

    rows = await object_versioning.list_versions_for_object(
        db, object_type="PromotionalCode", object_tenant=TENANT_ID, object_id=object_id
    )
    assert [load_snapshot(r.after_value)["n"] for r in rows] == [3, 2, 1]

    by_id = await object_versioning.list_versions_by_object_id(db, object_id)
    assert len(by_id) == 5

    everything = await object_versioning.list_all_versions(db)
    assert len(everything) == 6
    assert everything[0].updated_on >= everything[-1].updated_on


async def test_versions_are_append_only(db):
    with pytest.raises(VersioningNotSupported):
        await object_versioning.update_version(db, uuid.uuid4(), after_value="{}")
    with pytest.raises(NotImplementedError):
        await object_versioning.delete_version(db, uuid.uuid4())


def test_load_snapshot_of_missing_value():
    assert load_snapshot(None) is None
