import uuid
from types import SimpleNamespace

import pytest

from promocode.models.promotional_code import PromoCodeStatus, PromotionalCode
from promocode.schemas.promo_codes import PromotionalCodeCreate, PromotionalCodeUpdate
from promocode.services import object_versioning, promo_codes
from promocode.services import promo_code_store as store
from promocode.services.object_versioning import load_snapshot
from promocode.services.promo_code_store import InvalidPromoCodeArgument, RedemptionOutcome

from tests.fixtures_data import TENANT_ID


async def _versions(db, code_id):
    return await object_versioning.list_versions_for_object(
        db, object_type=store.OBJECT_TYPE, object_tenant=TENANT_ID, object_id=code_id
    )


async def test_create_defaults_remaining_uses_to_max_uses(db):
    payload = PromotionalCodeCreate(name="Promo1", code="PROMO1", max_uses=7)
    code_id = await promo_codes.create_code(db, payload, created_by="alice", tenant_id=TENANT_ID)

    row = await db.get(PromotionalCode, code_id)
    assert row.remaining_uses == 7
    assert row.tenant_id == TENANT_ID
    assert row.created_by == "alice"


async def test_create_without_payload(db):
    with pytest.raises(InvalidPromoCodeArgument):
        await promo_codes.create_code(db, None, created_by="alice", tenant_id=TENANT_ID)


async def test_redeem_ten_uses_then_refuse(db, cache, make_code):
    code_id = await make_code(name="Promo1", code="PROMO1", max_uses=10, remaining_uses=10)

    results = [await promo_codes.redeem_code(db, cache, "PROMO1") for _ in range(10)]
    assert all(results)

    assert await promo_codes.redeem_code(db, cache, "PROMO1") is False

    fetched = await promo_codes.get_code(db, cache, code_id)
    assert fetched is not None
    assert fetched.remaining_uses == 0
    assert await promo_codes.check_availability(db, "PROMO1") == 0

    # creation + ten redemptions; the refused attempt leaves no trace
    assert len(await _versions(db, code_id)) == 11


async def test_redeem_with_no_uses_left_changes_nothing(db, cache, make_code):
    code_id = await make_code(code="ZERO", max_uses=0)
    before = await db.get(PromotionalCode, code_id)
    updated_at = before.updated_at

    assert await promo_codes.redeem_code(db, cache, "ZERO") is False

    row = await db.get(PromotionalCode, code_id)
    assert row.remaining_uses == 0
    assert row.updated_at == updated_at
    assert len(await _versions(db, code_id)) == 1


async def test_redeem_unknown_code(db, cache):
    assert await promo_codes.redeem_code_outcome(db, cache, "MISSING") is RedemptionOutcome.NOT_FOUND
    assert await promo_codes.redeem_code(db, cache, "MISSING") is False


async def test_deactivate_records_status_change(db, cache, make_code):
    code_id = await make_code()

    assert await promo_codes.deactivate_code(db, cache, code_id, updated_by="alice") is True

    assert await promo_codes.get_code(db, cache, code_id) is None
    versions = await _versions(db, code_id)
    latest = versions[0]
    assert load_snapshot(latest.before_value)["status"] == "active"
    assert load_snapshot(latest.after_value)["status"] == "inactive"
    assert latest.updated_by == "alice"


async def test_deactivate_unknown_or_inactive_code(db, cache, make_code):
    assert await promo_codes.deactivate_code(db, cache, uuid.uuid4(), updated_by="alice") is False

    code_id = await make_code()
    await promo_codes.deactivate_code(db, cache, code_id, updated_by="alice")
    assert await promo_codes.deactivate_code(db, cache, code_id, updated_by="alice") is False
    assert len(await _versions(db, code_id)) == 2


async def test_delete_hides_code_and_invalidates_cache(db, cache, make_code):
    code_id = await make_code()
    assert await promo_codes.get_code(db, cache, code_id) is not None

    assert await promo_codes.delete_code(db, cache, code_id, updated_by="alice") is True

    assert await promo_codes.get_code(db, cache, code_id) is None
    assert await cache.exists(str(code_id)) is False
    assert await promo_codes.get_active_codes(db) == []

    row = await db.get(PromotionalCode, code_id)
    assert row.is_deleted is True
    assert row.status == PromoCodeStatus.DELETED.value


async def test_delete_unknown_code_still_reports_success(db, cache):
    missing = uuid.uuid4()
    assert await promo_codes.delete_code(db, cache, missing, updated_by="alice") is True
    assert await object_versioning.list_versions_by_object_id(db, missing) == []


async def test_update_invalidates_cached_copy(db, cache, make_code):
    code_id = await make_code()
    await promo_codes.get_code(db, cache, code_id)

    await promo_codes.update_code(db, cache, code_id, PromotionalCodeUpdate(name="Renamed"), updated_by="alice")

    fetched = await promo_codes.get_code(db, cache, code_id)
    assert fetched.name == "Renamed"


async def test_get_code_served_from_cache_until_invalidated(db, memory_cache, make_code):
    code_id = await make_code()
    first = await promo_codes.get_code(db, memory_cache, code_id)

    # change the row behind the engine's back
    await store.update_code(db, code_id, PromotionalCodeUpdate(name="Changed"), updated_by="alice")

    cached = await promo_codes.get_code(db, memory_cache, code_id)
    assert cached == first
    assert cached.name == "Promo1"

    await memory_cache.remove(str(code_id))
    assert (await promo_codes.get_code(db, memory_cache, code_id)).name == "Changed"


async def test_get_code_unknown_id_is_not_cached(db, memory_cache):
    missing = uuid.uuid4()
    assert await promo_codes.get_code(db, memory_cache, missing) is None
    assert await memory_cache.exists(str(missing)) is False


async def test_get_active_codes_by_tenant(db, cache, make_code):
    code_id = await make_code()
    rows = await promo_codes.get_active_codes(db, tenant_id=TENANT_ID)
    assert [r.id for r in rows] == [code_id]
    assert await promo_codes.get_active_codes(db, tenant_id=uuid.uuid4()) == []


async def test_deactivate_code_deleted_after_existence_check(db, cache, make_code, monkeypatch):
    code_id = await make_code()
    await promo_codes.delete_code(db, cache, code_id, updated_by="bob")

    async def stale_lookup(session, lookup_id):
        return SimpleNamespace(id=lookup_id)

    monkeypatch.setattr(store, "get_active_by_id", stale_lookup)

    assert await promo_codes.deactivate_code(db, cache, code_id, updated_by="alice") is False
    assert len(await _versions(db, code_id)) == 2
