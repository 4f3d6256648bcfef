"""Lead unlocks: one charge per tier, never below zero."""

import asyncio

import pytest

from leadmarket.core.exceptions import ForbiddenError, ValidationError
from leadmarket.modules.entitlements import CostSettingsUpdate, EntitlementService, InvalidViewTypeError
from leadmarket.modules.leads import LeadNotFoundError
from leadmarket.modules.ledger import InsufficientBalanceError, LedgerService


async def test_unlock_charges_tier_cost_and_records_view(session, user, lead):
    service = EntitlementService.with_session(session)

    result = await service.unlock_lead(user.id, lead.id, "contact_info")

    assert result.coins_spent == 5
    assert result.remaining_coins == 15
    assert result.already_unlocked is False
    assert await service.has_viewed(user.id, lead.id) == {"contact_info"}

    entries = await LedgerService.with_session(session).list_transactions(user.id)
    assert [entry.amount for entry in entries] == [-5]
    assert entries[0].reference_id == lead.id
    assert lead.title in entries[0].description


async def test_repeat_unlock_is_free(session, user, lead):
    service = EntitlementService.with_session(session)
    await service.unlock_lead(user.id, lead.id, "detailed_info")

    again = await service.unlock_lead(user.id, lead.id, "detailed_info")

    assert again.already_unlocked is True
    assert again.coins_spent == 0
    assert again.remaining_coins == 10
    assert len(await LedgerService.with_session(session).list_transactions(user.id)) == 1


async def test_each_tier_is_charged_separately(session, user, lead):
    service = EntitlementService.with_session(session)
    await service.unlock_lead(user.id, lead.id, "contact_info")
    result = await service.unlock_lead(user.id, lead.id, "full_access")

    assert result.remaining_coins == 0
    assert await service.has_viewed(user.id, lead.id) == {"contact_info", "full_access"}


async def test_insufficient_balance_changes_nothing(session, make_account, lead):
    poor = await make_account(lead_coins=3)
    service = EntitlementService.with_session(session)

    with pytest.raises(InsufficientBalanceError) as exc_info:
        await service.unlock_lead(poor.id, lead.id, "contact_info")

    assert (exc_info.value.required, exc_info.value.available) == (5, 3)
    assert await service.has_viewed(poor.id, lead.id) == set()
    assert await LedgerService.with_session(session).get_balance(poor.id) == 3


async def test_unknown_view_type_is_rejected(session, user, lead):
    service = EntitlementService.with_session(session)
    with pytest.raises(InvalidViewTypeError):
        await service.unlock_lead(user.id, lead.id, "everything")
    assert await LedgerService.with_session(session).get_balance(user.id) == 20


async def test_unknown_lead(session, user):
    with pytest.raises(LeadNotFoundError):
        await EntitlementService.with_session(session).unlock_lead(user.id, "missing", "contact_info")


async def test_costs_follow_admin_settings(session, admin, user, lead):
    service = EntitlementService.with_session(session)
    saved = await service.update_settings(admin, CostSettingsUpdate(contact_info_cost=2))

    assert (saved.contact_info_cost, saved.detailed_info_cost, saved.full_access_cost) == (2, 10, 15)
    result = await service.unlock_lead(user.id, lead.id, "contact_info")
    assert result.coins_spent == 2
    assert result.remaining_coins == 18


async def test_zero_cost_tier_unlocks_on_empty_balance(session, admin, make_account, lead):
    broke = await make_account(lead_coins=0)
    service = EntitlementService.with_session(session)
    await service.update_settings(admin, CostSettingsUpdate(contact_info_cost=0))

    result = await service.unlock_lead(broke.id, lead.id, "contact_info")

    assert result.coins_spent == 0
    assert result.already_unlocked is False
    assert await service.has_viewed(broke.id, lead.id) == {"contact_info"}


async def test_settings_update_guards(session, admin, user):
    service = EntitlementService.with_session(session)
    with pytest.raises(ForbiddenError):
        await service.update_settings(user, CostSettingsUpdate(full_access_cost=1))
    with pytest.raises(ValidationError):
        await service.update_settings(admin, CostSettingsUpdate(full_access_cost=-1))
    assert (await service.get_settings()).full_access_cost == 15


async def test_list_views_includes_lead_title(session, user, lead):
    service = EntitlementService.with_session(session)
    await service.unlock_lead(user.id, lead.id, "contact_info")

    views = await service.list_views(user.id)

    assert [(v.lead_id, v.view_type, v.coins_spent, v.lead_title) for v in views] == [
        (lead.id, "contact_info", 5, lead.title)
    ]


async def test_concurrent_unlocks_of_one_tier_charge_once(session_factory, user, lead):
    async def unlock():
        async with session_factory() as db:
            return await EntitlementService.with_session(db).unlock_lead(user.id, lead.id, "contact_info")

    results = await asyncio.gather(*(unlock() for _ in range(5)))

    assert sum(r.coins_spent for r in results) == 5
    assert [r.already_unlocked for r in results].count(False) == 1
    async with session_factory() as db:
        assert await LedgerService.with_session(db).get_balance(user.id) == 15
        assert len(await EntitlementService.with_session(db).list_views(user.id)) == 1


async def test_concurrent_unlocks_of_different_tiers_stay_within_balance(session_factory, make_account, lead):
    user = await make_account(lead_coins=15)

    async def unlock(view_type):
        async with session_factory() as db:
            try:
                return await EntitlementService.with_session(db).unlock_lead(user.id, lead.id, view_type)
            except InsufficientBalanceError:
                return None

    results = await asyncio.gather(*(unlock(v) for v in ("contact_info", "detailed_info", "full_access")))

    spent = sum(r.coins_spent for r in results if r is not None)
    async with session_factory() as db:
        balance = await LedgerService.with_session(db).get_balance(user.id)
    assert balance >= 0
    assert spent + balance == 15
