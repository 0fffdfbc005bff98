"""Tests for AccountService and ListingService."""
import uuid

import pytest
from sqlalchemy import select

from subletconnect.errors import (
    AlreadySaved,
    IdentityTaken,
    ListingNotFound,
    ModeChangeBlocked,
    OwnerNotOffering,
    SavedListingNotFound,
    UserNotFound,
)
from subletconnect.models.listing import SavedListing
from subletconnect.models.match import Swipe
from subletconnect.schemas.account import AccountCreate, AccountUpdate
from subletconnect.schemas.listing import ListingCreate, ListingUpdate
from subletconnect.services.account_service import AccountService
from subletconnect.services.listing_service import ListingService, normalize_location
from subletconnect.services.swipe_ledger import SwipeLedger


def _account_payload(**overrides) -> AccountCreate:
    data = {
        "username": "jamie",
        "email": "jamie@example.com",
        "fullName": "Jamie Doe",
        "age": 21,
        "searchLocation": "Guelph, ON",
        "mode": "looking",
    }
    data.update(overrides)
    return AccountCreate(**data)


class TestAccountService:

    @pytest.mark.asyncio
    async def test_create_and_lookup_by_identity(self, db_session):
        service = AccountService(db_session)
        account = await service.create(_account_payload(identityRef="auth0|123"))

        assert account.id is not None
        assert account.lifestyle_tags == []
        found = await service.get_by_identity("auth0|123")
        assert found.id == account.id
        assert await service.get_by_identity("auth0|missing") is None

    @pytest.mark.asyncio
    async def test_identity_taken(self, db_session):
        service = AccountService(db_session)
        await service.create(_account_payload(identityRef="auth0|dup"))
        with pytest.raises(IdentityTaken):
            await service.create(_account_payload(identityRef="auth0|dup", username="other"))

    @pytest.mark.asyncio
    async def test_update_is_partial(self, db_session, make_account):
        account = await make_account(bio="original bio")
        service = AccountService(db_session)

        updated = await service.update(account.id, AccountUpdate(fullName="New Name"))

        assert updated.full_name == "New Name"
        assert updated.bio == "original bio"

    @pytest.mark.asyncio
    async def test_switch_to_looking_blocked_while_owning_listings(
        self, db_session, make_account, make_listing
    ):
        host = await make_account(mode="offering")
        await make_listing(host)

        with pytest.raises(ModeChangeBlocked):
            await AccountService(db_session).update(host.id, AccountUpdate(mode="looking"))

    @pytest.mark.asyncio
    async def test_switch_to_looking_allowed_without_listings(self, db_session, make_account):
        host = await make_account(mode="offering")
        updated = await AccountService(db_session).update(host.id, AccountUpdate(mode="looking"))
        assert updated.mode == "looking"

    @pytest.mark.asyncio
    async def test_delete_removes_owned_listings(self, db_session, make_account, make_listing):
        host = await make_account(mode="offering")
        listing = await make_listing(host)

        await AccountService(db_session).delete(host.id)

        assert await AccountService(db_session).get(host.id) is None
        assert await ListingService(db_session).get(listing.id) is None

    @pytest.mark.asyncio
    async def test_delete_clears_swipes_on_account_and_its_listings(
        self, db_session, make_account, make_listing
    ):
        host = await make_account(mode="offering")
        listing = await make_listing(host)
        seeker = await make_account()
        bystander = await make_account()
        ledger = SwipeLedger(db_session)
        await ledger.record(seeker.id, listing.id, "listing", "like")
        await ledger.record(bystander.id, host.id, "user", "pass")
        await ledger.record(host.id, seeker.id, "user", "like")
        kept = await ledger.record(bystander.id, seeker.id, "user", "like")
        await ListingService(db_session).save(seeker.id, listing.id)

        await AccountService(db_session).delete(host.id)

        remaining = (await db_session.execute(select(Swipe.id))).scalars().all()
        assert remaining == [kept.id]
        assert (await db_session.execute(select(SavedListing.id))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_missing_account(self, db_session):
        with pytest.raises(UserNotFound):
            await AccountService(db_session).get_or_raise(uuid.uuid4())


class TestListingService:

    @pytest.mark.asyncio
    async def test_create_requires_offering_owner(self, db_session, make_account):
        seeker = await make_account(mode="looking")
        payload = ListingCreate(
            ownerId=seeker.id, title="Room", price=700, availableDate="2025-05-01",
            location="Guelph, ON", type="room",
        )
        with pytest.raises(OwnerNotOffering):
            await ListingService(db_session).create(payload)

    @pytest.mark.asyncio
    async def test_create_unknown_owner(self, db_session):
        payload = ListingCreate(
            ownerId=uuid.uuid4(), title="Room", price=700, availableDate="2025-05-01",
            location="Guelph, ON", type="room",
        )
        with pytest.raises(UserNotFound):
            await ListingService(db_session).create(payload)

    @pytest.mark.asyncio
    async def test_create_and_merge_update(self, db_session, make_account):
        host = await make_account(mode="offering")
        service = ListingService(db_session)
        listing = await service.create(ListingCreate(
            ownerId=host.id, title="Studio", price=1200, availableDate="2025-05-01",
            location="Toronto, ON", type="studio", amenities=["Wi-Fi"],
        ))

        updated = await service.update(listing.id, ListingUpdate(price=1100))

        assert updated.price == 1100
        assert updated.title == "Studio"
        assert updated.amenities == ["Wi-Fi"]
        assert updated.type == "studio"

    @pytest.mark.asyncio
    async def test_query_filters(self, db_session, make_account, make_listing):
        host = await make_account(mode="offering")
        other = await make_account(mode="offering")
        mine = await make_listing(host, type="2br")
        await make_listing(other, type="2br")
        await make_listing(host, type="room")

        found = await ListingService(db_session).query(owner_id=host.id, listing_type="2br")
        assert [item.id for item in found] == [mine.id]

    @pytest.mark.asyncio
    async def test_append_image(self, db_session, make_account, make_listing):
        host = await make_account(mode="offering")
        listing = await make_listing(host, images=["https://img/1.jpg"])

        updated = await ListingService(db_session).append_image(listing.id, "https://img/2.jpg")
        assert updated.images == ["https://img/1.jpg", "https://img/2.jpg"]

    @pytest.mark.asyncio
    async def test_delete_unknown(self, db_session):
        with pytest.raises(ListingNotFound):
            await ListingService(db_session).delete(uuid.uuid4())


class TestLocations:

    def test_normalize_location(self):
        assert normalize_location("guelph, on") == "Guelph, On"
        assert normalize_location("  NEW york ") == "New York"

    @pytest.mark.asyncio
    async def test_locations_deduplicated_and_sorted(self, db_session, make_account, make_listing):
        host = await make_account(mode="offering", search_location="toronto")
        await make_account(search_location="Guelph")
        await make_listing(host, location="TORONTO")
        await make_listing(host, location="  ")

        locations = await ListingService(db_session).locations()

        assert locations == ["Guelph", "Toronto"]


class TestSavedListings:

    @pytest.mark.asyncio
    async def test_save_list_unsave(self, db_session, make_account, make_listing):
        host = await make_account(mode="offering")
        seeker = await make_account()
        listing = await make_listing(host)
        service = ListingService(db_session)

        saved = await service.save(seeker.id, listing.id)
        assert saved.listing_id == listing.id

        with pytest.raises(AlreadySaved):
            await service.save(seeker.id, listing.id)

        rows = await service.saved_for(seeker.id)
        assert [(lst.id, s.id) for lst, s in rows] == [(listing.id, saved.id)]

        await service.unsave(seeker.id, listing.id)
        assert await service.saved_for(seeker.id) == []
        with pytest.raises(SavedListingNotFound):
            await service.unsave(seeker.id, listing.id)

    @pytest.mark.asyncio
    async def test_save_unknown_listing(self, db_session, make_account):
        seeker = await make_account()
        with pytest.raises(ListingNotFound):
            await ListingService(db_session).save(seeker.id, uuid.uuid4())
