"""
SubletConnect: Account directory.

CRUD over ``accounts`` plus lookup by external identity reference.  Mode
changes follow one rule: an account that still owns listings cannot switch
to ``looking`` (its listings would keep attracting swipes and listing
matches while the owner no longer sees seekers).
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.errors import IdentityTaken, ModeChangeBlocked, UserNotFound
from subletconnect.models.account import Account
from subletconnect.models.enums import AccountMode
from subletconnect.models.listing import Listing, SavedListing
from subletconnect.models.match import Swipe
from subletconnect.schemas.account import AccountCreate, AccountUpdate

logger = structlog.get_logger("subletconnect.account_service")


class AccountService:
    def __init__(self, db_session: AsyncSession) -> None:
        self.db = db_session

    async def get(self, account_id: uuid.UUID) -> Account | None:
        result = await self.db.execute(select(Account).where(Account.id == account_id))
        return result.scalar_one_or_none()

    async def get_or_raise(self, account_id: uuid.UUID) -> Account:
        account = await self.get(account_id)
        if account is None:
            raise UserNotFound(f"User {account_id} not found.")
        return account

    async def get_by_identity(self, identity_ref: str) -> Account | None:
        result = await self.db.execute(
            select(Account).where(Account.identity_ref == identity_ref)
        )
        return result.scalar_one_or_none()

    async def create(self, payload: AccountCreate) -> Account:
        log = logger.bind(username=payload.username)
        log.info("create_account_start")

        if payload.identity_ref:
            if await self.get_by_identity(payload.identity_ref) is not None:
                log.warning("create_account_identity_taken")
                raise IdentityTaken()

        account = Account(
            identity_ref=payload.identity_ref,
            username=payload.username,
            email=payload.email,
            full_name=payload.full_name,
            age=payload.age,
            gender=payload.gender,
            mode=payload.mode.value,
            search_location=payload.search_location,
            profile_picture=payload.profile_picture,
            bio=payload.bio,
            lifestyle_tags=list(payload.lifestyle_tags),
        )
        self.db.add(account)
        await self.db.flush()

        log.info("create_account_complete", account_id=str(account.id))
        return account

    async def update(self, account_id: uuid.UUID, payload: AccountUpdate) -> Account:
        """Apply only the fields present in the request body."""
        log = logger.bind(account_id=str(account_id))
        account = await self.get_or_raise(account_id)

        update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
        new_mode = update_data.get("mode")
        if new_mode is not None:
            new_mode = AccountMode(new_mode)
            update_data["mode"] = new_mode.value
            if new_mode is AccountMode.LOOKING and account.mode != AccountMode.LOOKING.value:
                owned = await self.db.execute(
                    select(func.count()).select_from(Listing).where(Listing.owner_id == account_id)
                )
                if owned.scalar_one() > 0:
                    log.warning("mode_change_blocked", from_mode=account.mode)
                    raise ModeChangeBlocked()

        for field, value in update_data.items():
            setattr(account, field, value)

        await self.db.flush()
        log.info("update_account_complete", updated_fields=list(update_data.keys()))
        return account

    async def delete(self, account_id: uuid.UUID) -> None:
        """Delete an account with its listings, saved listings and swipes.

        Swipes go in both directions: those the account made, and those
        anyone made on the account or on one of its listings.  Matches and
        messages go with the account through ``ON DELETE CASCADE``.
        """
        account = await self.get_or_raise(account_id)

        owned = list(
            (await self.db.execute(
                select(Listing.id).where(Listing.owner_id == account_id)
            )).scalars().all()
        )
        swiped_targets = [account_id, *owned]

        swipes = await self.db.execute(
            delete(Swipe).where(
                or_(Swipe.swiper_id == account_id, Swipe.swiped_id.in_(swiped_targets))
            )
        )
        await self.db.execute(
            delete(SavedListing).where(
                or_(SavedListing.user_id == account_id, SavedListing.listing_id.in_(owned))
            )
        )
        await self.db.execute(delete(Listing).where(Listing.owner_id == account_id))
        await self.db.delete(account)
        await self.db.flush()

        logger.info(
            "delete_account_complete",
            account_id=str(account_id),
            listings_deleted=len(owned),
            swipes_deleted=swipes.rowcount or 0,
        )
