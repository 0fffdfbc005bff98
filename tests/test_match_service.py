"""Tests for MatchService: match read side and messaging."""
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from subletconnect.errors import MatchNotFound, NotMatchParticipant
from subletconnect.services.match_reconciler import MatchReconciler
from subletconnect.services.match_service import MatchService


@pytest.fixture
def quiet_publisher():
    pub = MagicMock()
    pub.publish_match_created = AsyncMock(return_value=0)
    return pub


async def _mutual_match(db_session, a, b, publisher):
    reconciler = MatchReconciler(db_session, publisher=publisher)
    await reconciler.record_swipe(a.id, b.id, "user", "like")
    result = await reconciler.record_swipe(b.id, a.id, "user", "like")
    return result["match_id"]


class TestMatchReads:

    @pytest.mark.asyncio
    async def test_list_for_user_attaches_other_participant(
        self, db_session, make_account, quiet_publisher
    ):
        a = await make_account()
        b = await make_account()
        match_id = await _mutual_match(db_session, a, b, quiet_publisher)

        items = await MatchService(db_session).list_for_user(a.id)

        assert len(items) == 1
        assert items[0]["match_id"] == match_id
        assert items[0]["matched_user"].id == b.id
        assert (await MatchService(db_session).list_for_user(uuid.uuid4())) == []

    @pytest.mark.asyncio
    async def test_detail_includes_listing(
        self, db_session, make_account, make_listing, quiet_publisher
    ):
        host = await make_account(mode="offering")
        seeker = await make_account()
        listing = await make_listing(host)
        reconciler = MatchReconciler(db_session, publisher=quiet_publisher)
        await reconciler.record_swipe(seeker.id, listing.id, "listing", "like")
        result = await reconciler.record_swipe(host.id, seeker.id, "user", "like")

        detail = await MatchService(db_session).detail(result["match_id"])

        assert detail["kind"] == "user_listing"
        assert detail["listing"].id == listing.id
        assert {u.id for u in detail["users"]} == {host.id, seeker.id}

    @pytest.mark.asyncio
    async def test_unknown_match(self, db_session):
        with pytest.raises(MatchNotFound):
            await MatchService(db_session).detail(uuid.uuid4())


class TestMessaging:

    @pytest.mark.asyncio
    async def test_send_updates_preview(self, db_session, make_account, quiet_publisher):
        a = await make_account()
        b = await make_account()
        match_id = await _mutual_match(db_session, a, b, quiet_publisher)
        service = MatchService(db_session)

        await service.send_message(match_id, a.id, "Hi! Is the room still free?")
        await service.send_message(match_id, b.id, "Yes it is.")

        match = await service.get_or_raise(match_id)
        assert match.last_message == "Yes it is."
        assert match.last_message_at is not None

        messages = await service.messages(match_id, a.id)
        assert [m.content for m in messages] == ["Hi! Is the room still free?", "Yes it is."]

    @pytest.mark.asyncio
    async def test_outsider_cannot_post_or_read(self, db_session, make_account, quiet_publisher):
        a = await make_account()
        b = await make_account()
        outsider = await make_account()
        match_id = await _mutual_match(db_session, a, b, quiet_publisher)
        service = MatchService(db_session)

        with pytest.raises(NotMatchParticipant):
            await service.send_message(match_id, outsider.id, "hello")
        with pytest.raises(NotMatchParticipant):
            await service.messages(match_id, outsider.id)
