"""HTTP-level tests: routes, camelCase bodies and the error envelope."""
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from subletconnect.api.onboarding import get_onboarding_service
from subletconnect.main import app, map_validation_errors
from subletconnect.schemas.onboarding import ExtractedProfile


def _swipe(swiper, swiped, swiped_type="user", direction="like"):
    return {
        "swiperId": str(swiper),
        "swipedId": str(swiped),
        "swipedType": swiped_type,
        "direction": direction,
    }


class TestHealth:

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        r = await client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"


class TestSwipeRoutes:

    @pytest.mark.asyncio
    async def test_record_swipe_and_match(self, client, make_account, db_session):
        a = await make_account()
        b = await make_account()
        await db_session.commit()

        r1 = await client.post("/api/swipes", json=_swipe(a.id, b.id))
        assert r1.status_code == 201
        assert r1.json()["matched"] is False
        assert r1.json()["matchId"] is None

        r2 = await client.post("/api/swipes", json=_swipe(b.id, a.id, direction="superlike"))
        assert r2.status_code == 201
        body = r2.json()
        assert body["matched"] is True
        assert uuid.UUID(body["matchId"])
        assert uuid.UUID(body["swipeId"])

    @pytest.mark.asyncio
    async def test_duplicate_swipe_conflict(self, client, make_account, db_session):
        a = await make_account()
        b = await make_account()
        await db_session.commit()

        await client.post("/api/swipes", json=_swipe(a.id, b.id, direction="pass"))
        r = await client.post("/api/swipes", json=_swipe(a.id, b.id))

        assert r.status_code == 409
        assert r.json()["code"] == "DuplicateSwipe"

    @pytest.mark.asyncio
    async def test_unknown_swiper(self, client, make_account, db_session):
        b = await make_account()
        await db_session.commit()

        r = await client.post("/api/swipes", json=_swipe(uuid.uuid4(), b.id))
        assert r.status_code == 404
        assert r.json()["code"] == "UserNotFound"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "override, code",
        [
            ({"direction": "maybe"}, "InvalidDirection"),
            ({"swipedType": "pet"}, "InvalidSwipedType"),
        ],
    )
    async def test_invalid_enums(self, client, override, code):
        body = _swipe(uuid.uuid4(), uuid.uuid4())
        body.update(override)

        r = await client.post("/api/swipes", json=body)

        assert r.status_code == 400
        assert r.json()["code"] == code

    @pytest.mark.asyncio
    async def test_missing_fields_listed(self, client):
        r = await client.post("/api/swipes", json={"swiperId": str(uuid.uuid4())})

        assert r.status_code == 400
        body = r.json()
        assert body["code"] == "MissingField"
        assert set(body["details"]) == {"swipedId", "swipedType", "direction"}

    @pytest.mark.asyncio
    async def test_self_swipe(self, client):
        me = uuid.uuid4()
        r = await client.post("/api/swipes", json=_swipe(me, me))
        assert r.status_code == 400
        assert r.json()["code"] == "SelfSwipe"

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        r = await client.post(
            "/api/swipes",
            content=b'{"swiperId": ',
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json()["code"] == "InvalidJson"

    @pytest.mark.asyncio
    async def test_reconcile_unknown_swipe(self, client):
        r = await client.post(f"/api/swipes/{uuid.uuid4()}/reconcile")
        assert r.status_code == 404
        assert r.json()["code"] == "SwipeNotFound"

    @pytest.mark.asyncio
    async def test_reset(self, client, make_account, db_session):
        a = await make_account()
        b = await make_account()
        await db_session.commit()
        await client.post("/api/swipes", json=_swipe(a.id, b.id))

        r = await client.delete("/api/swipes/reset", params={"userId": str(a.id)})

        assert r.status_code == 200
        assert r.json()["deletedCount"] == 1

    @pytest.mark.asyncio
    async def test_reset_requires_user_id(self, client):
        r = await client.delete("/api/swipes/reset")
        assert r.status_code == 400
        assert r.json()["code"] == "MissingUserId"

    @pytest.mark.asyncio
    async def test_unhandled_error_is_opaque(self, client):
        with patch(
            "subletconnect.api.swipes.SwipeLedger.reset_all",
            new=AsyncMock(side_effect=RuntimeError("connection string leaked")),
        ):
            r = await client.delete("/api/swipes/reset", params={"userId": str(uuid.uuid4())})

        assert r.status_code == 500
        assert r.json()["code"] == "ServerError"
        assert "leaked" not in r.text


class TestCandidateRoutes:

    @pytest.mark.asyncio
    async def test_candidates_for_seeker(self, client, make_account, make_listing, db_session):
        seeker = await make_account()
        host = await make_account(mode="offering")
        listing = await make_listing(host)
        await db_session.commit()

        r = await client.get("/api/candidates", params={"userId": str(seeker.id), "limit": 500})

        assert r.status_code == 200
        body = r.json()
        assert body["type"] == "listings"
        assert body["count"] == 1
        assert body["candidates"][0]["id"] == str(listing.id)
        assert body["candidates"][0]["ownerId"] == str(host.id)
        assert body["filters"]["limit"] == 50

    @pytest.mark.asyncio
    async def test_candidates_for_host_are_accounts(self, client, make_account, db_session):
        host = await make_account(mode="offering")
        seeker = await make_account(mode="looking", full_name="Sam Seeker")
        await db_session.commit()

        r = await client.get("/api/candidates", params={"userId": str(host.id)})

        body = r.json()
        assert body["type"] == "users"
        assert body["candidates"][0]["id"] == str(seeker.id)
        assert body["candidates"][0]["fullName"] == "Sam Seeker"

    @pytest.mark.asyncio
    async def test_missing_user_id(self, client):
        r = await client.get("/api/candidates")
        assert r.status_code == 400
        assert r.json()["code"] == "MissingUserId"

    @pytest.mark.asyncio
    async def test_unknown_user(self, client):
        r = await client.get("/api/candidates", params={"userId": str(uuid.uuid4())})
        assert r.status_code == 404
        assert r.json()["code"] == "UserNotFound"

    @pytest.mark.asyncio
    async def test_limit_below_one_rejected(self, client, make_account, db_session):
        seeker = await make_account()
        await db_session.commit()
        r = await client.get("/api/candidates", params={"userId": str(seeker.id), "limit": 0})
        assert r.status_code == 400
        assert r.json()["code"] == "InvalidRequest"


class TestDirectoryRoutes:

    @pytest.mark.asyncio
    async def test_create_user_and_fetch_by_identity(self, client):
        r = await client.post("/api/users", json={
            "identityRef": "auth0|abc",
            "username": "riley",
            "email": "riley@example.com",
            "fullName": "Riley R",
            "age": 24,
            "searchLocation": "Kingston, ON",
            "mode": "offering",
        })
        assert r.status_code == 201
        created = r.json()
        assert created["mode"] == "offering"

        r = await client.get("/api/users/identity/auth0|abc")
        assert r.status_code == 200
        assert r.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_invalid_mode(self, client):
        r = await client.post("/api/users", json={
            "username": "x", "email": "x@example.com", "fullName": "X",
            "age": 30, "searchLocation": "Guelph, ON", "mode": "renting",
        })
        assert r.status_code == 400
        assert r.json()["code"] == "InvalidMode"

    @pytest.mark.asyncio
    async def test_listing_lifecycle(self, client, make_account, db_session):
        host = await make_account(mode="offering")
        await db_session.commit()

        r = await client.post("/api/listings", json={
            "ownerId": str(host.id), "title": "Cozy room", "price": 750,
            "availableDate": "2025-09-01", "location": "Guelph, ON", "type": "room",
        })
        assert r.status_code == 201
        listing_id = r.json()["id"]

        r = await client.patch(f"/api/listings/{listing_id}", json={"price": 700})
        assert r.json()["price"] == 700
        assert r.json()["title"] == "Cozy room"

        r = await client.get("/api/listings", params={"ownerId": str(host.id)})
        assert r.json()["count"] == 1

        r = await client.get("/api/locations")
        assert "Guelph, On" in r.json()["locations"]

        r = await client.delete(f"/api/listings/{listing_id}")
        assert r.status_code == 200
        r = await client.get(f"/api/listings/{listing_id}")
        assert r.status_code == 404
        assert r.json()["code"] == "ListingNotFound"

    @pytest.mark.asyncio
    async def test_invalid_listing_type(self, client):
        r = await client.post("/api/listings", json={
            "ownerId": str(uuid.uuid4()), "title": "Loft", "price": 900,
            "availableDate": "2025-09-01", "location": "Guelph, ON", "type": "loft",
        })
        assert r.status_code == 400
        assert r.json()["code"] == "InvalidListingType"

    @pytest.mark.asyncio
    async def test_listing_image_upload(self, client, make_account, make_listing, db_session):
        host = await make_account(mode="offering")
        listing = await make_listing(host)
        await db_session.commit()

        with patch(
            "subletconnect.api.listings.upload_file",
            return_value="https://storage.googleapis.com/bucket/listings/x.png",
        ) as mock_upload:
            r = await client.post(
                f"/api/listings/{listing.id}/images",
                files={"image": ("photo.png", b"\x89PNG fake", "image/png")},
            )

        assert r.status_code == 201
        assert r.json()["images"] == ["https://storage.googleapis.com/bucket/listings/x.png"]
        mock_upload.assert_called_once()

    @pytest.mark.asyncio
    async def test_profile_picture_rejects_bad_type(self, client, make_account, db_session):
        account = await make_account()
        await db_session.commit()

        r = await client.post(
            f"/api/users/{account.id}/picture",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )
        assert r.status_code == 400
        assert r.json()["code"] == "InvalidImage"


class TestMatchAndMessageRoutes:

    @pytest.mark.asyncio
    async def test_conversation_flow(self, client, make_account, db_session):
        a = await make_account()
        b = await make_account()
        outsider = await make_account()
        await db_session.commit()
        await client.post("/api/swipes", json=_swipe(a.id, b.id))
        match_id = (await client.post("/api/swipes", json=_swipe(b.id, a.id))).json()["matchId"]

        r = await client.post("/api/messages", json={
            "matchId": match_id, "senderId": str(a.id), "content": "Hey!",
        })
        assert r.status_code == 201

        r = await client.get("/api/matches", params={"userId": str(b.id)})
        body = r.json()
        assert body["count"] == 1
        assert body["matches"][0]["lastMessage"] == "Hey!"
        assert body["matches"][0]["matchedUser"]["id"] == str(a.id)

        r = await client.get(f"/api/matches/{match_id}")
        assert r.status_code == 200
        assert sorted(r.json()["participantIds"]) == sorted([str(a.id), str(b.id)])

        r = await client.get(f"/api/messages/{match_id}", params={"userId": str(outsider.id)})
        assert r.status_code == 403
        assert r.json()["code"] == "NotMatchParticipant"

    @pytest.mark.asyncio
    async def test_saved_listings(self, client, make_account, make_listing, db_session):
        host = await make_account(mode="offering")
        seeker = await make_account()
        listing = await make_listing(host)
        await db_session.commit()
        # The 409 below rolls the shared session back and expires these objects.
        seeker_id, listing_id = str(seeker.id), str(listing.id)

        body = {"userId": seeker_id, "listingId": listing_id}
        assert (await client.post("/api/saved", json=body)).status_code == 201
        r = await client.post("/api/saved", json=body)
        assert r.status_code == 409
        assert r.json()["code"] == "AlreadySaved"

        r = await client.get("/api/saved", params={"userId": seeker_id})
        assert r.json()["count"] == 1
        assert r.json()["savedListings"][0]["id"] == listing_id

        r = await client.delete(f"/api/saved/{listing_id}", params={"userId": seeker_id})
        assert r.status_code == 200


class TestOnboardingRoute:

    @pytest.mark.asyncio
    async def test_voice_onboarding(self, client):
        service = MagicMock()
        service.onboard = AsyncMock(return_value={
            "success": True,
            "transcription": "Hi, I'm Alex and I need a room in Guelph.",
            "profile": ExtractedProfile(full_name="Alex", mode="looking", search_location="Guelph, ON"),
        })
        app.dependency_overrides[get_onboarding_service] = lambda: service

        r = await client.post(
            "/api/onboarding/voice",
            files={"audio": ("recording.webm", b"fake-audio", "audio/webm")},
        )

        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["profile"]["fullName"] == "Alex"
        service.onboard.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_audio(self, client):
        app.dependency_overrides[get_onboarding_service] = lambda: MagicMock()
        r = await client.post("/api/onboarding/voice", data={"other": "x"})
        assert r.status_code == 400
        assert r.json()["code"] == "MissingField"


class TestValidationMapping:

    def test_precedence_json_over_missing(self):
        error = map_validation_errors([
            {"type": "missing", "loc": ("body", "direction")},
            {"type": "json_invalid", "loc": ("body", 3)},
        ])
        assert error.kind == "InvalidJson"

    def test_unknown_error_is_generic(self):
        error = map_validation_errors([
            {"type": "uuid_parsing", "loc": ("body", "swiperId"), "msg": "bad uuid"},
        ])
        assert error.kind == "InvalidRequest"
        assert error.details[0]["field"] == "swiperId"
