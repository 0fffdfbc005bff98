"""Populate a running SubletConnect API with demo accounts, listings and swipes.

Creates owners (offering) with listings and seekers (looking), then has
seekers like listings and owners like some of those seekers back, so the
demo starts with a handful of matches.
Usage: python -m scripts.populate_demo_data [--seekers 10] [--owners 5] [--base-url http://localhost:8000]
"""
import argparse
import asyncio
import random
import sys
from typing import Any

import httpx


DEFAULT_BASE_URL = "http://localhost:8000"

FIRST_NAMES = [
    "Alex", "Jordan", "Sam", "Taylor", "Morgan", "Riley", "Casey", "Jamie",
    "Avery", "Quinn", "Drew", "Parker", "Reese", "Rowan", "Skyler", "Emerson",
]
LOCATIONS = ["Oshawa, ON", "Toronto, ON", "Guelph, ON", "Waterloo, ON", "Kingston, ON"]
LIFESTYLE_TAGS = [
    "Non-Smoker", "Very Clean", "Social Drinker", "Dog Lover", "Cat Lover",
    "Pet Friendly", "Early Bird", "Night Owl", "Works from Home", "Quiet",
    "Social", "Student", "Professional",
]
AMENITIES = ["Wi-Fi", "Laundry", "Parking", "Furnished", "Gym", "Dishwasher", "Balcony"]
LISTING_TYPES = ["studio", "1br", "2br", "room"]


def random_account(index: int, mode: str) -> dict[str, Any]:
    name = FIRST_NAMES[index % len(FIRST_NAMES)]
    return {
        "username": f"{name.lower()}_{mode}_{index}",
        "email": f"{name.lower()}.{mode}.{index}@example.com",
        "fullName": f"{name} Demo{index}",
        "age": random.randint(18, 35),
        "gender": random.choice(["Male", "Female", "Other"]),
        "mode": mode,
        "searchLocation": random.choice(LOCATIONS),
        "bio": f"Hi, I'm {name}. {'I have a place to sublet.' if mode == 'offering' else 'Looking for a place for the term.'}",
        "lifestyleTags": random.sample(LIFESTYLE_TAGS, 3),
    }


def random_listing(owner: dict[str, Any]) -> dict[str, Any]:
    listing_type = random.choice(LISTING_TYPES)
    return {
        "ownerId": owner["id"],
        "title": f"Sunny {listing_type} near campus",
        "price": random.randrange(600, 2200, 50),
        "type": listing_type,
        "availableDate": f"2025-{random.randint(1, 12):02d}-01",
        "location": owner["searchLocation"],
        "distanceTo": f"{random.randint(2, 25)} min walk to campus",
        "description": "Bright, quiet unit with easy transit access.",
        "amenities": random.sample(AMENITIES, 3),
        "lifestyleTags": random.sample(LIFESTYLE_TAGS, 2),
    }


async def post(client: httpx.AsyncClient, url: str, body: dict[str, Any]) -> dict[str, Any] | None:
    try:
        resp = await client.post(url, json=body)
    except httpx.HTTPError as e:
        print(f"  [ERROR] POST {url}: {e}")
        return None
    if resp.status_code not in (200, 201):
        print(f"  [WARN] POST {url} -> {resp.status_code}: {resp.text[:120]}")
        return None
    return resp.json()


async def populate(base_url: str, seekers: int, owners: int) -> dict[str, int]:
    api = f"{base_url}/api"
    results = {"accounts": 0, "listings": 0, "swipes": 0, "matches": 0}

    async with httpx.AsyncClient(timeout=30.0) as client:
        print(f"[1/3] Creating {owners} owners with listings...")
        owner_accounts = []
        listings = []
        for i in range(owners):
            owner = await post(client, f"{api}/users", random_account(i, "offering"))
            if owner is None:
                continue
            owner_accounts.append(owner)
            results["accounts"] += 1
            for _ in range(random.randint(1, 2)):
                listing = await post(client, f"{api}/listings", random_listing(owner))
                if listing is not None:
                    listings.append(listing)
                    results["listings"] += 1

        print(f"[2/3] Creating {seekers} seekers...")
        seeker_accounts = []
        for i in range(seekers):
            seeker = await post(client, f"{api}/users", random_account(i, "looking"))
            if seeker is not None:
                seeker_accounts.append(seeker)
                results["accounts"] += 1

        print("[3/3] Swiping...")
        for seeker in seeker_accounts:
            for listing in random.sample(listings, min(3, len(listings))):
                direction = random.choice(["like", "like", "superlike", "pass"])
                outcome = await post(client, f"{api}/swipes", {
                    "swiperId": seeker["id"],
                    "swipedId": listing["id"],
                    "swipedType": "listing",
                    "direction": direction,
                })
                if outcome is None:
                    continue
                results["swipes"] += 1
                # Owners like roughly half of the seekers who liked them.
                if direction != "pass" and random.random() < 0.5:
                    back = await post(client, f"{api}/swipes", {
                        "swiperId": listing["ownerId"],
                        "swipedId": seeker["id"],
                        "swipedType": "user",
                        "direction": "like",
                    })
                    if back is not None:
                        results["swipes"] += 1
                        if back.get("matched"):
                            results["matches"] += 1

    print(f"\nAccounts: {results['accounts']}  Listings: {results['listings']}  "
          f"Swipes: {results['swipes']}  Matches: {results['matches']}")
    return results


def main():
    parser = argparse.ArgumentParser(description="SubletConnect demo data")
    parser.add_argument("--seekers", type=int, default=10, help="Number of looking accounts")
    parser.add_argument("--owners", type=int, default=5, help="Number of offering accounts")
    parser.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")
    args = parser.parse_args()

    results = asyncio.run(populate(args.base_url, args.seekers, args.owners))
    if results["accounts"] == 0:
        print("FAIL: no accounts created")
        sys.exit(1)


if __name__ == "__main__":
    main()
