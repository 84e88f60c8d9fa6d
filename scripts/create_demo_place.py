"""Create, list and delete a place through the running API.

Usage: python scripts/create_demo_place.py TOKEN IMAGE.png
"""
import sys

import httpx

BASE = "http://localhost:8000/api"

if len(sys.argv) < 3:
    print(__doc__)
    sys.exit(2)

token, image_file = sys.argv[1], sys.argv[2]
headers = {"Authorization": f"Bearer {token}"}
client = httpx.Client(timeout=15)

with open(image_file, "rb") as f:
    r = client.post(
        f"{BASE}/places",
        data={
            "title": "Googleplex",
            "description": "Google headquarters campus",
            "address": "1600 Amphitheatre Parkway, Mountain View, CA",
        },
        files={"image": (image_file, f, "image/png")},
        headers=headers,
    )
print(f"Create place: {r.status_code}")
if r.status_code != 201:
    print(f"  Body: {r.text}")
    sys.exit(1)

place = r.json()["place"]
print(f"Place: {place['title']} ({place['id']})")
print(f"Location: {place['location']}")
print(f"Image: {place['image']}")

r = client.get(f"{BASE}/places/user/{place['creator']}")
print(f"\nPlaces for creator: {r.status_code} -> {len(r.json().get('places', []))}")

r = client.delete(f"{BASE}/places/{place['id']}", headers=headers)
print(f"\nDelete place: {r.status_code} {r.json()}")

r = client.get(f"{BASE}/places/{place['id']}")
print(f"Get after delete: {r.status_code}")
