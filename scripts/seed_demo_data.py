# scripts/seed_demo_data.py
import asyncio
from datetime import datetime, timedelta, timezone
from db.db_operation import mongo_conn
from settings.config import settings

async def seed():
    store = mongo_conn.store
    # a few shops so the directory has more than one page
    existing = await store.query(settings.SHOPS_COLLECTION, {}, limit=1)
    if not existing:
        now = datetime.now(timezone.utc)
        for i in range(12):
            await store.insert(settings.SHOPS_COLLECTION, {
                "name": f"Demo Shop {i + 1}",
                "description": "Seeded for local development",
                "address": f"{i + 1} Market Street",
                "status": "approved" if i % 4 else "pending",
                "created_at": now - timedelta(hours=i)
            })
        print("Seeded shops")
    else:
        print("Shops already present")

    pending = await store.query(settings.SUBMISSIONS_COLLECTION, {"status": "pending"}, limit=1)
    if not pending:
        submission_id = await store.insert(settings.SUBMISSIONS_COLLECTION, {
            "name": "Handmade Leather Shoes",
            "price": "49.99",
            "category": "Footwear",
            "location": "Downtown",
            "delivery_charge": "5",
            "description": "Size 42, brown",
            "self_delivery": True,
            "seller_id": "seller-1",
            "seller_email": "seller@example.com",
            "status": "pending",
            "created_at": datetime.now(timezone.utc)
        })
        print("Created pending submission:", submission_id)
    else:
        print("Pending submissions already present")

if __name__ == "__main__":
    asyncio.run(seed())
