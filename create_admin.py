"""
create_admin.py - Seed the record store
Creates any missing collection (admin and teacher accounts, classes,
standard test items) and lists what the store holds.
Run this from your project root directory: python create_admin.py
"""

from app import create_app
from storage import RecordStore

# Create app instance
app = create_app('development')

with app.app_context():
    store = RecordStore()
    seeded = store.init()

    if seeded:
        print("✅ Seeded collections: " + ", ".join(seeded))
    else:
        print("Record store already seeded.")

    print("-" * 50)
    for key in RecordStore.KEYS:
        print(f"  {key}: {len(store.get(key))}")
    print("-" * 50)

    print("Staff accounts:")
    for user in store.get(RecordStore.USERS):
        print(f"  • {user['username']} ({user['role']})")
    print("⚠️ IMPORTANT: Change the default passwords after first login!")
