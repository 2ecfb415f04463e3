"""
A small demo of the memo repository: the repository hides the table
store behind named operations.
"""

import asyncio

from config import configure_logging, create_store, load_settings
from database import MemoRepository
from models import MemoFormData


async def demo():
    # 1. setup store (SQLite unless Supabase is configured)
    settings = load_settings()
    configure_logging(settings.log_level)
    store = await create_store(settings)
    repo = MemoRepository(store, table=settings.table)

    # 2. create a python object (business logic)
    form = MemoFormData(
        title="Python Generators",
        content="`yield` turns a function into a lazy iterator.",
        category="coding",
        tags=["python", "advanced"],
    )

    # 3. save the object to the store
    # the repo handles the conversion to a row
    print(f"Saving memo: {form.title}")
    memo = await repo.add(form)

    # 4. retrieve and display all memos
    print("\n--- Reading from Store ---")
    for saved in await repo.get_all():
        print(f"ID: {saved.id}")
        print(f"Title: {saved.title}")
        print(f"Category: {saved.category} Tags: {', '.join(saved.tags)}")
        print("-" * 20)

    # 5. search and stats
    found = await repo.search("generators")
    print(f"Search 'generators': {len(found)} match(es)")
    stats = await repo.get_stats()
    print(f"Total: {stats.total} By category: {stats.by_category}")

    await repo.remove(memo.id)
    await store.close()


if __name__ == "__main__":
    asyncio.run(demo())
