"""Shared fixtures for list entry tests."""

import pytest

from listentries.domain.entities import Catalog, Category, Product
from listentries.infrastructure.authorization import Permission
from listentries.infrastructure.settings_manager import reset_settings_manager
from listentries.infrastructure.store import EntryStore, get_entry_store, reset_entry_store


class AllowAllGate:
    """Gate that records every check and allows it."""

    def __init__(self) -> None:
        self.calls: list[tuple[object, Permission]] = []

    async def authorize(self, subject: object, permission: Permission) -> bool:
        self.calls.append((subject, permission))
        return True


class DenyGate:
    """Gate that allows the first ``allowed`` checks and denies the rest."""

    def __init__(self, allowed: int = 0) -> None:
        self.allowed = allowed
        self.calls = 0

    async def authorize(self, subject: object, permission: Permission) -> bool:
        self.calls += 1
        return self.calls <= self.allowed


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset the in-memory store and settings before each test."""
    reset_entry_store()
    reset_settings_manager()
    yield
    reset_entry_store()
    reset_settings_manager()


@pytest.fixture
def store() -> EntryStore:
    """Empty in-memory entry store."""
    return get_entry_store()


@pytest.fixture
async def seeded_store(store: EntryStore) -> EntryStore:
    """Entry store with a small catalog tree.

    main (physical)
      electronics
        audio
          headphones: Wireless Headphones (p-hp1), Studio Headphones (p-hp2)
        Smart TV (p-tv)
      garden
        Lawn Mower (p-mower)
    outlet (physical), virtual-sale (virtual)
    """
    store.catalogs.add(Catalog(id="main", name="Main"))
    store.catalogs.add(Catalog(id="outlet", name="Outlet"))
    store.catalogs.add(Catalog(id="virtual-sale", name="Sale", is_virtual=True))

    await store.categories.save(
        [
            Category(id="electronics", catalog_id="main", name="Electronics", code="ELEC"),
            Category(id="audio", catalog_id="main", name="Audio", parent_id="electronics"),
            Category(id="headphones", catalog_id="main", name="Headphones", parent_id="audio"),
            Category(id="garden", catalog_id="main", name="Garden", code="GRDN"),
        ]
    )
    await store.products.save(
        [
            Product(id="p-hp1", catalog_id="main", name="Wireless Headphones", code="HP-1",
                    category_id="headphones"),
            Product(id="p-hp2", catalog_id="main", name="Studio Headphones", code="HP-2",
                    category_id="headphones"),
            Product(id="p-tv", catalog_id="main", name="Smart TV", code="TV-55",
                    category_id="electronics"),
            Product(id="p-mower", catalog_id="main", name="Lawn Mower", code="LM-1",
                    category_id="garden"),
        ]
    )
    return store


@pytest.fixture
def allow_gate() -> AllowAllGate:
    """Gate allowing everything."""
    return AllowAllGate()


@pytest.fixture
def deny_gate() -> type[DenyGate]:
    """Factory for gates that start denying after N checks."""
    return DenyGate
