"""Shared fixtures: a store rooted in tmp_path with cheap Argon2 settings."""

import pytest

from vaultdb import RecordStore, StoreOptions, VaultDB

CRYPTO_SECRET = "test-crypto-secret"
VECTOR_SECRET = "test-vector-secret"

FAST_KDF = {"t_cost": 1, "m_cost_kib": 8 * 1024, "parallelism": 1}


@pytest.fixture
def options(tmp_path):
    return StoreOptions(root=tmp_path, **FAST_KDF)


@pytest.fixture
def store(options):
    s = RecordStore(options)
    yield s
    if s.is_initialized():
        s.reset_and_delete_all_data()


@pytest.fixture
def db(store):
    d = VaultDB(store)
    yield d
    d.reset_and_delete_all_data()


@pytest.fixture
def built_db(db):
    db.register_entity("categories")
    db.register_entity("comments")
    db.build(CRYPTO_SECRET, VECTOR_SECRET, test_mode=True)
    return db
