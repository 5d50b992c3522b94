from argon2.low_level import hash_secret_raw, Type as Argon2Type
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes

SALT_LEN = 16


def sha3_512_bytes(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA3_512(), backend=default_backend())
    digest.update(data)
    return digest.finalize()


def derive_salt(vector_secret: str) -> bytes:
    """Salt = SHA3-512(vector_secret)[:16], so the same secret always yields the same salt."""
    return sha3_512_bytes(vector_secret.encode("utf-8"))[:SALT_LEN]


def derive_store_key(crypto_secret: str, vector_secret: str, t_cost: int, m_cost_kib: int, parallelism: int) -> bytes:
    """Kstore = Argon2id(SHA3-512(crypto_secret), salt(vector_secret)) -> 32 bytes"""
    prehash = sha3_512_bytes(crypto_secret.encode("utf-8"))
    return hash_secret_raw(
        secret=prehash,
        salt=derive_salt(vector_secret),
        time_cost=t_cost,
        memory_cost=m_cost_kib,
        parallelism=parallelism,
        hash_len=32,
        type=Argon2Type.ID,
    )
