import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from typing import Tuple

from vaultdb.crypto.hash import derive_store_key
from vaultdb.utils.dataModels import DEFAULT_T_COST, DEFAULT_M_COST_KiB, DEFAULT_PARALLELISM, NONCE_LEN
from vaultdb.utils.errors import ConfigError
from vaultdb.utils.helper import string_has_value


def aead_encrypt(key: bytes, plaintext: bytes, aad: bytes | None = None) -> Tuple[bytes, bytes]:
    nonce = os.urandom(NONCE_LEN)
    aesgcm = AESGCM(key)
    ct = aesgcm.encrypt(nonce, plaintext, aad)
    return nonce, ct


def aead_decrypt(key: bytes, nonce: bytes, ct: bytes, aad: bytes | None = None) -> bytes:
    aesgcm = AESGCM(key)
    return aesgcm.decrypt(nonce, ct, aad)


class Cryptor:
    """AES-256-GCM over UTF-8 text with a key derived once from two secrets.

    Two instances built from the same secrets and Argon2 parameters can read
    each other's output; the nonce travels with every ciphertext.
    """

    def __init__(
        self,
        crypto_secret: str,
        vector_secret: str,
        t_cost: int = DEFAULT_T_COST,
        m_cost_kib: int = DEFAULT_M_COST_KiB,
        parallelism: int = DEFAULT_PARALLELISM,
    ):
        if not string_has_value(crypto_secret) or not string_has_value(vector_secret):
            raise ConfigError("Secrets [crypto_secret] and [vector_secret] are required.")
        self._key = derive_store_key(crypto_secret, vector_secret, t_cost, m_cost_kib, parallelism)

    def encrypt(self, text: str) -> Tuple[bytes, bytes]:
        return aead_encrypt(self._key, text.encode("utf-8"))

    def decrypt(self, nonce: bytes, ct: bytes) -> str:
        return aead_decrypt(self._key, nonce, ct).decode("utf-8")
