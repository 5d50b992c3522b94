"""Tests for the cipher, key derivation and store file envelope."""

import pytest

from cryptography.exceptions import InvalidTag

from vaultdb.crypto.aead import Cryptor, aead_decrypt, aead_encrypt
from vaultdb.crypto.hash import derive_salt, derive_store_key
from vaultdb.storage.vault import pack_store_file, unpack_store_file
from vaultdb.utils.dataModels import STORE_HDR_SIZE
from vaultdb.utils.errors import ConfigError

from conftest import FAST_KDF


class TestKeyDerivation:
    def test_same_secrets_same_key(self):
        a = derive_store_key("alpha", "beta", 1, 8 * 1024, 1)
        b = derive_store_key("alpha", "beta", 1, 8 * 1024, 1)
        assert a == b
        assert len(a) == 32

    def test_vector_secret_changes_key(self):
        a = derive_store_key("alpha", "beta", 1, 8 * 1024, 1)
        b = derive_store_key("alpha", "gamma", 1, 8 * 1024, 1)
        assert a != b

    def test_salt_is_sixteen_bytes(self):
        assert len(derive_salt("beta")) == 16
        assert derive_salt("beta") == derive_salt("beta")


class TestAead:
    def test_round_trip(self):
        key = bytes(32)
        nonce, ct = aead_encrypt(key, b"payload")
        assert aead_decrypt(key, nonce, ct) == b"payload"

    def test_fresh_nonce_each_call(self):
        key = bytes(32)
        n1, _ = aead_encrypt(key, b"payload")
        n2, _ = aead_encrypt(key, b"payload")
        assert n1 != n2


class TestCryptor:
    def test_portable_between_instances(self):
        writer = Cryptor("alpha", "beta", **FAST_KDF)
        reader = Cryptor("alpha", "beta", **FAST_KDF)
        nonce, ct = writer.encrypt('[{"id": "1"}]')
        assert reader.decrypt(nonce, ct) == '[{"id": "1"}]'

    def test_wrong_secret_cannot_decrypt(self):
        nonce, ct = Cryptor("alpha", "beta", **FAST_KDF).encrypt("[]")
        with pytest.raises(InvalidTag):
            Cryptor("alpha", "other", **FAST_KDF).decrypt(nonce, ct)

    @pytest.mark.parametrize("crypto, vector", [("", "beta"), ("alpha", ""), (None, "beta")])
    def test_missing_secret(self, crypto, vector):
        with pytest.raises(ConfigError):
            Cryptor(crypto, vector, **FAST_KDF)


class TestEnvelope:
    def test_pack_unpack(self):
        nonce = b"n" * 12
        blob = pack_store_file(nonce, b"ciphertext")
        assert len(blob) == STORE_HDR_SIZE + len(b"ciphertext")
        assert unpack_store_file(blob) == (nonce, b"ciphertext")

    def test_too_small(self):
        with pytest.raises(ValueError, match="too small"):
            unpack_store_file(b"VDB1")

    def test_bad_magic(self):
        blob = b"XXXX" + pack_store_file(b"n" * 12, b"ct")[4:]
        with pytest.raises(ValueError, match="magic"):
            unpack_store_file(blob)
