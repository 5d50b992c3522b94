import struct

from vaultdb.utils.dataModels import STORE_HDR_FMT, STORE_MAGIC, STORE_VERSION, STORE_HDR_SIZE

from typing import Tuple


def pack_store_file(nonce: bytes, ct: bytes) -> bytes:
    header = struct.pack(STORE_HDR_FMT, STORE_MAGIC, STORE_VERSION, nonce)
    return header + ct


def unpack_store_file(data: bytes) -> Tuple[bytes, bytes]:
    if len(data) < STORE_HDR_SIZE:
        raise ValueError("store file is too small or corrupt")
    magic, ver, nonce = struct.unpack(STORE_HDR_FMT, data[:STORE_HDR_SIZE])
    if magic != STORE_MAGIC:
        raise ValueError("Invalid store file magic")
    if ver != STORE_VERSION:
        raise ValueError("Unsupported store file version")
    return nonce, data[STORE_HDR_SIZE:]
