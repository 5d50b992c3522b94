#!/usr/bin/env python3
"""
vaultdb - encrypted JSON record store

Every registered entity is one file holding the whole collection:

  <root>/
    data/<environment>/<entity>.json         # normal mode
    tests/data/<environment>/<entity>.json   # --test-mode

File format (big-endian):
    magic     : 4 bytes   -> b"VDB1"
    version   : 1 byte    -> 0x01
    nonce     : 12 bytes
    ciphertext: remaining bytes (AES-256-GCM over the JSON array)

Key = Argon2id(SHA3-512(crypto secret), salt = SHA3-512(vector secret)[:16]).

Commands:
  init                       Create store files for the -e entities
  ls <entity>                List records
  get <entity> <id>          Show one record
  add <entity> <json>        Create a record and save
  update <entity> <id> <json>
  rm <entity> <id>           Delete a record and save
  drop <entity>              Delete an entity's data file
  export <dir>               Plaintext JSON export (one entity with --name)
  import <path>              Seed the store before building (one entity with --name)
"""
import sys

from vaultdb.ui.cli import main

if __name__ == "__main__":
    sys.exit(main())
