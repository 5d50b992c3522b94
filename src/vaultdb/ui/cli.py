import argparse
import json
import logging
import os

from pathlib import Path

from vaultdb.db import VaultDB
from vaultdb.storage.record_store import RecordStore
from vaultdb.utils.dataModels import DEFAULT_ENVIRONMENT, DEFAULT_T_COST, DEFAULT_M_COST_KiB, DEFAULT_PARALLELISM, StoreOptions
from vaultdb.utils.errors import VaultDBError

ENV_CRYPTO_SECRET = "VAULTDB_CRYPTO_SECRET"
ENV_VECTOR_SECRET = "VAULTDB_VECTOR_SECRET"


def open_db(args: argparse.Namespace, build: bool = True) -> VaultDB:
    options = StoreOptions(
        environment=args.env,
        test_mode=args.test_mode,
        root=Path(args.root),
        t_cost=args.t,
        m_cost_kib=args.m,
        parallelism=args.p,
    )
    db = VaultDB(RecordStore(options))
    for entity in args.entity or []:
        db.register_entity(entity)
    if build:
        db.build(args.crypto_secret, args.vector_secret)
    return db


def _parse_json_object(text: str) -> dict:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise VaultDBError(f"Not valid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise VaultDBError("Expected a JSON object")
    return obj


def _identifier(args: argparse.Namespace):
    """The id as typed, or decoded as a JSON scalar with --json-id (7, true, "7")."""
    if not args.json_id:
        return args.id
    try:
        value = json.loads(args.id)
    except json.JSONDecodeError as e:
        raise VaultDBError(f"Identifier is not valid JSON: {e}") from e
    if isinstance(value, (dict, list)) or value is None:
        raise VaultDBError("Identifier must be a JSON string, number or boolean")
    return value


def cmd_init(args: argparse.Namespace) -> None:
    db = open_db(args)
    for entity, path in db.store.get_entity_files_map().items():
        print(f"[+] {entity}\t{path}")


def cmd_ls(args: argparse.Namespace) -> None:
    db = open_db(args)
    records = db.find(args.name)
    if not records:
        print("(empty)")
        return
    for record in records:
        print(json.dumps(record, ensure_ascii=False))


def cmd_get(args: argparse.Namespace) -> None:
    db = open_db(args)
    print(json.dumps(db.find_by_identifier(args.name, _identifier(args)), indent=2, ensure_ascii=False))


def cmd_add(args: argparse.Namespace) -> None:
    db = open_db(args)
    db.create_one(args.name, _parse_json_object(args.json))
    db.save_one(args.name)
    print(f"[+] Added record to {args.name}")


def cmd_update(args: argparse.Namespace) -> None:
    db = open_db(args)
    db.update_one(args.name, _identifier(args), _parse_json_object(args.json))
    db.save_one(args.name)
    print(f"[+] Updated {args.name} id={args.id}")


def cmd_rm(args: argparse.Namespace) -> None:
    db = open_db(args)
    db.delete_one(args.name, _identifier(args))
    db.save_one(args.name)
    print(f"[+] Removed {args.name} id={args.id}")


def cmd_drop(args: argparse.Namespace) -> None:
    db = open_db(args)
    db.remove_entity_and_delete_entity_data(args.name)
    print(f"[+] Dropped {args.name}")


def cmd_export(args: argparse.Namespace) -> None:
    db = open_db(args)
    if args.name:
        out = db.export_for_entity(args.name, args.dir, args.filename)
    else:
        out = db.export_whole_store(args.dir, args.filename)
    print(f"[+] Exported -> {out}")


def cmd_import(args: argparse.Namespace) -> None:
    db = open_db(args, build=False)
    if args.name:
        db.import_for_entity(args.name, args.path)
    else:
        db.import_for_whole_store(args.path)
    db.build(args.crypto_secret, args.vector_secret)
    print(f"[+] Imported {args.path}")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--root", default=".", help="Directory holding data/ (default: cwd)")
    common.add_argument("--env", default=DEFAULT_ENVIRONMENT, help="Environment label (dev, test, prod...)")
    common.add_argument("--test-mode", action="store_true", help="Use tests/data instead of data")
    common.add_argument("-e", "--entity", action="append", help="Entity to register (repeatable)")
    common.add_argument("--crypto-secret", default=os.environ.get(ENV_CRYPTO_SECRET), help=f"Default: ${ENV_CRYPTO_SECRET}")
    common.add_argument("--vector-secret", default=os.environ.get(ENV_VECTOR_SECRET), help=f"Default: ${ENV_VECTOR_SECRET}")
    common.add_argument("-t", type=int, default=DEFAULT_T_COST, help="Argon2 time cost (iterations)")
    common.add_argument("-m", type=int, default=DEFAULT_M_COST_KiB, help="Argon2 memory (KiB)")
    common.add_argument("-p", type=int, default=DEFAULT_PARALLELISM, help="Argon2 parallelism")
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    p = argparse.ArgumentParser(description="Encrypted JSON record store")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", parents=[common], help="Create store files for the registered entities")
    p_init.set_defaults(func=cmd_init)

    p_ls = sub.add_parser("ls", parents=[common], help="List records of an entity")
    p_ls.add_argument("name", help="Entity name")
    p_ls.set_defaults(func=cmd_ls)

    p_get = sub.add_parser("get", parents=[common], help="Show one record by identifier")
    p_get.add_argument("name", help="Entity name")
    p_get.add_argument("id", help="Identifier value")
    p_get.add_argument("--json-id", action="store_true", help="Decode the identifier as JSON, e.g. 7 for a numeric id")
    p_get.set_defaults(func=cmd_get)

    p_add = sub.add_parser("add", parents=[common], help="Create a record and save")
    p_add.add_argument("name", help="Entity name")
    p_add.add_argument("json", help="Record as a JSON object")
    p_add.set_defaults(func=cmd_add)

    p_upd = sub.add_parser("update", parents=[common], help="Patch a record and save")
    p_upd.add_argument("name", help="Entity name")
    p_upd.add_argument("id", help="Identifier value")
    p_upd.add_argument("--json-id", action="store_true", help="Decode the identifier as JSON, e.g. 7 for a numeric id")
    p_upd.add_argument("json", help="Fields to change as a JSON object")
    p_upd.set_defaults(func=cmd_update)

    p_rm = sub.add_parser("rm", parents=[common], help="Delete a record by identifier and save")
    p_rm.add_argument("name", help="Entity name")
    p_rm.add_argument("id", help="Identifier value")
    p_rm.add_argument("--json-id", action="store_true", help="Decode the identifier as JSON, e.g. 7 for a numeric id")
    p_rm.set_defaults(func=cmd_rm)

    p_drop = sub.add_parser("drop", parents=[common], help="Delete an entity and its data file")
    p_drop.add_argument("name", help="Entity name")
    p_drop.set_defaults(func=cmd_drop)

    p_exp = sub.add_parser("export", parents=[common], help="Write plaintext JSON export")
    p_exp.add_argument("dir", help="Output directory")
    p_exp.add_argument("--name", help="Export only this entity")
    p_exp.add_argument("--filename", help="Output file name (.json)")
    p_exp.set_defaults(func=cmd_export)

    p_imp = sub.add_parser("import", parents=[common], help="Seed the store from a JSON file")
    p_imp.add_argument("path", help="JSON file to import")
    p_imp.add_argument("--name", help="Import into this entity only")
    p_imp.set_defaults(func=cmd_import)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except (VaultDBError, OSError) as e:
        print(f"[!] {e}")
        return 1
    return 0
