"""Byte-level file access used by the record store.

The async variants hand the blocking call to a worker thread.
"""

import asyncio
import os
import shutil

from pathlib import Path


class LocalFileSystem:

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def mkdir(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def rmdir(self, path: Path) -> None:
        shutil.rmtree(path, ignore_errors=True)

    def read_file(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def write_file(self, path: Path, data: bytes) -> None:
        path = Path(path)
        tmp = path.with_suffix(".tmp")
        with tmp.open("wb") as f:
            f.write(data)
        os.replace(tmp, path)

    def unlink(self, path: Path) -> None:
        try:
            Path(path).unlink()
        except FileNotFoundError:
            pass

    async def read_file_async(self, path: Path) -> bytes:
        return await asyncio.to_thread(self.read_file, path)

    async def write_file_async(self, path: Path, data: bytes) -> None:
        await asyncio.to_thread(self.write_file, path, data)
