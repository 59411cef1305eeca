from __future__ import annotations

from collections.abc import Sequence
import json
from pathlib import Path
import textwrap

import pytest

from bibsmith.core import Entry, LibraryDecodeError, LibraryStore, NullEmitter


class JsonCodec:
    """Codec storing entries as JSON; unlike BibTeX it accepts keyless entries."""

    def __init__(self) -> None:
        self.decode_calls = 0
        self.encode_calls = 0

    def decode(self, payload: str) -> list[Entry]:
        self.decode_calls += 1
        if not payload.strip():
            return []
        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise LibraryDecodeError(f"invalid JSON: {exc}") from exc
        return [Entry.from_dict(item) for item in data]

    def encode(self, entries: Sequence[Entry]) -> str:
        self.encode_calls += 1
        return json.dumps([entry.to_dict() for entry in entries])

    def prepare(self, entry: Entry) -> Entry:
        return entry

    def fold_key(self, key: str) -> str:
        return key


def write_bib(directory: Path, filename: str, payload: str) -> Path:
    path = directory / filename
    path.write_text(textwrap.dedent(payload).strip() + "\n", encoding="utf-8")
    return path


@pytest.fixture
def store(tmp_path: Path) -> LibraryStore:
    return LibraryStore(tmp_path / "libraries", emitter=NullEmitter())


@pytest.fixture
def json_codec() -> JsonCodec:
    return JsonCodec()


@pytest.fixture
def json_store(tmp_path: Path, json_codec: JsonCodec) -> LibraryStore:
    return LibraryStore(tmp_path / "json-libraries", codec=json_codec, emitter=NullEmitter())
