from pathlib import Path
import threading

from conftest import JsonCodec, write_bib
import pytest

from bibsmith.core import (
    CitationKeyConflictError,
    Entry,
    EntryValidationError,
    LibraryDecodeError,
    LibraryExistsError,
    LibraryIOError,
    LibraryNotFoundError,
    LibraryStore,
    MissingCitationKeyError,
    NullEmitter,
    RecordingEmitter,
    StoreConfig,
    WorkingDirectoryError,
)


def test_store_creates_missing_working_directory(tmp_path: Path) -> None:
    root = tmp_path / "nested" / "libraries"

    store = LibraryStore(root, emitter=NullEmitter())

    assert root.is_dir()
    assert store.working_dir == root


def test_store_fails_when_working_directory_is_a_file(tmp_path: Path) -> None:
    blocker = tmp_path / "occupied"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(WorkingDirectoryError):
        LibraryStore(blocker, emitter=NullEmitter())


def test_list_libraries_returns_only_bib_files(store: LibraryStore) -> None:
    root = store.working_dir
    (root / "a.bib").write_text("", encoding="utf-8")
    (root / "b.bib").write_text("", encoding="utf-8")
    (root / "notes.txt").write_text("", encoding="utf-8")
    (root / "upper.BIB").write_text("", encoding="utf-8")
    (root / "dir.bib").mkdir()

    assert sorted(store.list_libraries()) == ["a.bib", "b.bib"]


def test_list_libraries_fails_when_directory_disappears(store: LibraryStore) -> None:
    store.working_dir.rmdir()

    with pytest.raises(LibraryIOError):
        store.list_libraries()


def test_missing_library_lifecycle(store: LibraryStore) -> None:
    with pytest.raises(LibraryNotFoundError):
        store.get_entries("smith2020")
    assert not store.library_exists("smith2020")

    store.create_library("smith2020")

    assert store.library_exists("smith2020")
    assert store.library_exists("smith2020.bib")
    assert store.get_entries("smith2020") == []
    assert (store.working_dir / "smith2020.bib").read_text(encoding="utf-8") == ""


def test_create_library_refuses_to_overwrite(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1"))

    with pytest.raises(LibraryExistsError):
        store.create_library("a.bib")
    assert [entry.key for entry in store.get_entries("a")] == ["k1"]


def test_delete_library_reports_whether_file_existed(store: LibraryStore) -> None:
    store.create_library("a")

    assert store.delete_library("a") is True
    assert store.delete_library("a") is False
    assert not store.library_exists("a")


def test_get_entries_reads_existing_file(store: LibraryStore) -> None:
    write_bib(
        store.working_dir,
        "existing.bib",
        """
        @article{smith2020,
            title = {Example Article},
            year = {2020},
        }
        """,
    )

    entries = store.get_entries("existing")

    assert entries == [Entry("smith2020", "article", {"title": "Example Article", "year": "2020"})]


def test_get_entries_reports_decode_errors(store: LibraryStore) -> None:
    path = write_bib(store.working_dir, "broken.bib", "@article{broken,\n  title = {Unclosed")

    with pytest.raises(LibraryDecodeError) as excinfo:
        store.get_entries("broken")
    assert excinfo.value.path == path


def test_get_entry_by_key(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1", "article", {"title": "One"}))

    found = store.get_entry("a", "k1")
    assert found is not None
    assert found.fields["title"] == "One"
    assert store.get_entry("a", "missing") is None
    with pytest.raises(LibraryNotFoundError):
        store.get_entry("absent", "k1")


def test_insert_rejects_duplicate_key_and_keeps_file(store: LibraryStore) -> None:
    store.create_library("smith2020")
    store.insert_entry("smith2020", Entry("abc1", "misc", {"title": "X"}))
    path = store.path_for("smith2020")
    before = path.read_bytes()

    with pytest.raises(CitationKeyConflictError) as excinfo:
        store.insert_entry("smith2020", Entry("abc1", "misc", {"title": "Y"}))

    assert excinfo.value.key == "abc1"
    assert path.read_bytes() == before
    found = store.get_entry("smith2020", "abc1")
    assert found is not None
    assert found.fields["title"] == "X"


def test_insert_requires_existing_library(store: LibraryStore) -> None:
    with pytest.raises(LibraryNotFoundError):
        store.insert_entry("absent", Entry("k1"))
    assert not store.library_exists("absent")


def test_insert_appends_in_order(store: LibraryStore) -> None:
    store.create_library("a")
    for key in ("k1", "k2", "k3"):
        store.insert_entry("a", Entry(key))

    assert [entry.key for entry in store.get_entries("a")] == ["k1", "k2", "k3"]


def test_missing_key_is_rejected_before_any_io(tmp_path: Path) -> None:
    codec = JsonCodec()
    store = LibraryStore(tmp_path, codec=codec, emitter=NullEmitter())

    with pytest.raises(MissingCitationKeyError):
        store.insert_entry("absent", Entry(None, fields={"title": "anon"}))
    with pytest.raises(MissingCitationKeyError):
        store.update_entry("absent", "k1", Entry(""))

    assert codec.decode_calls == 0
    assert codec.encode_calls == 0


def test_update_replaces_entry(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1", "misc", {"title": "Old"}))
    store.insert_entry("a", Entry("k2"))

    store.update_entry("a", "k1", Entry("k1", "article", {"title": "New"}))

    entries = store.get_entries("a")
    assert [entry.key for entry in entries] == ["k2", "k1"]
    assert entries[1] == Entry("k1", "article", {"title": "New"})


def test_update_of_absent_key_inserts(store: LibraryStore) -> None:
    store.create_library("a")

    store.update_entry("a", "ghost", Entry("k1"))

    assert [entry.key for entry in store.get_entries("a")] == ["k1"]


def test_two_step_update_loses_old_entry_on_conflict(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1"))
    store.insert_entry("a", Entry("k2"))

    with pytest.raises(CitationKeyConflictError):
        store.update_entry("a", "k1", Entry("k2", "book"))

    assert [entry.key for entry in store.get_entries("a")] == ["k2"]


def test_in_place_update_keeps_position_and_is_atomic(tmp_path: Path) -> None:
    config = StoreConfig(working_dir=tmp_path, update_strategy="in-place")
    store = LibraryStore(config=config, emitter=NullEmitter())
    store.create_library("a")
    store.insert_entry("a", Entry("k1"))
    store.insert_entry("a", Entry("k2"))

    store.update_entry("a", "k1", Entry("k1-renamed", "book"))
    assert [entry.key for entry in store.get_entries("a")] == ["k1-renamed", "k2"]

    before = store.path_for("a").read_bytes()
    with pytest.raises(CitationKeyConflictError):
        store.update_entry("a", "k1-renamed", Entry("k2"))
    assert store.path_for("a").read_bytes() == before


def test_update_requires_existing_library(store: LibraryStore) -> None:
    with pytest.raises(LibraryNotFoundError):
        store.update_entry("absent", "k1", Entry("k1"))


def test_delete_entry_is_idempotent(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1"))
    store.insert_entry("a", Entry("k2"))

    assert store.delete_entry("a", "k1") is True
    before = store.path_for("a").read_bytes()
    assert store.delete_entry("a", "k1") is False
    assert store.path_for("a").read_bytes() == before
    assert [entry.key for entry in store.get_entries("a")] == ["k2"]


def test_delete_entry_on_missing_library_returns_false(store: LibraryStore) -> None:
    assert store.delete_entry("absent", "k1") is False
    assert not store.library_exists("absent")


def test_delete_entry_propagates_decode_errors(store: LibraryStore) -> None:
    write_bib(store.working_dir, "broken.bib", "@misc{dup, title={a}}\n@misc{dup, title={b}}")

    with pytest.raises(LibraryDecodeError):
        store.delete_entry("broken", "dup")


def test_failed_encode_leaves_file_unchanged(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1", "misc", {"title": "Fine"}))
    before = store.path_for("a").read_bytes()

    with pytest.raises(EntryValidationError):
        store.insert_entry("a", Entry("k2", "misc", {"title": "Broken {brace"}))

    assert store.path_for("a").read_bytes() == before


def test_interrupted_persist_leaves_file_unchanged(
    store: LibraryStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1"))
    before = store.path_for("a").read_bytes()

    def crash(_fd: int) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("bibsmith.core.atomic.os.fsync", crash)

    with pytest.raises(LibraryIOError):
        store.insert_entry("a", Entry("k2"))

    monkeypatch.undo()
    assert store.path_for("a").read_bytes() == before
    assert store.list_libraries() == ["a.bib"]
    assert [path.name for path in store.working_dir.iterdir()] == ["a.bib"]


def test_backup_written_when_enabled(tmp_path: Path) -> None:
    store = LibraryStore(
        config=StoreConfig(working_dir=tmp_path, make_backup=True), emitter=NullEmitter()
    )
    store.create_library("a")
    store.insert_entry("a", Entry("k1"))
    first_state = store.path_for("a").read_text(encoding="utf-8")

    store.insert_entry("a", Entry("k2"))

    backup = tmp_path / "a.bib.bak"
    assert backup.read_text(encoding="utf-8") == first_state
    assert store.list_libraries() == ["a.bib"]


def test_concurrent_inserts_of_same_key_admit_one(store: LibraryStore) -> None:
    store.create_library("a")
    outcomes: list[str] = []
    barrier = threading.Barrier(8)
    lock = threading.Lock()

    def worker(index: int) -> None:
        barrier.wait()
        try:
            store.insert_entry("a", Entry("shared", "misc", {"note": str(index)}))
        except CitationKeyConflictError:
            result = "conflict"
        else:
            result = "ok"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 7
    assert [entry.key for entry in store.get_entries("a")] == ["shared"]


def test_concurrent_inserts_of_distinct_keys_are_all_kept(store: LibraryStore) -> None:
    store.create_library("a")
    keys = [f"key{index}" for index in range(10)]
    threads = [
        threading.Thread(target=store.insert_entry, args=("a", Entry(key))) for key in keys
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(entry.key or "" for entry in store.get_entries("a")) == sorted(keys)


def test_keyless_entries_survive_other_mutations(json_store: LibraryStore) -> None:
    path = json_store.path_for("a")
    path.write_text('[{"key": null, "type": "misc", "fields": {"title": "anon"}}]', encoding="utf-8")

    json_store.insert_entry("a", Entry("k1"))
    assert json_store.delete_entry("a", "k1") is True

    assert json_store.get_entries("a") == [Entry(None, "misc", {"title": "anon"})]


def test_mutations_emit_events(tmp_path: Path) -> None:
    recorder = RecordingEmitter()
    store = LibraryStore(tmp_path, emitter=recorder)
    store.create_library("a")
    store.insert_entry("a", Entry("k1"))
    store.update_entry("a", "k1", Entry("k2"))
    store.delete_entry("a", "k2")
    store.delete_entry("a", "k2")
    store.delete_library("a")

    assert recorder.event_names() == [
        "library_created",
        "entry_inserted",
        "entry_updated",
        "entry_deleted",
        "library_deleted",
    ]
    assert recorder.events[2][1]["new_key"] == "k2"


@pytest.mark.parametrize("key", ["a b", "a,b", "a}b", "a=b"])
def test_insert_of_unstorable_key_keeps_library_readable(store: LibraryStore, key: str) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("good"))
    before = store.path_for("a").read_bytes()

    with pytest.raises(EntryValidationError):
        store.insert_entry("a", Entry(key))

    assert store.path_for("a").read_bytes() == before
    assert [entry.key for entry in store.get_entries("a")] == ["good"]


def test_unstorable_key_in_update_keeps_old_entry(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1", "misc", {"title": "Kept"}))

    with pytest.raises(EntryValidationError):
        store.update_entry("a", "k1", Entry("k 1"))

    found = store.get_entry("a", "k1")
    assert found is not None
    assert found.fields["title"] == "Kept"


def test_keys_differing_in_case_conflict(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("abc1"))
    before = store.path_for("a").read_bytes()

    with pytest.raises(CitationKeyConflictError):
        store.insert_entry("a", Entry("ABC1"))

    assert store.path_for("a").read_bytes() == before
    assert store.get_entry("a", "ABC1") == Entry("abc1")


def test_in_place_update_can_change_key_case(tmp_path: Path) -> None:
    config = StoreConfig(working_dir=tmp_path, update_strategy="in-place")
    store = LibraryStore(config=config, emitter=NullEmitter())
    store.create_library("a")
    store.insert_entry("a", Entry("abc1"))
    store.insert_entry("a", Entry("other"))

    store.update_entry("a", "abc1", Entry("ABC1", "book"))

    assert [entry.key for entry in store.get_entries("a")] == ["ABC1", "other"]
    with pytest.raises(CitationKeyConflictError):
        store.update_entry("a", "ABC1", Entry("Other"))


def test_stored_entry_matches_what_is_read_back(store: LibraryStore) -> None:
    store.create_library("a")

    stored = store.insert_entry(
        "a", Entry("ws1", "article", {"abstract": "line one\n\n  line  two"})
    )

    assert stored.fields == {"abstract": "line one line two"}
    assert store.get_entry("a", "ws1") == stored
    assert store.get_entries("a") == [stored]

    updated = store.update_entry("a", "ws1", Entry("ws1", "article", {"note": " a\tb "}))
    assert store.get_entry("a", "ws1") == updated
    assert updated.fields == {"note": "a b"}


def test_duplicate_field_names_are_rejected_before_writing(store: LibraryStore) -> None:
    store.create_library("a")
    before = store.path_for("a").read_bytes()

    with pytest.raises(EntryValidationError):
        store.insert_entry("a", Entry("k", fields={"Title": "a", "title": "b"}))

    assert store.path_for("a").read_bytes() == before


def test_two_step_update_reports_case_conflict(store: LibraryStore) -> None:
    store.create_library("a")
    store.insert_entry("a", Entry("k1"))
    store.insert_entry("a", Entry("other"))

    with pytest.raises(CitationKeyConflictError):
        store.update_entry("a", "k1", Entry("OTHER"))

    assert [entry.key for entry in store.get_entries("a")] == ["other"]


def test_invalid_entries_are_rejected_before_reading(
    json_store: LibraryStore, json_codec: JsonCodec
) -> None:
    json_store.create_library("a")
    json_codec.decode_calls = 0

    with pytest.raises(MissingCitationKeyError):
        json_store.insert_entry("a", Entry(None))

    assert json_codec.decode_calls == 0
