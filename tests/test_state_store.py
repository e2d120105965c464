"""Tests for the hash-based state store."""

import json
from datetime import datetime
from pathlib import Path

import pytest

from precursor.constants import STATE_FILE, STATE_VERSION
from precursor.core.state_store import StateStore, compute_file_hash, compute_hash
from precursor.models import Stack, State, ToolState


@pytest.fixture
def store(tmp_path: Path) -> StateStore:
    """State store rooted at a temp directory."""
    return StateStore(tmp_path)


def make_state(**overrides: object) -> State:
    fields: dict[str, object] = {
        "last_update": datetime(2026, 1, 2, 3, 4, 5, 678901),
        "hashes": {"Cargo.toml": compute_hash("x")},
        "stacks": [Stack.RUST],
        "tools": {
            "cargo": ToolState(
                version="1.80.0",
                path="PATH",
                installed=True,
                last_check=datetime(2026, 1, 2, 3, 4, 5),
            )
        },
    }
    fields.update(overrides)
    return State(**fields)  # type: ignore[arg-type]


class TestComputeHash:
    """Tests for hashing helpers."""

    @pytest.mark.unit
    def test_stable_for_same_content(self) -> None:
        """Identical content hashes identically."""
        assert compute_hash(b"hello") == compute_hash(b"hello")

    @pytest.mark.unit
    def test_single_byte_change_differs(self) -> None:
        """Any single-byte change alters the digest."""
        assert compute_hash(b"hello") != compute_hash(b"hellp")

    @pytest.mark.unit
    def test_text_hashes_as_utf8(self) -> None:
        """Text is hashed as its UTF-8 encoding."""
        assert compute_hash("é") == compute_hash("é".encode())

    @pytest.mark.unit
    def test_sha256_hex(self) -> None:
        """Digest is SHA-256 hex."""
        assert compute_hash(b"") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    @pytest.mark.unit
    def test_file_hash_matches_content_hash(self, tmp_path: Path) -> None:
        """File digest equals digest of its bytes."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"\x00\x01" * 10000)
        assert compute_file_hash(path) == compute_hash(b"\x00\x01" * 10000)

    @pytest.mark.unit
    def test_file_hash_missing_file(self, tmp_path: Path) -> None:
        """Missing file has no digest."""
        assert compute_file_hash(tmp_path / "missing") is None


class TestLoadSave:
    """Tests for StateStore.load and save."""

    @pytest.mark.unit
    def test_round_trip(self, store: StateStore) -> None:
        """A saved state loads back equal."""
        state = make_state()
        store.save(state)
        assert store.load() == state

    @pytest.mark.unit
    def test_file_uses_camel_case_fields(self, store: StateStore) -> None:
        """On-disk document uses the published field names."""
        store.save(make_state())
        data = json.loads(store.path.read_text())
        assert set(data) >= {"version", "lastUpdate", "hashes", "stacks", "tools"}
        assert data["stacks"] == ["rust"]
        assert "lastCheck" in data["tools"]["cargo"]

    @pytest.mark.unit
    def test_saves_to_state_file(self, store: StateStore, tmp_path: Path) -> None:
        """State lives at .precursor/state.json with no temp files left."""
        store.save(make_state())
        assert store.path == tmp_path / STATE_FILE
        assert [p.name for p in store.path.parent.iterdir()] == ["state.json"]

    @pytest.mark.unit
    def test_missing_is_absent(self, store: StateStore) -> None:
        """No state file means no state."""
        assert store.load() is None

    @pytest.mark.unit
    def test_version_mismatch_is_absent(self, store: StateStore) -> None:
        """A state of another schema version is never trusted."""
        store.save(make_state())
        data = json.loads(store.path.read_text())
        data["version"] = "0.0.1"
        store.path.write_text(json.dumps(data))
        assert store.load() is None

    @pytest.mark.unit
    def test_corrupt_is_absent(self, store: StateStore) -> None:
        """Unparsable JSON means no state."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        assert store.load() is None

    @pytest.mark.unit
    def test_invalid_fields_are_absent(self, store: StateStore) -> None:
        """A current-version document with bad fields means no state."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"version": STATE_VERSION, "stacks": ["cobol"]}))
        assert store.load() is None

    @pytest.mark.unit
    def test_reset(self, store: StateStore) -> None:
        """Reset removes the file and reports whether it existed."""
        store.save(make_state())
        assert store.reset() is True
        assert store.load() is None
        assert store.reset() is False


class TestHasChanged:
    """Tests for change detection."""

    @pytest.mark.unit
    def test_unchanged_file(self, store: StateStore, tmp_path: Path) -> None:
        """A file matching its stored digest is unchanged."""
        (tmp_path / "a.txt").write_text("one")
        state = State(hashes=store.hash_paths(["a.txt"]))
        assert store.has_changed("a.txt", state) is False

    @pytest.mark.unit
    def test_modified_file(self, store: StateStore, tmp_path: Path) -> None:
        """A modified file is changed."""
        (tmp_path / "a.txt").write_text("one")
        state = State(hashes=store.hash_paths(["a.txt"]))
        (tmp_path / "a.txt").write_text("two")
        assert store.has_changed("a.txt", state) is True

    @pytest.mark.unit
    def test_deleted_tracked_file(self, store: StateStore, tmp_path: Path) -> None:
        """Deleting a tracked file counts as a change."""
        (tmp_path / "a.txt").write_text("one")
        state = State(hashes=store.hash_paths(["a.txt"]))
        (tmp_path / "a.txt").unlink()
        assert store.has_changed("a.txt", state) is True

    @pytest.mark.unit
    def test_never_tracked_missing_file(self, store: StateStore) -> None:
        """An untracked, absent file is unchanged."""
        assert store.has_changed("nope.txt", State()) is False

    @pytest.mark.unit
    def test_new_untracked_file(self, store: StateStore, tmp_path: Path) -> None:
        """A file that appeared since the snapshot is changed."""
        (tmp_path / "new.txt").write_text("x")
        assert store.has_changed("new.txt", State()) is True

    @pytest.mark.unit
    def test_absolute_and_relative_keys_agree(self, store: StateStore, tmp_path: Path) -> None:
        """Paths inside the root are keyed root-relative."""
        assert store.key_for(tmp_path / "sub" / "f.txt") == "sub/f.txt"
        assert store.key_for("sub/f.txt") == "sub/f.txt"

    @pytest.mark.unit
    def test_changed_paths(self, store: StateStore, tmp_path: Path) -> None:
        """Changed paths cover stored keys and extra inputs."""
        (tmp_path / "a.txt").write_text("one")
        (tmp_path / "b.txt").write_text("one")
        state = State(hashes=store.hash_paths(["a.txt", "b.txt"]))
        (tmp_path / "a.txt").write_text("two")
        (tmp_path / "c.txt").write_text("new")

        changed = store.changed_paths(state, extra=["c.txt", "absent.txt"])

        assert changed == ["a.txt", "c.txt"]
