"""Tests for checkpoint stores and the state codec."""

import json

import pytest
import yaml

from coin import Coin, FirstToss, Machine, SecondToss
from sm.errors import PersistenceError
from sm.models.checkpoint import Checkpoint
from sm.runner.codec import StateCodec
from sm.runner.store import InMemoryStore, JsonStore, YamlStore, default_store


# --- Codec ---

class TestCodec:
    def test_encode_is_tagged(self):
        codec = StateCodec(Machine)
        assert codec.encode(SecondToss(first_coin=Coin.heads)) == {
            "kind": "second_toss",
            "first_coin": "heads",
        }

    def test_decode_picks_variant_from_tag(self):
        codec = StateCodec(Machine)
        assert codec.decode({"kind": "first_toss"}) == FirstToss()
        state = codec.decode({"kind": "second_toss", "first_coin": "tails"})
        assert isinstance(state, SecondToss)
        assert state.first_coin is Coin.tails

    def test_snapshot_restore(self):
        codec = StateCodec(Machine)
        state = SecondToss(first_coin=Coin.tails)
        restored = codec.restore(codec.snapshot(state))
        assert restored == state
        assert restored is not state

    def test_unknown_kind(self):
        codec = StateCodec(Machine)
        with pytest.raises(PersistenceError, match="can't decode state"):
            codec.decode({"kind": "third_toss"})

    def test_load_checkpoint_requires_envelope(self):
        codec = StateCodec(Machine)
        with pytest.raises(PersistenceError, match="can't decode checkpoint"):
            codec.load_checkpoint({"kind": "first_toss"})
        with pytest.raises(PersistenceError, match="error must be a string"):
            codec.load_checkpoint({"state": {"kind": "first_toss"}, "error": 3})

    def test_missing_error_means_none(self):
        codec = StateCodec(Machine)
        assert codec.load_checkpoint({"state": {"kind": "first_toss"}}) == Checkpoint(FirstToss())


# --- Stores ---

class TestInMemoryStore:
    def test_save_load_clean(self):
        store = InMemoryStore(Machine)
        assert store.load() is None
        store.save(Checkpoint(SecondToss(first_coin=Coin.heads), error="boom"))
        loaded = store.load()
        assert loaded == Checkpoint(SecondToss(first_coin=Coin.heads), error="boom")
        store.clean()
        assert store.load() is None

    def test_load_returns_fresh_objects(self):
        store = InMemoryStore(Machine)
        checkpoint = Checkpoint(FirstToss())
        store.save(checkpoint)
        assert store.load().state is not checkpoint.state

    def test_clean_missing_record_fails(self):
        with pytest.raises(PersistenceError):
            InMemoryStore(Machine).clean()


class TestJsonStore:
    def test_record_format(self, tmp_path):
        path = tmp_path / "coin.json"
        JsonStore(Machine, path).save(Checkpoint(SecondToss(first_coin=Coin.heads), "Coins landed differently"))
        assert json.loads(path.read_text()) == {
            "state": {"kind": "second_toss", "first_coin": "heads"},
            "error": "Coins landed differently",
        }

    def test_roundtrip_and_clean(self, tmp_path):
        store = JsonStore(Machine, tmp_path / "coin.json")
        assert store.load() is None
        store.save(Checkpoint(FirstToss()))
        assert store.load() == Checkpoint(FirstToss())
        store.clean()
        assert store.load() is None
        assert list(tmp_path.iterdir()) == []

    def test_save_overwrites(self, tmp_path):
        store = JsonStore(Machine, tmp_path / "coin.json")
        store.save(Checkpoint(FirstToss()))
        store.save(Checkpoint(SecondToss(first_coin=Coin.tails)))
        assert store.load().state == SecondToss(first_coin=Coin.tails)

    def test_clean_missing_file_fails(self, tmp_path):
        store = JsonStore(Machine, tmp_path / "coin.json")
        with pytest.raises(PersistenceError, match="can't remove file"):
            store.clean()

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "coin.json"
        path.write_text("{not json")
        with pytest.raises(PersistenceError, match="can't decode json"):
            JsonStore(Machine, path).load()

    def test_undecodable_bytes(self, tmp_path):
        path = tmp_path / "coin.json"
        path.write_bytes(b'{"state": {"kind": "first_toss"}, "error": "\xff\xfe"}')
        with pytest.raises(PersistenceError, match="can't read file") as excinfo:
            JsonStore(Machine, path).load()
        assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)

    def test_unwritable_location(self, tmp_path):
        store = JsonStore(Machine, tmp_path / "missing" / "coin.json")
        with pytest.raises(PersistenceError, match="can't write file"):
            store.save(Checkpoint(FirstToss()))

    def test_with_path(self, tmp_path):
        store = JsonStore(Machine, tmp_path / "a.json").with_path(tmp_path / "b.json")
        store.save(Checkpoint(FirstToss()))
        assert (tmp_path / "b.json").exists()
        assert store.location == str(tmp_path / "b.json")


class TestYamlStore:
    def test_record_format(self, tmp_path):
        path = tmp_path / "coin.yaml"
        store = YamlStore(Machine, path)
        store.save(Checkpoint(SecondToss(first_coin=Coin.tails)))
        assert yaml.safe_load(path.read_text()) == {
            "state": {"kind": "second_toss", "first_coin": "tails"},
            "error": None,
        }
        assert store.load() == Checkpoint(SecondToss(first_coin=Coin.tails))

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "coin.yaml"
        path.write_text("state: [unclosed")
        with pytest.raises(PersistenceError, match="can't decode yaml"):
            YamlStore(Machine, path).load()


class TestDefaultStore:
    def test_json_by_default(self, tmp_path):
        store = default_store(Machine, tmp_path / "x.json")
        assert isinstance(store, JsonStore)

    def test_yaml_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SM_STORE_FORMAT", "yaml")
        assert isinstance(default_store(Machine, tmp_path / "x.yaml"), YamlStore)

    def test_default_location_from_script(self, tmp_path, monkeypatch):
        monkeypatch.setattr("sys.argv", [str(tmp_path / "nightly.py")])
        assert JsonStore(Machine).path == (tmp_path / "nightly.json").resolve()
        assert YamlStore(Machine).path == (tmp_path / "nightly.yaml").resolve()


class TestSharedRecordFormat:
    def test_store_text_matches_record_io(self, tmp_path):
        from sm.utils.record_io import dumps_record

        path = tmp_path / "coin.json"
        JsonStore(Machine, path).save(Checkpoint(FirstToss(), error="boom"))
        expected = dumps_record({"state": {"kind": "first_toss"}, "error": "boom"}, "json")
        assert path.read_text() == expected

    def test_cli_edit_reloads_in_store(self, tmp_path):
        from typer.testing import CliRunner

        from sm.cli import app

        path = tmp_path / "coin.yml"
        YamlStore(Machine, path).save(Checkpoint(SecondToss(first_coin=Coin.heads), error="boom"))
        result = CliRunner().invoke(app, ["drop-error", str(path)])
        assert result.exit_code == 0
        assert YamlStore(Machine, path).load() == Checkpoint(SecondToss(first_coin=Coin.heads))

    def test_checkpoint_failed(self):
        assert Checkpoint(FirstToss(), error="boom").failed
        assert not Checkpoint(FirstToss()).failed
