"""Tests for the sync_mirror command-line script."""

from content_mirror.mirror import ContentMirror
from content_mirror.sync.models import DeltaBatch
from content_mirror.sync.sync_coordinator import SyncCoordinator
from scripts.sync_mirror import load_configuration, perform_sync
from tests.factories import RecordingStore, ScriptedUpstream, make_entry, network_error

VOLATILE_SQLITE_YAML = """
contentful:
  space_id: space1
  access_token: token
store:
  type: sqlite
  path: ":memory:"
logging:
  log_level: INFO
  json_logs: true
"""


def test_configuration_warnings_reach_operator(tmp_path, capsys):
    config_file = tmp_path / "default.yaml"
    config_file.write_text(VOLATILE_SQLITE_YAML)

    config = load_configuration(str(config_file))

    assert config.store.type == "sqlite"
    stderr = capsys.readouterr().err
    assert "Configuration warning:" in stderr
    assert "restart" in stderr


def test_perform_sync_reports_statistics():
    store = RecordingStore()
    upstream = ScriptedUpstream([DeltaBatch(next_sync_token="token-1", entries=[make_entry("e1")])])
    mirror = ContentMirror(SyncCoordinator(upstream, store), store)

    stats = perform_sync(mirror)

    assert stats["success"] is True
    assert stats["sync_type"] == "initial"
    assert stats["entries_upserted"] == 1


def test_perform_sync_reports_failure():
    store = RecordingStore()
    mirror = ContentMirror(SyncCoordinator(ScriptedUpstream([network_error()]), store), store)

    stats = perform_sync(mirror)

    assert stats["success"] is False
    assert "simulated network failure" in stats["error"]
