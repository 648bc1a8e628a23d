from __future__ import annotations

from pathlib import Path

import pytest
from conftest import FakeAvailability, FakeMetadata, show

from wheretowatch import cli
from wheretowatch.config import Settings
from wheretowatch.errors import LibraryError
from wheretowatch.models import LibraryItem, Provider

CATALOG = [Provider(id=8, name="NetFlix"), Provider(id=15, name="Hulu")]
LIBRARY = [LibraryItem(id="1", title="Show X"), LibraryItem(id="2", title="Show Y (2020)")]


class FakePlex:
    instances: list["FakePlex"] = []
    fail = False

    def __init__(self, settings):
        self.settings = settings
        self.calls = []
        FakePlex.instances.append(self)

    def list_sections(self):
        return [{"key": "2", "title": "TV Shows", "type": "show"}]

    def list_items(self):
        if FakePlex.fail:
            raise LibraryError(self.settings.plex_library, "connection refused")
        return list(LIBRARY)

    async def apply_labels(self, item_id, labels):
        self.calls.append((item_id, [label.name for label in labels]))


@pytest.fixture(autouse=True)
def fakes(monkeypatch: pytest.MonkeyPatch):
    for name in Settings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
    FakePlex.instances = []
    FakePlex.fail = False
    availability = FakeAvailability(matches={"Show X": show("Show X", 8)}, catalog=CATALOG)
    monkeypatch.setattr(cli, "PlexLibrary", FakePlex)
    monkeypatch.setattr(cli, "JustWatchClient", lambda settings: availability)
    monkeypatch.setattr(cli, "TVMazeClient", lambda settings: FakeMetadata({"Show X": "Ended"}))
    return availability


def env_file(tmp_path: Path, *lines: str) -> str:
    path = tmp_path / ".env"
    path.write_text("\n".join(lines))
    return str(path)


def test_run_labels_and_prints_table(tmp_path: Path, capsys) -> None:
    path = env_file(tmp_path, "PLEX_TOKEN=abc", 'PROVIDERS=["NetFlix"]')

    assert cli.main(["--env-file", path, "-q", "--no-color"]) == 0

    assert FakePlex.instances[0].calls == [("1", ["NetFlix", "Ended"])]
    out = capsys.readouterr().out
    assert "Streaming availability" in out
    assert "Show X (ended)" in out
    assert "Show Y" not in out


def test_per_provider_override(tmp_path: Path, capsys) -> None:
    path = env_file(tmp_path, "PLEX_TOKEN=abc", "PROVIDERS=NetFlix,Hulu")

    assert cli.main(["--env-file", path, "-q", "--no-color", "--table-mode", "per-provider"]) == 0

    out = capsys.readouterr().out
    assert "Table for NetFlix:" in out
    assert "Table for Hulu:" in out
    assert "(no shows)" in out


def test_dry_run_and_no_labels_skip_writes(tmp_path: Path) -> None:
    path = env_file(tmp_path, "PLEX_TOKEN=abc", "PROVIDERS=NetFlix")

    assert cli.main(["--env-file", path, "-q", "--dry-run"]) == 0
    assert cli.main(["--env-file", path, "-q", "--no-labels"]) == 0

    assert [plex.calls for plex in FakePlex.instances] == [[], []]


def test_missing_token_exits_non_zero(tmp_path: Path) -> None:
    path = env_file(tmp_path, 'PROVIDERS=["NetFlix"]')
    assert cli.main(["--env-file", path, "-q"]) == 1


def test_library_failure_exits_non_zero(tmp_path: Path) -> None:
    FakePlex.fail = True
    path = env_file(tmp_path, "PLEX_TOKEN=abc", "PROVIDERS=NetFlix")
    assert cli.main(["--env-file", path, "-q"]) == 1


def test_no_resolved_providers_continues_with_ended_labels(tmp_path: Path, capsys) -> None:
    path = env_file(tmp_path, "PLEX_TOKEN=abc", "PROVIDERS=Peacock")

    assert cli.main(["--env-file", path, "-q", "--no-color"]) == 0

    assert FakePlex.instances[0].calls == [("1", ["Ended"])]
    assert "Show X (ended)" in capsys.readouterr().out


def test_unresolved_provider_is_only_a_warning(tmp_path: Path) -> None:
    path = env_file(tmp_path, "PLEX_TOKEN=abc", "PROVIDERS=Peacock,NetFlix")
    assert cli.main(["--env-file", path, "-q"]) == 0
    assert FakePlex.instances[0].calls == [("1", ["NetFlix", "Ended"])]


def test_list_providers(tmp_path: Path, capsys) -> None:
    path = env_file(tmp_path, "")
    assert cli.main(["--env-file", path, "--list-providers"]) == 0
    assert capsys.readouterr().out.splitlines() == ["Hulu", "NetFlix"]


def test_list_libraries(tmp_path: Path, capsys) -> None:
    path = env_file(tmp_path, "PLEX_TOKEN=abc")
    assert cli.main(["--env-file", path, "--list-libraries"]) == 0
    assert "TV Shows (key 2, show)" in capsys.readouterr().out
