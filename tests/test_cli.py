from __future__ import annotations

import io
from pathlib import Path

import pytest

from bsky_archive import ArchiveSettings, PostArchiver
from bsky_archive.cli import app
from bsky_archive.cli.config import Config, load_config, save_config
from bsky_archive.client import BskyClient
from bsky_archive.storage.disk import DiskStorage
from tests.conftest import POST_URL, THREAD_ONE_IMAGE, FakeSession

ENV_VARS = ("BSKYUSERNAME", "BSKYPASSWORD", "BSKY_SERVICE_URL", "BSKY_ARCHIVE_DIR")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "cfg" / "config.toml"
    monkeypatch.setenv("BSKY_ARCHIVE_CONFIG", str(path))
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return path


@pytest.fixture()
def fake_archiver(monkeypatch: pytest.MonkeyPatch, fake_session: FakeSession):
    def build(cfg: Config) -> PostArchiver:
        settings = cfg.to_settings()
        return PostArchiver(
            storage=DiskStorage(settings.archive_dir),
            client=BskyClient(settings, session=fake_session),  # type: ignore[arg-type]
        )

    monkeypatch.setattr(app, "_build_archiver", build)
    return fake_session


class TestConfigFile:
    def test_defaults_without_file(self):
        cfg = load_config()
        assert cfg == Config()
        assert not cfg.has_credentials

    def test_save_then_load(self, isolated_config: Path):
        cfg = Config(
            identifier="alice.bsky.social",
            password="app-pass",
            archive_dir="/srv/posts",
            mirror=False,
            image_workers=4,
            infer_image_extension=True,
        )

        written = save_config(cfg)

        assert written == isolated_config
        assert load_config() == cfg

    def test_env_overrides_file(self, monkeypatch: pytest.MonkeyPatch):
        save_config(Config(identifier="from-file", password="file-pass"))
        monkeypatch.setenv("BSKYUSERNAME", "from-env")
        monkeypatch.setenv("BSKYPASSWORD", "env-pass")
        monkeypatch.setenv("BSKY_ARCHIVE_DIR", "/tmp/elsewhere")

        cfg = load_config()

        assert cfg.identifier == "from-env"
        assert cfg.password == "env-pass"
        assert cfg.archive_dir == "/tmp/elsewhere"

    @pytest.mark.parametrize(
        "password", ['pa"ss\\w', "back\\slash\\", "tab\tand\nnewline", "ünïcode"]
    )
    def test_special_characters_survive_round_trip(self, password: str):
        cfg = Config(
            identifier='alice "the archivist"',
            password=password,
            archive_dir="C:\\Users\\alice\\posts",
        )

        save_config(cfg)

        assert load_config() == cfg

    def test_set_credentials_after_quoted_password(
        self, monkeypatch: pytest.MonkeyPatch
    ):
        save_config(Config(identifier="alice.bsky.social", password='x"y'))
        monkeypatch.setattr("builtins.input", lambda _prompt: "bob.bsky.social")
        monkeypatch.setattr("getpass.getpass", lambda _prompt: 'new"pass\\')

        app.main(["config", "set-credentials"])

        cfg = load_config()
        assert cfg.identifier == "bob.bsky.social"
        assert cfg.password == 'new"pass\\'

    def test_to_settings(self):
        settings = Config(archive_dir="/srv/posts", image_workers=2).to_settings()
        assert settings.archive_dir == "/srv/posts"
        assert settings.image_workers == 2

    def test_to_settings_drops_credentials(self):
        settings = Config(identifier="alice", password="secret").to_settings()
        assert "secret" not in repr(settings)
        assert not hasattr(settings, "password")


class TestArchiveSettings:
    def test_from_dict_ignores_unknown_keys(self):
        settings = ArchiveSettings.from_dict(
            {"archive_dir": "/srv/posts", "timeout": 5.0, "colour": "blue"}
        )
        assert settings.archive_dir == "/srv/posts"
        assert settings.timeout == 5.0
        assert settings.mirror is True

    def test_from_dict_validates(self):
        with pytest.raises(ValueError):
            ArchiveSettings.from_dict({"image_workers": 0})


class TestArchiveCommand:
    def test_bad_url_exits_100(self, fake_archiver: FakeSession):
        with pytest.raises(SystemExit) as excinfo:
            app.main(["archive", "https://bsky.app/notapost"])

        assert excinfo.value.code == app.EXIT_INPUT_FORMAT
        assert fake_archiver.calls == []

    def test_bad_url_checked_before_credentials(self, fake_archiver: FakeSession):
        # No credentials configured: the URL error still wins.
        with pytest.raises(SystemExit) as excinfo:
            app.main(["archive", "not a url"])

        assert excinfo.value.code == 100

    def test_missing_credentials(
        self, fake_archiver: FakeSession, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr("sys.stdin", io.StringIO())

        with pytest.raises(SystemExit) as excinfo:
            app.main(["archive", POST_URL])

        assert excinfo.value.code == app.EXIT_FAILURE
        assert fake_archiver.calls == []

    def test_archives_post(
        self,
        fake_archiver: FakeSession,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ):
        monkeypatch.setenv("BSKYUSERNAME", "alice.bsky.social")
        monkeypatch.setenv("BSKYPASSWORD", "app-pass")
        fake_archiver.stub_service(THREAD_ONE_IMAGE, blobs={"bafkreiimageone": b"I"})
        posts = tmp_path / "posts"

        app.main(["archive", POST_URL, "--archive-dir", str(posts), "--no-mirror"])

        assert (posts / "3kabc123" / "raw.json").exists()
        assert (posts / "3kabc123" / "bafkreiimageone.png").exists()
        assert not any("web.archive.org" in c.url for c in fake_archiver.calls)
        assert "bafkreiimageone.png" in capsys.readouterr().out

    def test_failure_exits_1(
        self,
        fake_archiver: FakeSession,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ):
        monkeypatch.setenv("BSKYUSERNAME", "alice.bsky.social")
        monkeypatch.setenv("BSKYPASSWORD", "app-pass")

        with pytest.raises(SystemExit) as excinfo:
            app.main(["archive", POST_URL, "--archive-dir", str(tmp_path / "p")])

        assert excinfo.value.code == 1

    def test_rejects_zero_workers(self):
        with pytest.raises(SystemExit) as excinfo:
            app.main(["archive", POST_URL, "--workers", "0"])

        assert excinfo.value.code == 2


class TestListCommand:
    def test_lists_record_keys(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ):
        posts = tmp_path / "posts"
        (posts / "3kbbb").mkdir(parents=True)
        (posts / "3kaaa").mkdir()

        app.main(["list", "--archive-dir", str(posts)])

        out = capsys.readouterr().out
        assert "Archived posts (2)" in out
        assert out.index("3kaaa") < out.index("3kbbb")

    def test_empty_archive(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]):
        app.main(["list", "--archive-dir", str(tmp_path / "none")])

        assert "No archived posts" in capsys.readouterr().out


class TestConfigCommands:
    def test_path(self, isolated_config: Path, capsys: pytest.CaptureFixture[str]):
        app.main(["config", "path"])

        assert capsys.readouterr().out.strip() == str(isolated_config)

    def test_show_masks_password(self, capsys: pytest.CaptureFixture[str]):
        save_config(Config(identifier="alice.bsky.social", password="hunter2"))

        app.main(["config", "show"])

        out = capsys.readouterr().out
        assert "alice.bsky.social" in out
        assert "hunter2" not in out
