from importlib.metadata import PackageNotFoundError

from servedby import main


def test_version_file_wins(tmp_path, monkeypatch):
    f = tmp_path / "VERSION"
    f.write_text("1.2.3\n", encoding="utf-8")
    monkeypatch.setattr(main, "APP_VERSION_FILE", f)
    assert main.read_version_fallback() == "1.2.3"


def test_installed_metadata_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.setattr(main, "APP_VERSION_FILE", tmp_path / "missing")
    monkeypatch.setattr(main, "dist_version", lambda name: "0.3.0")
    assert main.read_version_fallback() == "0.3.0"


def test_unknown_when_nothing_available(tmp_path, monkeypatch):
    def not_installed(name):
        raise PackageNotFoundError(name)

    monkeypatch.setattr(main, "APP_VERSION_FILE", tmp_path / "missing")
    monkeypatch.setattr(main, "dist_version", not_installed)
    assert main.read_version_fallback() == "0.0.0"
    monkeypatch.setenv("GIT_COMMIT", "abc1234")
    assert main.human_version() == "servedby v0.0.0 (abc1234)"
