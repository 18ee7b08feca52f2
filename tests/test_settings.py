import json
import os

from localizer.settings import DEFAULT_TRANSLATIONS_DIR, Settings


def test_missing_file_gives_defaults(tmp_path):
    settings = Settings.load(str(tmp_path / "_settings.json"))
    assert settings == Settings()
    assert settings.translations_dir == DEFAULT_TRANSLATIONS_DIR
    assert settings.dictionary_path == os.path.join(DEFAULT_TRANSLATIONS_DIR, "zh-cn.json")


def test_round_trip(tmp_path):
    path = str(tmp_path / "_settings.json")
    Settings(install_path="/opt/cursor", mode="bilingual", fast=True,
             merge_policy="strict", min_entries=5, dark_mode=False).save(path)
    loaded = Settings.load(path)
    assert loaded.install_path == "/opt/cursor"
    assert loaded.mode == "bilingual"
    assert loaded.fast is True
    assert loaded.merge_policy == "strict"
    assert loaded.min_entries == 5
    assert loaded.dark_mode is False


def test_invalid_values_are_ignored(tmp_path):
    path = tmp_path / "_settings.json"
    path.write_text(json.dumps({"mode": "loud", "merge_policy": 3, "min_entries": -1,
                                "translations_dir": "", "unknown": 1}), encoding="utf-8")
    assert Settings.load(str(path)) == Settings()


def test_corrupt_file_gives_defaults(tmp_path):
    path = tmp_path / "_settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert Settings.load(str(path)) == Settings()


def test_save_failure_is_not_fatal(tmp_path):
    Settings().save(str(tmp_path / "missing-dir" / "_settings.json"))
