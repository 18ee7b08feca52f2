import json

import pytest

from localizer.coverage import COMMON_UI_TERMS
from localizer.dictionary import (
    DictionaryNotFoundError, DictionaryParseError, DictionaryStructureError,
    KeyCollisionError, MergePolicy, TranslationDictionary, check_structure,
    fix_common_issues, flatten_groups, load_dictionary, validate_groups,
)


def test_load_and_properties(write_json, sample_groups):
    path = write_json("zh-cn.json", sample_groups)
    dictionary = TranslationDictionary.load(path)
    assert dictionary.categories == ["menu", "common"]
    assert dictionary.total_entries == 11
    assert dictionary.duplicates == []


def test_load_missing_file(tmp_path):
    with pytest.raises(DictionaryNotFoundError):
        TranslationDictionary.load(str(tmp_path / "missing.json"))
    assert load_dictionary(str(tmp_path / "missing.json")) is None


def test_load_malformed_json(tmp_path):
    path = tmp_path / "zh-cn.json"
    path.write_text('{"menu": {"File": "文件",}', encoding="utf-8")
    with pytest.raises(DictionaryParseError):
        TranslationDictionary.load(str(path))


@pytest.mark.parametrize("data", [[], {}, {"menu": "文件"}])
def test_load_bad_structure(write_json, data):
    path = write_json("zh-cn.json", data)
    with pytest.raises(DictionaryStructureError):
        TranslationDictionary.load(path)


def test_check_structure():
    assert check_structure({"a": {}}) is None
    assert "not an object" in check_structure([])
    assert "no categories" in check_structure({})
    assert '"b"' in check_structure({"a": {}, "b": 3})


def test_raw_duplicates_are_reported(tmp_path):
    path = tmp_path / "zh-cn.json"
    path.write_text('{"menu": {"File": "文件", "File": "档案"}}', encoding="utf-8")
    dictionary = TranslationDictionary.load(str(path))
    assert dictionary.groups == {"menu": {"File": "档案"}}
    assert dictionary.duplicates == ["menu.File"]
    report = dictionary.validate(min_entries=0)
    assert report.stats["duplicateKeys"] == 1
    assert "Found 1 duplicate keys" in report.issues


def test_flatten_later_category_wins():
    groups = {"a": {"File": "文件", "Edit": "编辑"}, "b": {"File": "档案"}}
    assert flatten_groups(groups) == {"File": "档案", "Edit": "编辑"}


def test_flatten_strict_raises_on_collision():
    groups = {"a": {"File": "文件"}, "b": {"File": "档案"}}
    with pytest.raises(KeyCollisionError) as excinfo:
        flatten_groups(groups, MergePolicy.STRICT)
    assert excinfo.value.key == "File"
    assert excinfo.value.categories == ("a", "b")


def test_flatten_skips_invalid_values():
    warnings = []
    groups = {"a": {"File": "文件", "Edit": "", "View": "   ", "Help": None, "Go": 3}}
    assert flatten_groups(groups, warnings=warnings) == {"File": "文件"}
    assert warnings == ["a.Edit", "a.View", "a.Help", "a.Go"]


def test_validate_clean_dictionary(sample_groups):
    report = validate_groups(sample_groups)
    assert report.is_valid
    assert report.stats["totalGroups"] == 2
    assert report.stats["totalEntries"] == 11


def test_validate_counts_problems():
    groups = {
        "menu": {
            "File": "文件",
            "Edit": "",
            "Long": "长" * 501,
            "Escaped": "第一行\\n第二行",
            " ": "空",
        },
        "broken": "not an object",
    }
    report = validate_groups(groups, min_entries=10)
    stats = report.stats
    assert not report.is_valid
    assert stats["totalEntries"] == 5
    assert stats["emptyEntries"] == 2
    assert stats["longTranslations"] == 1
    assert stats["specialChars"] == 1
    assert any("too long" in issue for issue in report.issues)
    assert any("invalid structure" in issue for issue in report.issues)
    assert any("Too few translation entries" in issue for issue in report.issues)


def test_validate_rejects_non_object_and_empty():
    assert not validate_groups([]).is_valid
    assert not validate_groups({}).is_valid


def test_validate_common_terms_is_opt_in(sample_groups):
    assert validate_groups(sample_groups).untranslated == []
    report = validate_groups(sample_groups, common_terms=COMMON_UI_TERMS)
    missing = {term.term for term in report.untranslated}
    assert "Settings" in missing
    assert "File" not in missing
    assert report.stats["untranslatedEntries"] == len(report.untranslated)
    assert not report.is_valid


def test_fix_common_issues():
    groups = {"menu": {"File": "文件", "Edit": " "}, "empty": {"Help": None}}
    fixes = fix_common_issues(groups)
    assert groups == {"menu": {"File": "文件"}}
    assert "Removed empty translation: menu.Edit" in fixes
    assert "Removed empty category: empty" in fixes
    assert fix_common_issues(groups) == []


def test_save_writes_indented_unicode(tmp_path, sample_groups):
    path = tmp_path / "out" / "zh-cn.json"
    TranslationDictionary(str(path), sample_groups).save()
    text = path.read_text(encoding="utf-8")
    assert '  "menu": {' in text
    assert "文件" in text
    assert json.loads(text) == sample_groups


def test_same_key_in_two_categories_is_not_a_duplicate():
    groups = {"dialog": {"OK": "确定"}, "button": {"OK": "好"}}
    report = validate_groups(groups, min_entries=0)
    assert report.is_valid
    assert report.stats["duplicateKeys"] == 0
    assert flatten_groups(groups) == {"OK": "好"}


def test_dotted_names_are_not_duplicates():
    groups = {"a.b": {"c": "甲"}, "a": {"b.c": "乙"}}
    report = validate_groups(groups, min_entries=0)
    assert report.stats["duplicateKeys"] == 0
    assert not any("duplicate" in issue for issue in report.issues)
    assert report.is_valid
