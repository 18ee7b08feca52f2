import json
import os

from localizer.merger import (
    DictionaryMerger, MergeChange, count_translations, deep_merge,
    diff_dictionaries, merge_dictionaries, select_changes,
)


def test_deep_merge_is_recursive_and_non_mutating():
    primary = {"menu": {"File": "文件"}, "ui": {"Search": "搜索"}}
    addition = {"menu": {"Edit": "编辑"}, "chat": {"Send": "发送"}}
    merged = deep_merge(primary, addition)
    assert merged == {
        "menu": {"File": "文件", "Edit": "编辑"},
        "ui": {"Search": "搜索"},
        "chat": {"Send": "发送"},
    }
    assert primary == {"menu": {"File": "文件"}, "ui": {"Search": "搜索"}}


def test_deep_merge_addition_wins_on_scalars():
    merged = deep_merge({"menu": {"File": "文件"}}, {"menu": {"File": "档案"}})
    assert merged["menu"]["File"] == "档案"


def test_deep_merge_records_type_changes():
    conflicts = []
    merged = deep_merge({"menu": {"File": "文件"}, "x": {"a": "b"}},
                        {"menu": "flat", "x": {"a": {"nested": "值"}}}, conflicts)
    assert merged["menu"] == "flat"
    assert merged["x"] == {"a": {"nested": "值"}}
    assert conflicts == ["menu", "x.a"]


def test_lists_are_replaced_not_merged():
    merged = deep_merge({"tags": ["a", "b"]}, {"tags": ["c"]})
    assert merged == {"tags": ["c"]}


def test_count_translations():
    stats = count_translations({"a": {"x": "1", "y": {"z": "2"}, "n": 3}, "b": "top"})
    assert stats.total_entries == 3
    assert stats.total_categories == 1


def test_merge_dictionaries_stats():
    result = merge_dictionaries({"menu": {"File": "文件"}},
                                {"menu": {"File": "档案", "Edit": "编辑"}, "ui": {"Go": "转到"}})
    assert result.added_translations == 2
    assert result.added_categories == 1
    assert result.conflicts == []


def test_diff_and_select_changes():
    primary = {"menu": {"File": "文件", "Edit": "编辑"}}
    addition = {"menu": {"File": "档案", "Edit": "编辑", "View": "查看"}, "ui": {"Go": "转到"}}
    changes = diff_dictionaries(primary, addition)
    assert changes == [
        MergeChange("menu", "File", "文件", "档案"),
        MergeChange("menu", "View", None, "查看"),
        MergeChange("ui", "Go", None, "转到"),
    ]
    new_only = [c for c in changes if c.current is None]
    assert select_changes(new_only) == {"menu": {"View": "查看"}, "ui": {"Go": "转到"}}


def test_run_without_pending_file(tmp_path, write_json):
    write_json("zh-cn.json", {"menu": {"File": "文件"}})
    merger = DictionaryMerger(str(tmp_path))
    outcome = merger.run()
    assert outcome.success and not outcome.merged
    assert not os.path.exists(merger.backup_file)


def test_run_merges_pending_file(tmp_path, write_json):
    write_json("zh-cn.json", {"menu": {"File": "文件"}})
    write_json("yes-zh-cn.json", {"menu": {"Edit": "编辑"}, "ui": {"Go": "转到"}})
    merger = DictionaryMerger(str(tmp_path))

    outcome = merger.run()

    assert outcome.success and outcome.merged
    assert outcome.stats["added"] == {"translations": 2, "categories": 1}
    with open(merger.primary_file, encoding="utf-8") as f:
        assert json.load(f) == {"menu": {"File": "文件", "Edit": "编辑"}, "ui": {"Go": "转到"}}
    with open(merger.backup_file, encoding="utf-8") as f:
        assert json.load(f) == {"menu": {"File": "文件"}}
    # pending file is left in place
    assert merger.has_pending()
    with open(merger.report_file, encoding="utf-8") as f:
        report = json.load(f)
    assert report["merged"] is True
    assert report["log"][-1]["type"] == "MERGE_SUCCESS"


def test_run_with_explicit_addition(tmp_path, write_json):
    write_json("zh-cn.json", {"menu": {"File": "文件"}})
    write_json("yes-zh-cn.json", {"menu": {"File": "档案", "Edit": "编辑"}})
    merger = DictionaryMerger(str(tmp_path))
    outcome = merger.run({"menu": {"Edit": "编辑"}})
    assert outcome.merged
    with open(merger.primary_file, encoding="utf-8") as f:
        assert json.load(f) == {"menu": {"File": "文件", "Edit": "编辑"}}


def test_run_with_malformed_pending(tmp_path, write_json):
    write_json("zh-cn.json", {"menu": {"File": "文件"}})
    (tmp_path / "yes-zh-cn.json").write_text("{broken", encoding="utf-8")
    merger = DictionaryMerger(str(tmp_path))
    outcome = merger.run()
    assert not outcome.success
    assert merger.merge_log[0]["type"] == "JSON_PARSE_ERROR"
    with open(merger.primary_file, encoding="utf-8") as f:
        assert json.load(f) == {"menu": {"File": "文件"}}


def test_run_with_missing_primary(tmp_path, write_json):
    write_json("yes-zh-cn.json", {"menu": {"Edit": "编辑"}})
    outcome = DictionaryMerger(str(tmp_path)).run()
    assert not outcome.success
    assert outcome.reason == "cannot read primary file"
