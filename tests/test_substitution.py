from localizer.substitution import (
    BILINGUAL_SEPARATOR, COMMON_FALLBACKS, FALLBACK_TRANSLATIONS,
    SubstitutionMode, apply_substitutions, build_pattern, with_fallbacks,
)


def test_direct_mode_replaces_quoted_literals():
    text = 'var a = "File"; var b = "Edit";'
    result = apply_substitutions(text, {"File": "文件", "Edit": "编辑"}, "direct")
    assert result.text == 'var a = "文件"; var b = "编辑";'
    assert result.hits == 2
    assert result.misses == []


def test_bilingual_mode_keeps_original():
    result = apply_substitutions('"File"', {"File": "文件"}, SubstitutionMode.BILINGUAL)
    assert result.text == '"File\\n文件"'
    assert BILINGUAL_SEPARATOR == "\\n"
    assert len(BILINGUAL_SEPARATOR) == 2


def test_single_quotes_match_and_mixed_quotes_do_not():
    result = apply_substitutions("x = 'File'; y = \"File'", {"File": "文件"})
    assert result.text == "x = '文件'; y = \"File'"


def test_partial_words_are_not_replaced():
    text = 'var a = "Files"; var b = "Save As"; fileMenu = "File menu";'
    result = apply_substitutions(text, {"File": "文件", "Save": "保存"})
    assert result.text == text
    assert result.hits == 0
    assert sorted(result.misses) == ["File", "Save"]


def test_longest_key_applied_first():
    text = '"Save As" "Save"'
    result = apply_substitutions(text, {"Save": "保存", "Save As": "另存为"})
    assert result.text == '"另存为" "保存"'


def test_second_application_of_direct_result_is_noop():
    text = 'var a = "File"; var b = "Edit";'
    mapping = {"File": "文件", "Edit": "编辑"}
    first = apply_substitutions(text, mapping)
    second = apply_substitutions(first.text, mapping)
    assert second.text == first.text
    assert second.hits == 0


def test_no_hit_reports_misses():
    result = apply_substitutions('var x = 1;', {"File": "文件"})
    assert result.text == 'var x = 1;'
    assert result.hits == 0
    assert result.misses == ["File"]


def test_regex_metacharacters_are_literal():
    text = 'a = "Open (Ctrl+O)..."; b = "Open xCtrl+O)..."'
    result = apply_substitutions(text, {"Open (Ctrl+O)...": "打开"})
    assert result.text == 'a = "打开"; b = "Open xCtrl+O)..."'


def test_replacement_text_is_not_expanded():
    result = apply_substitutions('"File"', {"File": r"\1 \g<0> $1"})
    assert result.text == '"\\1 \\g<0> $1"'


def test_empty_key_is_skipped_with_error():
    result = apply_substitutions('"" "File"', {"": "空", "File": "文件"})
    assert result.text == '"" "文件"'
    assert result.errors == ["Skipped empty key"]


def test_bad_value_recorded_and_processing_continues():
    result = apply_substitutions('"File" "Edit"', {"File": None, "Edit": "编辑"})
    assert result.text == '"File" "编辑"'
    assert result.hits == 1
    assert len(result.errors) == 1
    assert "File" in result.errors[0]


def test_progress_callback_reports_completion():
    calls = []
    mapping = {f"Key{i}": f"值{i}" for i in range(250)}
    apply_substitutions('"Key1"', mapping, progress=lambda done, total: calls.append((done, total)))
    assert calls[0] == (0, 250)
    assert (100, 250) in calls and (200, 250) in calls
    assert calls[-1] == (250, 250)


def test_build_pattern_requires_matching_quotes():
    pattern = build_pattern("a.b")
    assert pattern.search('"a.b"')
    assert not pattern.search('"axb"')
    assert not pattern.search("\"a.b'")


def test_with_fallbacks_fills_missing_terms_only():
    merged = with_fallbacks({"File": "档案", "Settings": ""})
    assert merged["File"] == "档案"
    assert merged["Settings"] == FALLBACK_TRANSLATIONS["Settings"]
    assert set(COMMON_FALLBACKS) <= set(merged)
    assert len(COMMON_FALLBACKS) == 22
