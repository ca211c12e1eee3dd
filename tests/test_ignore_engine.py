from treemirror.ignore_engine import IgnoreEngine, build_ignore_engine


def test_patterns_match_files_and_directories() -> None:
    engine = IgnoreEngine(["*.tmp", "cache/"])

    assert engine.is_ignored("notes.tmp") is True
    assert engine.is_ignored("deep/nested/notes.tmp") is True
    assert engine.is_ignored("cache", is_dir=True) is True
    assert engine.is_ignored("cache") is False
    assert engine.is_ignored("notes.txt") is False


def test_negated_pattern_keeps_file() -> None:
    engine = IgnoreEngine(["*.log", "!keep.log"])

    assert engine.is_ignored("debug.log") is True
    assert engine.is_ignored("keep.log") is False


def test_blank_patterns_make_an_empty_engine() -> None:
    engine = build_ignore_engine(["", "   "], [])

    assert not engine
    assert engine.is_ignored("anything.txt") is False


def test_build_ignore_engine_merges_groups() -> None:
    engine = build_ignore_engine(["*.tmp"], ["build/"])

    assert engine.patterns == ["*.tmp", "build/"]
    assert engine.is_ignored("build", is_dir=True) is True
