"""
Tests for the file watcher, path filters and diff helpers.

The watcher is driven with poll_once() and a manual clock; no background
thread is started.
"""

import pytest


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def watcher(manual_clock):
    from slopwatch.core.config_manager import WatcherConfig
    from slopwatch.watching import FileChangeWatcher

    watcher = FileChangeWatcher(WatcherConfig(debounce_ms=300), clock=manual_clock)
    yield watcher
    watcher.stop()


class TestPathFilter:
    """Tests for PathFilter and extension checks."""

    def test_supported_extensions(self):
        from slopwatch.watching import PathFilter

        path_filter = PathFilter()

        assert path_filter.matches("src/app.ts")
        assert path_filter.matches("styles/main.scss")
        assert path_filter.matches(".env")
        assert not path_filter.matches("assets/logo.png")
        assert not path_filter.matches("README")

    def test_excluded_directories(self):
        from slopwatch.watching import PathFilter

        path_filter = PathFilter()

        assert not path_filter.matches("node_modules/lib/index.js")
        assert not path_filter.matches("dist/bundle.js")
        assert not path_filter.matches("src/.git/hooks.sh")
        assert path_filter.is_excluded_dir("coverage")

    def test_include_and_exclude_globs(self):
        from slopwatch.watching import PathFilter

        path_filter = PathFilter(include=["src/**"], exclude=["*.min.js"])

        assert path_filter.matches("src/app.js")
        assert not path_filter.matches("src/vendor.min.js")
        assert not path_filter.matches("lib/app.js")

    def test_double_star_prefix(self):
        from slopwatch.watching import PathFilter

        path_filter = PathFilter(include=["**/*.css"])

        assert path_filter.matches("main.css")
        assert path_filter.matches("a/b/main.css")
        assert not path_filter.matches("a/b/main.js")


class TestDiffHelpers:
    """Tests for the flattened diff helpers."""

    def test_diff_lines(self):
        from slopwatch.watching.diffs import diff_lines

        entries = diff_lines(["a", "b", "c"], ["a", "B", "c", "d"])

        assert entries == ["- b", "+ B", "+ d"]

    def test_created_and_deleted(self):
        from slopwatch.watching.diffs import created_diff, deleted_diff, summarize

        assert created_diff(["x", "y"]) == ["+ x", "+ y"]
        assert deleted_diff("a.css") == ["- [File deleted: a.css]"]
        assert summarize(["+ x", "+ y", "- z"]) == ("+ x\n+ y\n- z", 2, 1)

    def test_event_line_views(self):
        from slopwatch.watching import FileChangeEvent

        event = FileChangeEvent(path="A.CSS", diff_summary="+ a {}\n- b {}\n+++ header")

        assert event.extension == ".css"
        assert event.added_lines == ["a {}"]
        assert event.removed_lines == ["b {}"]


class TestFileChangeWatcher:
    """Tests for FileChangeWatcher polling."""

    def test_start_rejects_missing_root(self, watcher, temp_dir):
        from slopwatch.core.errors import WatcherIOError

        with pytest.raises(WatcherIOError):
            watcher.start(str(temp_dir / "missing"), background=False)

    def test_initial_files_are_not_reported(self, watcher, temp_dir, manual_clock):
        _write(temp_dir / "src" / "app.js", "const a = 1;\n")
        watcher.start(str(temp_dir), background=False)

        manual_clock.advance(1)

        assert watcher.poll_once() == []
        assert watcher.get_project_stats()["watched_files"] == 1

    def test_create_event_after_debounce(self, watcher, temp_dir, manual_clock):
        from slopwatch.watching import ChangeKind

        received = []
        watcher.start(str(temp_dir), sink=received.append, background=False)

        _write(temp_dir / "styles.css", "@media (max-width: 600px) {\n  a { color: red; }\n}\n")

        # First poll only notices the change
        assert watcher.poll_once() == []
        manual_clock.advance(0.5)
        events = watcher.poll_once()

        assert len(events) == 1
        event = events[0]
        assert event.kind == ChangeKind.CREATE
        assert event.path == "styles.css"
        assert event.lines_added == 3
        assert event.lines_removed == 0
        assert "+ @media (max-width: 600px) {" in event.diff_summary
        assert event.occurred_at == manual_clock.now()
        assert received == events

    def test_modify_event_has_line_diff(self, watcher, temp_dir, manual_clock):
        from slopwatch.watching import ChangeKind

        target = temp_dir / "app.js"
        _write(target, "const a = 1;\n")
        watcher.start(str(temp_dir), background=False)

        _write(target, "const a = 1;\ntry { run(); } catch (e) { log(e); }\n")
        watcher.poll_once()
        manual_clock.advance(1)
        events = watcher.poll_once()

        assert len(events) == 1
        assert events[0].kind == ChangeKind.MODIFY
        assert events[0].added_lines == ["try { run(); } catch (e) { log(e); }"]
        assert events[0].lines_removed == 0

    def test_delete_event(self, watcher, temp_dir, manual_clock):
        from slopwatch.watching import ChangeKind

        target = temp_dir / "gone.css"
        _write(target, "a { color: red; }\n")
        watcher.start(str(temp_dir), background=False)

        target.unlink()
        watcher.poll_once()
        manual_clock.advance(1)
        events = watcher.poll_once()

        assert len(events) == 1
        assert events[0].kind == ChangeKind.DELETE
        assert events[0].diff_summary == "- [File deleted: gone.css]"

    def test_rapid_changes_are_coalesced(self, watcher, temp_dir, manual_clock):
        """Writes inside the debounce period produce one event with the final diff."""
        target = temp_dir / "app.ts"
        _write(target, "let x = 1;\n")
        watcher.start(str(temp_dir), background=False)

        _write(target, "let x = 22;\n")
        watcher.poll_once()
        manual_clock.advance(0.1)
        _write(target, "let x = 3;\nlet y = 4;\n")
        assert watcher.poll_once() == []

        manual_clock.advance(0.5)
        events = watcher.poll_once()

        assert len(events) == 1
        assert events[0].added_lines == ["let x = 3;", "let y = 4;"]
        assert events[0].removed_lines == ["let x = 1;"]

    def test_excluded_paths_are_ignored(self, watcher, temp_dir, manual_clock):
        watcher.start(str(temp_dir), exclude=["*.min.js"], background=False)

        _write(temp_dir / "node_modules" / "lib" / "index.js", "module.exports = 1;\n")
        _write(temp_dir / "vendor.min.js", "var a=1;\n")
        _write(temp_dir / "image.png", "not really a png\n")
        watcher.poll_once()
        manual_clock.advance(1)

        assert watcher.poll_once() == []

    def test_unreadable_file_is_skipped(self, watcher, temp_dir, manual_clock, monkeypatch):
        from slopwatch.core.errors import WatcherIOError

        watcher.start(str(temp_dir), background=False)
        _write(temp_dir / "bad.js", "x();\n")
        _write(temp_dir / "good.js", "y();\n")

        original = watcher._read_lines

        def flaky_read(path, size):
            if path == "bad.js":
                raise WatcherIOError("permission denied", path)
            return original(path, size)

        monkeypatch.setattr(watcher, "_read_lines", flaky_read)
        watcher.poll_once()
        manual_clock.advance(1)
        events = watcher.poll_once()

        assert [e.path for e in events] == ["good.js"]

    def test_restart_discards_previous_session(self, watcher, temp_dir, manual_clock):
        first = temp_dir / "one"
        second = temp_dir / "two"
        _write(first / "a.css", "a {}\n")
        _write(second / "b.css", "b {}\n")

        watcher.start(str(first), background=False)
        _write(first / "pending.css", "p {}\n")
        watcher.poll_once()

        watcher.start(str(second), background=False)
        manual_clock.advance(1)

        assert watcher.poll_once() == []
        assert watcher.root == second.resolve()
        assert watcher.get_project_stats()["pending_changes"] == 0

    def test_stop_clears_state(self, watcher, temp_dir):
        _write(temp_dir / "a.css", "a {}\n")
        watcher.start(str(temp_dir), background=False)

        watcher.stop()

        assert watcher.root is None
        assert watcher.poll_once() == []
        assert watcher.get_project_stats()["watched_files"] == 0

    def test_is_relevant_file(self, watcher, temp_dir):
        watcher.start(str(temp_dir), background=False)

        assert watcher.is_relevant_file("src/app.tsx")
        assert watcher.is_relevant_file(str(temp_dir / "src" / "app.tsx"))
        assert not watcher.is_relevant_file("node_modules/x/index.js")
