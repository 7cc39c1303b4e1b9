"""Tests for logcat line classification."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pidwatch.core.models import (
    Continuation,
    LogLevel,
    NewLogRecord,
    ProcessDeath,
    ProcessStart,
    Unparseable,
)
from pidwatch.core.parser import classify_line, parse_header
from tests.helpers import death_line, logcat_line, start_line


@pytest.mark.core
class TestParseHeader:
    """Tests for parse_header()."""

    @pytest.mark.tra("Parser.Header")
    @pytest.mark.tier(0)
    def test_parses_threadtime_line(self) -> None:
        record = parse_header("03-14 10:22:01.123  1234  1240 I MyTag: hello")

        assert record is not None
        assert record.timestamp == "03-14 10:22:01.123"
        assert record.pid == 1234
        assert record.tid == 1240
        assert record.level is LogLevel.INFO
        assert record.tag == "MyTag"
        assert record.message == "hello"

    @pytest.mark.tier(0)
    def test_accepts_year_prefix(self) -> None:
        record = parse_header("2024-03-14 10:22:01.123  1234  1234 D Net: up")
        assert record is not None
        assert record.timestamp == "2024-03-14 10:22:01.123"

    @pytest.mark.tier(0)
    def test_trims_tag_with_inner_spaces(self) -> None:
        record = parse_header("03-14 10:22:01.123  1234  1234 W My Tag  : spaced")
        assert record is not None
        assert record.tag == "My Tag"
        assert record.message == "spaced"

    @pytest.mark.tier(0)
    def test_empty_message(self) -> None:
        record = parse_header("03-14 10:22:01.123  1234  1234 I MyTag:")
        assert record is not None
        assert record.message == ""

    @pytest.mark.tier(0)
    def test_message_keeps_later_colons(self) -> None:
        record = parse_header(logcat_line(1, "Http", "GET http://host:80/path"))
        assert record is not None
        assert record.tag == "Http"
        assert record.message == "GET http://host:80/path"

    @pytest.mark.tier(0)
    def test_unknown_level_letter(self) -> None:
        record = parse_header("03-14 10:22:01.123  1234  1234 X MyTag: odd")
        assert record is not None
        assert record.level is LogLevel.UNKNOWN

    @pytest.mark.tier(0)
    @pytest.mark.parametrize(
        "line",
        ["", "hello world", "\tat com.example.Foo.bar(Foo.java:12)", "03-14 garbage"],
    )
    def test_non_header_returns_none(self, line: str) -> None:
        assert parse_header(line) is None

    @pytest.mark.tra("Parser.Header.Fields")
    @pytest.mark.tier(0)
    @given(
        pid=st.integers(min_value=0, max_value=99999),
        tid=st.integers(min_value=0, max_value=99999),
        level=st.sampled_from("VDIWEF"),
        tag=st.from_regex(r"[A-Za-z][A-Za-z0-9_.]{0,23}", fullmatch=True),
        message=st.text(
            alphabet=st.characters(exclude_categories=("Cs",), exclude_characters="\n\r"),
            max_size=80,
        ),
    )
    def test_structured_fields_survive_formatting(
        self, pid: int, tid: int, level: str, tag: str, message: str
    ) -> None:
        """Formatting a record as threadtime and parsing it yields the same fields."""
        record = parse_header(logcat_line(pid, tag, message, level=level, tid=tid))

        assert record is not None
        assert (record.pid, record.tid, record.tag, record.message) == (pid, tid, tag, message)
        assert record.level is LogLevel.from_letter(level)


@pytest.mark.core
class TestClassifyLine:
    """Tests for classify_line()."""

    @pytest.mark.tier(0)
    def test_ordinary_header(self) -> None:
        result = classify_line(logcat_line(1234, "MyTag", "hello"))
        assert isinstance(result, NewLogRecord)
        assert result.record.message == "hello"

    @pytest.mark.tier(0)
    def test_indented_text_is_continuation(self) -> None:
        result = classify_line("\tat com.example.Foo.bar(Foo.java:12)")
        assert result == Continuation("\tat com.example.Foo.bar(Foo.java:12)")

    @pytest.mark.tier(0)
    def test_blank_line_is_continuation(self) -> None:
        assert classify_line("") == Continuation("")

    @pytest.mark.tier(0)
    @pytest.mark.parametrize(
        "line", ["--------- beginning of main", "--------- switch to crash"]
    )
    def test_buffer_divider_is_unparseable(self, line: str) -> None:
        assert isinstance(classify_line(line), Unparseable)

    @pytest.mark.tier(0)
    def test_native_tags_noise_is_unparseable(self) -> None:
        line = logcat_line(1234, "Trace", "Unexpected value from nativeGetEnabledTags: 0")
        assert isinstance(classify_line(line), Unparseable)

    @pytest.mark.tra("Parser.Lifecycle.Start")
    @pytest.mark.tier(0)
    def test_start_proc_announcement(self) -> None:
        result = classify_line(start_line(5000, "com.example.app"))

        assert isinstance(result, ProcessStart)
        assert result.pid == 5000
        assert result.process_name == "com.example.app"
        assert result.package == "com.example.app"
        assert result.target == "activity com.example.app/.MainActivity"
        assert result.record.pid == 1000

    @pytest.mark.tier(0)
    def test_start_proc_with_uid_and_gids(self) -> None:
        line = logcat_line(
            1000,
            "ActivityManager",
            "Start proc com.example.app:remote for service com.example.app/.Sync: "
            "pid=5001 uid=10123 gids={50123, 3003}",
        )
        result = classify_line(line)

        assert isinstance(result, ProcessStart)
        assert result.pid == 5001
        assert result.process_name == "com.example.app:remote"
        assert result.package == "com.example.app"
        assert result.uid == "10123"
        assert result.gids == "{50123, 3003}"

    @pytest.mark.tier(0)
    def test_runtime_start_marker_uses_header_pid(self) -> None:
        line = logcat_line(5002, "AndroidRuntime", ">>>>> com.example.app [ userId:0 | appId:10123 ]")
        result = classify_line(line)

        assert isinstance(result, ProcessStart)
        assert result.pid == 5002
        assert result.uid == "10123"

    @pytest.mark.tra("Parser.Lifecycle.Death")
    @pytest.mark.tier(0)
    def test_has_died_is_final_death(self) -> None:
        result = classify_line(death_line(5000, "com.example.app"))

        assert isinstance(result, ProcessDeath)
        assert result.pid == 5000
        assert result.final

    @pytest.mark.tier(0)
    def test_killing_is_non_final_death(self) -> None:
        line = logcat_line(1000, "ActivityManager", "Killing 5000:com.example.app/u0a123: remove task")
        result = classify_line(line)

        assert isinstance(result, ProcessDeath)
        assert not result.final
        assert result.reason == "remove task"

    @pytest.mark.tier(0)
    def test_no_longer_want_is_non_final_death(self) -> None:
        line = logcat_line(
            1000, "ActivityManager", "No longer want com.example.app (pid 5000): empty #17"
        )
        result = classify_line(line)

        assert isinstance(result, ProcessDeath)
        assert result.process_name == "com.example.app"
        assert not result.final

    @pytest.mark.tier(0)
    def test_death_text_from_other_tags_is_ordinary(self) -> None:
        line = logcat_line(1234, "MyTag", "Process com.example.app (pid 5000) has died")
        assert isinstance(classify_line(line), NewLogRecord)

    @pytest.mark.tier(0)
    @given(st.text(max_size=120))
    def test_classification_is_deterministic(self, line: str) -> None:
        assert classify_line(line) == classify_line(line)
