from datetime import datetime
from pathlib import Path
import textwrap

import pytest

from timekeeper.errors import ConfigurationError
from timekeeper.planner import TimeBlock, load_planner, load_planners


def write_planner(path: Path, *, title: str, planner_id: str = "sample") -> None:
    path.write_text(
        textwrap.dedent(
            """
            id: {planner_id}
            title: {title}
            daily:
              - start: 23:00
                end: "07:00"
                type: sleep
                description: Sleep
              - start: "12:00"
                end: "13:00"
                type: meal
                description: Lunch
            weekly:
              Saturday:
                - start: "09:00"
                  end: "11:00"
                  type: commitment
                  description: Market
            """
        ).strip().format(title=title, planner_id=planner_id),
        encoding="utf-8",
    )


def test_later_path_overrides_earlier(tmp_path: Path) -> None:
    base = tmp_path / "base"
    base.mkdir()
    override = tmp_path / "override"
    override.mkdir()

    write_planner(base / "sample.yaml", title="Base Title")
    write_planner(override / "mine.yml", title="Override Title")

    planners = load_planners([base, override])

    assert planners["sample"].title == "Override Title"


def test_same_id_twice_in_one_directory_names_both_files(tmp_path: Path) -> None:
    write_planner(tmp_path / "a.yaml", title="A")
    write_planner(tmp_path / "b.yml", title="B")

    with pytest.raises(ConfigurationError) as exc:
        load_planners([tmp_path])

    message = str(exc.value)
    assert "planner 'sample'" in message
    assert "a.yaml" in message and "b.yml" in message


def test_unquoted_sexagesimal_time_is_parsed(tmp_path: Path) -> None:
    write_planner(tmp_path / "sample.yaml", title="T")

    planner = load_planner([tmp_path], "sample")

    assert planner.daily[0].start == "23:00"
    assert planner.daily[0].end == "07:00"


def test_classify_daily_and_weekly_blocks(tmp_path: Path) -> None:
    write_planner(tmp_path / "sample.yaml", title="T")
    planner = load_planner([tmp_path], "sample")

    # 2025-01-04 is a Saturday
    assert planner.classify(datetime(2025, 1, 4, 2, 30)).type == "sleep"
    assert planner.classify(datetime(2025, 1, 4, 23, 15)).type == "sleep"
    assert planner.classify(datetime(2025, 1, 4, 12, 30)).description == "Lunch"
    assert planner.classify(datetime(2025, 1, 4, 10, 0)).type == "commitment"
    assert planner.classify(datetime(2025, 1, 6, 10, 0)) is None


def test_block_end_is_exclusive() -> None:
    block = TimeBlock(start="12:00", end="13:00")
    assert block.contains(12 * 60)
    assert not block.contains(13 * 60)


def test_missing_directories_and_empty_files_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("id: ignored", encoding="utf-8")

    assert load_planners([tmp_path / "absent", tmp_path]) == {}


def test_every_bad_file_is_reported(tmp_path: Path) -> None:
    (tmp_path / "hours.yaml").write_text('id: x\ndaily:\n  - start: "25:00"\n    end: "26:00"\n', encoding="utf-8")
    (tmp_path / "list.yaml").write_text("- one\n- two\n", encoding="utf-8")
    (tmp_path / "days.yaml").write_text("id: y\nweekly:\n  Funday: []\n", encoding="utf-8")

    with pytest.raises(ConfigurationError) as exc:
        load_planners([tmp_path])

    message = str(exc.value)
    assert "hours.yaml" in message
    assert "list.yaml: expected a mapping" in message
    assert "days.yaml" in message


def test_unknown_planner_id(tmp_path: Path) -> None:
    write_planner(tmp_path / "sample.yaml", title="T")

    with pytest.raises(ConfigurationError) as exc:
        load_planner([tmp_path], "nobody")
    assert "'nobody' not found" in str(exc.value)
