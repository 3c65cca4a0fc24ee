import subprocess
import tarfile
import threading
from datetime import datetime
from unittest import mock

import pytest

from labkit.datetime_jobs import (
    TaskError,
    append_log,
    archive_previous,
    crontab_job_once,
    crontab_job_weekly,
    home_directory,
    install_cron_job,
    is_well_formed_filename,
    main,
    put_datefile,
    wait_for_report,
)

NOW = datetime(2024, 3, 5, 10, 20, 30)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("2024-03-05_10-20-30", True),
        ("2023-12-31_23-59-59", True),
        ("report", False),
        ("2024-03-05", False),
        ("2024-03-05_10-20-30x", False),
        ("archived", False),
    ],
)
def test_is_well_formed_filename(name, expected):
    assert is_well_formed_filename(name) is expected


def test_home_directory_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert home_directory() == tmp_path


def test_home_directory_missing(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    with pytest.raises(TaskError) as info:
        home_directory()
    assert info.value.code == 30


def test_put_datefile_names_file_after_time(tmp_path):
    path = put_datefile(tmp_path, NOW)
    assert path.name == NOW.strftime("%Y-%m-%d_%H-%M-%S")
    assert path.is_file()
    assert path.read_bytes() == b""


def test_put_datefile_missing_directory(tmp_path):
    with pytest.raises(TaskError) as info:
        put_datefile(tmp_path / "missing", NOW)
    assert info.value.code == 3


def test_append_log_appends_lines(tmp_path):
    append_log(tmp_path, NOW)
    path = append_log(tmp_path, NOW)
    assert path.name == "report"
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == ["2024-03-05:10-20-30 test was created successfully"] * 2


def test_archive_previous_moves_old_days(tmp_path):
    test_dir = tmp_path / "test"
    archive_dir = test_dir / "archived"
    archive_dir.mkdir(parents=True)
    old = ["2024-03-04_09-00-00", "2024-03-04_11-30-00", "2024-02-01_08-00-00"]
    for name in old:
        (test_dir / name).touch()
    today = test_dir / NOW.strftime("%Y-%m-%d_%H-%M-%S")
    today.touch()
    other = test_dir / "notes"
    other.touch()

    archived = archive_previous(test_dir, archive_dir, NOW)

    assert sorted(archived) == sorted(old)
    assert today.exists() and other.exists()
    assert not any((test_dir / name).exists() for name in old)
    with tarfile.open(archive_dir / "2024-03-04.tar") as archive:
        assert sorted(archive.getnames()) == sorted(old[:2])
    with tarfile.open(archive_dir / "2024-02-01.tar") as archive:
        assert archive.getnames() == [old[2]]


def test_archive_previous_appends_to_existing_archive(tmp_path):
    archive_dir = tmp_path / "archived"
    archive_dir.mkdir()
    first, second = "2024-03-04_09-00-00", "2024-03-04_10-00-00"
    (tmp_path / first).touch()
    archive_previous(tmp_path, archive_dir, NOW)
    (tmp_path / second).touch()
    archive_previous(tmp_path, archive_dir, NOW)
    with tarfile.open(archive_dir / "2024-03-04.tar") as archive:
        assert sorted(archive.getnames()) == [first, second]


def test_archive_previous_missing_directory(tmp_path):
    with pytest.raises(TaskError) as info:
        archive_previous(tmp_path / "missing", tmp_path, NOW)
    assert info.value.code == 10


def test_crontab_job_once():
    job = crontab_job_once(datetime(2024, 3, 5, 10, 20))
    assert job.startswith("20 10 5 3 * ")
    assert job.endswith("# next_two_min_job")
    assert " >> " in job and "2>&1" in job


def test_crontab_job_weekly():
    job = crontab_job_weekly()
    assert job.startswith("*/5 * * * 5 ")
    assert job.endswith("# every_lessonday_job")


def test_install_cron_job_appends_to_table():
    existing = subprocess.CompletedProcess(["crontab", "-l"], 0, stdout="0 1 * * * old\n")
    written = subprocess.CompletedProcess(["crontab", "-"], 0)
    with mock.patch("labkit.datetime_jobs.subprocess.run", side_effect=[existing, written]) as run:
        table = install_cron_job("*/5 * * * 5 job")
    assert table == "0 1 * * * old\n*/5 * * * 5 job\n"
    assert run.call_args_list[1].kwargs["input"] == table
    assert run.call_args_list[1].args[0] == ["crontab", "-"]


def test_install_cron_job_without_crontab():
    with mock.patch("labkit.datetime_jobs.subprocess.run", side_effect=FileNotFoundError):
        with pytest.raises(TaskError) as info:
            install_cron_job("job")
    assert info.value.code == 20


def test_wait_for_report_returns_new_lines(tmp_path):
    path = tmp_path / "report"
    path.write_text("old line\n", encoding="utf-8")

    def append():
        with open(path, "a", encoding="utf-8") as handle:
            handle.write("first\nsecond\n")

    timer = threading.Timer(0.05, append)
    timer.start()
    try:
        lines = wait_for_report(path, 0, 0.01)
    finally:
        timer.join()
    assert lines == ["first\n", "second\n"]


def test_wait_for_report_missing_file(tmp_path):
    with pytest.raises(TaskError) as info:
        wait_for_report(tmp_path / "report", 0, 0)
    assert info.value.code == 4


def test_main_creates_file_and_log(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    old = tmp_path / "test" / "2000-01-01_00-00-00"
    old.parent.mkdir()
    old.touch()

    assert main([]) == 0

    test_dir = tmp_path / "test"
    dated = [p.name for p in test_dir.iterdir() if p.is_file()]
    assert len(dated) == 1 and is_well_formed_filename(dated[0])
    assert (test_dir / "archived" / "2000-01-01.tar").is_file()
    report = (tmp_path / "report").read_text(encoding="utf-8").splitlines()
    assert len(report) == 1
    assert report[0].endswith(" test was created successfully")


def test_main_without_home(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    assert main([]) == 30