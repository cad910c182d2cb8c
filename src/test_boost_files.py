import os
from conftest import write_event_file
from boost_files import main


def test_no_arguments(tmp_path, capsys):
    assert main([]) == 1
    assert "Usage:" in capsys.readouterr().out
    assert os.listdir(tmp_path) == []


def test_boost_files(tmp_path, events):
    paths = [write_event_file(str(tmp_path / f"file_{i}.root"), events) for i in range(2)]
    assert main(paths) == 0
    assert sorted(os.listdir(tmp_path)) == ["file_0-boosted.root", "file_0.root", "file_1-boosted.root", "file_1.root"]


def test_stops_at_first_failure(tmp_path, events, capsys):
    first = write_event_file(str(tmp_path / "first.root"), events)
    last = write_event_file(str(tmp_path / "last.root"), events)
    with open(str(tmp_path / "first-boosted.root"), "w") as out_file:
        out_file.write("existing")
    assert main([first, last]) == 2
    assert "Boosting failed" in capsys.readouterr().out
    assert not os.path.exists(str(tmp_path / "last-boosted.root"))
    with open(str(tmp_path / "first-boosted.root")) as in_file:
        assert in_file.read() == "existing"
