from pathlib import Path

import pytest

from goifaces import cli
from goifaces.cli import collect_sources, destination


def test_version(capsys):
    cli.main(["version"])
    assert capsys.readouterr().out.strip() != ""


def test_type_writes_output_file(tmp_path: Path, scenario_a_src: str):
    src = tmp_path / "mystruct.go"
    src.write_text(scenario_a_src, encoding="utf-8")
    out = tmp_path / "ifaces.go"
    cli.main(["type", str(out), "-f", str(src), "-t", "MyStruct", "-p", "mypkg", "--pre", "Pre", "-c", "DO NOT EDIT"])
    text = out.read_text(encoding="utf-8")
    assert text.startswith("// DO NOT EDIT\n\npackage mypkg\n")
    assert "type PreMyStruct interface {" in text

    # rerun with -a merges into the existing file
    cli.main(["type", str(out), "-a", "-f", str(src), "-t", "MyStruct", "-p", "mypkg", "--pre", "Pre", "-c", "DO NOT EDIT"])
    assert out.read_text(encoding="utf-8") == text


def test_type_prints_without_out(tmp_path: Path, scenario_a_src: str, capsys):
    src = tmp_path / "mystruct.go"
    src.write_text(scenario_a_src, encoding="utf-8")
    cli.main(["type", "-f", str(src), "-t", "MyStruct", "-c", ""])
    assert capsys.readouterr().out.startswith("package mypkg\n\n// MyStruct type document\n")


def test_recv_from_go_generate_env(tmp_path: Path, mystruct_src: str, monkeypatch):
    (tmp_path / "mystruct.go").write_text(mystruct_src, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GOFILE", "mystruct.go")
    monkeypatch.setenv("GOLINE", "20")
    cli.main(["recv", "setter.go", "-p", "mypkg", "-i", "Setter", "--no-tdoc"])
    text = (tmp_path / "setter.go").read_text(encoding="utf-8")
    assert "type Setter interface {\n\t// Set func doc\n\tSet(item string)\n}\n" in text


def test_not_found_exits(tmp_path: Path, scenario_a_src: str):
    src = tmp_path / "mystruct.go"
    src.write_text(scenario_a_src, encoding="utf-8")
    with pytest.raises(SystemExit, match="could not match type"):
        cli.main(["type", str(tmp_path / "out.go"), "-f", str(src), "-t", "Missing"])


def test_invalid_package_name_exits(tmp_path: Path, scenario_a_src: str):
    src = tmp_path / "mystruct.go"
    src.write_text(scenario_a_src, encoding="utf-8")
    with pytest.raises(SystemExit, match="invalid package name"):
        cli.main(["type", "-f", str(src), "-t", "MyStruct", "-p", "My-Pkg"])


def test_collect_sources(tmp_path: Path, monkeypatch):
    for name in ("a.go", "b.go", "out.go", "notes.txt"):
        (tmp_path / name).write_text("package p\n", encoding="utf-8")
    monkeypatch.setenv("GOLINE", "7")
    got = collect_sources([str(tmp_path / "b.go")], out=str(tmp_path / "out.go"))
    assert [Path(s.file).name for s in got] == ["b.go", "a.go"]
    assert all(s.line == 0 for s in got)

    got = collect_sources([str(tmp_path)])
    assert [Path(s.file).name for s in got] == ["a.go", "b.go", "out.go"]


def test_collect_sources_from_gofile(tmp_path: Path, monkeypatch):
    (tmp_path / "a.go").write_text("package p\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GOFILE", "a.go")
    monkeypatch.setenv("GOLINE", "7")
    (first,) = collect_sources([])
    assert first.file == "a.go"
    assert first.line == 7


def test_collect_sources_requires_input(monkeypatch):
    monkeypatch.delenv("GOFILE", raising=False)
    with pytest.raises(SystemExit):
        collect_sources([])


def test_destination_package_from_directory(tmp_path: Path):
    d = tmp_path / "mypkg"
    d.mkdir()
    out = d / "ifaces.go"
    assert destination(str(out)).package == "mypkg"
    assert destination(str(out)).current is None
    out.write_text("package mypkg\n", encoding="utf-8")
    assert destination(str(out), append=True).current == b"package mypkg\n"
    assert destination(None).file == ""
