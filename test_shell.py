#!/usr/bin/env python3
"""
Tests for the command script interpreter and device setup
"""

import logging
import sys

import pytest

import logfs
import main
import shell
from fs import GeometryError, ScriptSyntaxError
from units import Unit

SKIP = "Skipping to next command..."


@pytest.fixture(autouse=True)
def reset_device():
    yield
    logfs._device_instance = None


def run(capsys, text):
    status = shell.run_script(text.strip().splitlines(keepends=True))
    return status, capsys.readouterr().out.splitlines()


def test_full_session(capsys):
    status, out = run(capsys, """
# sample session
diskCapacity(4 MB)
blockSize(1MB)
mkdir(/docs, /tmp)
chdir(/docs)
write(a.txt, 2MB)
write(b.txt, 2 MB)
read(a.txt)   # still at the front
write(a.txt, 0)
write(c.txt, 2MB)
read(b.txt)
""")
    assert status == 0
    assert out == [
        "Disk Size set to: 4MB",
        "Block Size set to: 1MB",
        "Number of Blocks: 4",
        "Created directory: /docs/",
        "Created directory: /tmp/",
        "Current dir: /docs/",
        "/docs/a.txt, 3, 0x0, 2MB",
        "/docs/b.txt, 4, 0x200000, 2MB",
        "/docs/a.txt, 3, 0x0, 2MB",
        "/docs/a.txt, 3, DELETED, 0MB",
        "/docs/c.txt, 5, 0x200000, 2MB",
        "/docs/b.txt, 4, 0x0, 2MB",
    ]


def test_operational_errors_are_skipped(capsys):
    status, out = run(capsys, """
diskCapacity(4MB)
blockSize(1MB)
diskCapacity(8MB)
blockSize(2MB)
read(/missing)
write(/missing, 0)
write(/big, 5MB)
chdir(/nowhere)
mkdir(/)
write(/a, 1MB)
write(/b, 3MB)
write(/c, 2MB)
read(/a)
""")
    assert status == 0
    assert out[3:] == [
        "Error: Disk Capacity already set.",
        SKIP,
        "Error: Block Size already set.",
        SKIP,
        "File not found: /missing",
        SKIP,
        "No such file exists to write: /missing",
        SKIP,
        "Cannot write files greater than disk capacity",
        SKIP,
        "Directory doesn't exist: /nowhere/",
        SKIP,
        "Directory already exists: /",
        "/a, 3, 0x0, 1MB",
        "/b, 4, 0x100000, 3MB",
        "Not enough memory to write: 2 blocks required, 0 free",
        SKIP,
        "/a, 3, 0x0, 1MB",
    ]


def test_relative_paths(capsys):
    status, out = run(capsys, """
diskCapacity(1GB)
blockSize(512KB)
mkdir(/a, /a/b)
chdir(/a/b)
write(../x, 1KB)
write(../../../y, 600KB)
read(/a/x)
""")
    assert status == 0
    assert out[-3:] == [
        "/a/x, 3, 0x0, 512KB",
        "/y, 4, 0x80000, 1024KB",
        "/a/x, 3, 0x0, 512KB",
    ]


@pytest.mark.parametrize(
    "script",
    [
        "blockSize(1MB)\ndiskCapacity(4MB)",
        "diskCapacity(4MB)\nmkdir(/a)",
        "diskCapacity(4KB)\nblockSize(1KB)",
        "diskCapacity(0MB)\nblockSize(1MB)",
        "diskCapacity(4MB)\nblockSize(0KB)",
        "diskCapacity(4MB)\nblockSize(8MB)",
        "diskCapacity(4MB)\nblockSize(3MB)",
        "diskCapacity(16777216TB)\nblockSize(1MB)",
        "diskCapacity(1TB)\nblockSize(1KB)",
        "diskCapacity 4MB",
        "",
    ],
)
def test_fatal_setup(capsys, script):
    status, out = run(capsys, script)
    assert status == 1
    assert out[-1] == "Terminating..."


@pytest.mark.parametrize(
    "line",
    [
        "write(/a 1MB)",
        "write(/a, 5)",
        "write(/a, 1MB, 2MB)",
        "write(, 1MB)",
        "write(/a, 1TB)",
        "write(/a, 1.5MB)",
        "remove(/a)",
        "Read(/a)",
        "read(/a) trailing",
        "read)/a(",
        "read(/a",
    ],
)
def test_fatal_commands_stop_the_script(capsys, line):
    status, out = run(capsys, f"diskCapacity(4MB)\nblockSize(1MB)\n{line}\nwrite(/after, 1MB)")
    assert status == 1
    assert out[-1] == "Terminating..."
    assert not any(entry.startswith("/after") for entry in out)


def test_parse_write_args():
    assert shell.parse_write_args("/a,0") == ("/a", 0, Unit.B)
    assert shell.parse_write_args("/a,0B") == ("/a", 0, Unit.B)
    assert shell.parse_write_args("f,12KB") == ("f", 12, Unit.KB)
    assert shell.parse_write_args("f,7B") == ("f", 7, Unit.B)
    with pytest.raises(ScriptSyntaxError):
        shell.parse_write_args("f,")


def test_parse_line():
    assert shell.parse_line("read(/a)#note") == ("read", "/a")
    assert shell.parse_line("mkdir()") == ("mkdir", "")
    with pytest.raises(ScriptSyntaxError):
        shell.parse_line("#comment")


class TestMkdev:
    def test_mkdev(self):
        device = main.mkdev("1GB", "256MB")
        assert device.geometry.block_count == 4
        assert logfs.get_device() is device

    @pytest.mark.parametrize(
        "capacity, block_size",
        [("4MB", "3MB"), ("4MB", "8MB"), ("1TB", "1KB"), ("0GB", "1MB"), ("4MB", "0KB"), ("4KB", "1KB"), ("4MB", "1GB"), ("x", "1MB")],
    )
    def test_invalid_geometry(self, capacity, block_size):
        with pytest.raises(GeometryError):
            main.mkdev(capacity, block_size)

    def test_main(self, capsys, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["main.py", "2GB", "4MB"])
        assert main.main() == 0
        assert "Number of Blocks: 512" in capsys.readouterr().out

    def test_main_rejects_geometry(self, capsys, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["main.py", "2GB", "3MB"])
        assert main.main() == 1
        assert "Critical error" in capsys.readouterr().out


def test_shell_main_runs_script_file(tmp_path, capsys, monkeypatch):
    script = tmp_path / "session.txt"
    script.write_text("diskCapacity(2MB)\nblockSize(1MB)\nwrite(/f, 1B)\n")
    monkeypatch.setattr(sys, "argv", ["shell.py", str(script)])
    assert shell.main() == 0
    assert capsys.readouterr().out.splitlines()[-1] == "/f, 3, 0x0, 1MB"


def test_shell_main_missing_file(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["shell.py", str(tmp_path / "none.txt")])
    assert shell.main() == 1
    assert "Error loading script" in capsys.readouterr().out


def test_long_lines_are_not_wrapped(capsys):
    long_path = "/" + "d" * 120
    status, out = run(capsys, f"diskCapacity(4MB)\nblockSize(1MB)\nwrite({long_path}, 1MB)\nread({long_path})\nremove(/a)")
    assert status == 1
    assert out[3:] == [
        f"{long_path}, 3, 0x0, 1MB",
        f"{long_path}, 3, 0x0, 1MB",
        "Critical error: Invalid command entered: remove. Not a supported command. Check syntax and list of commands.",
        "Terminating...",
    ]


def test_mkdir_skips_empty_entries(capsys):
    status, out = run(capsys, "diskCapacity(4MB)\nblockSize(1MB)\nmkdir(/a,,/b)\nmkdir(/c,)")
    assert status == 0
    assert out[3:] == [
        "Created directory: /a/",
        "Created directory: /b/",
        "Created directory: /c/",
    ]


def test_verbose_logs_go_to_stderr(tmp_path, capsys, monkeypatch):
    script = tmp_path / "session.txt"
    script.write_text("diskCapacity(2MB)\nblockSize(1MB)\nwrite(/f, 1B)\nread(/f)\n")
    monkeypatch.setattr(sys, "argv", ["shell.py", "-v", str(script)])
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    try:
        assert shell.main() == 0
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
    captured = capsys.readouterr()
    assert captured.out.splitlines() == [
        "Disk Size set to: 2MB",
        "Block Size set to: 1MB",
        "Number of Blocks: 2",
        "/f, 3, 0x0, 1MB",
        "/f, 3, 0x0, 1MB",
    ]
    assert "Wrote" in captured.err
