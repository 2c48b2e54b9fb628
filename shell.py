import logging
import sys
from typing import Iterable, Iterator, Tuple

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from fs import CapacityError, GeometryError, ScriptSyntaxError, WriteStatus
from logfs import get_device, init_device
from main import make_geometry, parse_block_size, parse_capacity
from units import WRITE_UNITS, Unit, parse_quantity

SKIP = "Skipping to next command..."
COMMAND_START = "abcdefghijklmnopqrstuvwxyz"
WRITE_USAGE = "write(<file>, <size><B|KB|MB|GB>)"

# Result lines are parsed line by line, never wrap them
console = Console(soft_wrap=True, highlight=False)

commands = []


def command(name, description):
    def decorator(func):
        commands.append({'name': name, 'func': func, 'description': description})
        return func
    return decorator


def find_command(name):
    return next((c for c in commands if c['name'] == name), None)


def normalize(line: str) -> str:
    """Drop spaces so "4 MB" reads as "4MB" """
    return line.replace(" ", "").strip()


def is_comment(line: str) -> bool:
    return line.startswith("#")


def parse_line(line: str) -> Tuple[str, str]:
    """Split "<command>(<args>)" into its parts, comments allowed after ')'"""
    if not line or line[0] not in COMMAND_START:
        raise ScriptSyntaxError(f"Invalid Syntax detected for: {line} (invalid character at beginning)")
    lpos = line.find("(")
    rpos = line.find(")")
    if lpos == -1 or rpos == -1:
        raise ScriptSyntaxError(f"Invalid Syntax detected for: {line} (missing parenthesis)")
    if lpos > rpos:
        raise ScriptSyntaxError(f"Invalid Syntax detected for: {line} (bad parenthesis order)")
    tail = line[rpos + 1 :].lstrip(" \t")
    if tail and not is_comment(tail):
        raise ScriptSyntaxError(f"Invalid Syntax detected for: {line} (only comments allowed after ')')")
    return line[:lpos], line[lpos + 1 : rpos]


def commands_of(lines: Iterable[str]) -> Iterator[Tuple[str, str]]:
    for line in lines:
        line = normalize(line)
        if not line or is_comment(line):
            continue
        name, args = parse_line(line)
        if find_command(name) is None:
            raise ScriptSyntaxError(
                f"Invalid command entered: {name}. Not a supported command. Check syntax and list of commands."
            )
        yield name, args


def setup_device(script: Iterator[Tuple[str, str]]):
    """Consume the diskCapacity and blockSize commands that open every script"""
    name, args = next(script, ("", ""))
    if name != "diskCapacity":
        raise ScriptSyntaxError("First command must be: diskCapacity(<size> <MB|GB|TB>)")
    capacity, capacity_unit = parse_capacity(args)
    console.print(f"Disk Size set to: {capacity}{capacity_unit.name}")

    name, args = next(script, ("", ""))
    if name != "blockSize":
        raise ScriptSyntaxError("Second command must be: blockSize(<size> <KB|MB>)")
    block_size, block_unit = parse_block_size(args)
    geometry = make_geometry(capacity, capacity_unit, block_size, block_unit)
    init_device(geometry)
    console.print(f"Block Size set to: {block_size}{block_unit.name}")
    console.print(f"Number of Blocks: {geometry.block_count}")


def format_entry(path: str, file_id: int, address: int, size: int, unit: Unit) -> str:
    return f"{escape(path)}, {file_id}, 0x{address:x}, {size}{unit.name}"


def run_script(lines: Iterable[str]) -> int:
    """Run a command script, returns the process exit status"""
    try:
        script = commands_of(lines)
        setup_device(script)
        for name, args in script:
            try:
                find_command(name)['func'](args)
            except (FileNotFoundError, CapacityError) as e:
                console.print(escape(str(e)))
                console.print(SKIP)
    except (GeometryError, ScriptSyntaxError) as e:
        console.print(f"Critical error: {escape(str(e))}")
        console.print("Terminating...")
        return 1
    return 0


@command('diskCapacity', 'Set device capacity, first command only')
def handle_disk_capacity(args):
    console.print("Error: Disk Capacity already set.")
    console.print(SKIP)


@command('blockSize', 'Set block size, second command only')
def handle_block_size(args):
    console.print("Error: Block Size already set.")
    console.print(SKIP)


@command('mkdir', 'Create one or more directories: mkdir(<path> {, <path>})')
def handle_mkdir(args):
    device = get_device()
    # Empty entries such as "/a,,/b" are skipped
    for raw in filter(None, args.split(",")):
        path, created = device.mkdir(raw)
        if created:
            console.print(f"Created directory: {escape(path)}")
        else:
            console.print(f"Directory already exists: {escape(path)}")


@command('chdir', 'Change current directory: chdir(<path>)')
def handle_chdir(args):
    path = get_device().chdir(args)
    console.print(f"Current dir: {escape(path)}")


def parse_write_args(args: str) -> Tuple[str, int, Unit]:
    """Split "<file>,<size><unit>", a bare 0 means delete"""
    if args.count(",") != 1 or args.startswith(","):
        raise ScriptSyntaxError(f"Invalid Syntax detected for: write command: {WRITE_USAGE}")
    path, size = args.split(",")
    size = size.lstrip(" \t")
    if not size:
        raise ScriptSyntaxError(f"Invalid Syntax detected for: write command: {WRITE_USAGE}")
    if len(size) == 1:
        if size != "0":
            raise ScriptSyntaxError(f"Invalid Syntax for write command: {WRITE_USAGE}. Only 0 is allowed without units.")
        return path, 0, Unit.B
    try:
        quantity, unit = parse_quantity(size, WRITE_UNITS)
    except ValueError as e:
        raise ScriptSyntaxError(f"Invalid syntax for write command: {WRITE_USAGE}: {e}") from e
    return path, quantity, unit


@command('write', 'Write or delete a file: write(<file>, <size><B|KB|MB|GB>)')
def handle_write(args):
    path, size, unit = parse_write_args(args)
    result = get_device().write(path, size, unit)
    if result.status is WriteStatus.DELETED:
        console.print(f"{escape(result.path)}, {result.file_id}, DELETED, 0{result.unit.name}")
    else:
        console.print(format_entry(result.path, result.file_id, result.address, result.size, result.unit))


@command('read', 'Show file info: read(<file>)')
def handle_read(args):
    info = get_device().read(args)
    console.print(format_entry(info.path, info.file_id, info.address, info.size, info.unit))


def enable_debug_logging():
    """Send debug traces to stderr, stdout carries results only"""
    handler = RichHandler(console=Console(stderr=True))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    return handler


def main():
    args = sys.argv[1:]
    if "-v" in args or "--verbose" in args:
        enable_debug_logging()
    paths = [a for a in args if not a.startswith("-")]

    if paths:
        try:
            script = open(paths[0])
        except OSError as e:
            console.print(f"Error loading script: {escape(str(e))}")
            return 1
        with script:
            return run_script(script)
    return run_script(sys.stdin)


if __name__ == "__main__":
    sys.exit(main())
