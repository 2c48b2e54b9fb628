from typing import Set, Tuple

ROOT = "/"


def ensure_trailing_slash(path: str) -> str:
    if not path.endswith("/"):
        return path + "/"
    return path


def move_up_dir(path: str, levels: int) -> str:
    """Return the directory levels above path, saturating at the root.

    Moving above the root is not an error: "too many .." clamps to "/".
    """
    if path == ROOT or levels == 0:
        return path
    path = ensure_trailing_slash(path)
    separators = path.count("/")
    if levels >= separators - 1:
        return ROOT
    for _ in range(levels + 1):
        path = path[: path.rfind("/")]
    return path + "/"


def resolve_path(raw: str, cwd: str) -> str:
    """Turn raw into an absolute path relative to cwd"""
    path = raw.lstrip(" \t")
    if path.startswith("/"):
        return path
    if path.startswith("."):
        if path == ".":
            return cwd
        if path == "..":
            return move_up_dir(cwd, 1)
        if path.startswith("./"):
            return cwd + path[2:]
        if path.startswith("../"):
            levels = path.count("../")
            rest = path[path.rfind("../") + 3 :]
            return move_up_dir(cwd, levels) + rest
        # ".hidden", "..name" and friends are plain names
    return cwd + path


class DirectoryRegistry:
    """Known directories and the current one. Parents are not checked."""

    def __init__(self):
        self.cwd = ROOT
        self._dirs: Set[str] = {ROOT}

    def dir_path(self, raw: str) -> str:
        return ensure_trailing_slash(resolve_path(raw, self.cwd))

    def exists(self, path: str) -> bool:
        return ensure_trailing_slash(path) in self._dirs

    def mkdir(self, raw: str) -> Tuple[str, bool]:
        """Register a directory, returns (path, created)"""
        path = self.dir_path(raw)
        if path in self._dirs:
            return path, False
        self._dirs.add(path)
        return path, True

    def chdir(self, raw: str) -> str:
        path = self.dir_path(raw)
        if path not in self._dirs:
            raise FileNotFoundError(f"Directory doesn't exist: {path}")
        self.cwd = path
        return path

    def __contains__(self, path: str) -> bool:
        return self.exists(path)

    def __len__(self) -> int:
        return len(self._dirs)
