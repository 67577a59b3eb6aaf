"""Architectural boundary tests enforcing layer dependency rules.

Layer dependency direction (allowed):
  game.server → game.logic → shared

Forbidden (runtime imports):
  game.logic → game.server
  shared → game
"""

import ast
from pathlib import Path

_GAME_ROOT = Path(__file__).resolve().parents[2]
_SHARED_ROOT = _GAME_ROOT.parent / "shared"


def _collect_runtime_import_targets(source_dir: Path) -> list[tuple[str, int, str]]:
    """Parse all non-test .py files and return (filename, lineno, module) for runtime imports.

    Skip imports inside `if TYPE_CHECKING:` blocks since they create no runtime coupling.
    """
    results: list[tuple[str, int, str]] = []
    for py_file in source_dir.rglob("*.py"):
        if "tests" in py_file.relative_to(source_dir).parts:
            continue
        tree = ast.parse(py_file.read_text(), filename=str(py_file))
        type_checking_ranges = _find_type_checking_ranges(tree)
        for node in ast.walk(tree):
            if not isinstance(node, (ast.Import, ast.ImportFrom)):
                continue
            if any(start <= node.lineno <= end for start, end in type_checking_ranges):
                continue
            if isinstance(node, ast.Import):
                results.extend((py_file.name, node.lineno, alias.name) for alias in node.names)
            elif node.module is not None:
                results.append((py_file.name, node.lineno, node.module))
    return results


def _find_type_checking_ranges(tree: ast.Module) -> list[tuple[int, int]]:
    ranges: list[tuple[int, int]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.If) and isinstance(node.test, ast.Name) and node.test.id == "TYPE_CHECKING":
            start = node.lineno
            end = max(child.lineno for child in ast.walk(node) if hasattr(child, "lineno"))
            ranges.append((start, end))
    return ranges


def test_game_logic_does_not_import_server():
    """game.logic must stay usable without the HTTP layer."""
    violations = [
        f"{name}:{lineno} {module}"
        for name, lineno, module in _collect_runtime_import_targets(_GAME_ROOT / "logic")
        if module.startswith(("game.server", "starlette"))
    ]
    assert violations == [], f"game.logic imports from the server layer: {violations}"


def test_shared_does_not_import_game():
    violations = [
        f"{name}:{lineno} {module}"
        for name, lineno, module in _collect_runtime_import_targets(_SHARED_ROOT)
        if module == "game" or module.startswith("game.")
    ]
    assert violations == [], f"shared imports from game: {violations}"
