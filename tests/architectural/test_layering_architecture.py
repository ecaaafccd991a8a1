"""Architectural tests for module layering.

Static, file/AST-based checks: they read source files under the project root
and never import application code.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, List

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
PACKAGE = PROJECT_ROOT / "deployspec"
WEB_MODULES = ("fastapi", "starlette", "uvicorn")


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Cannot parse {path}: {exc}")


def _imported_modules(tree: ast.Module) -> List[str]:
    names: List[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            names.append(node.module)
    return names


def _sources(subdir: str) -> Iterable[Path]:
    return sorted((PACKAGE / subdir).glob("*.py"))


@pytest.mark.parametrize("subdir", ["logic", "models"])
def test_domain_layers_do_not_import_web_framework(subdir):
    offenders = []
    for path in _sources(subdir):
        for module in _imported_modules(_parse(path)):
            if module.split(".")[0] in WEB_MODULES:
                offenders.append(f"{path.name}: {module}")
    assert offenders == []


def test_routes_do_not_touch_snapshot_store_internals():
    for path in _sources("routes"):
        tree = _parse(path)
        assert "deployspec.logic.snapshot" not in _imported_modules(tree), path.name
        for node in ast.walk(tree):
            if isinstance(node, ast.Call) and isinstance(node.func, ast.Attribute):
                assert node.func.attr not in {"install", "clone", "model_copy"}, f"{path.name}:{node.lineno}"


def test_write_routes_are_coroutines():
    tree = _parse(PACKAGE / "routes" / "document.py")
    write_verbs = {"patch", "put", "post", "delete"}
    checked = 0
    for node in ast.walk(tree):
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        verbs = {
            d.func.attr
            for d in node.decorator_list
            if isinstance(d, ast.Call) and isinstance(d.func, ast.Attribute)
        }
        if verbs & write_verbs:
            checked += 1
            assert isinstance(node, ast.AsyncFunctionDef), node.name
    assert checked == 4


def test_logic_modules_use_module_loggers():
    for path in _sources("logic"):
        source = path.read_text(encoding="utf-8")
        if "logger." in source:
            assert "logging.getLogger(__name__)" in source, path.name


def test_problem_codes_live_in_problem_factory():
    codes = ("PATH_RESOLUTION_FAILED", "PRE_IF_MATCH_ETAG_MISMATCH", "EXPORT_FAILED")
    for path in _sources("routes"):
        source = path.read_text(encoding="utf-8")
        for code in codes:
            assert code not in source, f"{path.name} embeds {code}"
