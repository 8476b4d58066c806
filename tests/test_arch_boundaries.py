from __future__ import annotations

import ast
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

# Orchestrator modules: they drive streams end to end.
# LOW-level code (kinds/errors/options/core/engine building blocks) must NEVER import these.
#
# The package facade (recompress/__init__.py) re-exports the public API and is
# exempt: it sits above everything.
ORCH_PREFIXES: tuple[str, ...] = (
    "recompress.engine.pipeline",
    "recompress.engine.aio",
)

FACADES: frozenset[str] = frozenset({"recompress"})

# Codecs are pure byte-in/byte-out: no stream plumbing.
CODEC_PREFIX = "recompress.core"
ENGINE_PREFIX = "recompress.engine"

PACKAGE_ROOT = "recompress"


@dataclass(frozen=True)
class ImportEdge:
    src: str
    dst: str
    file: Path
    lineno: int


def _has_prefix(mod: str, prefix: str) -> bool:
    return mod == prefix or mod.startswith(prefix + ".")


def _is_orch(mod: str) -> bool:
    return any(_has_prefix(mod, p) for p in ORCH_PREFIXES)


def _module_name_from_path(src_dir: Path, py_file: Path) -> str | None:
    try:
        rel = py_file.relative_to(src_dir)
    except ValueError:
        return None

    parts = list(rel.parts)
    if not parts or parts[0] != PACKAGE_ROOT:
        return None

    if py_file.name == "__init__.py":
        parts = parts[:-1]
    else:
        parts[-1] = py_file.stem

    if not parts:
        return None
    return ".".join(parts)


def _resolve_relative(current_mod: str, level: int, module: str | None) -> str | None:
    if level <= 0:
        return module

    base = current_mod.split(".")
    if base:
        base = base[:-1]  # package of current module

    if level > len(base):
        return None

    base = base[: len(base) - level + 1]

    if module:
        return ".".join(base + module.split("."))
    return ".".join(base)


def _iter_import_edges(src_dir: Path) -> Iterable[ImportEdge]:
    for py in src_dir.rglob("*.py"):
        mod = _module_name_from_path(src_dir, py)
        if not mod:
            continue

        tree = ast.parse(py.read_text(encoding="utf-8"), filename=str(py))

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if _has_prefix(alias.name, PACKAGE_ROOT):
                        yield ImportEdge(
                            src=mod, dst=alias.name, file=py, lineno=getattr(node, "lineno", 0)
                        )

            elif isinstance(node, ast.ImportFrom):
                if node.module is None and node.level == 0:
                    continue
                abs_mod = _resolve_relative(mod, node.level, node.module)
                if abs_mod and _has_prefix(abs_mod, PACKAGE_ROOT):
                    yield ImportEdge(
                        src=mod, dst=abs_mod, file=py, lineno=getattr(node, "lineno", 0)
                    )


def _src_dir() -> Path:
    src_dir = Path(__file__).resolve().parents[1] / "src"
    if not src_dir.is_dir():
        raise AssertionError(f"Expected src/ directory at: {src_dir}")
    return src_dir


def _report(title: str, violations: list[ImportEdge]) -> None:
    if violations:
        lines = [title]
        for v in sorted(violations, key=lambda e: (str(e.file), e.lineno, e.src, e.dst)):
            lines.append(f"  {v.file}:{v.lineno}  {v.src}  ->  {v.dst}")
        raise AssertionError("\n".join(lines))


def test_no_low_level_imports_orchestrator() -> None:
    """
    Hard dependency direction:
      ORCH -> may depend on LOW
      LOW  -> must NOT depend on ORCH
    """
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if e.src != e.dst
        and e.src not in FACADES
        and not _is_orch(e.src)
        and _is_orch(e.dst)
    ]
    _report("Forbidden imports detected (LOW -> ORCH):", violations)


def test_codecs_do_not_import_engine() -> None:
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if _has_prefix(e.src, CODEC_PREFIX) and _has_prefix(e.dst, ENGINE_PREFIX)
    ]
    _report("Forbidden imports detected (core -> engine):", violations)
