import ast
import subprocess
import sys
import textwrap
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]


def _forbidden_imports(source_dir: Path, forbidden_prefixes: tuple[str, ...]) -> list[str]:
    offenders: list[str] = []
    for path in sorted(source_dir.rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                offenders.extend(
                    f"{path}: import {alias.name}"
                    for alias in node.names
                    if alias.name.startswith(forbidden_prefixes)
                )
            elif isinstance(node, ast.ImportFrom) and node.module:
                if node.level == 0 and node.module.startswith(forbidden_prefixes):
                    offenders.append(f"{path}: from {node.module} import ...")
    return offenders


def test_jobkit_source_does_not_import_image_jobs():
    assert _forbidden_imports(REPO_ROOT / "jobkit", ("image_jobs", "PIL")) == []


def test_foundation_does_not_import_framework_app_or_cli():
    forbidden = ("image_jobs.framework", "image_jobs.app", "image_jobs.cli")
    assert _forbidden_imports(REPO_ROOT / "image_jobs" / "foundation", forbidden) == []


def test_framework_does_not_import_app_or_cli():
    forbidden = ("image_jobs.app", "image_jobs.cli")
    assert _forbidden_imports(REPO_ROOT / "image_jobs" / "framework", forbidden) == []


def test_importing_jobkit_modules_does_not_pull_in_image_jobs():
    code = textwrap.dedent(
        """\
        import importlib
        import pkgutil
        import sys

        import jobkit as pkg

        forbidden = ("image_jobs", "PIL")

        for module in pkgutil.walk_packages(pkg.__path__, pkg.__name__ + "."):
            importlib.import_module(module.name)

        loaded = sorted(name for name in sys.modules if name.startswith(forbidden))
        if loaded:
            raise SystemExit(f"Importing jobkit loaded forbidden modules: {loaded}")
        """
    )

    proc = subprocess.run(
        [sys.executable, "-c", code],
        capture_output=True,
        text=True,
        cwd=str(REPO_ROOT),
    )
    assert proc.returncode == 0, proc.stderr or proc.stdout
