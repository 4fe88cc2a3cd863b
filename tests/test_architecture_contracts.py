# tests/test_architecture_contracts.py
"""
Architecture contract tests for clinic-desk.

These tests enforce structural invariants that unit tests don't catch:
- Layer violations (apps importing from apps above them)
- Domain modules importing the HTTP layer
- Version consistency (__init__.py vs pyproject.toml)
- AUTH_USER_MODEL usage (not direct User imports)
- Every app ships an initial migration
"""
from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import List, Set

ROOT_DIR = Path(__file__).parent.parent
SRC_DIR = ROOT_DIR / "src" / "clinic_desk"

# Apps may only import from apps at a lower layer
LAYER_MAP = {
    "pricing": 0,
    "queue": 1,
    "patients": 2,
    "consultation": 3,
    "dispensary": 4,
}

# Modules holding domain logic; they never see requests or responses
DOMAIN_MODULES = {"models.py", "services.py", "selectors.py", "graph.py", "invoice.py", "board.py"}


def get_app_dirs() -> List[Path]:
    return sorted(SRC_DIR / name for name in LAYER_MAP)


def get_imports_from_file(path: Path) -> Set[str]:
    """Extract all absolute and app-relative module names imported by a file."""
    try:
        tree = ast.parse(path.read_text())
    except (SyntaxError, UnicodeDecodeError):
        return set()

    imports = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.add(alias.name)
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            imports.add(node.module)
    return imports


def test_no_layer_violations():
    """
    Lower-layer apps cannot import from higher-layer apps.

    pricing < queue < patients < consultation < dispensary
    """
    violations = []

    for app_dir in get_app_dirs():
        app_layer = LAYER_MAP[app_dir.name]
        for py_file in app_dir.rglob("*.py"):
            for imp in get_imports_from_file(py_file):
                parts = imp.split(".")
                if len(parts) < 2 or parts[0] != "clinic_desk" or parts[1] not in LAYER_MAP:
                    continue
                if LAYER_MAP[parts[1]] > app_layer:
                    violations.append(
                        f"{app_dir.name} (layer {app_layer}) imports {imp} "
                        f"in {py_file.relative_to(SRC_DIR)}"
                    )

    assert not violations, (
        "Layer violations detected (lower layers cannot import higher layers):\n"
        + "\n".join(violations)
    )


def test_domain_modules_do_not_import_http_layer():
    """Services, selectors and models stay usable outside a request."""
    violations = []

    for app_dir in get_app_dirs():
        for py_file in app_dir.glob("*.py"):
            if py_file.name not in DOMAIN_MODULES:
                continue
            for imp in get_imports_from_file(py_file):
                if imp.startswith("django.http") or imp == "clinic_desk.http" or imp.endswith(".views"):
                    violations.append(f"{py_file.relative_to(SRC_DIR)} imports {imp}")

    assert not violations, "Domain modules import the HTTP layer:\n" + "\n".join(violations)


def test_version_consistency():
    """__init__.py __version__ must match pyproject.toml version."""
    pyproject_text = (ROOT_DIR / "pyproject.toml").read_text()
    init_text = (SRC_DIR / "__init__.py").read_text()

    pyproject_version = re.search(r'^version\s*=\s*["\']([^"\']+)["\']', pyproject_text, re.MULTILINE)
    init_version = re.search(r'__version__\s*=\s*["\']([^"\']+)["\']', init_text)

    assert pyproject_version and init_version
    assert pyproject_version.group(1) == init_version.group(1)


def test_uses_auth_user_model_not_direct_import():
    """
    Apps should use settings.AUTH_USER_MODEL, not direct User imports.

    Direct imports break swappable user model support.
    """
    violations = []

    for py_file in SRC_DIR.rglob("*.py"):
        source = py_file.read_text()
        if re.search(r'from django\.contrib\.auth\.models import.*\bUser\b', source):
            violations.append(f"{py_file.relative_to(SRC_DIR)}: imports User directly")

    assert not violations, (
        "Direct User imports detected (breaks swappable user model):\n"
        + "\n".join(violations)
    )


def test_apps_have_initial_migration():
    missing = [
        app_dir.name
        for app_dir in get_app_dirs()
        if not (app_dir / "migrations" / "0001_initial.py").exists()
    ]
    assert not missing, f"Apps without an initial migration: {missing}"
