"""
Import-boundary enforcement.

1. Kernel boundary      -- inventory_kernel/** may not import the API, batch
                           or config layers, nor web or YAML libraries.
2. Domain purity        -- inventory_kernel/domain/** may not import the ORM,
                           DB drivers, models, selectors or services.
3. Kernel clock         -- inventory_kernel/** may not read the wall clock or
                           the environment outside domain/clock.py.
4. Config boundary      -- inventory_config/** may not import the API or
                           batch layers.
5. Batch boundary       -- inventory_batch/** may not import the API layer.

All scanning is done via AST; these tests are read-only.
"""

import ast
from pathlib import Path

from inventory_kernel.invariants import (
    ALL_KERNEL_INVARIANTS,
    FORBIDDEN_KERNEL_IMPORTS,
    KernelInvariant,
)

REPO_ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    """Return all .py files under *package*, sorted for deterministic order."""
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _extract_attribute_calls(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for two-level attribute references."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
            results.append((node.lineno, f"{node.value.id}.{node.attr}"))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    """True if *module* equals or is a child of any prefix."""
    for prefix in prefixes:
        if module == prefix or module.startswith(f"{prefix}."):
            return True
    return False


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"  {filepath.relative_to(REPO_ROOT)}:{lineno} imports '{module}'")
    return found


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestKernelBoundary:

    FORBIDDEN_PREFIXES = FORBIDDEN_KERNEL_IMPORTS + (
        "fastapi",
        "starlette",
        "pydantic",
        "uvicorn",
        "yaml",
    )

    def test_packages_exist(self):
        for package in ("inventory_kernel", "inventory_config", "inventory_batch", "inventory_api"):
            assert _python_files(package), f"{package} has no python files"

    def test_kernel_has_no_outward_imports(self):
        violations = _violations("inventory_kernel", self.FORBIDDEN_PREFIXES)
        assert not violations, (
            "Kernel boundary violation: inventory_kernel/** must not depend on "
            "outer layers:\n" + "\n".join(violations)
        )


class TestDomainPurity:

    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "psycopg2",
        "sqlite3",
        "inventory_kernel.db",
        "inventory_kernel.models",
        "inventory_kernel.selectors",
        "inventory_kernel.services",
    )

    def test_domain_has_no_persistence_imports(self):
        violations = _violations("inventory_kernel/domain", self.FORBIDDEN_PREFIXES)
        assert not violations, (
            "Domain purity violation: inventory_kernel/domain/** must stay "
            "free of persistence:\n" + "\n".join(violations)
        )


class TestKernelClock:

    FORBIDDEN_CALLS = frozenset({
        "datetime.now",
        "datetime.utcnow",
        "date.today",
        "time.time",
        "os.environ",
        "os.getenv",
    })

    ALLOWED_FILES = frozenset({"inventory_kernel/domain/clock.py"})

    def test_no_wall_clock_outside_clock_module(self):
        violations: list[str] = []
        for filepath in _python_files("inventory_kernel"):
            relative = filepath.relative_to(REPO_ROOT).as_posix()
            if relative in self.ALLOWED_FILES:
                continue
            for lineno, qualname in _extract_attribute_calls(filepath):
                if qualname in self.FORBIDDEN_CALLS:
                    violations.append(f"  {relative}:{lineno} calls '{qualname}'")

        assert not violations, (
            "Kernel clock violation: use the injected Clock:\n" + "\n".join(violations)
        )


class TestOuterLayers:

    def test_config_does_not_import_api_or_batch(self):
        violations = _violations("inventory_config", ("inventory_api", "inventory_batch"))
        assert not violations, "\n".join(violations)

    def test_batch_does_not_import_api(self):
        violations = _violations("inventory_batch", ("inventory_api",))
        assert not violations, "\n".join(violations)


class TestKernelInvariantsDeclaration:

    def test_required_invariants_declared(self):
        required = {
            "AVAILABLE_DERIVED",
            "NON_NEGATIVE_COUNTERS",
            "RESERVED_WITHIN_ON_HAND",
            "ONE_ENTRY_PER_MUTATION",
            "LEDGER_IMMUTABILITY",
            "HOLD_RESOLVED_ONCE",
            "RECEIPT_VERIFIED_ONCE",
        }
        declared = {inv.name for inv in KernelInvariant}
        assert required <= declared
        assert ALL_KERNEL_INVARIANTS == frozenset(KernelInvariant)

    def test_forbidden_imports_declared(self):
        for pkg in ("inventory_api", "inventory_batch", "inventory_config"):
            assert pkg in FORBIDDEN_KERNEL_IMPORTS
