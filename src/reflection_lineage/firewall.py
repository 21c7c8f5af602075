"""
Emergence Exposure Firewall
===========================

Emergence is a property of structure, not a signal for action.

Detection, presence marking and witnessing are read-only observations. No
code path may use emergence state to change reflection ordering, summaries,
thresholds, language, layout or any other downstream behaviour. Whether
emergence occurs or not, everything outside the emergence modules must
behave identically.

The firewall is maintained by:
1. Isolation: the witness package is imported by no other module
2. Non-persistence: witness snapshots carry no session or wallet identity
3. One-way dependency: witness -> presence marker -> detector, never back
4. Explicit blocking: the guards below, and the static import check in the
   test suite
"""

from typing import Any, Dict, List, Set
import ast
from pathlib import Path


WITNESS_MODULE = "reflection_lineage.witness"


class EmergenceFirewallError(RuntimeError):
    """Emergence state was used to influence behaviour."""


def assert_emergence_firewall(emergence_state: Any) -> bool:
    """
    Documents that emergence state must not influence behaviour.

    Always returns False: "do not act on emergence".
    """
    return False


def block_emergence_influence(emergence_state: Any, intended_action: str) -> None:
    """Raise for any attempt to act on emergence state."""
    raise EmergenceFirewallError(
        f"Emergence exposure firewall violation: attempted to use emergence "
        f"state for: {intended_action}. Emergence is a property of structure, "
        f"not a signal for action."
    )


# =============================================================================
# Static Dependency Audit
# =============================================================================

def _module_name(package_root: Path, path: Path) -> str:
    relative = path.relative_to(package_root.parent).with_suffix("")
    parts = list(relative.parts)
    if parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def _resolve(module: str, is_package: bool, node: ast.ImportFrom) -> List[str]:
    """Absolute names a ``from ... import ...`` statement can bind."""
    if node.level == 0:
        base = node.module or ""
    else:
        parts = module.split(".")
        if not is_package:
            parts = parts[:-1]
        if node.level > 1:
            parts = parts[: len(parts) - (node.level - 1)]
        base = ".".join(parts + ([node.module] if node.module else []))
    return [base] + [f"{base}.{alias.name}" for alias in node.names]


def collect_imports(package_root: Path) -> Dict[str, Set[str]]:
    """
    Map every module under ``package_root`` to the absolute module names it
    imports.

    Parameters
    ----------
    package_root : Path
        Directory of the package (the one holding ``__init__.py``).
    """
    graph: Dict[str, Set[str]] = {}
    for path in sorted(package_root.rglob("*.py")):
        module = _module_name(package_root, path)
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        imported: Set[str] = set()
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                imported.update(alias.name for alias in node.names)
            elif isinstance(node, ast.ImportFrom):
                imported.update(_resolve(module, path.name == "__init__.py", node))
        graph[module] = imported
    return graph


def find_witness_importers(package_root: Path) -> List[str]:
    """Modules outside the witness package that import it."""
    offenders = []
    for module, imported in collect_imports(package_root).items():
        if module == WITNESS_MODULE or module.startswith(WITNESS_MODULE + "."):
            continue
        if any(name == WITNESS_MODULE or name.startswith(WITNESS_MODULE + ".") for name in imported):
            offenders.append(module)
    return offenders
