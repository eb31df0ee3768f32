#!/usr/bin/env python3
"""Layering validation script.

Enforces the architectural rule that the transport layers (types/, utils/,
core/ and api/) stay domain-agnostic: they must not import the backend DTOs
(models/), the domain façades (facades/) or the real-time layer (realtime/),
and must not hardcode backend route prefixes.

Exit codes:
    0: No violations found (clean)
    1: Violations detected (architectural rule broken)
"""

import re
import sys
from pathlib import Path
from typing import Final

# ANSI color codes for terminal output
RED: Final[str] = "\033[91m"
GREEN: Final[str] = "\033[92m"
YELLOW: Final[str] = "\033[93m"
RESET: Final[str] = "\033[0m"

# Directories that must remain domain-agnostic
PROTECTED_DIRS: Final[tuple[str, ...]] = ("types", "utils", "core", "api")

# Upper layers the protected directories may not depend on
UPPER_LAYERS: Final[tuple[str, ...]] = ("models", "facades", "realtime")

IMPORT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*(?:from|import)\s+learnquest_client\.(?:" + "|".join(UPPER_LAYERS) + r")\b"
)

# Backend route prefixes belong in the façades; core/ may name the push-stream
# default since it is configuration
ROUTE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"[\"']/(?:Auth|profile|Courses|Levels|Sections|Contents|Quizzes|notification)/"
)
ROUTE_EXEMPT_DIRS: Final[tuple[str, ...]] = ("core",)


def check_file(file_path: Path, protected_dir: str) -> list[tuple[int, str]]:
    """Check a single Python file for layering violations.

    Args:
        file_path: Path to the Python file to check.
        protected_dir: Protected directory the file lives in.

    Returns:
        List of (line_number, violation_description) tuples.
    """
    violations: list[tuple[int, str]] = []

    try:
        lines = file_path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        print(f"{YELLOW}Warning: Could not read {file_path}: {e}{RESET}", file=sys.stderr)
        return violations

    for line_num, line in enumerate(lines, start=1):
        if IMPORT_PATTERN.search(line):
            violations.append((line_num, f"Import from an upper layer: {line.strip()}"))

        if protected_dir not in ROUTE_EXEMPT_DIRS and ROUTE_PATTERN.search(line):
            # Docstring examples may show routes
            if not line.strip().startswith((">>>", "...")):
                violations.append((line_num, f"Hardcoded backend route: {line.strip()}"))

    return violations


def scan_directory(base_path: Path, protected_dir: str) -> dict[Path, list[tuple[int, str]]]:
    """Scan a protected directory for violations.

    Args:
        base_path: Root path of the learnquest_client package.
        protected_dir: Name of the protected directory.

    Returns:
        Dictionary mapping file paths to their violations.
    """
    dir_path = base_path / protected_dir
    if not dir_path.exists():
        print(f"{YELLOW}Warning: Protected directory {dir_path} does not exist{RESET}", file=sys.stderr)
        return {}

    violations_by_file: dict[Path, list[tuple[int, str]]] = {}
    for py_file in dir_path.rglob("*.py"):
        if "__pycache__" in py_file.parts:
            continue
        file_violations = check_file(py_file, protected_dir)
        if file_violations:
            violations_by_file[py_file] = file_violations
    return violations_by_file


def main() -> int:
    """Main entry point for the layering check.

    Returns:
        Exit code: 0 if no violations, 1 if violations found.
    """
    project_root = Path(__file__).parent.parent
    src_path = project_root / "src" / "learnquest_client"

    if not src_path.exists():
        print(f"{RED}Error: Could not find src/learnquest_client directory{RESET}", file=sys.stderr)
        return 1

    print(f"Checking layering of {', '.join(PROTECTED_DIRS)} modules...")
    print(f"Scanning: {src_path}\n")

    all_violations: dict[Path, list[tuple[int, str]]] = {}
    for protected_dir in PROTECTED_DIRS:
        all_violations.update(scan_directory(src_path, protected_dir))

    if not all_violations:
        print(f"{GREEN}✓ No layering violations found{RESET}")
        return 0

    total_violations = sum(len(v) for v in all_violations.values())
    print(f"{RED}✗ Found {total_violations} layering violations:{RESET}\n")

    for file_path, violations in sorted(all_violations.items()):
        try:
            rel_path = file_path.relative_to(project_root)
        except ValueError:
            rel_path = file_path

        print(f"{RED}{rel_path}{RESET}")
        for line_num, description in violations:
            print(f"  {line_num}: {description}")
        print()

    print(f"{RED}Layering check failed!{RESET}")
    print("\nTransport modules must stay domain-agnostic; move route knowledge to facades/.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
