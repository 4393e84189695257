#!/usr/bin/env python3
"""
Installation Check Script

Confirms that every runtime library imports (printing its installed version)
and that the bundled assets the pipeline reads at run time are present.

Usage:
    python scripts/verify_dependencies.py
"""

import sys
from importlib import import_module
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# import name -> distribution name on the package index
DEPENDENCIES = {
    "aiolimiter": "aiolimiter",
    "claude_agent_sdk": "claude-agent-sdk",
    "dotenv": "python-dotenv",
    "httpx": "httpx",
    "jinja2": "Jinja2",
    "jsonschema": "jsonschema",
    "pydantic": "pydantic",
    "rich": "rich",
    "structlog": "structlog",
    "tenacity": "tenacity",
}

ASSETS = [
    "prompts/recommendation/base.j2",
    "src/schemas/colleges_schema.json",
    "src/schemas/careers_schema.json",
    "src/schemas/scholarships_schema.json",
    "src/data/fallback_careers.json",
]

SCENARIO_TEMPLATE_COUNT = 7


def installed_version(distribution: str) -> Optional[str]:
    try:
        return version(distribution)
    except PackageNotFoundError:
        return None


def check_imports() -> list[str]:
    """Import each dependency; return the distributions that failed."""
    failed = []
    for module_name, distribution in DEPENDENCIES.items():
        try:
            import_module(module_name)
        except ImportError as e:
            print(f"[FAILED] {distribution}: {e}")
            failed.append(distribution)
            continue
        print(f"[OK] {distribution} {installed_version(distribution) or '(version unknown)'}")
    return failed


def missing_assets(root: Path = PROJECT_ROOT) -> list[str]:
    missing = [asset for asset in ASSETS if not (root / asset).exists()]
    scenarios = [
        p for p in (root / "prompts" / "recommendation").glob("*.j2") if p.stem != "base"
    ]
    if len(scenarios) < SCENARIO_TEMPLATE_COUNT:
        missing.append(
            f"prompts/recommendation/ ({len(scenarios)} of "
            f"{SCENARIO_TEMPLATE_COUNT} scenario templates)"
        )
    return missing


def main(root: Path = PROJECT_ROOT) -> int:
    """Return 0 if the installation is complete, 1 otherwise."""
    print("Checking libraries...")
    failed = check_imports()

    print("\nChecking bundled assets...")
    assets = missing_assets(root)
    for asset in assets:
        print(f"[MISSING] {asset}")

    print()
    if failed or assets:
        print(f"[ERROR] {len(failed)} libraries failed to import, {len(assets)} assets missing")
        return 1
    print("[SUCCESS] Installation verified")
    return 0


if __name__ == "__main__":
    sys.exit(main())
