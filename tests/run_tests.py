#!/usr/bin/env python3
"""
Test Runner for the Troves & Coves storefront

USAGE:
    python tests/run_tests.py [options]

    Options:
    --api            Run HTTP API tests (catalog, cart, orders, contact, AI routes)
    --ai             Run orchestrator, agent and consultant tests
    --all            Run all available tests
    --coverage       Run tests with coverage reporting
    --verbose        Run with verbose output
"""

import argparse
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

SUITES = {
    "api": [
        "tests/test_api.py",
        "tests/test_ai_api.py",
        "tests/test_rate_limit.py",
    ],
    "ai": [
        "tests/test_ai_orchestrator.py",
        "tests/test_agents.py",
        "tests/test_consultant.py",
        "tests/test_nlu_security.py",
    ],
    "all": ["tests/"],
}


def run_command(command, description):
    """Run a command and report whether it succeeded."""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"Command: {' '.join(command)}")
    print(f"{'='*60}")

    try:
        subprocess.run(command, check=True, cwd=project_root)
        print(f"\n✅ {description} completed successfully!")
        return True
    except subprocess.CalledProcessError as e:
        print(f"\n❌ {description} failed with exit code {e.returncode}")
        return False


def check_environment():
    """Check that pytest and the storefront package are importable."""
    print("🔍 Checking environment...")

    try:
        import pytest  # noqa: F401
        print("✅ pytest is available")
    except ImportError:
        print("❌ pytest is not available. Install the test extra: pip install -e .[test]")
        return False

    if not (project_root / "storefront").exists():
        print("❌ storefront directory not found")
        return False

    print("✅ Environment check completed")
    return True


def run_suite(name, verbose=False, coverage=False):
    command = [sys.executable, "-m", "pytest", *SUITES[name]]
    if verbose:
        command.append("-v")
    if coverage:
        command.extend(["--cov=storefront", "--cov-report=term-missing"])
    return run_command(command, f"{name.upper()} tests")


def main():
    parser = argparse.ArgumentParser(
        description="Test Runner for the Troves & Coves storefront",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tests/run_tests.py --api
  python tests/run_tests.py --ai --verbose
  python tests/run_tests.py --all --coverage
        """
    )
    parser.add_argument("--api", action="store_true", help="Run HTTP API tests")
    parser.add_argument("--ai", action="store_true", help="Run orchestrator, agent and consultant tests")
    parser.add_argument("--all", action="store_true", help="Run all available tests")
    parser.add_argument("--coverage", action="store_true", help="Run tests with coverage reporting")
    parser.add_argument("--verbose", action="store_true", help="Run with verbose output")
    parser.add_argument("--check-env", action="store_true", help="Check environment setup only")
    args = parser.parse_args()

    print("🧪 Storefront Test Runner")
    print("=" * 60)

    if args.check_env:
        check_environment()
        return

    if not check_environment():
        print("❌ Environment check failed. Please fix the issues above.")
        sys.exit(1)

    selected = [name for name in ("api", "ai", "all") if getattr(args, name)] or ["all"]

    success_count = 0
    for name in selected:
        if run_suite(name, verbose=args.verbose, coverage=args.coverage):
            success_count += 1

    total = len(selected)
    print(f"\n{'='*60}")
    print("TEST RUN SUMMARY")
    print(f"{'='*60}")
    print(f"Suites run: {total}")
    print(f"Successful: {success_count}")
    print(f"Failed: {total - success_count}")

    if success_count == total:
        print("\n🎉 All tests passed!")
        sys.exit(0)
    print(f"\n❌ {total - success_count} test suite(s) failed!")
    sys.exit(1)


if __name__ == "__main__":
    main()
