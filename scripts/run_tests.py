#!/usr/bin/env python3
"""
Run the SignalReach test suites group by group.

Each group is one pytest invocation so a failure is reported against the
area it belongs to. Exit status is non-zero if any group fails.

    python scripts/run_tests.py                 # every group
    python scripts/run_tests.py api lifecycle   # just these groups
    python scripts/run_tests.py --list          # show the groups
"""

import os
import subprocess
import sys
import time

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

GROUPS = {
    "api": ["tests/test_api.py"],
    "lifecycle": ["tests/unit/test_lifecycle.py"],
    "drafts": [
        "tests/unit/test_prompt_builder.py",
        "tests/unit/test_llm_gateway.py",
        "tests/unit/test_client.py",
    ],
    "scrape": [
        "tests/unit/test_scraper.py",
        "tests/unit/test_scrape_runner.py",
    ],
    "data": [
        "tests/unit/test_repositories.py",
        "tests/unit/test_keywords.py",
    ],
    "session": [
        "tests/unit/test_session.py",
        "tests/unit/test_workspace_resolver.py",
        "tests/unit/test_config.py",
    ],
}


def run_group(name):
    paths = [p for p in GROUPS[name] if os.path.exists(os.path.join(ROOT, p))]
    if not paths:
        return True, "no test files present"
    proc = subprocess.run(
        [sys.executable, "-m", "pytest", "-q", *paths],
        cwd=ROOT, capture_output=True, text=True,
    )
    lines = [line for line in proc.stdout.splitlines() if line.strip()]
    summary = lines[-1] if lines else proc.stderr.strip()[-200:]
    if proc.returncode != 0:
        sys.stdout.write(proc.stdout)
    return proc.returncode == 0, summary


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if "--list" in argv:
        for name, paths in GROUPS.items():
            print(f"{name:<10} {' '.join(paths)}")
        return 0

    unknown = [a for a in argv if a not in GROUPS]
    if unknown:
        print(f"Unknown group(s): {', '.join(unknown)}. Try --list.")
        return 2

    selected = argv or list(GROUPS)
    began = time.monotonic()
    failed = []
    for name in selected:
        ok, summary = run_group(name)
        print(f"[{'ok' if ok else 'FAIL':>4}] {name:<10} {summary}")
        if not ok:
            failed.append(name)

    took = time.monotonic() - began
    print(f"\n{len(selected) - len(failed)}/{len(selected)} groups passed in {took:.1f}s")
    if failed:
        print("failed: " + ", ".join(failed))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
