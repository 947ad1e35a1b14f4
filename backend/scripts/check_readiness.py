#!/usr/bin/env python3
"""
Run readiness checks and print one line per check.

Exit 0 when config, packages and database pass; Redis and the push gateway are
reported but do not affect the exit code. --json prints the /ready body instead.
"""
import argparse
import json
import sys
from pathlib import Path

# Ensure backend is on path when run as script
_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

from notifier.readiness import REQUIRED_CHECKS, is_ready, run_all_checks


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--json", action="store_true", help="print the /ready response body")
    args = parser.parse_args(argv)

    checks = run_all_checks()
    ready, summary = is_ready(checks)
    if args.json:
        print(json.dumps({"ready": ready, "checks": summary}, indent=2))
        return 0 if ready else 1

    for name, msg in summary.items():
        status = "OK" if checks[name][0] else "FAIL"
        tag = "required" if name in REQUIRED_CHECKS else "optional"
        print(f"  {name} [{tag}]: {status}  {msg}")
    print(f"\nNotifier: {'READY' if ready else 'NOT READY'}")
    return 0 if ready else 1


if __name__ == "__main__":
    sys.exit(main())
