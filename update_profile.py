#!/usr/bin/env python3
"""
Dynamic profile card generator.

Stats:
- Uptime (fixed epoch, 365-day years / 30-day months)
- Repo count (owned, public, non-fork)
- Star count
- Commits (recent push estimate, or exact contribution count)
- Top languages (by repository primary language)

Reads template.svg (required) and ascii.txt (optional), replaces
{{UPTIME}} {{REPOS}} {{STARS}} {{COMMITS}} {{TOP_LANGS}} {{ASCII}}
and writes profile.svg. See profile_card/config.py for the environment
variables.

Exit codes: 0 success, 1 run failed, 2 missing configuration or input.
"""

from __future__ import annotations
import sys
import time

from profile_card.config import load_config
from profile_card.errors import PreconditionError, ProfileCardError
from profile_card.orchestrator import ProfileCardRun


def main() -> int:
    try:
        config = load_config()
    except PreconditionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print(f"Starting SVG generation for {config.user_name}...")
    t0 = time.time()
    run = ProfileCardRun(config)
    try:
        run.run()
    except PreconditionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except ProfileCardError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print("Done in {:.2f}s".format(time.time() - t0))
    query_count = getattr(run.source, "query_count", None)
    if query_count is not None:
        print("Query counts:", query_count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
