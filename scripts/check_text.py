#!/usr/bin/env python3
"""Check text against the content filter.

Handy for moderators tuning the denylist.

Usage:
    python scripts/check_text.py "Some post text"
    echo "Some post text" | python scripts/check_text.py

Environment:
    CONFIG_PATH: Optional config file with a moderation section
"""

import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from locom.core.moderation import ContentFilter
from locom.shell.config_loader import load_config


def main():
    parser = argparse.ArgumentParser(description="Run the content filter on text")
    parser.add_argument("text", nargs="?", help="Text to check (default: stdin)")
    args = parser.parse_args()

    text = args.text if args.text is not None else sys.stdin.read()

    config_path = os.environ.get("CONFIG_PATH")
    policy = load_config(config_path).moderation.to_policy() if config_path else None
    verdict = ContentFilter(policy).check_text(text)

    if verdict.is_appropriate:
        print("OK: appropriate")
        return 0

    print(f"REJECTED: {verdict.reason}")
    if verdict.flagged_terms:
        print(f"Flagged: {', '.join(verdict.flagged_terms)}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
