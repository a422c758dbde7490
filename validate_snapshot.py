#!/usr/bin/env python3
"""Validate legacy data snapshots (YAML or JSON) against the snapshot schema."""
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from myventi.migration import load_snapshot_schema, validate_snapshot


def validate_snapshot_file(filepath: Path, schema: dict) -> List[str]:
    """Validate a single snapshot file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
        return errors
    except OSError as e:
        errors.append(f"Error: {e}")
        return errors
    for error in validate_snapshot(data, schema):
        errors.append(f"Schema validation error: {error}")
    return errors


def main(argv: Optional[List[str]] = None):
    """Validate every snapshot file named on the command line."""
    paths = [Path(p) for p in (sys.argv[1:] if argv is None else argv)]
    if not paths:
        print("Usage: validate_snapshot.py FILE [FILE ...]")
        return 1

    schema = load_snapshot_schema()
    all_valid = True
    for filepath in paths:
        errors = validate_snapshot_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
