"""
Cache validation script for release quality checks.

This script validates the downloaded cache to ensure:
1. Symbol lists exist and are readable
2. Every symbol directory has its fundamentals files, non-empty and parseable
3. Exchange and search indexes exist and are well formed
4. FX rate files are parseable

Exit codes:
  0 - All validations passed
  1 - Validation failed (cache has problems)

Validation errors are written to stderr for capture by workflow.
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pandas as pd

from findata_fetcher.fundamentals import FUNDAMENTAL_FILES
from findata_fetcher.indexes import EXCHANGES_ROOT, SYMBOL_CACHE_KEY
from findata_fetcher.universe import ALL_SYMBOLS_REQUEST, CONSTITUENT_LISTS

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when a validation check fails."""
    pass


def validate_file_exists(path: Path, file_type: str) -> None:
    """Validate that a file exists and is not empty.

    Args:
        path: Path to the file
        file_type: Description of the file type for error messages
    """
    if not path.exists():
        raise ValidationError(f"{file_type} file not found: {path}")
    if not path.is_file():
        raise ValidationError(f"{file_type} path is not a file: {path}")
    if path.stat().st_size == 0:
        raise ValidationError(f"{file_type} file is empty: {path}")


def validate_json_readable(path: Path, file_type: str) -> Any:
    """Validate that a file holds JSON and return the parsed payload."""
    validate_file_exists(path, file_type)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (ValueError, UnicodeDecodeError) as e:
        raise ValidationError(f"{file_type} is not valid JSON: {path} ({e})")


def validate_symbol_lists(base: Path) -> dict[str, int]:
    """Validate the universe lists; returns list name -> symbol count."""
    counts = {}
    keys = [ALL_SYMBOLS_REQUEST.key] + [f"info/{name}.json" for name in CONSTITUENT_LISTS]
    for key in keys:
        data = validate_json_readable(base / key, f"Symbol list {key}")
        if not isinstance(data, list) or not data:
            raise ValidationError(f"Symbol list {key} is empty or not a list")
        counts[key] = len(data)
        logger.info(f"✓ {key}: {len(data)} entries")
    return counts


def inspect_symbol_directories(base: Path) -> pd.DataFrame:
    """One row per symbol directory: missing and invalid fundamentals files."""
    rows = []
    root = base / "fundamentals"
    if not root.is_dir():
        return pd.DataFrame(columns=["symbol", "missing", "invalid"])
    for sym_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        missing, invalid = [], []
        for name in FUNDAMENTAL_FILES:
            path = sym_dir / name
            if not path.exists() or path.stat().st_size == 0:
                missing.append(name)
                continue
            try:
                with open(path, "r", encoding="utf-8") as f:
                    json.load(f)
            except (ValueError, UnicodeDecodeError):
                invalid.append(name)
        rows.append({"symbol": sym_dir.name, "missing": missing, "invalid": invalid})
    return pd.DataFrame(rows, columns=["symbol", "missing", "invalid"])


def validate_symbol_directories(base: Path, *, max_incomplete_pct: float = 5.0) -> pd.DataFrame:
    """Fail on any unparseable file, or when too many symbols are incomplete."""
    df = inspect_symbol_directories(base)
    if df.empty:
        raise ValidationError(f"No symbol directories under {base / 'fundamentals'}")

    bad = df[df["invalid"].map(len) > 0]
    if not bad.empty:
        sample = ", ".join(bad["symbol"].head(5).tolist())
        raise ValidationError(f"{len(bad)} symbols have unparseable files (e.g. {sample})")

    incomplete = df[df["missing"].map(len) > 0]
    incomplete_pct = len(incomplete) / len(df) * 100.0
    if incomplete_pct > max_incomplete_pct:
        raise ValidationError(
            f"Too many incomplete symbols: {len(incomplete)}/{len(df)} ({incomplete_pct:.2f}% > {max_incomplete_pct}%)"
        )
    if not incomplete.empty:
        logger.warning(f"⚠ {len(incomplete)} symbols are missing files ({incomplete_pct:.2f}%)")
    logger.info(f"✓ Symbol directories: {len(df)} symbols, {len(df) - len(incomplete)} complete")
    return df


def validate_indexes(base: Path) -> None:
    exchanges_dir = base / EXCHANGES_ROOT
    if not exchanges_dir.is_dir() or not any(exchanges_dir.iterdir()):
        raise ValidationError(f"Exchange index is missing: {exchanges_dir}")

    symbols_csv = base / SYMBOL_CACHE_KEY
    validate_file_exists(symbols_csv, "Search index")
    lines = symbols_csv.read_text(encoding="utf-8").splitlines()
    malformed = [line for line in lines if ";" not in line]
    if malformed:
        raise ValidationError(f"Search index has {len(malformed)} malformed lines (e.g. {malformed[0]!r})")
    if len(lines) != len(set(lines)):
        raise ValidationError("Search index has duplicate entries")
    logger.info(f"✓ Indexes: {len(list(exchanges_dir.iterdir()))} exchanges, {len(lines)} search entries")


def validate_fx_files(base: Path) -> int:
    fx_dir = base / "fxratefiles"
    validate_json_readable(fx_dir / "symbols.json", "FX catalog")
    count = 0
    for path in sorted(fx_dir.glob("*_*.json")):
        validate_json_readable(path, "FX chunk")
        count += 1
    logger.info(f"✓ FX files: {count} chunks")
    return count


def main():
    parser = argparse.ArgumentParser(description="Validate the downloaded financial data cache")
    parser.add_argument("--base-folder", type=str, default="data", help="Cache root directory")
    parser.add_argument("--max-incomplete-pct", type=float, default=5.0, help="Allowed share of incomplete symbols")
    parser.add_argument("--skip-fx", action="store_true", help="Skip FX file validation")
    args = parser.parse_args()

    base = Path(args.base_folder)
    validation_errors = []

    logger.info("=" * 60)
    logger.info(f"Validating cache at {base}")
    logger.info("=" * 60)

    checks = [
        ("[1/4] Symbol lists", lambda: validate_symbol_lists(base)),
        ("[2/4] Symbol directories", lambda: validate_symbol_directories(base, max_incomplete_pct=args.max_incomplete_pct)),
        ("[3/4] Indexes", lambda: validate_indexes(base)),
    ]
    if not args.skip_fx:
        checks.append(("[4/4] FX rates", lambda: validate_fx_files(base)))
    else:
        logger.info("\n[4/4] Skipping FX validation")

    for title, check in checks:
        logger.info(f"\n{title}...")
        try:
            check()
        except ValidationError as e:
            validation_errors.append(f"{title} failed: {e}")
            logger.error(f"✗ {title} failed: {e}")

    logger.info("=" * 60)
    if validation_errors:
        logger.error(f"✗ VALIDATION FAILED: {len(validation_errors)} error(s)")
        for i, error in enumerate(validation_errors, 1):
            logger.error(f"  {i}. {error}")
            # Also write to stderr for capture by workflow
            print(error, file=sys.stderr)
        sys.exit(1)
    logger.info("✓ ALL VALIDATIONS PASSED")
    sys.exit(0)


if __name__ == "__main__":
    main()
