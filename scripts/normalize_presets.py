"""Rewrite stored tool records so their presets are reusable lenses.

Usage:
  python scripts/normalize_presets.py [--config-dir tool-configs] [--dry-run]
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

import yaml

HERE = os.path.dirname(__file__)
PROJ_ROOT = os.path.abspath(os.path.join(HERE, os.pardir))
if PROJ_ROOT not in sys.path:
    sys.path.insert(0, PROJ_ROOT)

from atlas_engine.core.config_store import FileToolConfigStore
from atlas_engine.core.errors import ConfigInvalidError
from atlas_engine.core.preset_lenses import rewrite_presets
from atlas_engine.core.settings import EngineSettings

logger = logging.getLogger("normalize_presets")


def dump(path: Path, data) -> None:
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix == ".json":
            f.write(json.dumps(data, indent=2, ensure_ascii=False) + "\n")
        else:
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)


def main(argv=None) -> int:
    settings = EngineSettings.from_env()
    p = argparse.ArgumentParser(description="Normalize tool presets into lenses")
    p.add_argument("--config-dir", default=settings.tool_config_dir)
    p.add_argument("--dry-run", action="store_true", help="report changes without writing")
    args = p.parse_args(argv)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(message)s")

    config_dir = Path(args.config_dir)
    if not config_dir.is_dir():
        logger.error(f"No tool config directory found at: {config_dir}")
        return 1

    store = FileToolConfigStore(str(config_dir))
    changed_count = 0
    for path in store.iter_paths():
        try:
            record = store.read_path(path)
        except ConfigInvalidError as e:
            logger.warning(f"Skipping {path.name}: {e}")
            continue

        updated, changed = rewrite_presets(record)
        if not changed:
            continue
        changed_count += 1
        if args.dry_run:
            logger.info(f"Would update presets: {path.name}")
        else:
            dump(path, updated)
            logger.info(f"Updated presets: {path.name}")

    verb = "Would update" if args.dry_run else "Updated"
    logger.info(f"Done. {verb} {changed_count} config file(s).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
