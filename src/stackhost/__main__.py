"""Evaluate a definition once and print its OutputSet as JSON.

Usage:
    python -m stackhost [--config-dir DIR] [--stack ID]
                        [--definition PATH] [--entry NAME]

Exit codes: 0 ok, 2 adapter error, 3 config error. Exceptions raised by
the entry function itself are not caught.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Sequence

from stackcore.adapter import AdapterError, OutputAdapter, surface_for
from stackcore.config import ConfigError, clear_config_cache, get_config
from stackcore.config.loader import CONFIG_DIR_ENV
from stackcore.logs import configure_logging


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stackhost",
        description="Evaluate a compiled stack definition and print outputs",
    )
    p.add_argument("--config-dir", help="directory with base.yaml")
    p.add_argument("--stack", help="manifest id from the definitions registry")
    p.add_argument("--definition", help="module file path or dotted name")
    p.add_argument("--entry", help="entry attribute name")
    p.add_argument("--repo-root", default=".", help="root for registry lookup")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.config_dir:
        os.environ[CONFIG_DIR_ENV] = args.config_dir
        clear_config_cache()
    try:
        cfg = get_config()
        overrides = {
            k: v
            for k, v in {
                "stack": args.stack,
                "definition": args.definition,
                "entry": args.entry,
            }.items()
            if v is not None
        }
        if args.definition and not args.stack:
            overrides["stack"] = None
        if overrides:
            cfg = cfg.model_copy(
                update={"adapter": cfg.adapter.model_copy(update=overrides)}
            )
    except ConfigError as e:
        print(f"[config-error] {e}", file=sys.stderr)
        return 3
    configure_logging(cfg.logging)
    try:
        adapter = OutputAdapter.from_config(cfg, repo_root=args.repo_root)
        outputs = adapter.run(surface_for("none"))
    except AdapterError as e:
        print(f"[adapter-error] error_type={e.error_type} {e}", file=sys.stderr)
        return 2
    print(json.dumps(outputs.to_dict(), indent=2, default=str))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
