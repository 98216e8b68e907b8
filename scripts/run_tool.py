"""Run one tool request from the command line and print the JSON result.

Examples:
  python scripts/run_tool.py kpi-extractor "Revenue grew 12%." --format json
  python scripts/run_tool.py launch-brief "Plan the launch" --mode auto --answer Friday --answer Executives
  python scripts/run_tool.py app-builder "A habit tracker" --mode build --step data-model
"""

import argparse
import json
import logging
import os
import sys

HERE = os.path.dirname(__file__)
PROJ_ROOT = os.path.abspath(os.path.join(HERE, os.pardir))
if PROJ_ROOT not in sys.path:
    sys.path.insert(0, PROJ_ROOT)

from atlas_engine.core.errors import EngineError
from atlas_engine.core.settings import EngineSettings
from atlas_engine.main import ToolEngineAPI


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Execute one tool request")
    p.add_argument("slug", help="tool identifier")
    p.add_argument("input", help="user input text")
    p.add_argument("--mode", choices=["simple", "auto", "build"], default="simple")
    p.add_argument("--format", dest="output_format", choices=["plain", "json"], default=None)
    p.add_argument("--answer", dest="answers", action="append", default=None,
                   help="clarify answer (repeat in question order)")
    p.add_argument("--focus-label", default=None)
    p.add_argument("--focus-prompt", default=None)
    p.add_argument("--step", dest="build_step_id", default=None, help="build step id")
    p.add_argument("--step-prompt", dest="build_prompt", default=None, help="build step instructions")
    p.add_argument("--config-dir", default=None, help="override ATLAS_TOOL_CONFIG_DIR")
    p.add_argument("--mock", action="store_true", help="use the offline mock generator")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    settings = EngineSettings.from_env()
    updates = {}
    if args.config_dir:
        updates["tool_config_dir"] = args.config_dir
    if args.mock:
        updates["use_mock_llm"] = True
    settings = settings.model_copy(update=updates)
    logging.basicConfig(level=settings.log_level, stream=sys.stderr)

    body = {"input": args.input, "mode": args.mode}
    optional = {
        "outputFormat": args.output_format,
        "answers": args.answers,
        "focusLabel": args.focus_label,
        "focusPrompt": args.focus_prompt,
        "buildStepId": args.build_step_id,
        "buildPrompt": args.build_prompt,
    }
    body.update({k: v for k, v in optional.items() if v is not None})

    api = ToolEngineAPI(settings)
    try:
        result = api.execute(args.slug, body)
    except EngineError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
