import argparse
import json
import sys
from typing import List, Optional

from pydantic import ValidationError

from covgate import __version__
from covgate.badges import build_badges
from covgate.context.builder import ContextAssembler
from covgate.errors import (
    ConfigurationError,
    CovgateError,
    ThresholdParseError,
    UnacceptableMetricError,
)
from covgate.gate import check_if
from covgate.logs import configure_logging
from covgate.report import MetricsReport
from covgate.settings import Config


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="covgate")
    sub = p.add_subparsers(dest="cmd", required=True)

    check_p = sub.add_parser("check", help="Check report metrics against the configured thresholds.")
    check_p.add_argument("--report", required=True, help="Path to the metrics report (JSON)")
    check_p.add_argument("--config", default="", help="Path to config yaml (default: .covgate.yml or covgate.yml)")
    check_p.add_argument("--format", default="text", choices=["text", "json"])

    if_p = sub.add_parser("if", help="Evaluate a gate expression against the current run.")
    if_p.add_argument("expression", help="Gate expression, e.g. 'is_default_branch'")
    if_p.add_argument("--repo", help="Repository name (owner/repo), else config or GITHUB_REPOSITORY")
    if_p.add_argument("--config", default="", help="Path to config yaml")

    gates_p = sub.add_parser("gates", help="Show which gated actions would run.")
    gates_p.add_argument("--config", default="", help="Path to config yaml")
    gates_p.add_argument("--format", default="text", choices=["text", "json"])

    sub.add_parser("version", help="Print version.")
    return p


def _check(args) -> int:
    try:
        config = Config.load(args.config)
        report = MetricsReport.load(args.report)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (OSError, UnicodeDecodeError, ValidationError) as e:
        print(f"Error: failed to load report {args.report}: {e}", file=sys.stderr)
        return 2

    badges = build_badges(report)
    reason = None
    try:
        config.acceptable(report)
    except ThresholdParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except UnacceptableMetricError as e:
        reason = str(e)

    if args.format == "json":
        output = {
            "acceptable": reason is None,
            "reason": reason,
            "badges": [
                {"label": b.label, "message": b.message, "tier": b.tier.value, "color": b.color}
                for b in badges
            ],
        }
        print(json.dumps(output, indent=2))
    else:
        for b in badges:
            print(f"{b.label}: {b.message} ({b.tier.value})")
        if reason is None:
            print("Acceptable")
        else:
            print(f"Not acceptable: {reason}")
    return 0 if reason is None else 1


def _if(args) -> int:
    try:
        repository = args.repo or Config.load(args.config).repository
        ok = check_if(args.expression, ContextAssembler(repository))
    except CovgateError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    print("true" if ok else "false")
    return 0 if ok else 1


def _gates(args) -> int:
    try:
        config = Config.load(args.config)
        gates = {
            "push": config.push_ready(),
            "comment": config.comment_ready(),
            "diff": config.diff_ready(),
            "central": config.central_ready(),
            "central_push": config.central_push_ready(),
        }
    except CovgateError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.format == "json":
        print(json.dumps(gates, indent=2))
    else:
        for name, ready in gates.items():
            print(f"{name}: {'run' if ready else 'skip'}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # If no arguments provided, show help
    if not argv:
        argv.append("--help")

    p = build_parser()
    args = p.parse_args(argv)
    configure_logging()

    if args.cmd == "version":
        print(f"covgate {__version__}")
        return 0
    if args.cmd == "check":
        return _check(args)
    if args.cmd == "if":
        return _if(args)
    if args.cmd == "gates":
        return _gates(args)
    return 2


if __name__ == "__main__":
    sys.exit(main())
