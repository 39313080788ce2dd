"""
TariffPilot CLI

Run the decision core against JSON snapshots from the command line.

Usage:
    tariffpilot decide state.json
    tariffpilot terminate state.json
    tariffpilot score state.json --factors
    tariffpilot consensus cases.json --target 8471.30
    tariffpilot relevance cases.json --target 8471.30 --keywords "laptop computer"
    tariffpilot parse-legal en_8471.txt --heading 8471
    tariffpilot validate-profile profile.json --analysis ec_analysis.json
    tariffpilot check-code 847130001 --country IL

Every command prints one JSON document to stdout. Errors are printed as
JSON to stderr with exit code 2.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional

from .boundary import (
    cases_from_list,
    essential_character_analysis_from_dict,
    profile_from_dict,
    state_from_dict,
)
from .config import Settings
from .engine import (
    ConfidenceCalculator,
    DecisionEngine,
    analyze_consensus,
    build_analyze_feedback,
    parse_legal_text,
    rank_by_relevance,
    validate_essential_character_analysis,
    validate_hs_format,
    validate_product_profile,
)
from .exceptions import StateValidationError, TariffPilotError
from .log import configure_logging
from .tables import ClassificationTables, load_tables


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_ERROR = 2


# =============================================================================
# Input / Output
# =============================================================================

def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _read_json(path: str) -> Any:
    return json.loads(_read_text(path))


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _tables(args: argparse.Namespace, settings: Settings) -> ClassificationTables:
    if args.tables:
        return load_tables(args.tables, strict_version=settings.strict_tables_version)
    return settings.load_tables()


def _cases(raw: Any) -> Any:
    """A cases file holds a list, or an object with a "cases" list."""
    if isinstance(raw, dict):
        return raw.get("cases", [])
    return raw


# =============================================================================
# Commands
# =============================================================================

def cmd_decide(args: argparse.Namespace, tables: ClassificationTables) -> int:
    """Next action for a conversation snapshot."""
    state = state_from_dict(_read_json(args.state), tables)
    decision = DecisionEngine(tables).decide(state)

    payload = decision.to_dict()
    if args.fingerprint:
        payload["fingerprint"] = decision.fingerprint()
    _emit(payload)
    return EXIT_OK


def cmd_terminate(args: argparse.Namespace, tables: ClassificationTables) -> int:
    state = state_from_dict(_read_json(args.state), tables)
    _emit(DecisionEngine(tables).should_terminate(state).to_dict())
    return EXIT_OK


def cmd_score(args: argparse.Namespace, tables: ClassificationTables) -> int:
    """Confidence of a snapshot, optionally with improvement recommendations."""
    state = state_from_dict(_read_json(args.state), tables)
    calculator = ConfidenceCalculator(tables)
    if args.factors:
        _emit(calculator.analyze_factors(state).to_dict())
    else:
        _emit(calculator.score(state).to_dict())
    return EXIT_OK


def cmd_consensus(args: argparse.Namespace, tables: ClassificationTables) -> int:
    cases = cases_from_list(_cases(_read_json(args.cases)))
    _emit(analyze_consensus(cases, args.target, tables).to_dict())
    return EXIT_OK


def cmd_relevance(args: argparse.Namespace, tables: ClassificationTables) -> int:
    """Cases ranked by relevance to the target code."""
    cases = cases_from_list(_cases(_read_json(args.cases)))
    as_of = date.fromisoformat(args.as_of) if args.as_of else None
    ranked = rank_by_relevance(cases, args.target, args.keywords, tables, as_of)
    _emit({
        "target_code": args.target,
        "ranked": [
            {"case": case.to_dict(), "relevance": relevance.to_dict()}
            for case, relevance in ranked
        ],
    })
    return EXIT_OK


def cmd_parse_legal(args: argparse.Namespace, tables: ClassificationTables) -> int:
    parsed = parse_legal_text(_read_text(args.text), args.heading, tables)
    _emit(parsed.to_dict())
    return EXIT_OK


def cmd_validate_profile(args: argparse.Namespace, tables: ClassificationTables) -> int:
    """Profile errors, warnings and analyst feedback; optionally a 3(b) analysis check."""
    profile = profile_from_dict(_read_json(args.profile))
    if profile is None:
        raise StateValidationError(message="product_profile is malformed")

    validation = validate_product_profile(profile)
    payload: dict[str, Any] = {
        "validation": validation.to_dict(),
        "feedback": build_analyze_feedback(validation.errors, tables),
    }
    if args.analysis:
        analysis = essential_character_analysis_from_dict(_read_json(args.analysis))
        payload["essential_character"] = validate_essential_character_analysis(analysis).to_dict()
    _emit(payload)
    return EXIT_OK


def cmd_check_code(args: argparse.Namespace, tables: ClassificationTables) -> int:
    _emit(validate_hs_format(args.code, args.country, tables).to_dict())
    return EXIT_OK


# =============================================================================
# Entry Point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="TariffPilot classification decision core",
        prog="tariffpilot",
    )
    parser.add_argument(
        "--tables",
        default=None,
        help="Lookup-table pack (YAML/JSON); defaults to TP_TABLES_PATH or the bundled pack",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for the tariffpilot logger (defaults to TP_LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    decide_parser = subparsers.add_parser("decide", help="Next action for a state snapshot")
    decide_parser.add_argument("state", help="Conversation state JSON file ('-' for stdin)")
    decide_parser.add_argument(
        "--fingerprint", action="store_true", help="Include the decision fingerprint"
    )
    decide_parser.set_defaults(func=cmd_decide)

    terminate_parser = subparsers.add_parser("terminate", help="Should the conversation stop")
    terminate_parser.add_argument("state", help="Conversation state JSON file ('-' for stdin)")
    terminate_parser.set_defaults(func=cmd_terminate)

    score_parser = subparsers.add_parser("score", help="Confidence score with breakdown")
    score_parser.add_argument("state", help="Conversation state JSON file ('-' for stdin)")
    score_parser.add_argument(
        "--factors", action="store_true", help="Include improvement recommendations"
    )
    score_parser.set_defaults(func=cmd_score)

    consensus_parser = subparsers.add_parser("consensus", help="Precedent consensus")
    consensus_parser.add_argument("cases", help="Precedent cases JSON file")
    consensus_parser.add_argument("--target", required=True, help="Proposed HS code")
    consensus_parser.set_defaults(func=cmd_consensus)

    relevance_parser = subparsers.add_parser("relevance", help="Rank cases by relevance")
    relevance_parser.add_argument("cases", help="Precedent cases JSON file")
    relevance_parser.add_argument("--target", required=True, help="Proposed HS code")
    relevance_parser.add_argument("--keywords", default="", help="Product keywords")
    relevance_parser.add_argument("--as-of", default=None, help="Reference date (YYYY-MM-DD)")
    relevance_parser.set_defaults(func=cmd_relevance)

    legal_parser = subparsers.add_parser("parse-legal", help="Parse explanatory-note text")
    legal_parser.add_argument("text", help="Text file ('-' for stdin)")
    legal_parser.add_argument("--heading", default=None, help="Heading the text belongs to")
    legal_parser.set_defaults(func=cmd_parse_legal)

    profile_parser = subparsers.add_parser("validate-profile", help="Validate a product profile")
    profile_parser.add_argument("profile", help="Product profile JSON file ('-' for stdin)")
    profile_parser.add_argument(
        "--analysis", default=None, help="Essential-character analysis JSON file"
    )
    profile_parser.set_defaults(func=cmd_validate_profile)

    code_parser = subparsers.add_parser("check-code", help="Check an HS code's national format")
    code_parser.add_argument("code", help="HS code, e.g. 8471.30.00")
    code_parser.add_argument("--country", default=None, help="Destination country, e.g. IL")
    code_parser.set_defaults(func=cmd_check_code)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    settings = Settings.from_env()
    configure_logging(args.log_level or settings.log_level, json_lines=settings.log_json)

    try:
        tables = _tables(args, settings)
        return args.func(args, tables)
    except TariffPilotError as e:
        logger.error("Command %s failed: %s", args.command, e)
        print(json.dumps(e.to_dict(), default=str), file=sys.stderr)
        return EXIT_ERROR
    except (OSError, ValueError) as e:
        # unreadable file, invalid JSON or date
        logger.error("Command %s failed: %s", args.command, e)
        print(json.dumps({"code": "TP_INPUT_ERROR", "message": str(e)}), file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
