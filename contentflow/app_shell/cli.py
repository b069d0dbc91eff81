import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from contentflow.app_shell.config import Settings, configure_logging, validate_startup
from contentflow.domain.entities import ContentAction
from contentflow.rules.models import Rules

logger = logging.getLogger("cli")


def handle_check_rules(rules: Rules, args: argparse.Namespace) -> None:
    print(f"Rules '{rules.project.slug}' v{rules.project.rules_version} are valid.")
    letters = rules.permissions.letters
    print("Permission letters:")
    for operation, letter in letters.model_dump().items():
        print(f"  {letter}  {operation}")
    print("Required codes per action:")
    for action in ContentAction:
        codes = ", ".join(rules.permissions.for_action(action)) or "-"
        print(f"  {action.value:<16} {codes}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="contentflow workflow engine CLI")
    parser.add_argument("--rules", help="Path to rules.yaml (overrides CONTENTFLOW_RULES_PATH)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # check-rules
    subparsers.add_parser("check-rules", help="Validate rules.yaml and print the permission table")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.rules:
        settings = replace(settings, rules_path=Path(args.rules))

    rules = validate_startup(settings)
    configure_logging(rules, settings)
    logger.debug("Loaded rules from %s", settings.rules_path)

    if args.command == "check-rules":
        handle_check_rules(rules, args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
