import argparse
import dataclasses
import json
import logging
import sys

from ecourts_resolver.models import ProviderConfig, SearchFilters
from ecourts_resolver.providers.factory import (
    PROVIDERS,
    create_provider,
    list_available_provider_types,
)
from ecourts_resolver.resolver import ECourtsResolver

logger = logging.getLogger("ecourts_resolver")


def _print_result(result) -> int:
    """Print *result* as JSON and return the exit code for it."""
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


def _resolver():
    try:
        return ECourtsResolver.from_settings()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)


def cmd_case(args):
    resolver = _resolver()
    try:
        return _print_result(resolver.get_case_by_cnr(args.cnr))
    finally:
        resolver.close()


def cmd_search(args):
    filters = SearchFilters(
        case_number=args.case_number,
        party_name=args.party,
        advocate_name=args.advocate,
        court=args.court,
        court_type=args.court_type,
        filing_date_from=args.date_from,
        filing_date_to=args.date_to,
        limit=args.limit,
    )
    resolver = _resolver()
    try:
        return _print_result(resolver.search_cases(filters))
    finally:
        resolver.close()


def cmd_providers(args):
    providers = []
    for type_tag in list_available_provider_types():
        cls = PROVIDERS[type_tag]
        entry = {
            "type": type_tag,
            "name": cls.NAME,
            "capabilities": dataclasses.asdict(cls.CAPABILITIES),
        }
        if cls.SOURCE.get("name"):
            entry["source"] = cls.SOURCE
        providers.append(entry)
    print(json.dumps(providers, indent=2))
    return 0


def cmd_provider(args):
    config = ProviderConfig(
        api_endpoint=args.endpoint,
        api_key=args.api_key,
        bench_code=args.bench,
    )
    provider = create_provider(args.type, config)
    try:
        if args.action == "test":
            result = provider.test_connection()
        elif args.action == "cause-list":
            if not args.court or not args.date:
                logger.error("--court and --date are required for cause-list")
                return 2
            result = provider.get_cause_list(args.court, args.date)
        else:
            if not args.cnr:
                logger.error("--cnr is required for %s", args.action)
                return 2
            if args.action == "case":
                result = provider.get_case_by_cnr(args.cnr)
            else:
                result = provider.list_orders(args.cnr)
    finally:
        close = getattr(provider, "close", None)
        if close:
            close()
    return _print_result(result)


def cmd_test_connection(args):
    resolver = _resolver()
    try:
        exit_code = _print_result(resolver.test_connection())
        if args.endpoints:
            report = resolver.test_api_connectivity()
            print(json.dumps(report.to_dict(), indent=2))
            exit_code = exit_code or (0 if report.success else 1)
        return exit_code
    finally:
        resolver.close()


def main():
    parser = argparse.ArgumentParser(
        prog="ecourts-resolver",
        description="Resolve Indian court cases across eCourts sources",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    case_parser = subparsers.add_parser("case", help="Look a case up by CNR")
    case_parser.add_argument(
        "--cnr",
        required=True,
        help="16-character Case Number Record (e.g. DLHC010011762021)",
    )

    search_parser = subparsers.add_parser("search", help="Search cases (third_party mode)")
    search_parser.add_argument("--case-number", help="Registration number (e.g. WP 1234/2023)")
    search_parser.add_argument("--party", help="Party name")
    search_parser.add_argument("--advocate", help="Advocate name")
    search_parser.add_argument("--court", help="Court name")
    search_parser.add_argument(
        "--court-type",
        choices=["district", "high", "supreme", "nclt", "cat", "consumer"],
        help="Court type (default: district)",
    )
    search_parser.add_argument(
        "--date-from",
        help="Only cases filed on or after this date (ISO 8601, e.g. 2023-01-01)",
    )
    search_parser.add_argument(
        "--date-to",
        help="Only cases filed on or before this date (ISO 8601, e.g. 2023-12-31)",
    )
    search_parser.add_argument("--limit", type=int, help="Max number of cases")

    subparsers.add_parser("providers", help="List provider types and their capabilities")

    provider_parser = subparsers.add_parser(
        "provider", help="Call a single provider directly"
    )
    provider_parser.add_argument(
        "type",
        choices=list_available_provider_types(),
        help="Provider type",
    )
    provider_parser.add_argument(
        "action",
        choices=["case", "orders", "cause-list", "test"],
        help="Operation to run",
    )
    provider_parser.add_argument("--cnr", help="CNR for case and orders")
    provider_parser.add_argument("--court", help="Court for cause-list")
    provider_parser.add_argument("--date", help="Date for cause-list (e.g. 2024-03-15)")
    provider_parser.add_argument("--endpoint", help="Provider API endpoint")
    provider_parser.add_argument("--api-key", help="Provider API key")
    provider_parser.add_argument(
        "--bench",
        help="Karnataka High Court bench (bengaluru, dharwad, kalaburagi)",
    )

    test_parser = subparsers.add_parser(
        "test-connection", help="Probe the upstream of the configured mode"
    )
    test_parser.add_argument(
        "--endpoints",
        action="store_true",
        help="Also probe every vendor court-type endpoint",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "case": cmd_case,
        "search": cmd_search,
        "providers": cmd_providers,
        "provider": cmd_provider,
        "test-connection": cmd_test_connection,
    }

    try:
        exit_code = commands[args.command](args)
    except Exception:
        logger.exception("Command %s failed", args.command)
        sys.exit(2)
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
