import argparse
import json
import os
import sys
from typing import Dict, List, Optional

from .live_update import LiveUpdateClient, LiveUpdateConfig, LiveUpdateConfigError, get_default_config_path
from .logging_config import get_logger, log_liveupdate_event, setup_logging
from .responses import BlacklistCheckResult, ParsedResponse, describe_response_code

logger = get_logger(__name__)

OPERATION_MODES = {
    "blacklist-add": "blacklist-add",
    "blacklist-remove": "blacklist-remove",
    "blacklist-check": "blacklist-verify",
    "contact-create": "receiver-add",
    "contact-update": "receiver-update",
    "contact-remove": "receiver-remove",
}


def parse_variables(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Turn KEY=VALUE arguments into a contact variable mapping"""
    variables = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(f"Contact variable must be KEY=VALUE: {pair}")
        key, value = pair.split("=", 1)
        variables[key.strip()] = value
    return variables


def build_client(args: argparse.Namespace) -> LiveUpdateClient:
    config = LiveUpdateConfig(args.config)
    client = LiveUpdateClient.from_config(config)

    if args.protocol and not client.set_protocol(args.protocol):
        raise LiveUpdateConfigError(f"Unknown protocol: {args.protocol}")
    if args.transport and not client.set_transport_mode(args.transport):
        raise LiveUpdateConfigError(f"Unknown transport: {args.transport}")
    return client


def report(args: argparse.Namespace, client: LiveUpdateClient, response: ParsedResponse) -> int:
    """Print an operation result and return the exit code"""
    mode = OPERATION_MODES[args.cmd]

    if isinstance(response, BlacklistCheckResult):
        success = not response.is_request_error
    else:
        success = response.response_status

    log_liveupdate_event(
        'operation_completed' if success else 'operation_failed',
        mode=mode,
        category=response.response_category,
        code=response.response_code,
        success=success,
        error=None if success else response.response_message,
    )

    if args.verbose:
        print(json.dumps(response.as_dict(), indent=2))
        last_entry = client.get_last_log_message()
        if last_entry is not None:
            print(last_entry.format())
        return 0 if success else 1

    if isinstance(response, BlacklistCheckResult) and success:
        verdict = "blacklisted" if response.is_blacklisted else "not blacklisted"
        print(f"Phone Number is {verdict}. ({response.response_message})")
    else:
        status = "OK" if success else "FAILED"
        print(f"{status}: {response.response_message}")

    meaning = describe_response_code(mode, response.response_code)
    if meaning:
        print(f"  [{response.response_category} {response.response_code}] {meaning}")

    return 0 if success else 1


def cmd_blacklist_add(args: argparse.Namespace) -> ParsedResponse:
    return args.client.blacklist_add(args.phone, args.service_id or (), not args.no_force_update)


def cmd_blacklist_remove(args: argparse.Namespace) -> ParsedResponse:
    return args.client.blacklist_remove(args.phone)


def cmd_blacklist_check(args: argparse.Namespace) -> ParsedResponse:
    return args.client.is_blacklisted(args.phone)


def cmd_contact_create(args: argparse.Namespace) -> ParsedResponse:
    return args.client.create_contact(
        args.phone,
        args.group_id,
        name=args.name,
        contact_variables=parse_variables(args.var),
        allow_duplicate=args.allow_duplicate,
        duplicate_scope=args.duplicate_scope,
    )


def cmd_contact_update(args: argparse.Namespace) -> ParsedResponse:
    return args.client.update_contact(
        args.phone,
        args.group_id,
        name=args.name,
        contact_variables=parse_variables(args.var),
    )


def cmd_contact_remove(args: argparse.Namespace) -> ParsedResponse:
    return args.client.remove_contact(args.phone, args.group_id)


def cmd_init(args: argparse.Namespace) -> int:
    """Write a config file with the Live Update credentials"""
    config_path = args.config or get_default_config_path()

    if os.path.exists(config_path) and not args.force:
        print(f"Config file already exists: {config_path}")
        print("Use --force to overwrite existing files")
        return 1

    try:
        os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)
        config_data = {
            "connection_id": args.connection_id,
            "password": args.password,
            "protocol": args.protocol or "HTTPS",
            "transport_mode": args.transport or "QUERY_GET",
        }
        with open(config_path, 'w') as f:
            json.dump(config_data, f, indent=2)
        os.chmod(config_path, 0o600)
    except OSError as e:
        print(f"Failed to create config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config file: {config_path}")
    return 0


def add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    parser.add_argument("--protocol", default=None, help="HTTPS or HTTP (overrides config)")
    parser.add_argument("--transport", default=None, help="QUERY_GET, BODY_POST or SIMPLE_FETCH (overrides config)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print the full response and the request log entry")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="liveupdate-cli", description="SMSLink Live Update client utilities")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a config file with Live Update credentials")
    p_init.add_argument("connection_id", help="Live Update Connection ID")
    p_init.add_argument("password", help="Live Update Password")
    p_init.add_argument("--config", default=None, help="Config file path (default: XDG_CONFIG_HOME/smslink_liveupdate/config.json)")
    p_init.add_argument("--protocol", default=None, help="HTTPS (default) or HTTP")
    p_init.add_argument("--transport", default=None, help="QUERY_GET (default), BODY_POST or SIMPLE_FETCH")
    p_init.add_argument("--force", action="store_true", help="Overwrite existing files")
    p_init.set_defaults(func=cmd_init)

    p_badd = sub.add_parser("blacklist-add", help="Add a phone number to the blacklist")
    p_badd.add_argument("phone", help="Phone number")
    p_badd.add_argument("--service-id", type=int, action="append", help="Blacklist only for this service (repeatable, default: all services)")
    p_badd.add_argument("--no-force-update", action="store_true", help="Leave an existing blacklist entry untouched")
    p_badd.set_defaults(operation=cmd_blacklist_add)

    p_brem = sub.add_parser("blacklist-remove", help="Remove a phone number from the blacklist")
    p_brem.add_argument("phone", help="Phone number")
    p_brem.set_defaults(operation=cmd_blacklist_remove)

    p_bchk = sub.add_parser("blacklist-check", help="Check whether a phone number is blacklisted")
    p_bchk.add_argument("phone", help="Phone number")
    p_bchk.set_defaults(operation=cmd_blacklist_check)

    p_cadd = sub.add_parser("contact-create", help="Create a contact in a group")
    p_cadd.add_argument("phone", help="Phone number")
    p_cadd.add_argument("group_id", type=int, help="Group ID")
    p_cadd.add_argument("--name", default=None, help="Contact full name")
    p_cadd.add_argument("--var", action="append", metavar="KEY=VALUE", help="Contact variable (repeatable, up to 25)")
    p_cadd.add_argument("--allow-duplicate", action="store_true", help="Allow duplicate phone numbers")
    p_cadd.add_argument("--duplicate-scope", type=int, choices=[1, 2], default=1, help="1: check inside the group (default), 2: check all groups")
    p_cadd.set_defaults(operation=cmd_contact_create)

    p_cupd = sub.add_parser("contact-update", help="Update a contact in a group or in all groups")
    p_cupd.add_argument("phone", help="Phone number")
    p_cupd.add_argument("--group-id", type=int, default=0, help="Group ID (default: 0, all groups)")
    p_cupd.add_argument("--name", default=None, help="Contact full name")
    p_cupd.add_argument("--var", action="append", metavar="KEY=VALUE", help="Contact variable (repeatable, up to 25)")
    p_cupd.set_defaults(operation=cmd_contact_update)

    p_crem = sub.add_parser("contact-remove", help="Remove a contact from a group or from all groups")
    p_crem.add_argument("phone", help="Phone number")
    p_crem.add_argument("--group-id", type=int, default=0, help="Group ID (default: 0, all groups)")
    p_crem.set_defaults(operation=cmd_contact_remove)

    for sub_parser in (p_badd, p_brem, p_bchk, p_cadd, p_cupd, p_crem):
        add_common_options(sub_parser)

    return p


def run_operation(args: argparse.Namespace) -> int:
    try:
        client = build_client(args)
        args.client = client
        response = args.operation(args)
    except (OSError, ValueError, argparse.ArgumentTypeError) as e:
        logger.debug(f"{args.cmd} aborted before sending: {type(e).__name__}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return report(args, client, response)


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    if hasattr(args, "func"):
        return args.func(args)
    return run_operation(args)


if __name__ == "__main__":
    raise SystemExit(main())
