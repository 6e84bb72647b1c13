"""Operator CLI for password policy checks, account provisioning and directory sync.

This module is a thin wrapper around iam_sync.core services.
"""
from __future__ import annotations
import argparse
import json
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from iam_sync.config.settings import AppConfig, get_settings
from iam_sync.core import audit, password_policy
from iam_sync.core.bootstrap import build_core, build_keycloak_services, build_memory_services
from iam_sync.core.contracts import Services
from iam_sync.core.directory_transformer import DirectoryTransformer
from iam_sync.core.keycloak.exceptions import KeycloakAPIError
from iam_sync.core.models import Account
from iam_sync.core.provisioning_service import ProvisionOptions
from iam_sync.core.validators import is_valid_email, validate_name


def build_services(config: AppConfig, dry_run: bool, operator: str) -> Services:
    if dry_run:
        return build_memory_services(config, operator=operator)
    return build_keycloak_services(config, operator=operator)


def _load_records(path: str) -> list[dict]:
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        data = data.get("users", [])
    if not isinstance(data, list):
        raise ValueError("Directory export must be a list of records or {'users': [...]}")
    return data


def _describe(account: Account | None) -> str:
    if account is None:
        return "no account"
    return f"{account.username} (id={account.id})"


def cmd_sync(args, config: AppConfig) -> int:
    core = build_core(build_services(config, args.dry_run, args.operator), config)
    failures = 0
    for index, record in enumerate(_load_records(args.file), start=1):
        try:
            candidate = DirectoryTransformer.record_to_account(record)
        except ValueError as e:
            print(f"[sync] #{index}: invalid record: {e}", file=sys.stderr)
            failures += 1
            continue

        result = core.reconciler.sync_user(candidate)
        label = candidate.email or candidate.sid or f"#{index}"
        if result.ok:
            print(f"[sync] {label}: {_describe(result.value)}", file=sys.stderr)
            audit.safe_log_event(
                "account_skipped" if result.value is None else "account_synced",
                result.value.username if result.value else label,
                operator=args.operator,
                tenant=config.tenant_id,
                details={"sid": candidate.sid},
            )
        else:
            failures += 1
            print(f"[sync] {label}: {result.kind.value}: {result.detail}", file=sys.stderr)
            audit.safe_log_event(
                "sync_failed",
                label,
                operator=args.operator,
                tenant=config.tenant_id,
                details={"sid": candidate.sid, **result.to_dict()},
                success=False,
            )
    return 1 if failures else 0


def cmd_add_user(args, config: AppConfig) -> int:
    if not is_valid_email(args.email):
        print(f"[add-user] Error: invalid email '{args.email}'", file=sys.stderr)
        return 1
    try:
        first = validate_name(args.first, "First name")
        last = validate_name(args.last, "Last name")
    except ValueError as e:
        print(f"[add-user] Error: {e}", file=sys.stderr)
        return 1

    core = build_core(build_services(config, args.dry_run, args.operator), config)
    password = args.password or password_policy.generate(core.services.password_settings())
    result = core.provisioner.add_user(
        Account(email=args.email, first_name=first, last_name=last),
        password,
        ProvisionOptions(is_visitor=args.visitor, notify=not args.no_notify),
    )
    if not result.ok:
        print(f"[add-user] Error: {result.kind.value}: {result.detail}", file=sys.stderr)
        return 1

    account = result.value
    audit.safe_log_event(
        "account_created",
        account.username,
        operator=args.operator,
        tenant=config.tenant_id,
        details={"account_id": account.id, "visitor": account.is_visitor},
    )
    print(f"[add-user] Created {_describe(account)}", file=sys.stderr)
    if config.demo_mode and not args.password:
        print(password)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Identity sync helper")
    parser.add_argument("--operator", default="cli",
                        help="Operator identifier for audit logs (default: cli)")

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("password-policy")
    sub.add_parser("generate-password")

    cp = sub.add_parser("check-password")
    cp.add_argument("--password", required=True)

    ss = sub.add_parser("sync")
    ss.add_argument("--file", required=True, help="JSON export of directory records")
    ss.add_argument("--dry-run", action="store_true", help="Reconcile against an empty in-memory store")

    sa = sub.add_parser("add-user")
    sa.add_argument("--email", required=True)
    sa.add_argument("--first", required=True)
    sa.add_argument("--last", required=True)
    sa.add_argument("--password")
    sa.add_argument("--visitor", action="store_true")
    sa.add_argument("--no-notify", action="store_true")
    sa.add_argument("--dry-run", action="store_true")

    sub.add_parser("verify-audit")

    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return 0

    if args.cmd == "verify-audit":
        total, valid = audit.verify_audit_log()
        print(f"Audit log: {valid}/{total} events with valid signatures")
        return 0 if total == valid else 1

    config = get_settings()
    if config.audit_log_signing_key:
        os.environ.setdefault("AUDIT_LOG_SIGNING_KEY", config.audit_log_signing_key)
    policy = config.password_settings

    if args.cmd == "password-policy":
        print(password_policy.describe_policy(policy))
        return 0
    if args.cmd == "generate-password":
        print(password_policy.generate(policy))
        return 0
    if args.cmd == "check-password":
        failures = password_policy.unmet_rules(args.password, policy)
        if failures:
            print(f"[check-password] Rejected, missing: {', '.join(failures)}", file=sys.stderr)
            return 1
        print("[check-password] OK", file=sys.stderr)
        return 0

    try:
        if args.cmd == "sync":
            return cmd_sync(args, config)
        if args.cmd == "add-user":
            return cmd_add_user(args, config)
    except (KeycloakAPIError, OSError, ValueError) as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
