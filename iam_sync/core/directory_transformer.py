"""Directory record / Keycloak representation ↔ Account transformations.

Usage:
    # Directory export (JSON record) → Account candidate
    candidate = DirectoryTransformer.record_to_account(record)

    # Keycloak user → Account
    account = DirectoryTransformer.keycloak_to_account(kc_user)

    # Account → Keycloak user
    kc_user = DirectoryTransformer.account_to_keycloak(account)
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import Account, ActivationStatus, Contact, EmployeeStatus

SID_ATTRIBUTE = "LDAP_ID"

_STATUS_NAMES = {
    "active": EmployeeStatus.ACTIVE,
    "terminated": EmployeeStatus.TERMINATED,
    "leaveofabsence": EmployeeStatus.LEAVE_OF_ABSENCE,
}

_ACTIVATION_NAMES = {
    "notactivated": ActivationStatus.NOT_ACTIVATED,
    "activated": ActivationStatus.ACTIVATED,
    "pending": ActivationStatus.PENDING,
}


def parse_status(value: Any) -> EmployeeStatus:
    """Accept an int flag value or a name such as ``"Active"``/``"leave_of_absence"``."""
    if isinstance(value, bool):
        return EmployeeStatus.ACTIVE if value else EmployeeStatus.TERMINATED
    if isinstance(value, int):
        return EmployeeStatus(value)
    key = str(value).replace("_", "").replace("-", "").replace(" ", "").lower()
    if key not in _STATUS_NAMES:
        raise ValueError(f"Unknown employment status '{value}'")
    return _STATUS_NAMES[key]


def parse_activation(value: Any) -> ActivationStatus:
    if isinstance(value, int) and not isinstance(value, bool):
        return ActivationStatus(value)
    key = str(value).replace("_", "").replace("-", "").replace(" ", "").lower()
    if key not in _ACTIVATION_NAMES:
        raise ValueError(f"Unknown activation status '{value}'")
    return _ACTIVATION_NAMES[key]


def _first(attributes: Dict[str, List[str]], name: str) -> Optional[str]:
    values = attributes.get(name) or []
    return values[0] if values else None


class DirectoryTransformer:
    """Bidirectional transformer for directory, Keycloak and Account shapes."""

    @staticmethod
    def record_to_account(record: Dict[str, Any]) -> Account:
        """Convert one directory export record into a sync candidate.

        E-mails are lower-cased, matching how Keycloak stores them.

        Example:
            >>> candidate = DirectoryTransformer.record_to_account({
            ...     "sid": "S-1-5-21-1004",
            ...     "email": "alice@example.com",
            ...     "firstName": "Alice",
            ...     "lastName": "Smith",
            ...     "status": "Active",
            ... })
            >>> candidate.sid
            'S-1-5-21-1004'
        """
        contacts = frozenset(
            Contact(kind=str(c.get("type", "")), value=str(c.get("value", "")))
            for c in record.get("contacts") or []
            if isinstance(c, dict)
        )
        return Account(
            sid=record.get("sid") or None,
            email=(record.get("email") or record.get("mail") or "").strip().lower(),
            first_name=record.get("firstName") or record.get("givenName") or "",
            last_name=record.get("lastName") or record.get("sn") or "",
            title=record.get("title") or "",
            location=record.get("location") or record.get("l") or "",
            contacts=contacts,
            status=parse_status(record.get("status", "Active")),
            activation_status=parse_activation(record.get("activationStatus", "Activated")),
        )

    @staticmethod
    def keycloak_to_account(kc_user: Dict[str, Any]) -> Account:
        """Convert a Keycloak user representation into an Account."""
        attributes = kc_user.get("attributes") or {}

        status_raw = _first(attributes, "employeeStatus")
        if status_raw is not None:
            status = EmployeeStatus(int(status_raw))
        else:
            status = EmployeeStatus.ACTIVE if kc_user.get("enabled", True) else EmployeeStatus.TERMINATED

        activation_raw = _first(attributes, "activationStatus")
        activation = ActivationStatus(int(activation_raw)) if activation_raw is not None else (
            ActivationStatus.ACTIVATED if kc_user.get("emailVerified") else ActivationStatus.NOT_ACTIVATED
        )

        work_from_raw = _first(attributes, "workFrom")
        return Account(
            id=kc_user.get("id", ""),
            username=kc_user.get("username", ""),
            email=kc_user.get("email") or "",
            sid=_first(attributes, SID_ATTRIBUTE),
            first_name=kc_user.get("firstName") or "",
            last_name=kc_user.get("lastName") or "",
            title=_first(attributes, "title") or "",
            location=_first(attributes, "location") or "",
            contacts=frozenset(Contact.from_string(c) for c in attributes.get("contacts") or []),
            activation_status=activation,
            status=status,
            is_owner=_first(attributes, "owner") == "true",
            is_visitor=_first(attributes, "visitor") == "true",
            work_from=datetime.fromisoformat(work_from_raw) if work_from_raw else None,
        )

    @staticmethod
    def account_to_keycloak(account: Account) -> Dict[str, Any]:
        """Convert an Account into a Keycloak user representation.

        Terminated accounts are disabled; fields without a native Keycloak
        column are stored as user attributes.
        """
        attributes: Dict[str, List[str]] = {
            "title": [account.title] if account.title else [],
            "location": [account.location] if account.location else [],
            "contacts": sorted(c.to_string() for c in account.contacts),
            "activationStatus": [str(int(account.activation_status))],
            "employeeStatus": [str(int(account.status))],
            "owner": ["true" if account.is_owner else "false"],
            "visitor": ["true" if account.is_visitor else "false"],
        }
        if account.sid:
            attributes[SID_ATTRIBUTE] = [account.sid]
        if account.work_from:
            attributes["workFrom"] = [account.work_from.isoformat()]

        kc_user = {
            "username": account.username,
            "email": account.email,
            "firstName": account.first_name,
            "lastName": account.last_name,
            "enabled": account.status != EmployeeStatus.TERMINATED,
            "emailVerified": account.activation_status == ActivationStatus.ACTIVATED,
            "attributes": attributes,
        }
        if account.id:
            kc_user["id"] = account.id
        return kc_user
