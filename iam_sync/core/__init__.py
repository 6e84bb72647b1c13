"""Core identity logic: accounts, password policy, provisioning and directory sync.

Architecture:
    - Pure Python; every component receives a ``Services`` bundle (contracts.py)
    - Public operations return ``Ok``/``Err`` results (errors.py)
    - Testable with the in-memory stores, no HTTP mocking needed

Module Structure:
    - models.py               : Account value type, merge rules, password settings
    - password_policy.py      : Validation, policy messages, password generation
    - username_allocator.py   : Unique username derivation from e-mail
    - provisioning_service.py : Account creation and password operations
    - retry.py                : Collision retry for directory provisioning
    - reconciler.py           : Directory record ↔ local account reconciliation
    - memory_store.py         : In-memory stores
    - keycloak/               : Keycloak Admin API client and stores
    - directory_transformer.py: Directory / Keycloak ↔ Account transformations
    - notifications.py, audit.py : Notification dispatch onto the signed audit trail
    - tenancy.py              : Tenant context and password settings store
    - bootstrap.py            : Wiring from AppConfig
"""
