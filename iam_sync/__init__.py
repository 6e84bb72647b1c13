"""Identity sync package.

To build the core against Keycloak:
    from iam_sync.config import get_settings
    from iam_sync.core.bootstrap import build_core, build_keycloak_services

To provision accounts directly:
    from iam_sync.core.provisioning_service import AccountProvisioner, ProvisionOptions
"""
