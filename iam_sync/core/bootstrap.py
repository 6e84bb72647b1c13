"""Wiring of the identity core from an :class:`AppConfig`."""
from __future__ import annotations
import logging
from dataclasses import dataclass

from iam_sync.config.settings import AppConfig
from .contracts import Services
from .keycloak import KeycloakAccountStore, KeycloakClient, KeycloakCredentialStore
from .memory_store import InMemoryAccountStore, InMemoryCredentialStore
from .notifications import AuditTrailNotifier
from .provisioning_service import AccountProvisioner
from .reconciler import DirectoryReconciler
from .retry import DirectoryUserProvisioner, RetryPolicy
from .tenancy import ConfigSettingsStore, StaticTenantContext

logger = logging.getLogger(__name__)


@dataclass
class IdentityCore:
    """The three entry points of the core, sharing one service bundle."""

    services: Services
    provisioner: AccountProvisioner
    directory_provisioner: DirectoryUserProvisioner
    reconciler: DirectoryReconciler


def build_keycloak_services(config: AppConfig, operator: str = "directory-sync") -> Services:
    """Services backed by the Keycloak realm named in ``config``."""
    client = KeycloakClient(config.keycloak_url)
    client.authenticate_service_account(
        config.keycloak_service_realm,
        config.keycloak_service_client_id,
        config.service_client_secret_resolved,
    )
    accounts = KeycloakAccountStore(client, config.keycloak_realm)
    logger.info("Using Keycloak realm '%s' at %s", config.keycloak_realm, config.keycloak_url)
    return Services(
        accounts=accounts,
        credentials=KeycloakCredentialStore(client, config.keycloak_realm),
        notifier=AuditTrailNotifier(tenant=config.tenant_id, operator=operator),
        tenant=StaticTenantContext(
            tenant_id=config.tenant_id,
            personal_mode=config.personal_mode,
            user_quota=config.user_quota,
            count_active_users=accounts.count_enabled,
            timezone=config.tenant_timezone,
        ),
        settings=ConfigSettingsStore(config.password_settings),
    )


def build_memory_services(config: AppConfig, operator: str = "directory-sync") -> Services:
    """Services backed by in-memory stores (dry runs and tests)."""
    accounts = InMemoryAccountStore()
    return Services(
        accounts=accounts,
        credentials=InMemoryCredentialStore(),
        notifier=AuditTrailNotifier(tenant=config.tenant_id, operator=operator),
        tenant=StaticTenantContext(
            tenant_id=config.tenant_id,
            personal_mode=config.personal_mode,
            user_quota=config.user_quota,
            count_active_users=accounts.active_count,
            timezone=config.tenant_timezone,
        ),
        settings=ConfigSettingsStore(config.password_settings),
    )


def build_core(services: Services, config: AppConfig) -> IdentityCore:
    provisioner = AccountProvisioner(services, visitor_group_id=config.visitor_group_id)
    directory_provisioner = DirectoryUserProvisioner(
        provisioner,
        RetryPolicy(
            max_attempts=config.directory_retry_attempts,
            delay_seconds=config.directory_retry_delay_seconds,
        ),
    )
    return IdentityCore(
        services=services,
        provisioner=provisioner,
        directory_provisioner=directory_provisioner,
        reconciler=DirectoryReconciler(services, directory_provisioner),
    )
