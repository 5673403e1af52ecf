"""Effective IAM permission resolution.

Given one resource policy and a role catalog in which predefined roles may
include other roles, iamscope answers which roles a principal is bound to
and which permissions those roles grant once the inclusion graph is expanded.
"""

from .aggregator import Expansion, PermissionAggregator
from .cache import RoleCache
from .config import IamScopeConfig, LogLevel, load_config_from_env
from .exceptions import (
    ConfigurationError,
    IamScopeError,
    InputValidationError,
    InternalResolutionError,
    ResolutionError,
    UpstreamNotFound,
    UpstreamPermissionDenied,
    UpstreamTransient,
    error_response,
)
from .identifiers import OWNER_ROLE, RoleIdentifier, RoleKind, classify
from .logging import (
    ResolutionFormatter,
    ResolutionLoggerAdapter,
    get_resolution_logger,
    redact_secrets,
    safe_log_value,
    safe_preview,
    setup_logging,
)
from .members import candidate_members, find_assigned_roles
from .models import (
    PermissionsRequest,
    PermissionsResponse,
    Policy,
    PredefinedRole,
    ResolutionResult,
    RoleBinding,
    RoleCheckRequest,
    RoleCheckResponse,
    RoleCheckResult,
    RoleDetails,
)
from .providers import InMemoryPolicyStore, InMemoryRoleCatalog, PolicyProvider, RoleMetadataProvider
from .resolver import RoleResolver
from .service import ResolutionService

__all__ = [
    'ConfigurationError',
    'Expansion',
    'IamScopeConfig',
    'IamScopeError',
    'InMemoryPolicyStore',
    'InMemoryRoleCatalog',
    'InputValidationError',
    'InternalResolutionError',
    'LogLevel',
    'OWNER_ROLE',
    'PermissionAggregator',
    'PermissionsRequest',
    'PermissionsResponse',
    'Policy',
    'PolicyProvider',
    'PredefinedRole',
    'ResolutionError',
    'ResolutionFormatter',
    'ResolutionLoggerAdapter',
    'ResolutionResult',
    'ResolutionService',
    'RoleBinding',
    'RoleCache',
    'RoleCheckRequest',
    'RoleCheckResponse',
    'RoleCheckResult',
    'RoleDetails',
    'RoleIdentifier',
    'RoleKind',
    'RoleMetadataProvider',
    'RoleResolver',
    'UpstreamNotFound',
    'UpstreamPermissionDenied',
    'UpstreamTransient',
    'candidate_members',
    'classify',
    'error_response',
    'find_assigned_roles',
    'get_resolution_logger',
    'load_config_from_env',
    'redact_secrets',
    'safe_log_value',
    'safe_preview',
    'setup_logging',
]
