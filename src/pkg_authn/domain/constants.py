from enum import Enum


class AccountStatus(Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class TokenType(Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class ClaimName(Enum):
    """Claims that can be read back from a verified token."""
    SUBJECT = "sub"
    ACCOUNT_ID = "userId"
    TENANT_ID = "tenantId"
    EXPIRATION = "exp"


class FailureReason(Enum):
    INVALID_CREDENTIALS = "Invalid credentials"
    ACCOUNT_LOCKED = "Account locked"
    ACCOUNT_DISABLED = "Account disabled"


# Wire claim names, kept identical to the tokens already issued to clients.
CLAIM_SUBJECT = "sub"
CLAIM_ACCOUNT_ID = "userId"
CLAIM_TENANT_ID = "tenantId"
CLAIM_EMPLOYEE_CODE = "employeeCode"
CLAIM_DISPLAY_NAME = "displayName"
CLAIM_ROLES = "roles"
CLAIM_TOKEN_TYPE = "tokenType"
CLAIM_ISSUED_AT = "iat"
CLAIM_EXPIRES_AT = "exp"

AUTHORITY_PREFIX = "ROLE_"

BEARER = "Bearer"

# Failed logins from one IP within the window that get flagged as suspicious.
SUSPICIOUS_IP_THRESHOLD = 20
SUSPICIOUS_IP_WINDOW_SECONDS = 3600
