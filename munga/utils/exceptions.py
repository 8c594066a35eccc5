"""Custom exceptions for the Munga analyst terminal"""

from typing import Optional


class MungaError(Exception):
    """Base exception for Munga"""
    pass


class ConfigError(MungaError):
    """Configuration error"""
    pass


class StoreError(MungaError):
    """A persisted record could not be written"""
    pass


class AuthError(MungaError):
    """Authentication flow error shown inline to the operator"""
    pass


class UserNotFoundError(AuthError):
    """Login attempted for an email with no registry entry"""

    def __init__(self, email: str):
        self.email = email
        super().__init__("OPERATOR NOT FOUND. PLEASE INITIALIZE REGISTRY PROTOCOL.")


class DuplicateEmailError(AuthError):
    """Registration attempted for an email already in the registry"""

    def __init__(self, email: str):
        self.email = email
        super().__init__("EMAIL ALREADY REGISTERED. ACCESS DENIED.")


class MissingHandleError(AuthError):
    """Registration attempted without an operator handle"""

    def __init__(self):
        super().__init__("OPERATOR HANDLE REQUIRED FOR REGISTRY.")


class InvalidEmailError(AuthError):
    """Email missing or not shaped like an address"""

    def __init__(self, email: str):
        self.email = email
        super().__init__("VALID EMAIL LINK REQUIRED.")


class InvalidCodeError(AuthError):
    """Submitted one-time code does not match the pending verification"""

    def __init__(self):
        super().__init__("INVALID_VERIFICATION_HASH. ACCESS REVOKED.")


class AuthFlowStateError(AuthError):
    """Operation not allowed in the current auth flow step"""
    pass


class CodeDeliveryError(AuthError):
    """The one-time code could not be handed to the delivery channel"""

    def __init__(self, message: str, channel: Optional[str] = None):
        self.channel = channel
        super().__init__(message)


class NotAuthenticatedError(MungaError):
    """A screen was requested without a live session"""
    pass


class IncompleteFormError(MungaError):
    """A required screen field was left blank"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field.upper()} REQUIRED.")


class AIServiceError(MungaError):
    """Error from the generative-AI service"""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)


class ExportError(MungaError):
    """Document export failed"""
    pass
