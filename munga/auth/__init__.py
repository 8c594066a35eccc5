"""Operator registry, passcode delivery and the two-step auth flow"""

from .registry import UserRegistry
from .delivery import CodeDelivery, DeliveryResult, OutboxCodeDelivery, SmtpCodeDelivery, create_code_delivery
from .flow import AuthFlow, AuthStep, generate_code

__all__ = [
    "UserRegistry",
    "CodeDelivery",
    "DeliveryResult",
    "OutboxCodeDelivery",
    "SmtpCodeDelivery",
    "create_code_delivery",
    "AuthFlow",
    "AuthStep",
    "generate_code",
]
