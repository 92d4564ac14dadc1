"""
Notification Delivery Module
"""
from .email import SendGridEmailSender
from .fanout import DeliveryReport, deliver
from .sms import TwilioSMSSender, normalize_phone_number

__all__ = [
    "SendGridEmailSender",
    "TwilioSMSSender",
    "normalize_phone_number",
    "DeliveryReport",
    "deliver",
]
