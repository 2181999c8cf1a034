"""
                        Services Module

Business logic behind the dashboard and the table page:
    - session_manager: per-table dining sessions
    - order_manager: kitchen order list and analytics
    - realtime: in-process event bus
    - billing / notifications: bills over SMS (Mock or Twilio)
    - voice: "Hey Paytm" voice commands
    - excel_manager: file-locked Excel exports
"""

from heypaytm.services.order_manager import OrderManager
from heypaytm.services.realtime import RealTimeSync
from heypaytm.services.session_manager import SessionManager

__all__ = ["OrderManager", "RealTimeSync", "SessionManager"]
