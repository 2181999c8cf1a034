"""
                Hey Paytm - Table Session Service

Session and order state for voice/QR driven restaurant ordering:
per-table dining sessions, the kitchen order list, a real-time event
bus for dashboards and customers, and bill delivery over SMS.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
