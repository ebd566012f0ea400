"""
tripsplit - Trip Sync and Settlement Engine

Expense splitting for small travel groups, with no server: trips move
between devices as share codes (QR or copy/paste) and are merged locally.

DESIGN PRINCIPLES:
1. The state lives on the device and is saved whole
2. A bad share code never half-merges
3. Nothing typed by the user is stored without validation
4. Balances always sum to zero
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "tripsplit Team"
