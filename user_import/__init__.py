"""Batch admin-user import from Excel workbooks.

Parse an uploaded workbook into validated user records, provision one inactive
account with a one-time registration token per record, and hand back a
results workbook that its owner can download exactly once.
"""

__version__ = "0.1.0"
