"""
Services Package

Storage and receipt intake: the parts of the app that touch bytes
outside the domain models.
"""

from rt_admin.services.receipts import ReceiptError, decode_receipt, encode_receipt

__all__ = [
    "ReceiptError",
    "decode_receipt",
    "encode_receipt",
]
