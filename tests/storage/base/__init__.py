"""Base test suites for backup record stores."""

from .record_suite import BaseRecordStoreTestSuite, RecordStoreContract, make_record

__all__ = [
    "BaseRecordStoreTestSuite",
    "RecordStoreContract",
    "make_record",
]
