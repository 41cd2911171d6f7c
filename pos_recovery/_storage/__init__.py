from .records_json import JsonBackupRecordStore
from .records_mongo import MongoBackupRecordStore

__all__ = ["JsonBackupRecordStore", "MongoBackupRecordStore"]
