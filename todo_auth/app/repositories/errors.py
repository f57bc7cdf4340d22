class DuplicateRecordError(Exception):
    """A unique constraint rejected the write"""
