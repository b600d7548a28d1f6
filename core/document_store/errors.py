"""Document store exceptions"""


class StoreError(Exception):
    """Base exception for document store failures"""
    pass


class DocumentNotFoundError(StoreError):
    """Document id does not resolve in the collection"""

    def __init__(self, collection: str, document_id: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"{collection}/{document_id} not found")


class StoreTimeoutError(StoreError):
    """Store call exceeded its time budget"""
    pass


class StoreUnavailableError(StoreError):
    """Store could not be reached or rejected the call at transport level"""
    pass
