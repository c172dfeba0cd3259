# bloodstock/exceptions.py


class InventoryStoreError(Exception):
    """
    The database could not complete an inventory operation (unavailable,
    deadlock, serialization conflict...). Nothing was committed; retrying is
    up to the caller.
    """

    def __init__(self, operation: str, message: str = ""):
        self.operation = operation
        super().__init__(message or f"inventory store failure during {operation}")
