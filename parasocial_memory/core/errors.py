"""
Error taxonomy for the memory store.
"""


class MemoryStoreError(Exception):
    """Base class for memory store failures."""
    pass


class KeyUnavailable(MemoryStoreError):
    """The encryption key could not be loaded, generated or persisted.

    Writes abort; reads degrade to an empty result.
    """
    pass


class EmbeddingUnavailable(MemoryStoreError):
    """The embedding worker failed for one request. Never fatal to a store operation."""
    pass


class DecryptionFailed(MemoryStoreError):
    """A ciphertext/nonce/key triple did not authenticate."""
    pass


class PersistenceError(MemoryStoreError):
    """A storage transaction failed. Nothing from the failed write is visible."""
    pass
