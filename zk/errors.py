class ZKError(Exception):
    """Base exception for ZK operations"""
    pass


class InvalidInputError(ZKError):
    """Predicate inputs are malformed (wrong shape, non-binary index, out-of-field value)"""
    pass


class NullifierError(ZKError):
    """Base exception for nullifier bookkeeping"""
    pass


class InvalidNullifierError(NullifierError):
    """Nullifier has an invalid format"""
    pass


class NullifierReusedError(NullifierError):
    """Nullifier was already used for this poll"""
    pass


class ProofRejectedError(ZKError):
    """Vote inputs do not satisfy the predicate"""
    pass
