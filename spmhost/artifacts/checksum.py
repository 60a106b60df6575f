"""SHA-256 checksums for uploaded artifacts.

Swift Package Manager verifies binary targets against the lowercase hex
SHA-256 of the archive, so the digest is taken over the exact bytes that
were written to disk.
"""

import hashlib


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
