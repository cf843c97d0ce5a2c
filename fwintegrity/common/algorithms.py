import enum
import hashlib


class Hash(str, enum.Enum):
    """Digest algorithms accepted by the hash_algorithm option."""

    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    def hexdigest(self, data: bytes) -> str:
        """Lowercase hex digest of data, as stored in a measurement set."""
        return hashlib.new(self.value, data).hexdigest()

    def get_hex_size(self) -> int:
        return hashlib.new(self.value).digest_size * 2

    def __str__(self) -> str:
        return self.value
