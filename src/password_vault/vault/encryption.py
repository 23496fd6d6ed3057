# Vault - AES-256-GCM Password Encryption Adapter
#
# Implements PasswordEncryptionService with the cryptography package:
#   master secret + random salt -> 256-bit key (PBKDF2-HMAC-SHA256)
#   plaintext -> AES-256-GCM ciphertext + 16-byte auth tag
#
# The owner id is passed as GCM associated data, so ciphertext copied onto
# another user's entry fails authentication.
#
# Stored text format: salt:iv:authTag:ciphertext (each part base64)

import base64
import binascii
import logging
import os
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import PasswordDecryptionError, PasswordEncryptionError
from .ports import PasswordEncryptionService
from .value_objects import EncryptedPassword

logger = logging.getLogger(__name__)


class AesGcmPasswordEncryptionService(PasswordEncryptionService):
    """
    AES-256-GCM implementation of the encryption port.

    Flow:
    1. A fresh salt and nonce are generated for every encryption
    2. PBKDF2 derives a 256-bit key from the master secret + salt
    3. AES-256-GCM encrypts the password, authenticating the owner id
    4. salt, nonce, tag and ciphertext are base64-joined into one string
    """

    PBKDF2_ITERATIONS = 600_000  # OWASP 2023 guidance for PBKDF2-SHA256
    KEY_LENGTH = 32  # AES-256
    SALT_LENGTH = 16
    NONCE_LENGTH = 12  # 96-bit nonce recommended for GCM
    TAG_LENGTH = 16
    SEPARATOR = ":"

    def __init__(self, master_secret: str, iterations: int = PBKDF2_ITERATIONS):
        """
        Args:
            master_secret: Server-side secret all keys are derived from
            iterations: PBKDF2 iteration count
        """
        if not master_secret:
            raise ValueError("Master secret cannot be empty")
        if iterations < 1:
            raise ValueError("PBKDF2 iterations must be positive")
        self._master_secret = master_secret.encode("utf-8")
        self._iterations = iterations

    def derive_key(self, salt: bytes) -> bytes:
        """Derive the AES key for one salt."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=self.KEY_LENGTH,
            salt=salt,
            iterations=self._iterations,
        )
        return kdf.derive(self._master_secret)

    def encrypt(self, plain_password: str, user_id: str) -> EncryptedPassword:
        if not isinstance(plain_password, str) or not plain_password:
            raise PasswordEncryptionError("Password to encrypt cannot be empty")

        try:
            salt = os.urandom(self.SALT_LENGTH)
            nonce = os.urandom(self.NONCE_LENGTH)
            sealed = AESGCM(self.derive_key(salt)).encrypt(
                nonce, plain_password.encode("utf-8"), self._associated_data(user_id)
            )
        except (TypeError, ValueError) as e:
            logger.error("Password encryption failed: %s", type(e).__name__)
            raise PasswordEncryptionError(f"Encryption failed: {e}")

        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-self.TAG_LENGTH], sealed[-self.TAG_LENGTH:]
        return EncryptedPassword(self._format(salt, nonce, tag, ciphertext))

    def decrypt(self, encrypted_password: EncryptedPassword, user_id: str) -> str:
        salt, nonce, tag, ciphertext = self._parse(encrypted_password.value)
        try:
            plaintext = AESGCM(self.derive_key(salt)).decrypt(
                nonce, ciphertext + tag, self._associated_data(user_id)
            )
        except InvalidTag:
            # Wrong master secret, wrong owner, or tampered data
            logger.warning("Password decryption failed: authentication tag mismatch")
            raise PasswordDecryptionError("Decryption failed: data is corrupted or the key is wrong")

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise PasswordDecryptionError("Decryption failed: plaintext is not valid UTF-8")

    def re_encrypt(
        self,
        encrypted_password: EncryptedPassword,
        user_id: str,
        target: PasswordEncryptionService,
    ) -> EncryptedPassword:
        """Decrypt with this service and encrypt again with ``target`` (secret rotation)."""
        return target.encrypt(self.decrypt(encrypted_password, user_id), user_id)

    @staticmethod
    def _associated_data(user_id: str) -> bytes:
        return str(user_id).encode("utf-8")

    @classmethod
    def _format(cls, salt: bytes, nonce: bytes, tag: bytes, ciphertext: bytes) -> str:
        return cls.SEPARATOR.join(
            base64.b64encode(part).decode("ascii") for part in (salt, nonce, tag, ciphertext)
        )

    @classmethod
    def _parse(cls, data: str) -> Tuple[bytes, bytes, bytes, bytes]:
        parts = data.split(cls.SEPARATOR)
        if len(parts) != 4:
            raise PasswordDecryptionError(
                f"Invalid encrypted data format. Expected 4 parts, got {len(parts)}"
            )

        try:
            salt, nonce, tag, ciphertext = (base64.b64decode(p, validate=True) for p in parts)
        except (binascii.Error, ValueError):
            raise PasswordDecryptionError("Invalid encrypted data format: bad base64 encoding")

        expected = (
            ("salt", salt, cls.SALT_LENGTH),
            ("IV", nonce, cls.NONCE_LENGTH),
            ("auth tag", tag, cls.TAG_LENGTH),
        )
        for name, value, length in expected:
            if len(value) != length:
                raise PasswordDecryptionError(
                    f"Invalid {name} length. Expected {length}, got {len(value)}"
                )

        return salt, nonce, tag, ciphertext
