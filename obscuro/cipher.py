"""
Envelope encryption of single values.

Values are encrypted as PKCS#7 enveloped data: a random AES key encrypts the
value and that key is encrypted to the RSA key in the recipient certificate.
The DER structure is base64 encoded so it can be embedded in text.
"""

import base64
import binascii
import logging

import attr
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs7

from .keys import KeyPair
from .utils import DecryptionError

log = logging.getLogger(__name__)


@attr.s(frozen=True)
class Cipher:
    keys: KeyPair = attr.ib()

    def encrypt(self, plaintext: bytes) -> str:
        """Encrypt bytes, returning base64 text."""
        envelope = (
            pkcs7.PKCS7EnvelopeBuilder()
            .set_data(plaintext)
            .add_recipient(self.keys.certificate)
            .encrypt(serialization.Encoding.DER, [pkcs7.PKCS7Options.Binary]))
        log.debug(f"Encrypted {len(plaintext)} bytes into a {len(envelope)} byte envelope")
        return base64.b64encode(envelope).decode('ascii')

    def decrypt(self, ciphertext: str) -> bytes:
        """Decrypt base64 text produced by encrypt()."""
        if self.keys.private_key is None:
            raise DecryptionError("A private key is required to decrypt values")

        try:
            envelope = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError) as error:
            raise DecryptionError(f"Ciphertext is not valid base64: {error}")

        try:
            return pkcs7.pkcs7_decrypt_der(
                envelope,
                self.keys.certificate,
                self.keys.private_key,
                [])
        except (ValueError, UnsupportedAlgorithm) as error:
            raise DecryptionError(f"Could not decrypt value: {error}")
