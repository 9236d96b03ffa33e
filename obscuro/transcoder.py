import logging

import attr

from . import markers
from .cipher import Cipher
from .utils import DecryptionError, MarkerFormatError

log = logging.getLogger(__name__)


@attr.s(frozen=True)
class Transcoder:
    """Convert every marker in a document between its encrypted and decrypted forms."""

    cipher: Cipher = attr.ib()

    def decrypt_document(self, text: str) -> str:
        log.debug("Decrypting markers in document")
        output = []
        count = 0
        for segment in markers.parse(text, markers.ENCRYPTED):
            if isinstance(segment, str):
                output.append(segment)
                continue
            try:
                plaintext = self.cipher.decrypt(segment.value).decode('utf-8')
            except (DecryptionError, UnicodeDecodeError) as error:
                line, column = markers.location(text, segment.start)
                message = error.message if isinstance(error, DecryptionError) else str(error)
                raise DecryptionError(
                    f"Could not decrypt {segment.shape} marker at "
                    f"line {line}, column {column}: {message}")
            output.append(markers.render(segment, plaintext))
            count += 1
        log.info(f"Decrypted {count} markers")
        return ''.join(output)

    def encrypt_document(self, text: str) -> str:
        log.debug("Encrypting markers in document")
        output = []
        count = 0
        for segment in markers.parse(text, markers.DECRYPTED):
            if isinstance(segment, str):
                output.append(segment)
                continue
            ciphertext = self.cipher.encrypt(segment.value.encode('utf-8'))
            output.append(markers.render(segment, ciphertext))
            count += 1
        log.info(f"Encrypted {count} markers")
        return ''.join(output)

    def encrypt_value(
            self,
            plaintext: str,
            shape: str = markers.STRING,
            indentation: str = '') -> str:
        """Encrypt a single value and render it as an encrypted marker."""
        ciphertext = self.cipher.encrypt(plaintext.encode('utf-8'))
        return markers.render_encrypted(ciphertext, shape=shape, indentation=indentation)

    def decrypt_value(self, value: str) -> str:
        """Decrypt a single 'ENC[...]' value, which may be wrapped over several lines."""
        value = ''.join(value.split())
        if not value.startswith('ENC[') or not value.endswith(']'):
            raise MarkerFormatError("Encrypted values must be in the form 'ENC[...]'")
        plaintext = self.cipher.decrypt(value[len('ENC['):-1])
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError as error:
            raise DecryptionError(f"Decrypted value is not UTF-8 text: {error}")
