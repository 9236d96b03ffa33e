import datetime
import logging
import os
import pathlib
import typing

import attr
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from .utils import KeyLoadError

log = logging.getLogger(__name__)

PUBLIC_KEY_NAME = 'public_key.pkcs7.pem'
PRIVATE_KEY_NAME = 'private_key.pkcs7.pem'

VALIDITY = datetime.timedelta(days=365 * 50)


@attr.s(frozen=True, kw_only=True)
class KeyPair:
    """
    A recipient certificate and, when decrypting, its private key.

    The certificate carries the public key values are encrypted to. The
    private key is optional so that anyone holding only the certificate can
    still encrypt new values.
    """

    certificate: x509.Certificate = attr.ib()
    private_key: typing.Optional[rsa.RSAPrivateKey] = attr.ib(default=None)

    @classmethod
    def load(
            cls,
            public_key: pathlib.Path,
            private_key: typing.Optional[pathlib.Path] = None) -> 'KeyPair':
        return cls(
            certificate=load_certificate(public_key),
            private_key=load_private_key(private_key) if private_key else None)

    @classmethod
    def generate(cls, subject: str = 'obscuro', bits: int = 2048) -> 'KeyPair':
        """Create a new RSA key with a self-signed certificate for it."""
        log.info(f"Generating a {bits} bit RSA key for {subject!r}")
        key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject)])
        now = datetime.datetime.now(datetime.timezone.utc)
        certificate = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + VALIDITY)
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .sign(key, hashes.SHA256()))
        return cls(certificate=certificate, private_key=key)

    def save(
            self,
            public_key: pathlib.Path,
            private_key: pathlib.Path) -> None:
        """Write the certificate and private key as PEM files."""
        if self.private_key is None:
            raise KeyLoadError("Can't save a key pair without a private key")

        public_key.parent.mkdir(parents=True, exist_ok=True)
        private_key.parent.mkdir(parents=True, exist_ok=True)

        public_key.write_bytes(self.certificate.public_bytes(serialization.Encoding.PEM))
        log.debug(f"Wrote certificate to {public_key}")

        pem = self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption())
        fd = os.open(private_key, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'wb') as handle:
            handle.write(pem)
        os.chmod(private_key, 0o600)
        log.debug(f"Wrote private key to {private_key}")


def read_key_file(path: pathlib.Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as error:
        raise KeyLoadError(f"Could not read {path}: {error.strerror}")


def load_certificate(path: pathlib.Path) -> x509.Certificate:
    log.debug(f"Loading certificate from {path}")
    try:
        certificate = x509.load_pem_x509_certificate(read_key_file(path))
    except ValueError as error:
        raise KeyLoadError(f"Could not load a certificate from {path}: {error}")

    if not isinstance(certificate.public_key(), rsa.RSAPublicKey):
        raise KeyLoadError(f"The certificate in {path} does not contain an RSA key")
    return certificate


def load_private_key(path: pathlib.Path) -> rsa.RSAPrivateKey:
    log.debug(f"Loading private key from {path}")
    try:
        key = serialization.load_pem_private_key(read_key_file(path), password=None)
    except (TypeError, ValueError) as error:
        raise KeyLoadError(f"Could not load a private key from {path}: {error}")

    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyLoadError(f"The private key in {path} is not an RSA key")
    return key
