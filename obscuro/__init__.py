"""
Obscuro keeps encrypted secrets inline in configuration files.

Secret values are replaced by markers holding PKCS#7 encrypted ciphertext,
so a file can be committed with everything else readable and only the
secrets hidden. Values are encrypted to the certificate in
keys/public_key.pkcs7.pem and decrypted with keys/private_key.pkcs7.pem.

Markers can be inline or a block following a line ending in '>':

\b
    password: ENC[MIIBeQYJKoZIhvcNAQcDoIIBajCCAWYCAQAx...]
    certificate: >
        ENC[MIIBeQYJKoZIhvcNAQcDoIIBajCCAWYCAQAxggEhMIIBHQIBADAF
        MAACAQEwDQYJKoZIhvcNAQEBBQAEggEAc3ZXHlMdGgU5vbwAMm3jS4V]

Create a key pair (keep the private key out of git):

\b
    $ obscuro createkeys

Encrypt a single value:

\b
    $ obscuro encrypt -s "hunter2"

Mark values to encrypt with ENC![...]!ENC and encrypt them in place:

\b
    $ echo 'password: ENC![hunter2]!ENC' > config.yaml
    $ obscuro encrypt --in-place config.yaml

Edit a file in your $EDITOR without leaving plaintext on disk:

\b
    $ obscuro edit config.yaml
"""

__version__ = '1.0.0'
