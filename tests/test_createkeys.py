from obscuro.keys import KeyPair


def test_createkeys(invoke, tmp_path):
    directory = tmp_path / 'new-keys'
    invoke(['-k', str(directory), 'createkeys', '--subject', 'example'])

    public = directory / 'public_key.pkcs7.pem'
    private = directory / 'private_key.pkcs7.pem'
    assert private.stat().st_mode & 0o777 == 0o600

    keys = KeyPair.load(public, private)
    assert 'CN=example' in keys.certificate.subject.rfc4514_string()


def test_createkeys_does_not_overwrite(invoke, keys_dir):
    before = (keys_dir / 'private_key.pkcs7.pem').read_bytes()
    result = invoke(['createkeys'], check=False)
    assert result.exit_code == 1
    assert 'already exists' in result.output
    assert (keys_dir / 'private_key.pkcs7.pem').read_bytes() == before


def test_createkeys_force(invoke, keys_dir):
    before = (keys_dir / 'private_key.pkcs7.pem').read_bytes()
    invoke(['createkeys', '--force'])
    assert (keys_dir / 'private_key.pkcs7.pem').read_bytes() != before
