import pytest

from obscuro.keys import KeyPair
from obscuro.utils import KeyLoadError


def test_save_and_load(tmp_path, keys):
    public, private = tmp_path / 'public.pem', tmp_path / 'private.pem'
    keys.save(public, private)

    assert private.stat().st_mode & 0o777 == 0o600

    loaded = KeyPair.load(public, private)
    assert loaded.certificate == keys.certificate
    assert loaded.private_key.private_numbers() == keys.private_key.private_numbers()


def test_load_certificate_only(tmp_path, keys):
    public, private = tmp_path / 'public.pem', tmp_path / 'private.pem'
    keys.save(public, private)
    assert KeyPair.load(public).private_key is None


def test_missing_key(tmp_path):
    with pytest.raises(KeyLoadError):
        KeyPair.load(tmp_path / 'missing.pem')


def test_malformed_key(tmp_path, keys):
    public, private = tmp_path / 'public.pem', tmp_path / 'private.pem'
    keys.save(public, private)
    private.write_text('not a key')

    with pytest.raises(KeyLoadError):
        KeyPair.load(public, private)

    with pytest.raises(KeyLoadError):
        KeyPair.load(private)


def test_save_requires_private_key(tmp_path, keys):
    with pytest.raises(KeyLoadError):
        KeyPair(certificate=keys.certificate).save(tmp_path / 'a', tmp_path / 'b')
