import os
import pathlib
import typing

import attr
import click.testing
import pytest

import obscuro.cli
from obscuro.cipher import Cipher
from obscuro.keys import PRIVATE_KEY_NAME, PUBLIC_KEY_NAME, KeyPair
from obscuro.transcoder import Transcoder
from obscuro.utils import EditorLaunchError


@pytest.fixture(scope='session')
def keys() -> KeyPair:
    return KeyPair.generate(subject='obscuro-tests')


@pytest.fixture(scope='session')
def other_keys() -> KeyPair:
    return KeyPair.generate(subject='obscuro-tests-other')


@pytest.fixture()
def cipher(keys) -> Cipher:
    return Cipher(keys)


@pytest.fixture()
def transcoder(cipher) -> Transcoder:
    return Transcoder(cipher)


@pytest.fixture()
def keys_dir(tmp_path, keys) -> pathlib.Path:
    directory = tmp_path / 'keys'
    keys.save(directory / PUBLIC_KEY_NAME, directory / PRIVATE_KEY_NAME)
    return directory


@pytest.fixture()
def invoke(keys_dir):
    def invoke_func(
            arguments: typing.Sequence[str],
            input: typing.Optional[str] = None,
            check: bool = True) -> click.testing.Result:
        assert all(isinstance(arg, str) for arg in arguments)
        runner = click.testing.CliRunner()
        result = runner.invoke(
            obscuro.cli.main,
            ['-k', str(keys_dir), *arguments],
            input=input)
        if check and result.exit_code != 0:
            message = f"Command obscuro {' '.join(arguments)} failed: {result.output}"
            raise Exception(message) from result.exception
        return result

    return invoke_func


@attr.s(frozen=True)
class FakeEditor:
    """
    Edits files in-process instead of running an editor.

    Keeps a handle open on every file it touches so tests can read what was
    left in them after the temporary file has been removed.
    """

    change: typing.Callable[[str], str] = attr.ib()
    fail: bool = attr.ib(default=False)
    replace: bool = attr.ib(default=False)

    paths: typing.List[pathlib.Path] = attr.ib(factory=list)
    handles: typing.List[typing.BinaryIO] = attr.ib(factory=list)
    seen: typing.List[str] = attr.ib(factory=list)

    def edit(self, path: pathlib.Path) -> None:
        self.paths.append(path)
        self.handles.append(path.open('rb'))

        text = path.read_text()
        self.seen.append(text)

        if self.replace:
            replacement = path.with_name(path.name + '.new')
            replacement.write_text(self.change(text))
            os.replace(replacement, path)
            self.handles.append(path.open('rb'))
        else:
            path.write_text(self.change(text))

        if self.fail:
            raise EditorLaunchError(f"{path}: Editing failed")

    def leftovers(self) -> typing.List[bytes]:
        contents = []
        for handle in self.handles:
            handle.seek(0)
            contents.append(handle.read())
        return contents

    def close(self):
        for handle in self.handles:
            handle.close()


@pytest.fixture()
def fake_editor():
    editors: typing.List[FakeEditor] = []

    def fake_editor_func(*args, **kwargs) -> FakeEditor:
        editor = FakeEditor(*args, **kwargs)
        editors.append(editor)
        return editor

    yield fake_editor_func

    for editor in editors:
        editor.close()
