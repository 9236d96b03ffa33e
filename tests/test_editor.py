import shutil

import pytest

from obscuro.editor import Editor, find_editor
from obscuro.utils import EditorLaunchError


@pytest.fixture()
def executable(tmp_path):
    path = tmp_path / 'my-editor'
    path.write_text('#!/bin/sh\nexit 0\n')
    path.chmod(0o755)
    return path


def test_environment_override(executable):
    environ = {'EDITOR': 'nano', 'VISUAL': 'code --wait'}
    assert find_editor(environ, candidates=[str(executable)]) == 'code --wait'


def test_obscuro_editor_wins():
    environ = {'EDITOR': 'nano', 'VISUAL': 'vim', 'OBSCURO_EDITOR': 'emacs -nw'}
    assert find_editor(environ) == 'emacs -nw'


def test_blank_environment_is_ignored(executable):
    assert find_editor({'EDITOR': '  '}, candidates=[str(executable)]) == str(executable)


def test_first_executable_candidate(tmp_path, executable):
    not_executable = tmp_path / 'not-executable'
    not_executable.write_text('')
    candidates = [str(tmp_path / 'missing'), str(not_executable), str(executable)]
    assert find_editor({}, candidates=candidates) == str(executable)


def test_no_editor(tmp_path):
    with pytest.raises(EditorLaunchError):
        find_editor({}, candidates=[str(tmp_path / 'missing')])


@pytest.mark.skipif(shutil.which('true') is None, reason="requires true(1)")
def test_exit_status(tmp_path):
    Editor('true').edit(tmp_path / 'file')
    with pytest.raises(EditorLaunchError, match='Editing failed'):
        Editor('false').edit(tmp_path / 'file')


def test_missing_editor(tmp_path):
    with pytest.raises(EditorLaunchError):
        Editor(str(tmp_path / 'missing')).edit(tmp_path / 'file')


@pytest.mark.skipif(shutil.which('sh') is None, reason="requires sh(1)")
def test_command_with_arguments(tmp_path):
    path = tmp_path / 'file name.yaml'
    path.write_text('before\n')
    Editor("sh -c 'echo after > \"$0\"'").edit(path)
    assert path.read_text() == 'after\n'
