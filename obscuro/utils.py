import logging
import os
import pathlib
import subprocess
import tempfile
import typing

import click
import git

log = logging.getLogger(__name__)


def find_git_directory() -> typing.Optional[pathlib.Path]:
    try:
        repo = git.Repo(search_parent_directories=True)
    except git.exc.InvalidGitRepositoryError:
        return None
    return pathlib.Path(repo.working_dir)


def default_keys_directory() -> pathlib.Path:
    """Use 'keys/' in the current git work tree, or in the current directory."""
    return (find_git_directory() or pathlib.Path.cwd()) / 'keys'


def is_ignored_by_git(path: pathlib.Path) -> bool:
    """Check git would not track a path (paths outside a work tree count as ignored)."""
    directory = find_git_directory()
    if directory is None:
        return True

    result = subprocess.run(
        ('git', 'check-ignore', '--quiet', str(path)),
        cwd=directory,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE)
    return result.returncode == 0


def read_document(path: pathlib.Path) -> str:
    """Read a whole document as UTF-8 text, keeping its line endings."""
    try:
        return path.read_bytes().decode('utf-8')
    except UnicodeDecodeError as error:
        raise ObscuroException(f"{path} is not UTF-8 text: {error}")


def atomic_write(path: pathlib.Path, data: bytes) -> None:
    """
    Replace the contents of a file without leaving it half written.

    The new contents go to a temporary file in the same directory which is
    then renamed over the original, keeping the original's permissions.
    """
    fd, name = tempfile.mkstemp(prefix=f'.{path.name}.', dir=path.parent)
    try:
        with os.fdopen(fd, 'wb') as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if path.exists():
            os.chmod(name, path.stat().st_mode & 0o7777)
        os.replace(name, path)
    except BaseException:
        if os.path.exists(name):
            os.unlink(name)
        raise
    log.debug(f"Wrote {len(data)} bytes to {path}")


class ObscuroException(click.ClickException):
    pass


class KeyLoadError(ObscuroException):
    """Key material is missing or can't be parsed."""


class MarkerFormatError(ObscuroException):
    """A value that should be an encrypted marker isn't one."""


class DecryptionError(ObscuroException):
    pass


class EditorLaunchError(ObscuroException):
    """No editor could be found, or the editor failed."""


class NoChangeError(ObscuroException):
    pass


class EmptyContentError(ObscuroException):
    pass
