import logging
import os
import pathlib
import typing

import attr
import click

from .utils import EditorLaunchError

log = logging.getLogger(__name__)

ENVIRONMENT_VARIABLES = ('OBSCURO_EDITOR', 'VISUAL', 'EDITOR')

CANDIDATES = (
    '/usr/bin/sensible-editor',
    '/usr/bin/editor',
    '/usr/bin/vim',
    '/usr/bin/vi',
    '/usr/bin/nano',
    '/bin/vi',
    '/bin/nano',
)


def find_editor(
        environ: typing.Mapping[str, str],
        candidates: typing.Sequence[str] = CANDIDATES) -> str:
    """
    Pick the editor command to run.

    An editor named in the environment always wins, otherwise the first
    executable from a list of well known paths is used.
    """
    for name in ENVIRONMENT_VARIABLES:
        if environ.get(name, '').strip():
            log.debug(f"Using editor from ${name}")
            return environ[name]

    for candidate in candidates:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            log.debug(f"Using editor {candidate}")
            return candidate

    raise EditorLaunchError(
        f"No editor found, set one of {', '.join('$' + n for n in ENVIRONMENT_VARIABLES)}")


@attr.s(frozen=True)
class Editor:
    command: str = attr.ib()

    def edit(self, path: pathlib.Path) -> None:
        """Run the editor on a file and wait for it to exit successfully."""
        log.debug(f"Running editor {self.command!r}")
        try:
            click.edit(filename=str(path), editor=self.command)
        except click.ClickException as error:
            raise EditorLaunchError(f"{error.message}, no changes were saved")
