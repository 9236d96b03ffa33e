"""
Editing encrypted documents.

The decrypted document only ever exists in a private temporary file while the
editor is running. That file is overwritten several times and removed before
the session ends, whether or not the edit succeeded.
"""

import enum
import logging
import os
import pathlib
import tempfile
import typing

import attr

from .editor import Editor
from .transcoder import Transcoder
from .utils import (
    EmptyContentError,
    NoChangeError,
    ObscuroException,
    atomic_write,
    read_document,
)

log = logging.getLogger(__name__)

SCRUB_PATTERNS = (0xFF, 0x55, 0xAA, 0x00)


class State(enum.Enum):
    START = 'start'
    DECRYPTED = 'decrypted'
    EDITING = 'editing'
    RELOADED = 'reloaded'
    UNCHANGED = 'unchanged'
    CHANGED = 'changed'
    SCRUBBED = 'scrubbed'
    WRITTEN = 'written'
    ABORTED = 'aborted'


def overwrite(handle: typing.BinaryIO, length: int) -> None:
    """Fill the start of a file with each scrub pattern in turn."""
    for pattern in SCRUB_PATTERNS:
        handle.seek(0)
        handle.write(bytes((pattern,)) * length)
        handle.flush()
        os.fsync(handle.fileno())


@attr.s(kw_only=True)
class EditSession:
    path: pathlib.Path = attr.ib()
    transcoder: Transcoder = attr.ib()
    editor: Editor = attr.ib()

    states: typing.List[State] = attr.ib(factory=list, init=False)
    original_length: int = attr.ib(default=0, init=False)
    new_length: int = attr.ib(default=0, init=False)

    @property
    def state(self) -> typing.Optional[State]:
        return self.states[-1] if self.states else None

    def transition(self, state: State) -> None:
        log.debug(f"Edit session for {self.path} is now {state.value}")
        self.states.append(state)

    def run(self) -> None:
        """Decrypt, edit, and re-encrypt the document if it was changed."""
        self.transition(State.START)
        try:
            ciphertext = read_document(self.path)
            plaintext = self.transcoder.decrypt_document(ciphertext)
            self.transition(State.DECRYPTED)
            edited = self.edit(plaintext)
            self.write(edited)
        except BaseException:
            self.transition(State.ABORTED)
            raise

    def edit(self, plaintext: str) -> str:
        """Run the editor on a temporary copy of the plaintext and return the new text."""
        original = plaintext.encode('utf-8')
        self.original_length = len(original)

        fd, name = tempfile.mkstemp(prefix='obscuro-', suffix=self.path.suffix)
        temporary = pathlib.Path(name)
        log.debug(f"Created temporary file {temporary}")

        with os.fdopen(fd, 'w+b') as handle:
            try:
                handle.write(original)
                handle.flush()
                os.fsync(handle.fileno())

                self.transition(State.EDITING)
                try:
                    self.editor.edit(temporary)
                finally:
                    if temporary.exists():
                        self.new_length = temporary.stat().st_size

                # Editors may replace the file rather than writing to it.
                try:
                    edited = temporary.read_bytes()
                except FileNotFoundError:
                    edited = b''
                self.new_length = len(edited)
                self.transition(State.RELOADED)

                if not edited:
                    raise EmptyContentError("File is empty")

                if edited == original:
                    self.transition(State.UNCHANGED)
                    raise NoChangeError("No changes were made to the file")

                self.transition(State.CHANGED)
                try:
                    return edited.decode('utf-8')
                except UnicodeDecodeError as error:
                    raise ObscuroException(f"Edited file is not UTF-8 text: {error}")
            finally:
                self.scrub(handle, temporary)

    def scrub(self, handle: typing.BinaryIO, temporary: pathlib.Path) -> None:
        """Overwrite and remove the temporary file, including any replacement the editor made."""
        length = max(self.original_length, self.new_length)
        try:
            overwrite(handle, length)

            try:
                replaced = not os.path.samestat(os.fstat(handle.fileno()), temporary.stat())
            except FileNotFoundError:
                replaced = False

            if replaced:
                log.debug(f"Editor replaced {temporary}, scrubbing the replacement too")
                with temporary.open('r+b') as replacement:
                    overwrite(replacement, length)
        finally:
            if temporary.exists():
                temporary.unlink()
        log.debug(f"Scrubbed {length} bytes from {temporary}")
        self.transition(State.SCRUBBED)

    def write(self, plaintext: str) -> None:
        ciphertext = self.transcoder.encrypt_document(plaintext)
        atomic_write(self.path, ciphertext.encode('utf-8'))
        self.transition(State.WRITTEN)
