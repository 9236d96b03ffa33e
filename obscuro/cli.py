import logging
import os
import pathlib
import typing

import attr
import click

from . import __doc__, __version__
from . import markers
from .cipher import Cipher
from .editor import Editor, find_editor
from .keys import PRIVATE_KEY_NAME, PUBLIC_KEY_NAME, KeyPair
from .session import EditSession
from .transcoder import Transcoder
from .utils import (
    ObscuroException,
    atomic_write,
    default_keys_directory,
    is_ignored_by_git,
    read_document,
)

log = logging.getLogger(__name__)


class PathType(click.Path):
    def convert(self, value, param, ctx):
        return pathlib.Path(super().convert(value, param, ctx))


@attr.s(frozen=True, kw_only=True)
class Config:
    """Key locations shared by every command; keys are only loaded when a command needs them."""

    keys_dir: pathlib.Path = attr.ib()
    public_key: pathlib.Path = attr.ib()
    private_key: pathlib.Path = attr.ib()

    @classmethod
    def create(
            cls,
            keys_dir: pathlib.Path,
            public_key: typing.Optional[pathlib.Path] = None,
            private_key: typing.Optional[pathlib.Path] = None) -> 'Config':
        return cls(
            keys_dir=keys_dir,
            public_key=public_key or keys_dir / PUBLIC_KEY_NAME,
            private_key=private_key or keys_dir / PRIVATE_KEY_NAME)

    def transcoder(self, decrypt: bool = True) -> Transcoder:
        keys = KeyPair.load(self.public_key, self.private_key if decrypt else None)
        return Transcoder(Cipher(keys))


document_argument = click.argument(
    'document',
    type=PathType(exists=True, dir_okay=False),
    required=False)


def read_value(string: typing.Optional[str], stdin: bool) -> str:
    if string is not None and stdin:
        raise click.UsageError("Use only one of --string and --stdin")
    if stdin:
        with click.open_file('-') as stream:
            return stream.read()
    return typing.cast(str, string)


@click.group(help=__doc__)
@click.option(
    '-k', '--keys-dir',
    type=PathType(file_okay=False),
    default=default_keys_directory,
    help="Defaults to 'keys/' in the current git repository.")
@click.option(
    '--public-key',
    type=PathType(dir_okay=False),
    envvar='OBSCURO_PUBLIC_KEY',
    default=None,
    help=f"Certificate to encrypt to. Defaults to {PUBLIC_KEY_NAME} in the keys directory.")
@click.option(
    '--private-key',
    type=PathType(dir_okay=False),
    envvar='OBSCURO_PRIVATE_KEY',
    default=None,
    help=f"Key to decrypt with. Defaults to {PRIVATE_KEY_NAME} in the keys directory.")
@click.option(
    '-d', '--debug', 'debug',
    default=False,
    is_flag=True,
    help="Enable debug logging.")
@click.pass_context
def main(
        ctx,
        keys_dir: pathlib.Path,
        public_key: typing.Optional[pathlib.Path],
        private_key: typing.Optional[pathlib.Path],
        debug: bool):
    logging.basicConfig(level=(logging.DEBUG if debug else logging.WARNING))
    ctx.obj = Config.create(keys_dir, public_key, private_key)


@main.command()
def version():
    """Show the application version."""
    click.echo(f"obscuro {__version__}")


@main.command()
@click.option(
    '--force/--no-force',
    default=False,
    help="Overwrite existing keys.")
@click.option(
    '--subject',
    default='obscuro',
    show_default=True,
    help="Common name of the self-signed certificate.")
@click.option(
    '--bits',
    type=click.IntRange(min=2048),
    default=2048,
    show_default=True,
    help="Size of the RSA key.")
@click.pass_obj
def createkeys(config: Config, force: bool, subject: str, bits: int):
    """Create a new private key and self-signed certificate."""
    for path in (config.public_key, config.private_key):
        if path.exists() and not force:
            raise ObscuroException(f"{path} already exists, use --force to replace it")

    KeyPair.generate(subject=subject, bits=bits).save(config.public_key, config.private_key)
    click.echo(f"Created certificate {config.public_key}")
    click.echo(f"Created private key {config.private_key}")

    if not is_ignored_by_git(config.private_key):
        click.secho(
            f"Private key {config.private_key} is not ignored by git - "
            f"add it to .gitignore before committing",
            fg='yellow')


@main.command()
@click.option(
    '-s', '--string', 'string',
    metavar='VALUE',
    help="Encrypt a single value.")
@click.option(
    '--stdin', 'stdin',
    is_flag=True,
    default=False,
    help="Encrypt a single value read from standard input.")
@click.option(
    '--block', 'block',
    is_flag=True,
    default=False,
    help="Print a single value as an indented block.")
@click.option(
    '--indent',
    type=click.IntRange(min=0),
    default=4,
    show_default=True,
    help="Indentation of a block value.")
@click.option(
    '-i', '--in-place', 'in_place',
    is_flag=True,
    default=False,
    help="Write an encrypted document back to its file.")
@document_argument
@click.pass_obj
def encrypt(
        config: Config,
        string: typing.Optional[str],
        stdin: bool,
        block: bool,
        indent: int,
        in_place: bool,
        document: typing.Optional[pathlib.Path]):
    """
    Encrypt a value, or every ENC![...]!ENC marker in a document.

    Only the certificate is needed to encrypt.
    """
    transcoder = config.transcoder(decrypt=False)

    if document is None:
        if string is None and not stdin:
            raise click.UsageError("Give a document, --string or --stdin")
        value = read_value(string, stdin)
        shape = markers.BLOCK if block else markers.STRING
        click.echo(transcoder.encrypt_value(value, shape=shape, indentation=' ' * indent))
        return

    if string is not None or stdin:
        raise click.UsageError("Give either a document or a single value, not both")

    ciphertext = transcoder.encrypt_document(read_document(document))
    if in_place:
        atomic_write(document, ciphertext.encode('utf-8'))
        click.echo(f"Encrypted {document}", err=True)
    else:
        click.echo(ciphertext, nl=False)


@main.command()
@click.option(
    '-s', '--string', 'string',
    metavar='VALUE',
    help="Decrypt a single ENC[...] value.")
@click.option(
    '--stdin', 'stdin',
    is_flag=True,
    default=False,
    help="Decrypt a single ENC[...] value read from standard input.")
@document_argument
@click.pass_obj
def decrypt(
        config: Config,
        string: typing.Optional[str],
        stdin: bool,
        document: typing.Optional[pathlib.Path]):
    """
    Decrypt a value, or every ENC[...] marker in a document.

    Decrypted documents are printed, never written to disk.
    """
    transcoder = config.transcoder()

    if document is None:
        if string is None and not stdin:
            raise click.UsageError("Give a document, --string or --stdin")
        click.echo(transcoder.decrypt_value(read_value(string, stdin)), nl=False)
        return

    if string is not None or stdin:
        raise click.UsageError("Give either a document or a single value, not both")

    click.echo(transcoder.decrypt_document(read_document(document)), nl=False)


@main.command()
@click.option(
    '--editor', 'editor',
    envvar='OBSCURO_EDITOR',
    default=None,
    help="Editor command, defaults to $VISUAL or $EDITOR.")
@click.argument(
    'document',
    type=PathType(exists=True, dir_okay=False),
    required=True)
@click.pass_obj
def edit(config: Config, editor: typing.Optional[str], document: pathlib.Path):
    """
    Edit an encrypted document without leaving decrypted plaintext on disk.

    Encrypted values are shown as ENC![...]!ENC markers. Change them or add new
    ones, and they will be encrypted when the editor exits.
    """
    session = EditSession(
        path=document,
        transcoder=config.transcoder(),
        editor=Editor(editor or find_editor(os.environ)))
    session.run()
    click.echo(f"Encrypted changes to {document}", err=True)

