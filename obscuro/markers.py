"""
The text markers that stand in for secret values.

Encrypted values look like ``ENC[<base64>]`` and decrypted values waiting to
be encrypted look like ``ENC![<text>]!ENC``. Either can be written inline (a
"string" marker) or as an indented block following a line ending in ``>``::

    password: ENC[MIIBeQYJKoZIhvcNAQcDoIIBajCCAWYCAQAxggEhMIIBHQIBADAF...]
    certificate: >
        ENC[MIIBeQYJKoZIhvcNAQcDoIIBajCCAWYCAQAxggEhMIIBHQIBADAFMAAC
        AQEwDQYJKoZIhvcNAQEBBQAEggEAc3ZXHlMdGgU5vbwAMm3jS4Vcq0fWdEk2]
"""

import re
import typing

import attr

ENCRYPTED = 'encrypted'
DECRYPTED = 'decrypted'

STRING = 'string'
BLOCK = 'block'

# Width of each continuation line of an encrypted block, excluding indentation.
BLOCK_WIDTH = 60

PATTERNS: typing.Dict[typing.Tuple[str, str], typing.Pattern] = {
    (ENCRYPTED, BLOCK): re.compile(
        r'>(?P<newline>\r?\n)(?P<indentation>[ \t]*)ENC\[(?P<payload>[A-Za-z0-9+/=\s]+)\]'),
    (ENCRYPTED, STRING): re.compile(
        r'ENC\[(?P<payload>[A-Za-z0-9+/=]+)\]'),
    (DECRYPTED, BLOCK): re.compile(
        r'>(?P<newline>\r?\n)(?P<indentation>[ \t]*)ENC!\[(?P<payload>.*?)\]!ENC', re.DOTALL),
    (DECRYPTED, STRING): re.compile(
        r'ENC!\[(?P<payload>.*?)\]!ENC', re.DOTALL),
}


@attr.s(frozen=True, kw_only=True)
class Marker:
    shape: str = attr.ib(validator=attr.validators.in_((STRING, BLOCK)))
    direction: str = attr.ib(validator=attr.validators.in_((ENCRYPTED, DECRYPTED)))
    payload: str = attr.ib()
    indentation: str = attr.ib(default='')
    newline: str = attr.ib(default='\n')
    start: int = attr.ib(default=0)
    end: int = attr.ib(default=0)

    @classmethod
    def from_match(cls, match: typing.Match, direction: str, shape: str) -> 'Marker':
        groups = match.groupdict()
        return cls(
            shape=shape,
            direction=direction,
            payload=groups['payload'],
            indentation=groups.get('indentation') or '',
            newline=groups.get('newline') or '\n',
            start=match.start(),
            end=match.end())

    @property
    def value(self) -> str:
        """
        The payload as the cipher sees it.

        Whitespace is removed from encrypted blocks, and the indentation
        following each newline is removed from decrypted blocks.
        """
        if self.shape == BLOCK and self.direction == ENCRYPTED:
            return re.sub(r'\s', '', self.payload)
        if self.shape == BLOCK and self.indentation:
            return self.payload.replace('\n' + self.indentation, '\n')
        return self.payload


Segment = typing.Union[str, Marker]


def parse(text: str, direction: str) -> typing.Iterator[Segment]:
    """
    Split a document into literal text and markers of one direction.

    Block markers are matched over the whole document first, and only the
    text between them is searched for string markers, so a block is never
    also read as a string. Joining the segments' source text gives back the
    original document.
    """
    position = 0
    for match in PATTERNS[direction, BLOCK].finditer(text):
        yield from _parse_strings(text, direction, position, match.start())
        yield Marker.from_match(match, direction=direction, shape=BLOCK)
        position = match.end()
    yield from _parse_strings(text, direction, position, len(text))


def _parse_strings(
        text: str,
        direction: str,
        start: int,
        end: int) -> typing.Iterator[Segment]:
    position = start
    for match in PATTERNS[direction, STRING].finditer(text, start, end):
        if match.start() > position:
            yield text[position:match.start()]
        yield Marker.from_match(match, direction=direction, shape=STRING)
        position = match.end()
    if end > position:
        yield text[position:end]


def render(marker: Marker, value: str) -> str:
    """Render a value as the opposite of a marker, keeping its shape and indentation."""
    if marker.direction == ENCRYPTED:
        return render_decrypted(
            value, shape=marker.shape, indentation=marker.indentation, newline=marker.newline)
    return render_encrypted(
        value, shape=marker.shape, indentation=marker.indentation, newline=marker.newline)


def render_encrypted(
        ciphertext: str,
        shape: str = STRING,
        indentation: str = '',
        newline: str = '\n') -> str:
    text = f'ENC[{ciphertext}]'
    if shape == STRING:
        return text
    lines = [text[i:i + BLOCK_WIDTH] for i in range(0, len(text), BLOCK_WIDTH)]
    return '>' + newline + newline.join(indentation + line for line in lines)


def render_decrypted(
        plaintext: str,
        shape: str = STRING,
        indentation: str = '',
        newline: str = '\n') -> str:
    if shape == STRING:
        return f'ENC![{plaintext}]!ENC'
    plaintext = plaintext.replace('\n', '\n' + indentation)
    return f'>{newline}{indentation}ENC![{plaintext}]!ENC'


def location(text: str, offset: int) -> typing.Tuple[int, int]:
    """Convert an offset into a 1-based line and column."""
    line = text.count('\n', 0, offset) + 1
    column = offset - (text.rfind('\n', 0, offset) + 1) + 1
    return line, column
