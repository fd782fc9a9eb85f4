from __future__ import annotations
from typing import TYPE_CHECKING

import io

if TYPE_CHECKING:
  from typing import BinaryIO, Iterable, Iterator
  from typing_extensions import Final

# control characters and space: what counts as blank in a manifest line
_BLANK: Final = ''.join(map(chr, range(0x21)))

def iter_lines(fp: BinaryIO) -> Iterator[str]:
  # universal newlines: \n, \r\n and \r all terminate a line
  f = io.TextIOWrapper(fp, encoding='UTF-8', newline=None)
  try:
    for l in f:
      yield l.rstrip('\n')
  finally:
    f.detach()

def main_attributes(lines: Iterable[str]) -> Iterator[str]:
  for l in lines:
    if not l.strip(_BLANK):
      return
    yield l

def truncated(fp: BinaryIO) -> Iterator[bytes]:
  """Yields the manifest reduced to its main section.

  Each line gets a LF terminator regardless of the original one; the section is closed with exactly one blank line.
  """
  for l in main_attributes(iter_lines(fp)):
    yield l.encode('UTF-8') + b'\n'
  yield b'\n'
