from __future__ import annotations
from typing import TYPE_CHECKING
import sys
from argparse import ArgumentParser

from unsignjar.core.exc import UsageError
from unsignjar.core.ui import ui

if TYPE_CHECKING:
  from typing import List, NoReturn, Optional, Tuple
  from unsignjar.core.jar.unsign import UnsignOptions

class _ArgumentParser(ArgumentParser):
  def error(self, message: str) -> NoReturn:
    self.print_usage(sys.stdout)
    ui.stdout(f'{self.prog}: error: {message}')
    raise UsageError(message)

class Shell:
  @classmethod
  def _version(cls) -> str:
    from unsignjar import __version__
    #   ..............................................................................80
    return (
      f'unsignjar {__version__}, strips code signatures off JAR archives\n'
       'All rights reserved.  Licensed under the terms of GNU General Public License Version 3 or later.\n' # noqa: E131
    )

  def invoke(self, argv: Optional[List[str]] = None) -> int:
    from unsignjar.core.exc import InvalidOptionError

    log_level = ui.INFO

    parser = _ArgumentParser(prog='unsignjar', description='Strip code signatures off JAR archives')
    args_mut0 = parser.add_mutually_exclusive_group()
    args_mut1 = parser.add_mutually_exclusive_group()
    parser.add_argument('fns', nargs='*', metavar='FILE', help='Source archive, then destination archive (must not exist)')
    parser.add_argument('--version', action='store_true', help='Version information')
    parser.add_argument('--atomic', action='store_true', help='Write to a temporary file and hard-link it in place when done (needs a filesystem with hard links)')
    parser.add_argument('--timestamp', metavar='ISO8601', help='Set modification time of every entry (e.g. 2018-10-31T13:27:28; offsets are converted to UTC)')
    parser.add_argument('--buffer-size', dest='bufsize', type=int, metavar='N', help='Copy buffer size in bytes')
    args_mut0.add_argument('-d', '--debug', action='store_true', help='Debug mode')
    args_mut0.add_argument('-q', '--quiet', action='store_true', help='Quiet mode')
    args_mut1.add_argument('--deflate', dest='compression', action='store_const', const='deflate', help='Compress every entry')
    args_mut1.add_argument('--store', dest='compression', action='store_const', const='store', help='Store every entry uncompressed')
    try:
      args = parser.parse_args(argv)
    except UsageError:
      return 2

    if args.debug:
      log_level = ui.DEBUG
    if args.quiet:
      log_level = ui.WARN

    if args.version:
      ui.stderr(self._version())
      return 0

    ui.set_level(log_level)

    if len(args.fns) != 2:
      parser.print_usage(sys.stdout)
      return 2

    try:
      options = self._options(args.compression, args.timestamp, args.atomic, args.bufsize)
    except InvalidOptionError as e:
      ui.fatal(str(e))

    return self._unsign(args.fns[0], args.fns[1], options)

  def _options(self, compression: Optional[str], timestamp: Optional[str], atomic: bool, bufsize: Optional[int]) -> UnsignOptions:
    from zipfile import ZIP_DEFLATED, ZIP_STORED
    from unsignjar.core.exc import InvalidOptionError
    from unsignjar.core.jar.unsign import UnsignOptions, DEFAULT_BUFSIZE

    method: Optional[int] = None
    if compression == 'deflate':
      method = ZIP_DEFLATED
    elif compression == 'store':
      method = ZIP_STORED

    if bufsize is None:
      bufsize = DEFAULT_BUFSIZE
    elif bufsize <= 0:
      raise InvalidOptionError(f'invalid buffer size: {bufsize}')

    return UnsignOptions(
      compression=method,
      timestamp=self._parsed_timestamp(timestamp) if timestamp is not None else None,
      atomic=atomic,
      bufsize=bufsize,
    )

  def _parsed_timestamp(self, value: str) -> Tuple[int, int, int, int, int, int]:
    from datetime import datetime, timezone
    from unsignjar.core.exc import InvalidOptionError
    try:
      t = datetime.fromisoformat(value)
    except ValueError:
      raise InvalidOptionError(f'invalid timestamp: {value}')
    # zip timestamps carry no zone
    if t.tzinfo is not None:
      t = t.astimezone(timezone.utc)
    # DOS date fields
    if not (1980 <= t.year <= 2107):
      raise InvalidOptionError(f'timestamp out of range (1980-2107): {value}')
    return (t.year, t.month, t.day, t.hour, t.minute, t.second)

  def _unsign(self, path: str, outpath: str, options: UnsignOptions) -> int:
    from unsignjar.core.exc import OutputExistsError
    from unsignjar.core.jar.unsign import Unsigner
    from unsignjar.core.ui import UnsignProgressReporter

    ui.info(f'unsigning {path} -> {outpath}')
    with UnsignProgressReporter().scoped():
      result = Unsigner(path, outpath, options).unsign()

    if result.ok:
      assert result.stats is not None
      ui.debug('unsign: {c} copied, {r} rewritten, {d} dropped'.format(c=result.stats.copied, r=result.stats.rewritten, d=len(result.stats.dropped)))
      ui.success(f'unsigned: {outpath}')
      return 0
    elif isinstance(result.error, OutputExistsError):
      ui.stdout(f'output file already exists: {outpath}')
      return 1
    else:
      assert result.error is not None
      ui.error(f'error for file: {path}', exc=result.error.__cause__ or result.error)
      return 1

def entry() -> None:
  from unsignjar.core.exc import FatalError
  try:
    sys.exit(Shell().invoke())
  except FatalError:
    sys.exit(2)
