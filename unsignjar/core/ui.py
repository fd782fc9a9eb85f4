from __future__ import annotations
from typing import TYPE_CHECKING

import sys
from contextlib import contextmanager
from functools import cache
from pubsub import pub
from unsignjar.core.exc import FatalError

if TYPE_CHECKING:
  from typing import NoReturn, Optional, TextIO, Iterator
  from typing_extensions import Final
  from progressbar import ProgressBar
  from unsignjar.core.jar.classify import Disposition

class UI:
  DEBUG: Final = 0
  INFO: Final = 1
  WARN: Final = 2
  ERROR: Final = 3

  level = INFO
  is_debugging = False

  _bullets: Final = dict(
    error=('[-] ', 'red'),
    info=('[*] ', 'blue'),
    debug=('[.] ', 'grey'),
    success=('[+] ', 'green'),
    failure=('[-] ', 'red'),
  )

  def is_tty(self) -> bool:
    from os import isatty
    try:
      return isatty(sys.stderr.fileno())
    except (AttributeError, ValueError, OSError):
      return False

  def set_level(self, level: int) -> None:
    self.level = level
    self.is_debugging = (self.level == self.DEBUG)

  def bullet(self, what: str) -> str:
    if not self._can_do_colour_stderr():
      return ''
    from termcolor import colored
    mark, color = self._bullets[what]
    return colored(mark, color=color, attrs=('bold',), force_color=True)

  def fatal(self, msg: str) -> NoReturn:
    self.failure(f'fatal: {msg}')
    raise FatalError()

  def error(self, msg: str, exc: Optional[BaseException] = None) -> None:
    if self.level <= self.ERROR:
      self.stderr(self.bullet('error') + msg, exc=exc)

  def info(self, msg: str) -> None:
    if self.level <= self.INFO:
      self.stderr(self.bullet('info') + msg)

  def debug(self, msg: str) -> None:
    if self.level <= self.DEBUG:
      self.stderr(self.bullet('debug') + msg)

  def success(self, msg: str) -> None:
    self.stderr(self.bullet('success') + msg)

  def failure(self, msg: str) -> None:
    self.stderr(self.bullet('failure') + msg)

  def stdout(self, msg: str) -> None:
    self._write(sys.stdout, msg)

  def stderr(self, msg: str, exc: Optional[BaseException] = None) -> None:
    self._write(sys.stderr, msg, exc=exc)

  def _write(self, f: TextIO, msg: str, exc: Optional[BaseException] = None) -> None:
    f.write(msg + '\n')
    if exc is not None:
      from traceback import format_exception
      f.write(''.join(format_exception(type(exc), exc, exc.__traceback__)))
    f.flush()

  # XXX: check color capability on our own because we are coloring stderr -- termcolor cares stdout only.
  @cache
  def _can_do_colour_stderr(self) -> bool:
    from io import UnsupportedOperation
    from os import environ, isatty

    if "ANSI_COLORS_DISABLED" in environ:
      return False
    if "NO_COLOR" in environ:
      return False
    if "FORCE_COLOR" in environ:
      return True

    if environ.get("TERM") == "dumb":
      return False
    if not hasattr(sys.stderr, "fileno"):
      return False

    try:
      return isatty(sys.stderr.fileno())
    except UnsupportedOperation:
      return sys.stderr.isatty()

class UnsignProgressReporter:
  _bar: Optional[ProgressBar] = None

  @contextmanager
  def scoped(self) -> Iterator[None]:
    submap = {
      'progress.core.unsign.begin':self._core_unsign_begin,
      'progress.core.unsign.entry':self._core_unsign_entry,
      'progress.core.unsign.done':self._core_unsign_done,
    }
    try:
      for k, v in submap.items():
        pub.subscribe(v, k)
      yield None
    finally:
      for k, v in submap.items():
        pub.unsubscribe(v, k)
      if self._bar is not None:
        self._bar.finish(end='\r')   # type:ignore[no-untyped-call]
        self._bar = None

  def _core_unsign_begin(self, total: int) -> None:
    # debug lines would tear the bar apart
    if ui.is_tty() and not ui.is_debugging and total > 0 and ui.level <= ui.INFO:
      from progressbar import ProgressBar, Percentage, GranularBar, SimpleProgress
      self._bar = ProgressBar(
        max_value=total,
        widgets=[
          ui.bullet('info'),
          'unsign: copying... ',
          Percentage(), ' ',  # type:ignore[no-untyped-call]
          GranularBar(), ' ',  # type:ignore[no-untyped-call]
          SimpleProgress(format='%(value_s)s/%(max_value_s)s'),   # type:ignore[no-untyped-call]
        ]
      )
    else:
      self._bar = None
      ui.info(f'unsign: {total} entries')

  def _core_unsign_entry(self, nr: int, name: str, disposition: Disposition) -> None:
    if disposition == 'drop':
      ui.debug(f'unsign: skipping signature entry: {name}')
    elif disposition == 'rewrite':
      ui.debug(f'unsign: truncating manifest: {name}')
    if self._bar is not None:
      self._bar.update(nr + 1)   # type:ignore[no-untyped-call]
    else:
      if nr and (nr % 1024) == 0:
        ui.info(f'unsign: copying ... {nr} entries')

  def _core_unsign_done(self, t: float) -> None:
    if self._bar is not None:
      self._bar.finish()   # type:ignore[no-untyped-call]
      self._bar = None
    ui.info(f'unsign: done ({t:.02f} sec)')


ui = UI()
