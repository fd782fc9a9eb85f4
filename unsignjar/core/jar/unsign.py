from __future__ import annotations
from typing import TYPE_CHECKING, NamedTuple

import os
import shutil
import struct
import time
import zlib
from zipfile import ZipFile, ZipInfo, BadZipFile, ZIP_STORED

from pubsub import pub

from unsignjar.core.exc import OutputExistsError, ArchiveIOError
from unsignjar.core.jar.classify import classify
from unsignjar.core.jar.manifest import truncated

if TYPE_CHECKING:
  from typing import BinaryIO, IO, Iterator, List, Optional, Tuple
  from typing_extensions import Final
  from unsignjar.core.exc import UnsignError

DEFAULT_BUFSIZE: Final = 1 << 14

_ZIP64_EXTRA_ID: Final = 0x0001
_UTF8_NAME_FLAG: Final = 0x0800

# Failures the pipeline reports as I/O errors; anything else is a bug.
_IO_ERRORS: Final = (OSError, EOFError, BadZipFile, UnicodeDecodeError, NotImplementedError, zlib.error)

class UnsignOptions(NamedTuple):
  compression: Optional[int] = None
  timestamp: Optional[Tuple[int, int, int, int, int, int]] = None
  atomic: bool = False
  bufsize: int = DEFAULT_BUFSIZE

class UnsignStats:
  copied: int
  rewritten: int
  dropped: List[str]

  def __init__(self) -> None:
    self.copied = 0
    self.rewritten = 0
    self.dropped = []

class UnsignResult(NamedTuple):
  path: str
  outpath: str
  stats: Optional[UnsignStats] = None
  error: Optional[UnsignError] = None

  @property
  def ok(self) -> bool:
    return self.error is None

class JarEntry(NamedTuple):
  info: ZipInfo
  zf: ZipFile

  @property
  def name(self) -> str:
    return _decoded_name(self.info)

  def open(self) -> IO[bytes]:
    return self.zf.open(self.info, 'r')

def _decoded_name(info: ZipInfo) -> str:
  # zipfile reads unflagged names as cp437; jar tools write them as UTF-8 all the same
  if info.flag_bits & _UTF8_NAME_FLAG:
    return info.filename
  try:
    return info.filename.encode('cp437').decode('UTF-8')
  except UnicodeError:
    return info.filename

def iter_entries(zf: ZipFile) -> Iterator[JarEntry]:
  for info in zf.infolist():
    yield JarEntry(info, zf)

def unsign_stream(src: BinaryIO, dst: BinaryIO, options: Optional[UnsignOptions] = None) -> UnsignStats:
  """Writes an unsigned copy of the archive read from src into dst.

  src must be seekable.  Entries keep their stored order; the manifest is truncated in place and signature files are left out.
  """
  with ZipFile(src, 'r') as zin:
    return _rewrite(zin, dst, options if options is not None else UnsignOptions())

def _rewrite(zin: ZipFile, dst: BinaryIO, options: UnsignOptions) -> UnsignStats:
  stats = UnsignStats()
  at = time.time()
  with ZipFile(dst, 'w') as zout:
    zout.comment = zin.comment
    pub.sendMessage('progress.core.unsign.begin', total=len(zin.infolist()))
    for nr, entry in enumerate(iter_entries(zin)):
      disposition = classify(entry.name)
      pub.sendMessage('progress.core.unsign.entry', nr=nr, name=entry.name, disposition=disposition)
      if disposition == 'copy':
        with entry.open() as f, zout.open(_derived_info(entry.name, entry.info, options), 'w') as g:
          shutil.copyfileobj(f, g, options.bufsize)
        stats.copied += 1
      elif disposition == 'rewrite':
        with entry.open() as f, zout.open(_derived_info(entry.name, entry.info, options), 'w') as g:
          for chunk in truncated(f):
            g.write(chunk)
        stats.rewritten += 1
      else:
        stats.dropped.append(entry.name)
  pub.sendMessage('progress.core.unsign.done', t=time.time() - at)
  return stats

def _derived_info(name: str, src: ZipInfo, options: UnsignOptions) -> ZipInfo:
  info = ZipInfo(name, date_time=options.timestamp if options.timestamp is not None else src.date_time)
  if src.is_dir():
    info.compress_type = ZIP_STORED
  elif options.compression is not None:
    info.compress_type = options.compression
  else:
    info.compress_type = src.compress_type
  info.comment = src.comment
  info.extra = _without_zip64_extra(src.extra)
  info.create_system = src.create_system
  info.internal_attr = src.internal_attr
  info.external_attr = src.external_attr
  # only a size hint: lets zipfile decide on ZIP64 headers up front
  info.file_size = src.file_size
  return info

def _without_zip64_extra(extra: bytes) -> bytes:
  # zipfile emits its own ZIP64 field as needed
  o = b''
  i = 0
  while i + 4 <= len(extra):
    tag, size = struct.unpack('<HH', extra[i:i+4])
    j = i + 4 + size
    if tag != _ZIP64_EXTRA_ID:
      o += extra[i:j]
    i = j
  return o + extra[i:]

class Unsigner:
  _path: str
  _outpath: str
  _options: UnsignOptions

  def __init__(self, path: str, outpath: str, options: Optional[UnsignOptions] = None) -> None:
    self._path = os.path.realpath(path)
    self._outpath = os.path.realpath(outpath)
    self._options = options if options is not None else UnsignOptions()

  def unsign(self) -> UnsignResult:
    if os.path.lexists(self._outpath):
      return UnsignResult(self._path, self._outpath, error=OutputExistsError(self._outpath))
    try:
      with ZipFile(self._path, 'r') as zin:
        if self._options.atomic:
          stats = self._unsign_atomic(zin)
        else:
          stats = self._unsign_in_place(zin)
    except FileExistsError:
      return UnsignResult(self._path, self._outpath, error=OutputExistsError(self._outpath))
    except _IO_ERRORS as e:
      return UnsignResult(self._path, self._outpath, error=ArchiveIOError(self._path, e))
    return UnsignResult(self._path, self._outpath, stats=stats)

  def _unsign_in_place(self, zin: ZipFile) -> UnsignStats:
    # a failure midway leaves the partial output behind
    with open(self._outpath, 'xb') as f:
      return _rewrite(zin, f, self._options)

  def _unsign_atomic(self, zin: ZipFile) -> UnsignStats:
    from tempfile import NamedTemporaryFile
    f = NamedTemporaryFile(dir=os.path.dirname(self._outpath), prefix='.unsignjar-', suffix='.tmp', delete=False)
    try:
      with f:
        stats = _rewrite(zin, f, self._options)
      os.chmod(f.name, _default_file_mode())
      # link(2) refuses to replace an existing file, unlike rename(2)
      os.link(f.name, self._outpath)
    finally:
      os.unlink(f.name)
    return stats

def _default_file_mode() -> int:
  mask = os.umask(0)
  os.umask(mask)
  return 0o666 & ~mask
