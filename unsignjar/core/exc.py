from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Optional

class FatalError(Exception):
    pass

class InvalidOptionError(Exception):
    pass

class UnsignError(Exception):
    pass

class OutputExistsError(UnsignError):
    def __init__(self, path: str) -> None:
        super().__init__(f'output file already exists: {path}')
        self.path = path

class ArchiveIOError(UnsignError):
    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f'error for file: {path}' + (f' ({cause})' if cause is not None else ''))
        self.path = path
        self.cause = cause
        self.__cause__ = cause

class UsageError(Exception):
    pass
