from __future__ import annotations
from typing import Optional


class ViewerError(Exception):
    pass


class MapFileError(ViewerError):
    """Файл карты не читается или в нём нет нужной секции/значения."""


class DecodeError(ViewerError):
    pass


class UnknownFormat(DecodeError):
    def __init__(self, ext: str):
        super().__init__(f"unknown image format: {ext!r}")
        self.ext = ext


class DecodeFailed(DecodeError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class StaleDecode(DecodeError):
    def __init__(self, generation: int, latest: int):
        super().__init__(f"decode #{generation} superseded by #{latest}")
        self.generation = generation
        self.latest = latest
