from .filesystem import DiskFS, new
from .file import DirBatch, DiskFile
from .info import FileInfo
from .scope import Scope
