from .GJ import (
    GJException,
    SingularColumnError,
    ArgumentMismatchError,
    AllocationFailureError,
    UNASSIGNED,
)
from .rowset import LocalRowSet
from .worker import WorkerContext
from .pivot import PivotChoice
from .config import GJConfig

__version__ = "0.1.0"
