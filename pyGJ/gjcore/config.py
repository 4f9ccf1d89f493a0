from dataclasses import dataclass
from typing import Optional

from .utilities import get_log_level_from_env, parse_level


@dataclass
class GJConfig:
    """Run parameters of the solver, identical on every worker."""

    n: int
    seed: Optional[int] = None
    max_number: int = 1000
    degenerate: bool = False
    root: int = 0
    print_limit: int = 8   # systems smaller than this are printed
    log_level: int = 20

    def validate(self):
        if self.n < 1:
            raise ValueError("n must be positive, got %d" % self.n)
        if self.max_number < 1:
            raise ValueError("max_number must be positive, got %d" % self.max_number)
        if self.root < 0:
            raise ValueError("root must be a rank, got %d" % self.root)
        return self

    @classmethod
    def from_args(cls, args):
        level = args.log_level if args.log_level is not None else get_log_level_from_env()
        return cls(
            n=args.n,
            seed=args.seed,
            max_number=args.max_number,
            degenerate=args.degenerate,
            root=args.root,
            print_limit=args.print_limit,
            log_level=parse_level(level),
        ).validate()
