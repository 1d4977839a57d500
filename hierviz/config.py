# File: config.py

import os
import sys
from dataclasses import dataclass

DEFAULT_RANK_DIR = "LR"
DEFAULT_DOT_TIMEOUT = 7
DEFAULT_RENDER_PROGRAM = "dot"


def default_open_program(platform: str = None) -> str:
    """Picks the program used to open svg files on this OS; '' when unknown."""
    platform = (platform or sys.platform).lower()
    if platform.startswith("darwin") or "mac" in platform:
        return "open"
    if platform.startswith("linux") or "nix" in platform or "nux" in platform:
        return "xdg-open"
    # no clear agreement on windows
    return ""


def resolve_target_dir(target_dir: str, source_file: str = "") -> str:
    """Uses the target dir, else the directory of the source file, else './'."""
    base = target_dir or os.path.dirname(source_file)
    if not base:
        return "./"
    return base if base.endswith("/") else base + "/"


@dataclass(frozen=True)
class DiagramConfig:
    """All options of one rendering run. Never changed after construction."""
    start_module: str = ""
    target_dir: str = "./"
    just_top_level: bool = False
    flatten: bool = False
    rank_dir: str = DEFAULT_RANK_DIR
    use_ranking: bool = False
    show_printfs: bool = False
    dot_timeout: float = DEFAULT_DOT_TIMEOUT
    render_program: str = DEFAULT_RENDER_PROGRAM
    open_program: str = ""
    jobs: int = 1
    plot_dependencies: bool = False

    def __post_init__(self):
        if self.dot_timeout < 0:
            raise ValueError(f"dot timeout must not be negative, got {self.dot_timeout}")
        if self.jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self.jobs}")
        if self.just_top_level and self.flatten:
            raise ValueError("just-top-level and flatten cannot be combined")

    @property
    def renderer_enabled(self) -> bool:
        return bool(self.render_program) and self.render_program != "none"

    @classmethod
    def from_args(cls, args) -> "DiagramConfig":
        open_program = args.open_command if args.open_command is not None else default_open_program()
        return cls(
            start_module=args.module_name or "",
            target_dir=resolve_target_dir(args.target_dir or "", args.circuit_source or ""),
            just_top_level=args.just_top_level,
            flatten=args.flatten,
            rank_dir=args.rank_dir,
            use_ranking=args.rank_elements,
            show_printfs=args.show_printfs,
            dot_timeout=args.dot_timeout_seconds,
            render_program=args.render_program,
            open_program=open_program,
            jobs=args.jobs,
            plot_dependencies=args.plot_dependencies,
        )
