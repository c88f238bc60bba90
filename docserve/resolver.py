"""Per-toolchain knowledge: where docs land and how to generate them."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Dict, List, Optional

from .config import BuildSystem, ConfigError, MissingOutputPath, ProjectConfig

_OUTPUT_DIRS: Dict[BuildSystem, Optional[str]] = {
    BuildSystem.GRADLE: "build/docs/javadoc",
    BuildSystem.CARGO: "target/doc",
    BuildSystem.ZIG: "docs",
    # Custom commands must say where they write.
    BuildSystem.CUSTOM: None,
}


def output_dir(
    project_root: Path, variant: BuildSystem, doc_output: str | None = None
) -> Path:
    """Return the directory the variant's toolchain writes documentation to.

    Pure path arithmetic: the directory is not required to exist.
    """
    if doc_output:
        return project_root / doc_output
    relative = _OUTPUT_DIRS[variant]
    if relative is None:
        raise MissingOutputPath(
            f"{variant.value} builds need an explicit `doc_output` for {project_root}"
        )
    return project_root / relative


def build_invocation(project_root: Path, project: ProjectConfig) -> List[str]:
    """Return the argument vector that regenerates docs for ``project``."""
    variant = project.build_system
    if variant is BuildSystem.GRADLE:
        wrapper = project_root / "gradlew"
        program = "./gradlew" if wrapper.is_file() else "gradle"
        return [program, "clean", "javadoc"]
    if variant is BuildSystem.CARGO:
        return ["cargo", "doc", "--no-deps"]
    if variant is BuildSystem.ZIG:
        root_file = find_zig_root(project_root)
        if root_file is None:
            raise FileNotFoundError(f"No .zig source file found under {project_root / 'src'}")
        return [
            "zig",
            "build-lib",
            "-femit-docs",
            "-fno-emit-bin",
            root_file.relative_to(project_root).as_posix(),
        ]
    if not project.build_command:
        raise ConfigError(f"Custom project '{project.path}' has no build_command")
    return shlex.split(project.build_command)


def find_zig_root(project_root: Path) -> Optional[Path]:
    """Locate the library root of a Zig project.

    Checked in order: ``src/root.zig``, ``src/<dir name>.zig``, then the
    first ``.zig`` file in ``src/`` by name.
    """
    src = project_root / "src"
    root_zig = src / "root.zig"
    if root_zig.is_file():
        return root_zig

    if project_root.name:
        named = src / f"{project_root.name}.zig"
        if named.is_file():
            return named

    if not src.is_dir():
        return None
    candidates = sorted(path for path in src.iterdir() if path.suffix == ".zig" and path.is_file())
    return candidates[0] if candidates else None


__all__ = ["build_invocation", "find_zig_root", "output_dir"]
