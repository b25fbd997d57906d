"""Builder for single-invocation FFmpeg filter graphs with many outputs."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


def format_seconds(value: float) -> str:
    """Render a seek offset for ``-ss`` without float noise (``50.0`` -> ``50``)."""
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text or "0"


@dataclass(frozen=True)
class GraphInput:
    """One ``-i`` reference, optionally seeked before decoding."""

    path: Path
    seek: float | None = None

    def to_args(self) -> list[str]:
        args = [] if self.seek is None else ["-ss", format_seconds(self.seek)]
        return [*args, "-i", str(self.path)]


@dataclass(frozen=True)
class GraphOutput:
    """One output file fed from one or more graph labels."""

    labels: tuple[str, ...]
    path: Path
    options: tuple[str, ...] = ()

    def to_args(self) -> list[str]:
        args: list[str] = []
        for label in self.labels:
            args.extend(["-map", label])
        return [*args, *self.options, str(self.path)]


@dataclass
class FilterGraphBuilder:
    """
    Collects inputs, filter steps and output mappings for one ffmpeg call.

    Labels are allocated per prefix (``[ms0]``, ``[ms1]``, ...) so the
    generated graph is deterministic and can be asserted on without running
    ffmpeg.
    """

    overwrite: bool = True
    inputs: list[GraphInput] = field(default_factory=list)
    filters: list[str] = field(default_factory=list)
    outputs: list[GraphOutput] = field(default_factory=list)
    _label_counters: dict[str, int] = field(default_factory=lambda: defaultdict(int), repr=False)

    def add_input(self, path: Path, *, seek: float | None = None) -> int:
        """Register an input and return its ffmpeg input index."""
        self.inputs.append(GraphInput(path=path, seek=seek))
        return len(self.inputs) - 1

    def allocate_label(self, prefix: str) -> str:
        index = self._label_counters[prefix]
        self._label_counters[prefix] += 1
        return f"[{prefix}{index}]"

    @staticmethod
    def stream(input_index: int, specifier: str) -> str:
        """Label for an input stream, e.g. ``stream(2, "v:0") == "[2:v:0]"``."""
        return f"[{input_index}:{specifier}]"

    def add_filter(self, source: str, expression: str, outputs: Sequence[str]) -> None:
        self.filters.append(f"{source}{expression}{''.join(outputs)}")

    def split(self, source: str, count: int, prefix: str, *, audio: bool = False) -> list[str]:
        """Fan ``source`` out into ``count`` labelled branches."""
        labels = [self.allocate_label(prefix) for _ in range(count)]
        self.add_filter(source, f"{'asplit' if audio else 'split'}={count}", labels)
        return labels

    def scale(self, source: str, height: int, prefix: str, *, even_width: bool = False) -> str:
        """Scale to ``height`` keeping aspect ratio; ``even_width`` rounds width to a multiple of 2."""
        label = self.allocate_label(prefix)
        self.add_filter(source, f"scale={-2 if even_width else -1}:{height}", [label])
        return label

    def add_still_output(self, label: str, path: Path) -> None:
        self.outputs.append(GraphOutput(labels=(label,), path=path, options=("-frames:v", "1")))

    def add_output(self, labels: Sequence[str], path: Path, options: Sequence[str] = ()) -> None:
        self.outputs.append(GraphOutput(labels=tuple(labels), path=path, options=tuple(options)))

    @property
    def is_empty(self) -> bool:
        return not self.outputs

    def filter_complex(self) -> str:
        return ";".join(self.filters)

    def build(self, executable: str = "ffmpeg") -> list[str]:
        """Render the full command line."""
        cmd = [executable]
        if self.overwrite:
            cmd.append("-y")
        for graph_input in self.inputs:
            cmd.extend(graph_input.to_args())
        if self.filters:
            cmd.extend(["-filter_complex", self.filter_complex()])
        for output in self.outputs:
            cmd.extend(output.to_args())
        return cmd
