"""Run pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class VMConfig:
    """Groups VM execution configuration."""

    max_frames: int = constants.FRAMES_MAX
    max_steps: int | None = None
    verbose: bool = False


@dataclass
class ExecutionStats:
    """Execution metrics collected by the VM."""

    steps: int = 0
    max_stack_depth: int = 0
    max_frame_depth: int = 0
    heap_objects: int = 0


@dataclass
class PipelineStats:
    """Timing and size statistics for each pipeline stage."""

    source_bytes: int = 0
    source_lines: int = 0

    # Stage timings (seconds)
    tokenize_time: float = 0.0
    compile_time: float = 0.0
    execution_time: float = 0.0
    total_time: float = 0.0

    # Output sizes
    token_count: int = 0
    bytecode_units: int = 0
    constant_count: int = 0

    # Execution stats
    execution_steps: int = 0
    max_stack_depth: int = 0

    def report(self) -> str:
        lines = [
            "═══ Pipeline Statistics ═══",
            f"  Source: {self.source_lines} lines, {self.source_bytes} bytes",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>30}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 30}",
        ]

        stages = [
            ("Tokenize", self.tokenize_time, f"{self.token_count} tokens"),
            (
                "Compile",
                self.compile_time,
                f"{self.bytecode_units} units, {self.constant_count} constants",
            ),
            (
                "Execute (VM)",
                self.execution_time,
                f"{self.execution_steps} steps, depth {self.max_stack_depth}",
            ),
        ]
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>30}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 30}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        return "\n".join(lines)
