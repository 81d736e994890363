"""
Per-layer timing accumulator for TensorRT inference.

An explicit LayerProfile is handed to ExecutionService.run(); TensorRT
reports layer times into it and the caller prints the table once the stream
has been synchronized.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List


@dataclass
class LayerRecord:
    time_ms: float = 0.0
    count: int = 0


class LayerProfile:
    """Layer name -> (cumulative ms, invocations), kept in first-seen order."""

    LAYER_HEADER = "TensorRT layer name"

    def __init__(self, name: str = "perf", sources: Iterable["LayerProfile"] = ()):
        self.name = name
        self._records: Dict[str, LayerRecord] = {}
        for source in sources:
            self.merge(source)

    # TensorRT IProfiler callback signature
    def report_layer_time(self, layer_name: str, ms: float):
        record = self._records.get(layer_name)
        if record is None:
            record = self._records[layer_name] = LayerRecord()
        record.count += 1
        record.time_ms += ms

    def merge(self, other: "LayerProfile") -> "LayerProfile":
        for layer_name, rec in other._records.items():
            mine = self._records.setdefault(layer_name, LayerRecord())
            mine.time_ms += rec.time_ms
            mine.count += rec.count
        return self

    @property
    def layer_names(self) -> List[str]:
        return list(self._records.keys())

    @property
    def total_ms(self) -> float:
        return sum(r.time_ms for r in self._records.values())

    def __getitem__(self, layer_name: str) -> LayerRecord:
        return self._records[layer_name]

    def __len__(self):
        return len(self._records)

    def clear(self):
        self._records.clear()

    def format_report(self) -> str:
        total = self.total_ms
        width = max([70, len(self.LAYER_HEADER)] + [len(n) for n in self._records])

        lines = [f"========== {self.name} profile =========="]
        lines.append(f"{self.LAYER_HEADER:>{width}} {'Runtime, %':>13} {'Invocations':>12} {'Runtime, ms':>12}")
        for layer_name, rec in self._records.items():
            share = (rec.time_ms * 100.0 / total) if total > 0 else 0.0
            lines.append(f"{layer_name:>{width}} {share:>12.1f}% {rec.count:>12d} {rec.time_ms:>12.2f}")
        lines.append(f"========== {self.name} total runtime = {total:.3f} ms ==========")
        return "\n".join(lines)

    def __str__(self):
        return self.format_report()
