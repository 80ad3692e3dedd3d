"""
Quality gate serialization for the CI job configuration.

The consuming job template expects quality gates as a comma-joined sequence of
fragments: adjacent gates of the same type are grouped into a bracketed list,
a gate without a same-type neighbour is emitted as a bare record.

Example:
    serialize_quality_gates([autotests_1, autotests_2, manual_1])
    # [{"name":"autotests","step_name":"aut1"},{"name":"autotests","step_name":"aut2"}],
    # {"name":"manual","step_name":"man1"}
"""

from collections.abc import Sequence
from itertools import groupby

from pydantic import BaseModel

from cdstage.models import QualityGate


class QualityGateRecord(BaseModel):
    """Record emitted for one quality gate."""

    name: str
    step_name: str


def _render_run(run: list[QualityGate]) -> str:
    records = [
        QualityGateRecord(name=gate.quality_gate_type, step_name=gate.step_name).model_dump_json()
        for gate in run
    ]
    if len(records) == 1:
        return records[0]
    return "[" + ",".join(records) + "]"


def serialize_quality_gates(gates: Sequence[QualityGate] | None) -> str | None:
    """Serialize ordered quality gates into a job configuration fragment.

    Runs are formed by adjacency only, so a gate type may appear both inside
    a bracketed run and as a bare record further down the list.

    Args:
        gates: Quality gates in stage order

    Returns:
        The fragment, or None for empty input
    """
    if not gates:
        return None

    runs = [list(run) for _, run in groupby(gates, key=lambda g: g.quality_gate_type)]
    return ",".join(_render_run(run) for run in runs)
