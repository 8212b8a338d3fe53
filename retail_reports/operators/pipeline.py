"""
Composable operator pipeline.

A Pipeline is an immutable list of operator steps over a source table.
Each builder call returns a new Pipeline, so partial pipelines can be
shared between reports. Nothing is evaluated until run().

Example:
    units = (
        Pipeline(sales, name="units")
        .join(stores, "store_id", require_match=True)
        .aggregate(["country"], total_units=("quantity", "sum"))
        .sort("total_units", ascending=False)
        .run()
    )
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence, Union

import pandas as pd

from retail_reports.logger import setup_logger
from . import relational, window

logger = setup_logger("reports.pipeline")


@dataclass(frozen=True)
class Step:
    """One operator application: a named function plus its arguments."""

    name: str
    function: Callable[..., pd.DataFrame]
    args: tuple = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    def apply(self, frame: pd.DataFrame) -> pd.DataFrame:
        args = tuple(_resolve(arg) for arg in self.args)
        return self.function(frame, *args, **self.kwargs)


def _resolve(value):
    """Nested pipelines used as join inputs are evaluated on demand."""
    if isinstance(value, Pipeline):
        return value.run()
    return value


class Pipeline:
    def __init__(
        self,
        source: Union[pd.DataFrame, "Pipeline"],
        name: str = "pipeline",
        steps: Sequence[Step] = (),
    ):
        self.source = source
        self.name = name
        self.steps = tuple(steps)

    def _then(self, step: Step) -> "Pipeline":
        return Pipeline(self.source, name=self.name, steps=self.steps + (step,))

    # --------------------------------------------------
    # Row operators
    # --------------------------------------------------

    def filter(self, predicate: Callable[[pd.DataFrame], pd.Series]) -> "Pipeline":
        return self._then(Step("filter", relational.filter_rows, (predicate,)))

    def join(
        self,
        right: Union[pd.DataFrame, "Pipeline"],
        left_on,
        right_on=None,
        how: str = "inner",
        require_match: bool = False,
        right_name: Optional[str] = None,
    ) -> "Pipeline":
        if right_name is None:
            right_name = right.name if isinstance(right, Pipeline) else "right"
        return self._then(
            Step(
                f"{how}_join",
                relational.join,
                (right, left_on, right_on),
                {"how": how, "require_match": require_match, "left_name": self.name, "right_name": right_name},
            )
        )

    def aggregate(self, keys, **aggregates) -> "Pipeline":
        return self._then(Step("aggregate", relational.group_aggregate, (keys, aggregates)))

    def having(self, predicate: Callable[[pd.DataFrame], pd.Series]) -> "Pipeline":
        """Filter applied after aggregation."""
        return self._then(Step("having", relational.filter_rows, (predicate,)))

    def assign(self, **columns) -> "Pipeline":
        return self._then(Step("assign", relational.assign_columns, kwargs=columns))

    def select(self, columns) -> "Pipeline":
        return self._then(Step("select", relational.select_columns, (columns,)))

    def distinct(self, columns=None) -> "Pipeline":
        return self._then(Step("distinct", relational.distinct_rows, (columns,)))

    # --------------------------------------------------
    # Window operators
    # --------------------------------------------------

    def rank(self, partition_keys, order_keys, ascending=True, output: str = "rank") -> "Pipeline":
        return self._then(
            Step("rank", window.rank, (partition_keys, order_keys), {"ascending": ascending, "output": output})
        )

    def lag(self, partition_keys, order_keys, column: str, n: int = 1, output: Optional[str] = None) -> "Pipeline":
        return self._then(
            Step("lag", window.lag, (partition_keys, order_keys, column), {"n": n, "output": output})
        )

    def running_sum(self, partition_keys, order_keys, column: str, output: Optional[str] = None) -> "Pipeline":
        return self._then(
            Step("running_sum", window.running_sum, (partition_keys, order_keys, column), {"output": output})
        )

    def top_per_group(self, partition_keys, order_keys, ascending=False, n: int = 1, output: str = "rank") -> "Pipeline":
        return self._then(
            Step(
                "top_per_group",
                window.top_per_group,
                (partition_keys, order_keys),
                {"ascending": ascending, "n": n, "output": output},
            )
        )

    # --------------------------------------------------
    # Presentation
    # --------------------------------------------------

    def sort(self, keys, ascending=True) -> "Pipeline":
        return self._then(Step("sort", relational.sort_rows, (keys, ascending)))

    def limit(self, n: int) -> "Pipeline":
        return self._then(Step("limit", relational.limit, (n,)))

    # --------------------------------------------------
    # Evaluation
    # --------------------------------------------------

    def describe(self) -> list[str]:
        return [step.name for step in self.steps]

    def run(self) -> pd.DataFrame:
        frame = _resolve(self.source)
        if not isinstance(frame, pd.DataFrame):
            raise TypeError(f"Pipeline '{self.name}' source must be a DataFrame, got {type(frame).__name__}")

        frame = frame.reset_index(drop=True)
        for step in self.steps:
            rows_in = len(frame)
            frame = step.apply(frame)
            logger.debug(f"[{self.name}] {step.name}: {rows_in} -> {len(frame)} rows")
        return frame

    def __repr__(self) -> str:
        return f"Pipeline({self.name!r}, steps={self.describe()})"
