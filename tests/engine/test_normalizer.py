#!filepath: tests/engine/test_normalizer.py
import pytest

from herdsim.core.time import US_PER_DAY, US_PER_HOUR, US_PER_MINUTE
from herdsim.core.types import Record
from herdsim.engine.normalizer import Dataset, normalize
from herdsim.utils.errors import ConfigurationError, InvalidInputError


def _day_records(t0_us, n=145, step_minutes=10):
    # 0..1440 minutes inclusive -> exactly 24h span
    return [
        Record(entity_id=str(i % 3), ts_us=t0_us + i * step_minutes * US_PER_MINUTE, fields={"i": i})
        for i in range(n)
    ]


def test_normalize_sorts_ascending(make_records):
    records = make_records([("A", 10, {}), ("A", 0, {}), ("B", 5, {})])

    ds = normalize(records, 24)

    assert [r.ts_us for r in ds.records] == sorted(r.ts_us for r in records)
    assert ds.start_us == records[1].ts_us
    assert ds.end_us == records[0].ts_us


def test_normalize_is_stable_for_equal_timestamps(make_records):
    """
    冻结契约：相同 ts 保持输入中的相对顺序（segmentation 依赖遇到顺序）
    """
    records = make_records([("B", 5, {"k": 1}), ("A", 0, {}), ("A", 5, {"k": 2}), ("C", 5, {"k": 3})])

    ds = normalize(records, 24)

    assert [r.entity_id for r in ds.records] == ["A", "B", "A", "C"]


def test_normalize_short_horizon_preserves_cardinality(t0_us):
    records = list(reversed(_day_records(t0_us)))

    ds = normalize(records, 24)

    assert len(ds) == len(records)
    ts = [r.ts_us for r in ds.records]
    assert ts == sorted(ts)


def test_normalize_48h_doubles_and_shifts(t0_us):
    records = _day_records(t0_us)
    n = len(records)

    ds = normalize(records, 48)

    assert len(ds) == 2 * n
    first, second = ds.records[:n], ds.records[n:]
    for shifted, original in zip(first, second):
        assert original.ts_us - shifted.ts_us == US_PER_DAY
        assert shifted.fields == original.fields
    ts = [r.ts_us for r in ds.records]
    assert ts == sorted(ts)
    assert ds.end_us == records[-1].ts_us
    assert ds.span_us == 2 * US_PER_DAY


def test_normalize_48h_skipped_when_span_already_covers_horizon(t0_us):
    records = [
        Record("A", t0_us, {}),
        Record("A", t0_us + 48 * US_PER_HOUR, {}),
    ]

    ds = normalize(records, 48)

    assert len(ds) == 2


def test_normalize_does_not_mutate_input(make_records):
    records = make_records([("A", 10, {}), ("A", 0, {})])
    before = list(records)

    normalize(records, 48)

    assert records == before


def test_normalize_empty_default_horizon_returns_empty_dataset():
    ds = normalize([], 24)

    assert ds.is_empty
    assert ds.start_us is None
    assert ds.end_us is None
    assert ds.span_us == 0


def test_normalize_empty_with_extension_raises():
    with pytest.raises(InvalidInputError):
        normalize([], 48)


@pytest.mark.parametrize("horizon", [0, 12, 36, 72])
def test_normalize_rejects_unsupported_horizon(horizon, make_records):
    with pytest.raises(ConfigurationError):
        normalize(make_records([("A", 0, {})]), horizon)


def test_dataset_count_until_and_entities(ten_minute_records, t0_us):
    ds = normalize(ten_minute_records, 24)

    assert ds.count_until(t0_us - 1) == 0
    assert ds.count_until(t0_us + 5 * US_PER_MINUTE) == 3
    assert ds.count_until(t0_us + 10 * US_PER_MINUTE) == 4
    assert ds.entity_ids() == ["A", "B"]


def test_dataset_single_record_bounds(make_records):
    ds = Dataset(records=make_records([("A", 0, {})]))

    assert ds.start_us == ds.end_us
    assert ds.span_us == 0
