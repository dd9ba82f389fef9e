from __future__ import annotations

from voter_profile.core.bucket import Bucket


def test_new_bucket_is_empty_with_default_capacity():
    bucket = Bucket()
    assert len(bucket) == 0
    assert bucket.capacity == 10
    assert bucket.as_slice() == ()


def test_append_preserves_order(make_record):
    bucket = Bucket()
    records = [make_record(section=i) for i in range(5)]
    for r in records:
        bucket.append(r)

    assert bucket.as_slice() == tuple(records)
    assert list(bucket) == records
    assert bucket.capacity == 10


def test_growth_doubles_and_keeps_prior_entries(make_record):
    bucket = Bucket()
    records = [make_record(section=i) for i in range(25)]
    for r in records:
        bucket.append(r)

    assert len(bucket) == 25
    assert bucket.capacity == 40
    assert bucket.as_slice() == tuple(records)


def test_as_slice_never_exposes_empty_slots(make_record):
    bucket = Bucket(capacity=4)
    bucket.append(make_record())
    out = bucket.as_slice()
    assert len(out) == 1
    assert None not in out


def test_as_slice_is_a_snapshot(make_record):
    bucket = Bucket()
    bucket.append(make_record(section=1))
    before = bucket.as_slice()
    bucket.append(make_record(section=2))
    assert len(before) == 1
    assert len(bucket.as_slice()) == 2


def test_first(make_record):
    bucket = Bucket(capacity=1)
    assert bucket.first() is None
    a, b = make_record(section=1), make_record(section=2)
    bucket.append(a)
    bucket.append(b)
    assert bucket.first() is a
