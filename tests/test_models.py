import pytest

from flightsurety.core.models import STATUS_CODES, IndexSet, StatusCode, StatusRequest
from flightsurety.exceptions import InvalidIndex


def test_status_codes_match_ledger_values():
    assert [int(c) for c in STATUS_CODES] == [0, 10, 20, 30, 40, 50]
    assert StatusCode(20) is StatusCode.LATE_AIRLINE


def test_index_set_requires_three_in_range_values():
    assert list(IndexSet.from_ledger(["1", 4, 7])) == [1, 4, 7]

    with pytest.raises(InvalidIndex):
        IndexSet.from_ledger([1, 4])
    with pytest.raises(InvalidIndex):
        IndexSet.from_ledger([1, 4, 10])
    with pytest.raises(InvalidIndex):
        IndexSet.from_ledger([-1, 4, 5])


def test_status_request_from_event_args():
    req = StatusRequest.from_event_args(
        {"index": 4, "airline": "0xabc", "flight": "AA111", "timestamp": "1626280168"},
        block_number=12,
    )
    assert req.key == (4, "0xabc", "AA111", 1626280168)
    assert req.block_number == 12
    # Frozen models are hashable and compare by value.
    assert req == StatusRequest(index=4, airline="0xabc", flight="AA111", timestamp=1626280168, block_number=12)
