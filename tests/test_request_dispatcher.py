import asyncio
from typing import List, Tuple

from flightsurety.core.models import STATUS_CODES, OracleIdentity, StatusCode, StatusRequest
from flightsurety.ledger.memory import InMemoryLedger
from flightsurety.oracles.dispatcher import RequestDispatcher
from flightsurety.oracles.policy import SequenceStatusPolicy
from flightsurety.oracles.registrar import OracleRegistrar
from flightsurety.oracles.registry import IndexRegistry
from flightsurety.oracles.submitter import ResponseSubmitter

AIRLINE = "0x00000000000000000000000000000000000000a1"


def _request(index: int, flight: str = "AA111") -> StatusRequest:
    return StatusRequest(index=index, airline=AIRLINE, flight=flight, timestamp=1626280168)


def _setup(**dispatcher_kwargs) -> Tuple[InMemoryLedger, IndexRegistry, RequestDispatcher, List[OracleIdentity]]:
    ledger = InMemoryLedger(num_accounts=3)
    for account, idx in zip(ledger.accounts, ([1, 4, 7], [4, 7, 9], [2, 4, 9])):
        ledger.preassigned_indexes[account] = idx
    registry = IndexRegistry(10)
    oracles = asyncio.run(OracleRegistrar(ledger, registry).register_all(3))
    registry.freeze()
    dispatcher = RequestDispatcher(registry, ResponseSubmitter(ledger, timeout_s=1.0), **dispatcher_kwargs)
    return ledger, registry, dispatcher, oracles


class RecordingSubmitter:
    def __init__(self):
        self.calls: List[Tuple[OracleIdentity, StatusRequest]] = []
        self.submitted = 0
        self.failed = 0

    async def submit(self, oracle, request):  # noqa: ANN001
        self.calls.append((oracle, request))
        return None


def test_request_fans_out_to_every_oracle_holding_the_index():
    ledger, _, dispatcher, oracles = _setup()

    votes = asyncio.run(dispatcher.dispatch(_request(4)))

    assert len(votes) == 3
    assert {v.oracle for v in votes} == set(oracles)
    assert all(v.status_code in STATUS_CODES for v in votes)
    assert len(ledger.votes) == 3


def test_request_for_unheld_index_submits_nothing():
    ledger, _, dispatcher, _ = _setup()

    votes = asyncio.run(dispatcher.dispatch(_request(5)))

    assert votes == []
    assert ledger.votes == []
    assert dispatcher.submitter.failed == 0


def test_on_request_issues_one_submit_per_bucket_member():
    registry = IndexRegistry(10)
    a, b = OracleIdentity("0xa"), OracleIdentity("0xb")
    registry.assign_all(a, [0, 3, 6])
    registry.assign_all(b, [3, 6, 8])
    submitter = RecordingSubmitter()
    dispatcher = RequestDispatcher(registry, submitter)  # type: ignore[arg-type]

    async def scenario():
        for index in range(10):
            await asyncio.gather(*dispatcher.on_request(_request(index)))

    asyncio.run(scenario())

    counts = {i: sum(1 for _, r in submitter.calls if r.index == i) for i in range(10)}
    assert counts == {0: 1, 1: 0, 2: 0, 3: 2, 4: 0, 5: 0, 6: 2, 7: 0, 8: 1, 9: 0}


def test_one_failing_oracle_does_not_block_siblings_or_later_requests():
    ledger, _, dispatcher, oracles = _setup()
    ledger.failing_oracles.add(oracles[0].address)

    async def scenario():
        first = await dispatcher.dispatch(_request(4))
        second = await dispatcher.dispatch(_request(7, flight="DL111"))
        return first, second

    first, second = asyncio.run(scenario())

    assert sum(v is not None for v in first) == 2
    assert sum(v is not None for v in second) == 1
    assert {v.oracle for v in ledger.votes} == {oracles[1], oracles[2]}
    assert dispatcher.submitter.failed == 2


def test_redelivered_request_is_dispatched_again():
    # At-least-once delivery is accepted: the same event twice means two rounds of votes.
    ledger, _, dispatcher, _ = _setup()
    request = _request(4)

    async def scenario():
        await dispatcher.dispatch(request)
        await dispatcher.dispatch(request)

    asyncio.run(scenario())
    assert len(ledger.votes) == 6


def test_dedupe_skips_redelivered_request():
    ledger, _, dispatcher, _ = _setup(dedupe=True, dedupe_window=2)

    async def scenario():
        await dispatcher.dispatch(_request(4))
        await dispatcher.dispatch(_request(4))
        await dispatcher.dispatch(_request(4, flight="X1"))
        await dispatcher.dispatch(_request(4, flight="X2"))
        # Evicted from the window, so dispatched again.
        await dispatcher.dispatch(_request(4))

    asyncio.run(scenario())
    assert len(ledger.votes) == 12
    assert dispatcher.request_count == 4
    assert dispatcher.duplicates_skipped == 1


def test_run_consumes_subscription_and_drains_on_close():
    ledger, _, dispatcher, _ = _setup()
    ledger.submit_delay_s = 0.05
    dispatcher.submitter.policy = SequenceStatusPolicy([StatusCode.LATE_AIRLINE])

    async def scenario():
        sub = await ledger.subscribe_requests(from_block=None)
        runner = asyncio.create_task(dispatcher.run(sub))
        ledger.emit(_request(4))
        ledger.emit(_request(9, flight="DL222"))
        for _ in range(100):
            if dispatcher.request_count == 2:
                break
            await asyncio.sleep(0.01)
        sub.close()
        await asyncio.wait_for(runner, timeout=2.0)
        return dispatcher.in_flight

    in_flight = asyncio.run(scenario())

    assert in_flight == 0
    assert len(ledger.votes) == 5
    assert {v.status_code for v in ledger.votes} == {StatusCode.LATE_AIRLINE}


def test_run_replays_backlog_from_block():
    ledger, _, dispatcher, _ = _setup()
    ledger.emit(_request(1))
    ledger.emit(_request(2))

    async def scenario():
        sub = await ledger.subscribe_requests(from_block=1)
        runner = asyncio.create_task(dispatcher.run(sub))
        for _ in range(100):
            if dispatcher.request_count == 1:
                break
            await asyncio.sleep(0.01)
        sub.close()
        await asyncio.wait_for(runner, timeout=2.0)

    asyncio.run(scenario())
    assert [v.request.index for v in ledger.votes] == [2]


class _BrokenOncePolicy:
    def __init__(self):
        self.calls = 0

    def choose(self, oracle, request):  # noqa: ANN001
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("status source unavailable")
        return StatusCode.ON_TIME


def test_policy_error_for_one_oracle_does_not_abort_the_request():
    ledger, registry, _, oracles = _setup()
    submitter = ResponseSubmitter(ledger, _BrokenOncePolicy(), timeout_s=1.0)
    dispatcher = RequestDispatcher(registry, submitter)

    votes = asyncio.run(dispatcher.dispatch(_request(4)))

    assert len(votes) == 3
    assert sum(v is None for v in votes) == 1
    assert len(ledger.votes) == 2
    assert submitter.failed == 1
    assert submitter.recent_failures[0].vote.status_code == StatusCode.UNKNOWN
