from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from flightsurety.core.models import DEFAULT_INDEX_SPACE, INDEXES_PER_ORACLE
from flightsurety.utils.env import _env_bool, _env_float, _env_int, _env_optional_int, _env_str


LedgerMode = Literal["web3", "memory"]


@dataclass(frozen=True)
class LedgerConfig:
    mode: LedgerMode
    rpc_url: str
    app_address: Optional[str]
    abi_path: Optional[Path]
    gas: int
    poll_interval_s: float
    # None subscribes from the latest block only.
    from_block: Optional[int]
    mock_accounts: int
    mock_request_interval_s: float


@dataclass(frozen=True)
class RegistrationConfig:
    oracles_count: int
    oracle_account_start_index: int
    airline_account_index: int
    index_space: int
    register_flights: bool


@dataclass(frozen=True)
class DispatchConfig:
    submit_timeout_s: float
    dedupe_requests: bool
    status_seed: Optional[int]


@dataclass(frozen=True)
class HttpConfig:
    enabled: bool
    host: str
    port: int


@dataclass(frozen=True)
class OracleEnvConfig:
    ledger: LedgerConfig
    registration: RegistrationConfig
    dispatch: DispatchConfig
    http: HttpConfig


def _die(msg: str) -> None:
    raise SystemExit(f"[flightsurety] {msg}")


def _parse_from_block(raw: str) -> Optional[int]:
    raw = (raw or "0").strip().lower()
    if raw == "latest":
        return None
    try:
        block = int(raw)
    except ValueError:
        _die(f"Invalid FLIGHTSURETY_FROM_BLOCK={raw!r} (expected an integer or 'latest').")
    if block < 0:
        _die(f"FLIGHTSURETY_FROM_BLOCK must be >= 0. Got: {block}")
    return block


def load_oracle_env() -> OracleEnvConfig:
    """
    Load oracle server configuration from env/.env with strict validation.

    Every setting is read from a `FLIGHTSURETY_`-prefixed variable; invalid
    combinations abort startup with SystemExit.
    """
    try:
        return _load()
    except ValueError as exc:
        raise SystemExit(f"[flightsurety] Invalid numeric setting: {exc}") from exc


def _load() -> OracleEnvConfig:
    mode_raw = (_env_str("LEDGER", "memory") or "memory").lower()
    if mode_raw not in ("web3", "memory"):
        _die(f"Invalid FLIGHTSURETY_LEDGER={mode_raw!r} (expected 'web3' or 'memory').")
    mode: LedgerMode = "web3" if mode_raw == "web3" else "memory"

    rpc_url = _env_str("RPC_URL", "http://127.0.0.1:8545").rstrip("/")
    app_address = _env_str("APP_ADDRESS", "") or None
    abi_raw = _env_str("APP_ABI_PATH", "")
    abi_path = Path(abi_raw).expanduser() if abi_raw else None
    if mode == "web3":
        if not rpc_url.startswith("http"):
            _die(f"FLIGHTSURETY_RPC_URL must be http(s). Got: {rpc_url!r}")
        if not app_address:
            _die("Missing required env var: FLIGHTSURETY_APP_ADDRESS (required when FLIGHTSURETY_LEDGER=web3).")
        if abi_path is not None and not abi_path.is_file():
            _die(f"FLIGHTSURETY_APP_ABI_PATH does not exist: {abi_path}")

    ledger_cfg = LedgerConfig(
        mode=mode,
        rpc_url=rpc_url,
        app_address=app_address,
        abi_path=abi_path,
        gas=max(21_000, _env_int("GAS", 30_000_000)),
        poll_interval_s=max(0.1, min(60.0, _env_float("POLL_INTERVAL_S", 1.0))),
        from_block=_parse_from_block(_env_str("FROM_BLOCK", "0")),
        mock_accounts=max(1, _env_int("MOCK_ACCOUNTS", 50)),
        mock_request_interval_s=max(0.0, _env_float("MOCK_REQUEST_INTERVAL_S", 5.0)),
    )

    index_space = _env_int("INDEX_SPACE", DEFAULT_INDEX_SPACE)
    if index_space < INDEXES_PER_ORACLE:
        _die(f"FLIGHTSURETY_INDEX_SPACE must be >= {INDEXES_PER_ORACLE}. Got: {index_space}")
    oracles_count = _env_int("ORACLES_COUNT", 20)
    if oracles_count < 0:
        _die(f"FLIGHTSURETY_ORACLES_COUNT must be >= 0. Got: {oracles_count}")
    start_index = _env_int("ORACLE_ACCOUNT_START_INDEX", 30)
    airline_index = _env_int("AIRLINE_ACCOUNT_INDEX", 1)
    if start_index < 0 or airline_index < 0:
        _die("Account indexes must be >= 0.")
    if start_index <= airline_index < start_index + oracles_count:
        _die(
            f"FLIGHTSURETY_AIRLINE_ACCOUNT_INDEX={airline_index} overlaps the oracle accounts "
            f"[{start_index}, {start_index + oracles_count})."
        )

    registration_cfg = RegistrationConfig(
        oracles_count=oracles_count,
        oracle_account_start_index=start_index,
        airline_account_index=airline_index,
        index_space=index_space,
        register_flights=_env_bool("REGISTER_FLIGHTS", True),
    )

    submit_timeout_s = _env_float("SUBMIT_TIMEOUT_S", 30.0)
    if submit_timeout_s <= 0:
        _die(f"FLIGHTSURETY_SUBMIT_TIMEOUT_S must be > 0. Got: {submit_timeout_s}")
    dispatch_cfg = DispatchConfig(
        submit_timeout_s=submit_timeout_s,
        dedupe_requests=_env_bool("DEDUPE_REQUESTS", False),
        status_seed=_env_optional_int("STATUS_SEED"),
    )

    port = _env_int("HTTP_PORT", 3000)
    if not 0 < port < 65536:
        _die(f"FLIGHTSURETY_HTTP_PORT out of range: {port}")
    http_cfg = HttpConfig(
        enabled=_env_bool("HTTP_ENABLED", True),
        host=_env_str("HTTP_HOST", "127.0.0.1") or "127.0.0.1",
        port=port,
    )

    return OracleEnvConfig(
        ledger=ledger_cfg,
        registration=registration_cfg,
        dispatch=dispatch_cfg,
        http=http_cfg,
    )
