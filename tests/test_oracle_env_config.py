import pytest

from flightsurety.oracles.config import load_oracle_env


def test_defaults_use_memory_ledger(clean_env):
    cfg = load_oracle_env()
    assert cfg.ledger.mode == "memory"
    assert cfg.ledger.from_block == 0
    assert cfg.registration.oracles_count == 20
    assert cfg.registration.oracle_account_start_index == 30
    assert cfg.registration.airline_account_index == 1
    assert cfg.registration.index_space == 10
    assert cfg.dispatch.dedupe_requests is False
    assert cfg.dispatch.status_seed is None
    assert cfg.http.port == 3000


def test_web3_requires_app_address(clean_env):
    clean_env.setenv("FLIGHTSURETY_LEDGER", "web3")
    with pytest.raises(SystemExit):
        load_oracle_env()

    clean_env.setenv("FLIGHTSURETY_APP_ADDRESS", "0x" + "ab" * 20)
    cfg = load_oracle_env()
    assert cfg.ledger.mode == "web3"
    assert cfg.ledger.rpc_url == "http://127.0.0.1:8545"


def test_invalid_ledger_mode_exits(clean_env):
    clean_env.setenv("FLIGHTSURETY_LEDGER", "ganache")
    with pytest.raises(SystemExit):
        load_oracle_env()


def test_from_block_latest(clean_env):
    clean_env.setenv("FLIGHTSURETY_FROM_BLOCK", "latest")
    assert load_oracle_env().ledger.from_block is None


def test_non_numeric_value_exits(clean_env):
    clean_env.setenv("FLIGHTSURETY_ORACLES_COUNT", "many")
    with pytest.raises(SystemExit):
        load_oracle_env()


def test_airline_account_must_not_overlap_oracle_accounts(clean_env):
    clean_env.setenv("FLIGHTSURETY_AIRLINE_ACCOUNT_INDEX", "35")
    with pytest.raises(SystemExit):
        load_oracle_env()


def test_index_space_must_fit_three_indexes(clean_env):
    clean_env.setenv("FLIGHTSURETY_INDEX_SPACE", "2")
    with pytest.raises(SystemExit):
        load_oracle_env()


def test_testing_overrides(clean_env):
    clean_env.setenv("TESTING", "true")
    clean_env.setenv("TEST_FLIGHTSURETY_ORACLES_COUNT", "3")
    clean_env.setenv("FLIGHTSURETY_STATUS_SEED", "42")
    cfg = load_oracle_env()
    assert cfg.registration.oracles_count == 3
    assert cfg.dispatch.status_seed == 42
